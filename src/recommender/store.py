"""SQLite-backed CatalogRepository: skills, paths, progress, mentors, roles."""

import json
import sqlite3
import threading
from contextlib import contextmanager, nullcontext
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

import structlog

from db import wal_connect
from shared_types import (
    DifficultyLevel,
    EnrollmentStatus,
    MenteeLevel,
    MentorshipStyle,
    PathCategory,
    ProficiencyLevel,
    StepType,
)

from .errors import DependencyUnavailableError, InvalidRequestError, NotFoundError
from .models import Enrollment, LearningPath, MentorProfile, PathStep, Skill, StepProgress
from .repository import MentorPoolFilter

logger = structlog.get_logger()

_SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS skills (
        name TEXT PRIMARY KEY,
        category TEXT NOT NULL DEFAULT 'general',
        subcategory TEXT,
        market_demand REAL NOT NULL DEFAULT 0.0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS user_skills (
        user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        skill_name TEXT NOT NULL,
        proficiency_level TEXT NOT NULL,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        PRIMARY KEY (user_id, skill_name)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS learning_paths (
        id TEXT PRIMARY KEY,
        title TEXT NOT NULL,
        category TEXT NOT NULL,
        difficulty TEXT NOT NULL,
        estimated_duration_weeks INTEGER,
        skills_json TEXT NOT NULL DEFAULT '[]'
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS path_steps (
        id TEXT NOT NULL,
        path_id TEXT NOT NULL REFERENCES learning_paths(id) ON DELETE CASCADE,
        step_order INTEGER NOT NULL,
        title TEXT NOT NULL DEFAULT '',
        is_required INTEGER NOT NULL DEFAULT 1,
        step_type TEXT NOT NULL DEFAULT 'learning',
        estimated_hours INTEGER NOT NULL DEFAULT 0,
        required_skills_json TEXT NOT NULL DEFAULT '[]',
        PRIMARY KEY (path_id, id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS step_prerequisites (
        path_id TEXT NOT NULL,
        step_id TEXT NOT NULL,
        prerequisite_id TEXT NOT NULL,
        PRIMARY KEY (path_id, step_id, prerequisite_id),
        FOREIGN KEY (path_id, step_id) REFERENCES path_steps(path_id, id) ON DELETE CASCADE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS step_progress (
        user_id TEXT NOT NULL,
        path_id TEXT NOT NULL,
        step_id TEXT NOT NULL,
        completed INTEGER NOT NULL DEFAULT 0,
        progress_percentage REAL NOT NULL DEFAULT 0.0,
        time_spent_minutes INTEGER NOT NULL DEFAULT 0,
        attempts INTEGER NOT NULL DEFAULT 0,
        started_at TIMESTAMP,
        last_accessed_at TIMESTAMP,
        PRIMARY KEY (user_id, path_id, step_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS enrollments (
        user_id TEXT NOT NULL,
        path_id TEXT NOT NULL REFERENCES learning_paths(id) ON DELETE CASCADE,
        status TEXT NOT NULL DEFAULT 'not_started',
        progress_percentage REAL NOT NULL DEFAULT 0.0,
        time_spent_hours REAL NOT NULL DEFAULT 0.0,
        enrolled_at TIMESTAMP NOT NULL,
        last_accessed_at TIMESTAMP,
        PRIMARY KEY (user_id, path_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS mentors (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL DEFAULT '',
        expertise_json TEXT NOT NULL DEFAULT '[]',
        industries_json TEXT NOT NULL DEFAULT '[]',
        years_of_experience INTEGER NOT NULL DEFAULT 0,
        hourly_rate REAL,
        preferred_mentee_level TEXT,
        mentorship_style TEXT,
        current_mentees INTEGER NOT NULL DEFAULT 0,
        max_mentees INTEGER NOT NULL DEFAULT 5,
        average_rating REAL,
        total_reviews INTEGER NOT NULL DEFAULT 0,
        is_available INTEGER NOT NULL DEFAULT 1,
        time_slots_json TEXT NOT NULL DEFAULT '[]',
        timezone TEXT,
        bio TEXT NOT NULL DEFAULT '',
        CHECK (current_mentees <= max_mentees)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS role_profiles (
        role TEXT NOT NULL COLLATE NOCASE,
        skill_name TEXT NOT NULL,
        required_level TEXT NOT NULL,
        PRIMARY KEY (role, skill_name)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_user_skills_skill ON user_skills(skill_name)",
]


def _dump(values: Iterable[str]) -> str:
    return json.dumps(sorted(values))


def _ts(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_ts(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def step_from_dict(data: dict) -> PathStep:
    return PathStep(
        id=str(data["id"]),
        order=int(data["order"]),
        title=data.get("title", ""),
        is_required=bool(data.get("required", data.get("is_required", True))),
        required_skills=frozenset(data.get("skills", data.get("required_skills", []))),
        prerequisite_step_ids=frozenset(
            str(p) for p in data.get("prerequisites", data.get("prerequisite_step_ids", []))
        ),
        step_type=StepType(str(data.get("step_type", "learning")).lower()),
        estimated_hours=int(data.get("estimated_hours", 0)),
    )


def path_from_dict(data: dict) -> LearningPath:
    return LearningPath(
        id=str(data["id"]),
        title=data.get("title", data["id"]),
        category=PathCategory(str(data.get("category", "programming")).lower()),
        difficulty=DifficultyLevel(str(data.get("difficulty", "beginner")).lower()),
        estimated_duration_weeks=data.get("estimated_duration_weeks"),
        steps=[step_from_dict(s) for s in data.get("steps", [])],
        skills=frozenset(data.get("skills", [])),
    )


def mentor_from_dict(data: dict) -> MentorProfile:
    level = data.get("preferred_mentee_level")
    style = data.get("mentorship_style")
    return MentorProfile(
        id=str(data["id"]),
        user_id=str(data.get("user_id", "")),
        expertise_areas=frozenset(data.get("expertise", data.get("expertise_areas", []))),
        industries=frozenset(data.get("industries", [])),
        years_of_experience=int(data.get("years_of_experience", 0)),
        hourly_rate=data.get("hourly_rate"),
        preferred_mentee_level=MenteeLevel(str(level).lower()) if level else None,
        mentorship_style=MentorshipStyle(str(style).lower()) if style else None,
        current_mentees=int(data.get("current_mentees", 0)),
        max_mentees=int(data.get("max_mentees", 5)),
        average_rating=data.get("average_rating"),
        total_reviews=int(data.get("total_reviews", 0)),
        is_available=bool(data.get("is_available", True)),
        available_time_slots=frozenset(data.get("time_slots", data.get("available_time_slots", []))),
        timezone=data.get("timezone"),
        bio=data.get("bio", ""),
    )


class SQLiteCatalogStore:
    """SQLite persistence for the catalog and per-user learning state.

    A file-backed store opens a fresh connection per call. ":memory:" keeps
    one shared connection, serialized by a lock so any thread may use it.
    """

    def __init__(self, db_path: str | Path):
        self.db_path = db_path if str(db_path) == ":memory:" else Path(db_path).expanduser()
        self._memory_conn = None
        self._memory_lock = threading.RLock()
        if str(db_path) == ":memory:":
            # A private in-memory db lives only as long as one connection
            self._memory_conn = wal_connect(":memory:", row_factory=True, check_same_thread=False)
        self._init_tables()

    @contextmanager
    def _connect(self):
        """Connection scope: commit on success, roll back and translate sqlite errors.

        Constraint violations become InvalidRequestError; every other sqlite
        error becomes DependencyUnavailableError.
        """
        lock = self._memory_lock if self._memory_conn is not None else nullcontext()
        with lock:
            try:
                conn = self._memory_conn or wal_connect(self.db_path, row_factory=True)
            except sqlite3.Error as e:
                logger.error("store.connect_error", db=str(self.db_path), error=str(e))
                raise DependencyUnavailableError(f"Catalog store unavailable: {e}") from e
            try:
                with conn:
                    yield conn
            except sqlite3.IntegrityError as e:
                logger.warning("store.integrity_error", db=str(self.db_path), error=str(e))
                raise InvalidRequestError(f"Catalog data rejected: {e}") from e
            except sqlite3.Error as e:
                logger.error("store.sqlite_error", db=str(self.db_path), error=str(e))
                raise DependencyUnavailableError(f"Catalog store error: {e}") from e
            finally:
                if conn is not self._memory_conn:
                    conn.close()

    def _init_tables(self):
        with self._connect() as conn:
            for statement in _SCHEMA:
                conn.execute(statement)

    # --- writes ---

    def add_user(self, user_id: str) -> None:
        with self._connect() as conn:
            conn.execute("INSERT OR IGNORE INTO users (id) VALUES (?)", (user_id,))

    def upsert_skill(self, skill: Skill) -> None:
        with self._connect() as conn:
            conn.execute(
                """INSERT INTO skills (name, category, subcategory, market_demand)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(name) DO UPDATE SET
                    category = excluded.category,
                    subcategory = excluded.subcategory,
                    market_demand = excluded.market_demand""",
                (skill.name, skill.category, skill.subcategory, skill.market_demand),
            )

    def set_user_skill(self, user_id: str, skill_name: str, level: ProficiencyLevel) -> None:
        """Upsert the user's level for a skill (one row per user/skill)."""
        level = ProficiencyLevel.parse(level)
        with self._connect() as conn:
            conn.execute("INSERT OR IGNORE INTO users (id) VALUES (?)", (user_id,))
            conn.execute(
                """INSERT INTO user_skills (user_id, skill_name, proficiency_level, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(user_id, skill_name) DO UPDATE SET
                    proficiency_level = excluded.proficiency_level,
                    updated_at = excluded.updated_at""",
                (user_id, skill_name, str(level), datetime.now().isoformat()),
            )

    def save_learning_path(self, path: LearningPath) -> None:
        """Insert or replace a path with its steps and prerequisite edges."""
        with self._connect() as conn:
            conn.execute(
                """INSERT INTO learning_paths
                (id, title, category, difficulty, estimated_duration_weeks, skills_json)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    title = excluded.title,
                    category = excluded.category,
                    difficulty = excluded.difficulty,
                    estimated_duration_weeks = excluded.estimated_duration_weeks,
                    skills_json = excluded.skills_json""",
                (
                    path.id,
                    path.title,
                    str(path.category),
                    str(path.difficulty),
                    path.estimated_duration_weeks,
                    _dump(path.skills),
                ),
            )
            conn.execute("DELETE FROM path_steps WHERE path_id = ?", (path.id,))
            for step in path.steps:
                conn.execute(
                    """INSERT INTO path_steps
                    (id, path_id, step_order, title, is_required, step_type,
                     estimated_hours, required_skills_json)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                    (
                        step.id,
                        path.id,
                        step.order,
                        step.title,
                        int(step.is_required),
                        str(step.step_type),
                        step.estimated_hours,
                        _dump(step.required_skills),
                    ),
                )
                conn.executemany(
                    "INSERT INTO step_prerequisites (path_id, step_id, prerequisite_id) VALUES (?, ?, ?)",
                    [(path.id, step.id, pre) for pre in sorted(step.prerequisite_step_ids)],
                )

    def record_step_progress(self, user_id: str, path_id: str, progress: StepProgress) -> None:
        with self._connect() as conn:
            conn.execute(
                """INSERT INTO step_progress
                (user_id, path_id, step_id, completed, progress_percentage,
                 time_spent_minutes, attempts, started_at, last_accessed_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(user_id, path_id, step_id) DO UPDATE SET
                    completed = excluded.completed,
                    progress_percentage = excluded.progress_percentage,
                    time_spent_minutes = excluded.time_spent_minutes,
                    attempts = excluded.attempts,
                    started_at = COALESCE(step_progress.started_at, excluded.started_at),
                    last_accessed_at = excluded.last_accessed_at""",
                (
                    user_id,
                    path_id,
                    progress.step_id,
                    int(progress.completed),
                    progress.progress_percentage,
                    progress.time_spent_minutes,
                    progress.attempts,
                    _ts(progress.started_at),
                    _ts(progress.last_accessed_at),
                ),
            )

    def upsert_enrollment(self, enrollment: Enrollment) -> None:
        with self._connect() as conn:
            conn.execute(
                """INSERT INTO enrollments
                (user_id, path_id, status, progress_percentage, time_spent_hours,
                 enrolled_at, last_accessed_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(user_id, path_id) DO UPDATE SET
                    status = excluded.status,
                    progress_percentage = excluded.progress_percentage,
                    time_spent_hours = excluded.time_spent_hours,
                    last_accessed_at = excluded.last_accessed_at""",
                (
                    enrollment.user_id,
                    enrollment.path_id,
                    str(enrollment.status),
                    enrollment.progress_percentage,
                    enrollment.time_spent_hours,
                    _ts(enrollment.enrolled_at),
                    _ts(enrollment.last_accessed_at),
                ),
            )

    def save_mentor(self, mentor: MentorProfile) -> None:
        with self._connect() as conn:
            conn.execute(
                """INSERT OR REPLACE INTO mentors
                (id, user_id, expertise_json, industries_json, years_of_experience,
                 hourly_rate, preferred_mentee_level, mentorship_style, current_mentees,
                 max_mentees, average_rating, total_reviews, is_available,
                 time_slots_json, timezone, bio)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    mentor.id,
                    mentor.user_id,
                    _dump(mentor.expertise_areas),
                    _dump(mentor.industries),
                    mentor.years_of_experience,
                    mentor.hourly_rate,
                    str(mentor.preferred_mentee_level) if mentor.preferred_mentee_level else None,
                    str(mentor.mentorship_style) if mentor.mentorship_style else None,
                    mentor.current_mentees,
                    mentor.max_mentees,
                    mentor.average_rating,
                    mentor.total_reviews,
                    int(mentor.is_available),
                    _dump(mentor.available_time_slots),
                    mentor.timezone,
                    mentor.bio,
                ),
            )

    def try_accept_mentee(self, mentor_id: str) -> bool:
        """Atomically take one mentee slot; False when the mentor is already full.

        The capacity check runs inside the UPDATE, so two concurrent accepts can
        never push current_mentees past max_mentees.
        """
        with self._connect() as conn:
            cursor = conn.execute(
                """UPDATE mentors SET current_mentees = current_mentees + 1
                WHERE id = ? AND current_mentees < max_mentees""",
                (mentor_id,),
            )
            accepted = cursor.rowcount > 0
        logger.info("store.accept_mentee", mentor_id=mentor_id, accepted=accepted)
        return accepted

    def save_role_profile(self, role: str, profile: dict[str, ProficiencyLevel]) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM role_profiles WHERE role = ?", (role,))
            conn.executemany(
                "INSERT INTO role_profiles (role, skill_name, required_level) VALUES (?, ?, ?)",
                [(role, name, str(ProficiencyLevel.parse(lvl))) for name, lvl in profile.items()],
            )

    def import_catalog(self, data: dict) -> dict[str, int]:
        """Load a seed document (parsed YAML/JSON) and return counts per section."""
        counts = {"skills": 0, "roles": 0, "users": 0, "paths": 0, "mentors": 0, "enrollments": 0, "progress": 0}
        for item in data.get("skills", []):
            self.upsert_skill(
                Skill(
                    name=item["name"],
                    category=item.get("category", "general"),
                    subcategory=item.get("subcategory"),
                    market_demand=float(item.get("market_demand", 0.0)),
                )
            )
            counts["skills"] += 1
        for role, profile in (data.get("roles") or {}).items():
            self.save_role_profile(role, profile)
            counts["roles"] += 1
        for user_id, user in (data.get("users") or {}).items():
            self.add_user(str(user_id))
            for name, level in (user or {}).get("skills", {}).items():
                self.set_user_skill(str(user_id), name, level)
            counts["users"] += 1
        for item in data.get("paths", []):
            self.save_learning_path(path_from_dict(item))
            counts["paths"] += 1
        for item in data.get("mentors", []):
            self.save_mentor(mentor_from_dict(item))
            counts["mentors"] += 1
        for item in data.get("enrollments", []):
            self.upsert_enrollment(
                Enrollment(
                    user_id=str(item["user_id"]),
                    path_id=str(item["path_id"]),
                    status=EnrollmentStatus(str(item.get("status", "not_started")).lower()),
                    enrolled_at=_parse_ts(item.get("enrolled_at")) or datetime.now(),
                )
            )
            counts["enrollments"] += 1
        for item in data.get("progress", []):
            self.record_step_progress(
                str(item["user_id"]),
                str(item["path_id"]),
                StepProgress(
                    step_id=str(item["step_id"]),
                    completed=bool(item.get("completed", False)),
                    progress_percentage=float(item.get("progress_percentage", 0.0)),
                    time_spent_minutes=int(item.get("time_spent_minutes", 0)),
                    attempts=int(item.get("attempts", 0)),
                    started_at=_parse_ts(item.get("started_at")),
                    last_accessed_at=_parse_ts(item.get("last_accessed_at")),
                ),
            )
            counts["progress"] += 1
        logger.info("store.catalog_imported", **counts)
        return counts

    def stats(self) -> dict[str, int]:
        tables = ("users", "skills", "learning_paths", "path_steps", "mentors", "role_profiles", "enrollments")
        with self._connect() as conn:
            return {t: conn.execute(f"SELECT COUNT(*) FROM {t}").fetchone()[0] for t in tables}

    # --- CatalogRepository reads ---

    def get_user_skills(self, user_id: str) -> dict[str, ProficiencyLevel]:
        with self._connect() as conn:
            if conn.execute("SELECT 1 FROM users WHERE id = ?", (user_id,)).fetchone() is None:
                raise NotFoundError("user", user_id)
            rows = conn.execute(
                "SELECT skill_name, proficiency_level FROM user_skills WHERE user_id = ?",
                (user_id,),
            ).fetchall()
        return {r["skill_name"]: ProficiencyLevel(r["proficiency_level"]) for r in rows}

    @staticmethod
    def _row_to_skill(row: sqlite3.Row) -> Skill:
        return Skill(
            name=row["name"],
            category=row["category"],
            subcategory=row["subcategory"],
            market_demand=row["market_demand"],
        )

    def get_skill(self, name: str) -> Skill:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM skills WHERE name = ?", (name,)).fetchone()
        if row is None:
            raise NotFoundError("skill", name)
        return self._row_to_skill(row)

    def get_skills(self, names: Iterable[str]) -> dict[str, Skill]:
        wanted = list(dict.fromkeys(names))
        if not wanted:
            return {}
        placeholders = ",".join("?" * len(wanted))
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT * FROM skills WHERE name IN ({placeholders})", wanted
            ).fetchall()
        return {r["name"]: self._row_to_skill(r) for r in rows}

    def _load_steps(self, conn: sqlite3.Connection, path_id: str) -> list[PathStep]:
        rows = conn.execute(
            "SELECT * FROM path_steps WHERE path_id = ? ORDER BY step_order, id", (path_id,)
        ).fetchall()
        edges: dict[str, set[str]] = {}
        for edge in conn.execute(
            "SELECT step_id, prerequisite_id FROM step_prerequisites WHERE path_id = ?",
            (path_id,),
        ):
            edges.setdefault(edge["step_id"], set()).add(edge["prerequisite_id"])
        return [
            PathStep(
                id=r["id"],
                order=r["step_order"],
                title=r["title"],
                is_required=bool(r["is_required"]),
                required_skills=frozenset(json.loads(r["required_skills_json"])),
                prerequisite_step_ids=frozenset(edges.get(r["id"], ())),
                step_type=StepType(r["step_type"]),
                estimated_hours=r["estimated_hours"],
            )
            for r in rows
        ]

    def _row_to_path(self, conn: sqlite3.Connection, row: sqlite3.Row) -> LearningPath:
        return LearningPath(
            id=row["id"],
            title=row["title"],
            category=PathCategory(row["category"]),
            difficulty=DifficultyLevel(row["difficulty"]),
            estimated_duration_weeks=row["estimated_duration_weeks"],
            steps=self._load_steps(conn, row["id"]),
            skills=frozenset(json.loads(row["skills_json"])),
        )

    def get_learning_path(self, path_id: str) -> LearningPath:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM learning_paths WHERE id = ?", (path_id,)).fetchone()
            if row is None:
                raise NotFoundError("learning path", path_id)
            return self._row_to_path(conn, row)

    def list_learning_paths(self, category=None, difficulty=None, max_duration_weeks=None) -> list[LearningPath]:
        query = "SELECT * FROM learning_paths WHERE 1=1"
        params: list = []
        if category:
            query += " AND category = ?"
            params.append(str(category))
        if difficulty:
            query += " AND difficulty = ?"
            params.append(str(difficulty))
        if max_duration_weeks is not None:
            query += " AND estimated_duration_weeks IS NOT NULL AND estimated_duration_weeks <= ?"
            params.append(max_duration_weeks)
        query += " ORDER BY id"
        with self._connect() as conn:
            return [self._row_to_path(conn, r) for r in conn.execute(query, params).fetchall()]

    def get_user_step_progress(self, user_id: str, path_id: str) -> dict[str, StepProgress]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM step_progress WHERE user_id = ? AND path_id = ?",
                (user_id, path_id),
            ).fetchall()
        return {
            r["step_id"]: StepProgress(
                step_id=r["step_id"],
                completed=bool(r["completed"]),
                progress_percentage=r["progress_percentage"],
                time_spent_minutes=r["time_spent_minutes"],
                attempts=r["attempts"],
                started_at=_parse_ts(r["started_at"]),
                last_accessed_at=_parse_ts(r["last_accessed_at"]),
            )
            for r in rows
        }

    def get_enrollment(self, user_id: str, path_id: str) -> Optional[Enrollment]:
        with self._connect() as conn:
            r = conn.execute(
                "SELECT * FROM enrollments WHERE user_id = ? AND path_id = ?", (user_id, path_id)
            ).fetchone()
        if r is None:
            return None
        return Enrollment(
            user_id=r["user_id"],
            path_id=r["path_id"],
            status=EnrollmentStatus(r["status"]),
            progress_percentage=r["progress_percentage"],
            time_spent_hours=r["time_spent_hours"],
            enrolled_at=_parse_ts(r["enrolled_at"]),
            last_accessed_at=_parse_ts(r["last_accessed_at"]),
        )

    def get_mentor_pool(self, pool_filter: Optional[MentorPoolFilter] = None) -> list[MentorProfile]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM mentors ORDER BY id").fetchall()
        pool = [
            MentorProfile(
                id=r["id"],
                user_id=r["user_id"],
                expertise_areas=frozenset(json.loads(r["expertise_json"])),
                industries=frozenset(json.loads(r["industries_json"])),
                years_of_experience=r["years_of_experience"],
                hourly_rate=r["hourly_rate"],
                preferred_mentee_level=(
                    MenteeLevel(r["preferred_mentee_level"]) if r["preferred_mentee_level"] else None
                ),
                mentorship_style=MentorshipStyle(r["mentorship_style"]) if r["mentorship_style"] else None,
                current_mentees=r["current_mentees"],
                max_mentees=r["max_mentees"],
                average_rating=r["average_rating"],
                total_reviews=r["total_reviews"],
                is_available=bool(r["is_available"]),
                available_time_slots=frozenset(json.loads(r["time_slots_json"])),
                timezone=r["timezone"],
                bio=r["bio"],
            )
            for r in rows
        ]
        if pool_filter is None:
            return pool
        return [m for m in pool if pool_filter.accepts(m)]

    def get_role_skill_profile(self, role: str) -> dict[str, ProficiencyLevel]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT skill_name, required_level FROM role_profiles WHERE role = ?", (role,)
            ).fetchall()
        if not rows:
            raise NotFoundError("role", role)
        return {r["skill_name"]: ProficiencyLevel(r["required_level"]) for r in rows}

    def cohort_level_distribution(self, user_ids, skill_names) -> dict[str, dict[ProficiencyLevel, int]]:
        """Per-skill level histogram for a cohort, counted by SQLite."""
        skills = list(dict.fromkeys(skill_names))
        distribution: dict[str, dict[ProficiencyLevel, int]] = {s: {} for s in skills}
        if not skills:
            return distribution
        placeholders = ",".join("?" * len(skills))
        with self._connect() as conn:
            conn.execute("CREATE TEMP TABLE IF NOT EXISTS cohort_users (user_id TEXT PRIMARY KEY)")
            conn.execute("DELETE FROM cohort_users")
            conn.executemany(
                "INSERT OR IGNORE INTO cohort_users (user_id) VALUES (?)", [(u,) for u in user_ids]
            )
            rows = conn.execute(
                f"""SELECT us.skill_name, us.proficiency_level, COUNT(*) AS n
                FROM user_skills us
                JOIN cohort_users c ON c.user_id = us.user_id
                WHERE us.skill_name IN ({placeholders})
                GROUP BY us.skill_name, us.proficiency_level""",
                skills,
            ).fetchall()
        for r in rows:
            distribution[r["skill_name"]][ProficiencyLevel(r["proficiency_level"])] = r["n"]
        return distribution
