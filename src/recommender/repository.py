"""Read-only snapshot contract between the engine and its data store."""

from collections import Counter
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Protocol

import structlog

from shared_types import DifficultyLevel, PathCategory, ProficiencyLevel

from .errors import NotFoundError
from .models import Enrollment, LearningPath, MentorProfile, Skill, StepProgress

logger = structlog.get_logger()


@dataclass(frozen=True)
class MentorPoolFilter:
    """Pool-fetch filter.

    `predicate` carries capability checks owned outside the engine (e.g. "mentor
    role verified"); scoring never looks at roles.
    """

    industry: Optional[str] = None
    exclude_user_id: Optional[str] = None
    predicate: Optional[Callable[[MentorProfile], bool]] = None

    def accepts(self, profile: MentorProfile) -> bool:
        if self.exclude_user_id and profile.user_id == self.exclude_user_id:
            return False
        if self.industry:
            wanted = self.industry.casefold().strip()
            if wanted not in {i.casefold().strip() for i in profile.industries}:
                return False
        if self.predicate is not None and not self.predicate(profile):
            return False
        return True


class CatalogRepository(Protocol):
    """Snapshot reads the engine performs. Implementations raise NotFoundError
    for unknown ids and DependencyUnavailableError when the backing store fails."""

    def get_user_skills(self, user_id: str) -> dict[str, ProficiencyLevel]: ...

    def get_skill(self, name: str) -> Skill: ...

    def get_skills(self, names: Iterable[str]) -> dict[str, Skill]: ...

    def get_learning_path(self, path_id: str) -> LearningPath: ...

    def list_learning_paths(
        self,
        category: Optional[PathCategory] = None,
        difficulty: Optional[DifficultyLevel] = None,
        max_duration_weeks: Optional[int] = None,
    ) -> list[LearningPath]: ...

    def get_user_step_progress(self, user_id: str, path_id: str) -> dict[str, StepProgress]: ...

    def get_enrollment(self, user_id: str, path_id: str) -> Optional[Enrollment]: ...

    def get_mentor_pool(self, pool_filter: Optional[MentorPoolFilter] = None) -> list[MentorProfile]: ...

    def get_role_skill_profile(self, role: str) -> dict[str, ProficiencyLevel]: ...

    def cohort_level_distribution(
        self, user_ids: Iterable[str], skill_names: Iterable[str]
    ) -> dict[str, dict[ProficiencyLevel, int]]: ...


class InMemoryRepository:
    """Dict-backed CatalogRepository for embedding and tests."""

    def __init__(
        self,
        skills: Iterable[Skill] = (),
        paths: Iterable[LearningPath] = (),
        mentors: Iterable[MentorProfile] = (),
        user_skills: Optional[dict[str, dict[str, ProficiencyLevel]]] = None,
        role_profiles: Optional[dict[str, dict[str, ProficiencyLevel]]] = None,
        step_progress: Optional[dict[tuple[str, str], dict[str, StepProgress]]] = None,
        enrollments: Iterable[Enrollment] = (),
    ):
        self.skills = {s.name: s for s in skills}
        self.paths = {p.id: p for p in paths}
        self.mentors = {m.id: m for m in mentors}
        self.user_skills = {u: dict(s) for u, s in (user_skills or {}).items()}
        self.role_profiles = {r.casefold(): dict(p) for r, p in (role_profiles or {}).items()}
        self.step_progress = dict(step_progress or {})
        self.enrollments = {(e.user_id, e.path_id): e for e in enrollments}

    # --- writes (test setup / embedding) ---

    def set_user_skill(self, user_id: str, skill_name: str, level: ProficiencyLevel) -> None:
        """Upsert: one level per (user, skill)."""
        self.user_skills.setdefault(user_id, {})[skill_name] = level

    def record_step_progress(self, user_id: str, path_id: str, progress: StepProgress) -> None:
        self.step_progress.setdefault((user_id, path_id), {})[progress.step_id] = progress

    # --- CatalogRepository ---

    def get_user_skills(self, user_id: str) -> dict[str, ProficiencyLevel]:
        if user_id not in self.user_skills:
            raise NotFoundError("user", user_id)
        return dict(self.user_skills[user_id])

    def get_skill(self, name: str) -> Skill:
        try:
            return self.skills[name]
        except KeyError:
            raise NotFoundError("skill", name) from None

    def get_skills(self, names: Iterable[str]) -> dict[str, Skill]:
        return {n: self.skills[n] for n in names if n in self.skills}

    def get_learning_path(self, path_id: str) -> LearningPath:
        try:
            return self.paths[path_id]
        except KeyError:
            raise NotFoundError("learning path", path_id) from None

    def list_learning_paths(self, category=None, difficulty=None, max_duration_weeks=None) -> list[LearningPath]:
        result = []
        for path in self.paths.values():
            if category and path.category != category:
                continue
            if difficulty and path.difficulty != difficulty:
                continue
            if max_duration_weeks is not None and (
                path.estimated_duration_weeks is None or path.estimated_duration_weeks > max_duration_weeks
            ):
                continue
            result.append(path)
        return sorted(result, key=lambda p: p.id)

    def get_user_step_progress(self, user_id: str, path_id: str) -> dict[str, StepProgress]:
        return dict(self.step_progress.get((user_id, path_id), {}))

    def get_enrollment(self, user_id: str, path_id: str) -> Optional[Enrollment]:
        return self.enrollments.get((user_id, path_id))

    def get_mentor_pool(self, pool_filter: Optional[MentorPoolFilter] = None) -> list[MentorProfile]:
        pool = sorted(self.mentors.values(), key=lambda m: m.id)
        if pool_filter is None:
            return pool
        return [m for m in pool if pool_filter.accepts(m)]

    def get_role_skill_profile(self, role: str) -> dict[str, ProficiencyLevel]:
        try:
            return dict(self.role_profiles[role.casefold()])
        except KeyError:
            raise NotFoundError("role", role) from None

    def cohort_level_distribution(self, user_ids, skill_names) -> dict[str, dict[ProficiencyLevel, int]]:
        users = list(dict.fromkeys(user_ids))
        distribution: dict[str, dict[ProficiencyLevel, int]] = {}
        for skill in skill_names:
            counts = Counter(
                self.user_skills[u][skill]
                for u in users
                if skill in self.user_skills.get(u, {})
            )
            distribution[skill] = dict(counts)
        return distribution
