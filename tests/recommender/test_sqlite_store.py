"""Tests for SQLiteCatalogStore."""

import sqlite3
from concurrent.futures import ThreadPoolExecutor

import pytest

from recommender.errors import (
    DependencyUnavailableError,
    GraphIntegrityError,
    InvalidRequestError,
    NotFoundError,
)
from recommender.models import LearningPath, MentorProfile, PathStep, Skill, StepProgress
from recommender.path_graph import PathGraphResolver
from recommender.repository import MentorPoolFilter
from recommender.service import RecommenderService
from recommender.store import SQLiteCatalogStore, path_from_dict
from shared_types import EnrollmentStatus, MenteeLevel, PathCategory, ProficiencyLevel

P = ProficiencyLevel


@pytest.fixture
def store(tmp_path, catalog_data):
    s = SQLiteCatalogStore(tmp_path / "catalog.db")
    s.import_catalog(catalog_data)
    return s


class TestImport:
    def test_counts(self, tmp_path, catalog_data):
        counts = SQLiteCatalogStore(tmp_path / "c.db").import_catalog(catalog_data)
        assert counts == {
            "skills": 4,
            "roles": 1,
            "users": 3,
            "paths": 2,
            "mentors": 2,
            "enrollments": 1,
            "progress": 2,
        }

    def test_reimport_is_idempotent(self, store, catalog_data):
        before = store.stats()
        store.import_catalog(catalog_data)
        assert store.stats() == before

    def test_creates_parent_dirs(self, tmp_path):
        SQLiteCatalogStore(tmp_path / "nested" / "dir" / "catalog.db")
        assert (tmp_path / "nested" / "dir" / "catalog.db").exists()

    def test_in_memory(self, catalog_data):
        store = SQLiteCatalogStore(":memory:")
        store.import_catalog(catalog_data)
        assert store.get_learning_path("devops-101").title == "Containers 101"

    def test_in_memory_shared_across_threads(self, catalog_data):
        store = SQLiteCatalogStore(":memory:")
        store.import_catalog(catalog_data)
        path_ids = ["devops-101", "backend-core"] * 4
        with ThreadPoolExecutor(max_workers=4) as pool:
            loaded = list(pool.map(store.get_learning_path, path_ids))
        assert [p.id for p in loaded] == path_ids
        assert loaded[0].title == "Containers 101"


class TestReads:
    def test_user_skills(self, store):
        assert store.get_user_skills("alice") == {"Python": P.INTERMEDIATE, "SQL": P.BEGINNER}
        assert store.get_user_skills("carol") == {}

    def test_unknown_user(self, store):
        with pytest.raises(NotFoundError):
            store.get_user_skills("nobody")

    def test_set_user_skill_upserts(self, store):
        store.set_user_skill("alice", "SQL", "ADVANCED")
        store.set_user_skill("alice", "SQL", P.EXPERT)
        assert store.get_user_skills("alice")["SQL"] == P.EXPERT

    def test_skills(self, store):
        assert store.get_skill("Go").market_demand == pytest.approx(0.6)
        assert set(store.get_skills(["Go", "SQL", "Cobol"])) == {"Go", "SQL"}
        with pytest.raises(NotFoundError):
            store.get_skill("Cobol")

    def test_learning_path_round_trip(self, store):
        path = store.get_learning_path("backend-core")
        assert path.category == PathCategory.WEB_DEVELOPMENT
        assert [s.id for s in path.steps] == ["b1", "b2", "b3", "b4"]
        steps = {s.id: s for s in path.steps}
        assert steps["b4"].prerequisite_step_ids == frozenset({"b2"})
        assert steps["b3"].is_required is False
        assert steps["b2"].required_skills == frozenset({"SQL"})
        assert path.covered_skills == frozenset({"Python", "SQL", "Docker"})

    def test_unknown_path(self, store):
        with pytest.raises(NotFoundError):
            store.get_learning_path("nope")

    def test_list_filters(self, store):
        assert [p.id for p in store.list_learning_paths()] == ["backend-core", "devops-101"]
        assert [p.id for p in store.list_learning_paths(category=PathCategory.DEVOPS)] == ["devops-101"]
        assert [p.id for p in store.list_learning_paths(max_duration_weeks=7)] == ["devops-101"]
        assert store.list_learning_paths(difficulty="expert") == []

    def test_progress_and_enrollment(self, store):
        progress = store.get_user_step_progress("alice", "backend-core")
        assert progress["b1"].completed is True
        assert progress["b2"].progress_percentage == 40.0
        enrollment = store.get_enrollment("alice", "backend-core")
        assert enrollment.status == EnrollmentStatus.IN_PROGRESS
        assert store.get_enrollment("bob", "backend-core") is None

    def test_record_progress_keeps_first_start(self, store):
        from datetime import datetime

        first = datetime(2026, 1, 1, 9, 0)
        store.record_step_progress("bob", "devops-101", StepProgress("d1", started_at=first))
        store.record_step_progress(
            "bob", "devops-101", StepProgress("d1", completed=True, started_at=datetime(2026, 2, 1))
        )
        saved = store.get_user_step_progress("bob", "devops-101")["d1"]
        assert saved.completed is True
        assert saved.started_at == first

    def test_step_ids_scoped_per_path(self, store):
        store.save_learning_path(LearningPath("rust-intro", "Rust", steps=[PathStep("intro", 1, "Ownership")]))
        store.save_learning_path(
            LearningPath(
                "go-intro",
                "Go",
                steps=[PathStep("intro", 1, "Tour"), PathStep("next", 2, prerequisite_step_ids={"intro"})],
            )
        )
        assert [s.title for s in store.get_learning_path("rust-intro").steps] == ["Ownership"]
        go = {s.id: s for s in store.get_learning_path("go-intro").steps}
        assert go["intro"].title == "Tour"
        assert go["next"].prerequisite_step_ids == frozenset({"intro"})

        store.record_step_progress("bob", "rust-intro", StepProgress("intro", completed=True))
        store.record_step_progress("bob", "go-intro", StepProgress("intro", progress_percentage=25.0))
        assert store.get_user_step_progress("bob", "rust-intro")["intro"].completed is True
        go_intro = store.get_user_step_progress("bob", "go-intro")["intro"]
        assert go_intro.completed is False
        assert go_intro.progress_percentage == 25.0

    def test_role_profile_case_insensitive(self, store):
        assert store.get_role_skill_profile("backend engineer")["Python"] == P.ADVANCED
        with pytest.raises(NotFoundError):
            store.get_role_skill_profile("Astronaut")


class TestMentors:
    def test_pool_and_filter(self, store):
        pool = store.get_mentor_pool()
        assert [m.id for m in pool] == ["m-ada", "m-full"]
        ada = pool[0]
        assert ada.expertise_areas == frozenset({"Python", "SQL"})
        assert ada.preferred_mentee_level == MenteeLevel.INTERMEDIATE
        assert ada.available_time_slots == frozenset({"mon-evening"})

        filtered = store.get_mentor_pool(MentorPoolFilter(industry="fintech", exclude_user_id="grace"))
        assert [m.id for m in filtered] == ["m-ada"]

    def test_accept_mentee_respects_capacity(self, store):
        assert store.try_accept_mentee("m-ada") is True
        assert store.try_accept_mentee("m-ada") is True
        assert store.try_accept_mentee("m-ada") is False
        ada = store.get_mentor_pool(MentorPoolFilter(predicate=lambda m: m.id == "m-ada"))[0]
        assert ada.current_mentees == ada.max_mentees == 3
        assert store.try_accept_mentee("m-full") is False

    def test_capacity_check_constraint(self, store):
        with pytest.raises(InvalidRequestError, match="Catalog data rejected"):
            store.save_mentor(MentorProfile(id="m-over", current_mentees=6, max_mentees=5))


class TestCohort:
    def test_distribution_counts_in_sql(self, store):
        dist = store.cohort_level_distribution(["alice", "bob", "carol"], ["Python", "SQL", "Go"])
        assert dist["Python"] == {P.INTERMEDIATE: 1, P.EXPERT: 1}
        assert dist["SQL"] == {P.BEGINNER: 1, P.ADVANCED: 1}
        assert dist["Go"] == {}

    def test_distribution_only_counts_cohort(self, store):
        dist = store.cohort_level_distribution(["alice"], ["Python"])
        assert dist["Python"] == {P.INTERMEDIATE: 1}

    def test_empty_skill_list(self, store):
        assert store.cohort_level_distribution(["alice"], []) == {}


class TestServiceOverStore:
    def test_end_to_end(self, store):
        service = RecommenderService(store)
        view = service.resolve_path_progress("alice", "backend-core")
        assert view.percent_complete == 33.33
        ranked = service.recommend_paths("alice", {"target_role": "Backend Engineer"})
        assert ranked.recommendations[0].path_id == "backend-core"
        report = service.cohort_gap_report(["alice", "bob"], role="Backend Engineer")
        assert {s.skill_name for s in report.skills} == {"Python", "SQL", "Docker"}

    def test_cyclic_path_detected_on_resolve(self, store):
        store.save_learning_path(
            path_from_dict(
                {
                    "id": "loop",
                    "title": "Loop",
                    "steps": [
                        {"id": "l1", "order": 1, "prerequisites": ["l2"]},
                        {"id": "l2", "order": 2, "prerequisites": ["l1"]},
                    ],
                }
            )
        )
        with pytest.raises(GraphIntegrityError):
            PathGraphResolver(store).resolve("alice", "loop")

    def test_save_path_replaces_steps(self, store):
        store.save_learning_path(
            LearningPath("devops-101", "Containers 101 v2", steps=[PathStep("n1", 1)], skills=frozenset({"Docker"}))
        )
        path = store.get_learning_path("devops-101")
        assert path.title == "Containers 101 v2"
        assert [s.id for s in path.steps] == ["n1"]

    def test_upsert_skill(self, store):
        store.upsert_skill(Skill("Go", category="programming", market_demand=0.95))
        assert store.get_skill("Go").market_demand == pytest.approx(0.95)


class TestFailures:
    def test_sqlite_errors_become_dependency_unavailable(self, store, monkeypatch):
        def broken(*args, **kwargs):
            raise sqlite3.OperationalError("database is locked")

        monkeypatch.setattr("recommender.store.wal_connect", broken)
        with pytest.raises(DependencyUnavailableError):
            store.get_user_skills("alice")
