"""Shared test fixtures for skillpath."""

import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from observability import metrics  # noqa: E402
from recommender.models import (  # noqa: E402
    Enrollment,
    LearningPath,
    MentorProfile,
    PathStep,
    Skill,
    StepProgress,
)
from recommender.repository import InMemoryRepository  # noqa: E402
from shared_types import (  # noqa: E402
    DifficultyLevel,
    EnrollmentStatus,
    MenteeLevel,
    MentorshipStyle,
    PathCategory,
    ProficiencyLevel,
)

P = ProficiencyLevel


@pytest.fixture(autouse=True)
def reset_metrics():
    """Module-level metrics singleton must not leak between tests."""
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def sample_skills():
    return [
        Skill("Python", category="programming", market_demand=0.9),
        Skill("SQL", category="data", market_demand=0.8),
        Skill("Go", category="programming", market_demand=0.6),
        Skill("Docker", category="devops", market_demand=0.7),
        Skill("Kubernetes", category="devops", market_demand=0.5),
    ]


@pytest.fixture
def go_path():
    """Linear required chain g1 -> g2 plus an optional capstone."""
    return LearningPath(
        id="go-basics",
        title="Go Fundamentals",
        category=PathCategory.PROGRAMMING,
        difficulty=DifficultyLevel.BEGINNER,
        estimated_duration_weeks=4,
        skills=frozenset({"Go"}),
        steps=[
            PathStep("g1", 1, "Tour of Go", required_skills={"Go"}),
            PathStep("g2", 2, "Concurrency", required_skills={"Go"}, prerequisite_step_ids={"g1"}),
            PathStep("g3", 3, "Capstone", is_required=False, prerequisite_step_ids={"g2"}),
        ],
    )


@pytest.fixture
def backend_path():
    """Diamond: b1 -> (b2, b3) -> b4, with b3 optional."""
    return LearningPath(
        id="backend-core",
        title="Backend Core",
        category=PathCategory.WEB_DEVELOPMENT,
        difficulty=DifficultyLevel.INTERMEDIATE,
        estimated_duration_weeks=8,
        skills=frozenset({"Python", "SQL"}),
        steps=[
            PathStep("b1", 1, "HTTP basics", required_skills={"Python"}),
            PathStep("b2", 2, "Databases", required_skills={"SQL"}, prerequisite_step_ids={"b1"}),
            PathStep("b3", 3, "Caching", is_required=False, prerequisite_step_ids={"b1"}),
            PathStep("b4", 4, "Deploy", required_skills={"Docker"}, prerequisite_step_ids={"b2"}),
        ],
    )


@pytest.fixture
def devops_path():
    return LearningPath(
        id="devops-101",
        title="Containers 101",
        category=PathCategory.DEVOPS,
        difficulty=DifficultyLevel.BEGINNER,
        estimated_duration_weeks=6,
        skills=frozenset({"Docker", "Kubernetes"}),
        steps=[
            PathStep("d1", 1, "Images", required_skills={"Docker"}),
            PathStep("d2", 2, "Pods", required_skills={"Kubernetes"}, prerequisite_step_ids={"d1"}),
        ],
    )


@pytest.fixture
def sample_mentors():
    return [
        MentorProfile(
            id="m-ada",
            user_id="ada",
            expertise_areas={"Go", "Python", "SQL"},
            industries={"Fintech"},
            years_of_experience=12,
            preferred_mentee_level=MenteeLevel.INTERMEDIATE,
            mentorship_style=MentorshipStyle.STRUCTURED,
            current_mentees=1,
            max_mentees=3,
            average_rating=4.8,
            total_reviews=40,
            available_time_slots={"mon-evening", "sat-morning"},
        ),
        MentorProfile(
            id="m-linus",
            user_id="linus",
            expertise_areas={"go", "Docker"},
            industries={"Infrastructure"},
            years_of_experience=6,
            preferred_mentee_level=MenteeLevel.ALL_LEVELS,
            mentorship_style=MentorshipStyle.PROJECT_BASED,
            average_rating=4.0,
            total_reviews=10,
            available_time_slots={"sat-morning"},
        ),
        MentorProfile(
            id="m-full",
            user_id="grace",
            expertise_areas={"Go", "Python"},
            industries={"Fintech"},
            current_mentees=2,
            max_mentees=2,
            average_rating=5.0,
            total_reviews=99,
        ),
        MentorProfile(
            id="m-away",
            user_id="ken",
            expertise_areas={"Go", "Python"},
            is_available=False,
            average_rating=5.0,
            total_reviews=50,
        ),
    ]


@pytest.fixture
def role_profiles():
    return {
        "Backend Engineer": {"Python": P.ADVANCED, "SQL": P.INTERMEDIATE, "Docker": P.INTERMEDIATE},
        "Go Developer": {"Go": P.EXPERT, "SQL": P.BEGINNER},
    }


@pytest.fixture
def user_skills():
    return {
        "alice": {"Python": P.INTERMEDIATE, "SQL": P.BEGINNER},
        "bob": {"Python": P.EXPERT, "SQL": P.ADVANCED, "Go": P.INTERMEDIATE, "Docker": P.ADVANCED},
        "carol": {},
    }


@pytest.fixture
def repo(sample_skills, go_path, backend_path, devops_path, sample_mentors, role_profiles, user_skills):
    """In-memory catalog: alice is midway through backend-core and finished go-basics."""
    now = datetime(2026, 3, 1, 12, 0)
    return InMemoryRepository(
        skills=sample_skills,
        paths=[go_path, backend_path, devops_path],
        mentors=sample_mentors,
        user_skills=user_skills,
        role_profiles=role_profiles,
        step_progress={
            ("alice", "backend-core"): {
                "b1": StepProgress("b1", completed=True, time_spent_minutes=90, started_at=now - timedelta(days=14)),
                "b2": StepProgress("b2", progress_percentage=40.0, time_spent_minutes=200, attempts=1),
            },
            ("alice", "go-basics"): {
                "g1": StepProgress("g1", completed=True, time_spent_minutes=60),
                "g2": StepProgress("g2", completed=True, time_spent_minutes=120),
            },
        },
        enrollments=[
            Enrollment("alice", "backend-core", status=EnrollmentStatus.IN_PROGRESS),
            Enrollment("alice", "go-basics", status=EnrollmentStatus.IN_PROGRESS),
        ],
    )


@pytest.fixture
def catalog_data():
    """Seed document in the shape `skillpath catalog import` reads."""
    return {
        "skills": [
            {"name": "Python", "category": "programming", "market_demand": 0.9},
            {"name": "SQL", "category": "data", "market_demand": 0.8},
            {"name": "Go", "category": "programming", "market_demand": 0.6},
            {"name": "Docker", "category": "devops", "market_demand": 0.7},
        ],
        "roles": {
            "Backend Engineer": {"Python": "advanced", "SQL": "intermediate", "Docker": "intermediate"},
        },
        "users": {
            "alice": {"skills": {"Python": "intermediate", "SQL": "beginner"}},
            "bob": {"skills": {"Python": "expert", "SQL": "advanced", "Docker": "advanced"}},
            "carol": {"skills": {}},
        },
        "paths": [
            {
                "id": "backend-core",
                "title": "Backend Core",
                "category": "web_development",
                "difficulty": "intermediate",
                "estimated_duration_weeks": 8,
                "skills": ["Python", "SQL"],
                "steps": [
                    {"id": "b1", "order": 1, "title": "HTTP basics", "skills": ["Python"]},
                    {"id": "b2", "order": 2, "title": "Databases", "skills": ["SQL"], "prerequisites": ["b1"]},
                    {"id": "b3", "order": 3, "title": "Caching", "required": False, "prerequisites": ["b1"]},
                    {"id": "b4", "order": 4, "title": "Deploy", "skills": ["Docker"], "prerequisites": ["b2"]},
                ],
            },
            {
                "id": "devops-101",
                "title": "Containers 101",
                "category": "devops",
                "difficulty": "beginner",
                "estimated_duration_weeks": 6,
                "skills": ["Docker"],
                "steps": [{"id": "d1", "order": 1, "title": "Images", "skills": ["Docker"]}],
            },
        ],
        "mentors": [
            {
                "id": "m-ada",
                "user_id": "ada",
                "expertise": ["Python", "SQL"],
                "industries": ["Fintech"],
                "years_of_experience": 12,
                "preferred_mentee_level": "intermediate",
                "mentorship_style": "structured",
                "current_mentees": 1,
                "max_mentees": 3,
                "average_rating": 4.8,
                "total_reviews": 40,
                "time_slots": ["mon-evening"],
            },
            {
                "id": "m-full",
                "user_id": "grace",
                "expertise": ["Python"],
                "current_mentees": 2,
                "max_mentees": 2,
                "average_rating": 5.0,
            },
        ],
        "enrollments": [{"user_id": "alice", "path_id": "backend-core", "status": "in_progress"}],
        "progress": [
            {"user_id": "alice", "path_id": "backend-core", "step_id": "b1", "completed": True,
             "time_spent_minutes": 90},
            {"user_id": "alice", "path_id": "backend-core", "step_id": "b2", "progress_percentage": 40,
             "time_spent_minutes": 200},
        ],
    }
