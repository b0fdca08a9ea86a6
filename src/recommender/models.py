"""Snapshot records the engine reads from the catalog/profile store."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from shared_types import (
    DifficultyLevel,
    EnrollmentStatus,
    MenteeLevel,
    MentorshipStyle,
    PathCategory,
    StepType,
)


@dataclass(frozen=True)
class Skill:
    name: str
    category: str = "general"
    subcategory: Optional[str] = None
    market_demand: float = 0.0  # 0-1, refreshed by an external job

    def __post_init__(self):
        demand = self.market_demand
        if demand != demand:  # NaN
            demand = 0.0
        object.__setattr__(self, "market_demand", max(0.0, min(1.0, float(demand))))


@dataclass(frozen=True)
class PathStep:
    id: str
    order: int
    title: str = ""
    is_required: bool = True
    required_skills: frozenset[str] = frozenset()
    prerequisite_step_ids: frozenset[str] = frozenset()
    step_type: StepType = StepType.LEARNING
    estimated_hours: int = 0

    def __post_init__(self):
        # Accept lists/sets from callers; keep the record hashable
        object.__setattr__(self, "required_skills", frozenset(self.required_skills))
        object.__setattr__(self, "prerequisite_step_ids", frozenset(self.prerequisite_step_ids))


@dataclass
class LearningPath:
    id: str
    title: str
    category: PathCategory = PathCategory.PROGRAMMING
    difficulty: DifficultyLevel = DifficultyLevel.BEGINNER
    estimated_duration_weeks: Optional[int] = None
    steps: list[PathStep] = field(default_factory=list)
    skills: frozenset[str] = frozenset()

    @property
    def covered_skills(self) -> frozenset[str]:
        """Declared path skills plus every step's required skills."""
        covered = set(self.skills)
        for step in self.steps:
            covered.update(step.required_skills)
        return frozenset(covered)


@dataclass
class StepProgress:
    step_id: str
    completed: bool = False
    progress_percentage: float = 0.0
    time_spent_minutes: int = 0
    attempts: int = 0
    started_at: Optional[datetime] = None
    last_accessed_at: Optional[datetime] = None


@dataclass
class Enrollment:
    user_id: str
    path_id: str
    status: EnrollmentStatus = EnrollmentStatus.NOT_STARTED
    progress_percentage: float = 0.0
    time_spent_hours: float = 0.0
    enrolled_at: datetime = field(default_factory=datetime.now)
    last_accessed_at: Optional[datetime] = None


@dataclass
class MentorProfile:
    id: str
    user_id: str = ""
    expertise_areas: frozenset[str] = frozenset()
    industries: frozenset[str] = frozenset()
    years_of_experience: int = 0
    hourly_rate: Optional[float] = None
    preferred_mentee_level: Optional[MenteeLevel] = None
    mentorship_style: Optional[MentorshipStyle] = None
    current_mentees: int = 0
    max_mentees: int = 5
    average_rating: Optional[float] = None
    total_reviews: int = 0
    is_available: bool = True
    available_time_slots: frozenset[str] = frozenset()
    timezone: Optional[str] = None
    bio: str = ""

    def __post_init__(self):
        self.expertise_areas = frozenset(self.expertise_areas)
        self.industries = frozenset(self.industries)
        self.available_time_slots = frozenset(self.available_time_slots)

    @property
    def has_capacity(self) -> bool:
        return self.current_mentees < self.max_mentees
