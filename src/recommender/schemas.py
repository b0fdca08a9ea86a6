"""Pydantic request/response records for the engine's public operations."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shared_types import (
    DifficultyLevel,
    EnrollmentStatus,
    MentorshipStyle,
    PathCategory,
    ProficiencyLevel,
)

from .models import MentorProfile


def _lower(v):
    """Let callers send enum names in any case ("EXPERT", "Project_Based")."""
    if isinstance(v, str):
        return v.strip().lower()
    return v


# --- Path progress ---


class NextStep(BaseModel):
    id: str
    title: str = ""
    order: int
    is_required: bool = True


class PathProgressView(BaseModel):
    user_id: Optional[str] = None
    path_id: str
    percent_complete: float = Field(0.0, ge=0.0, le=100.0)
    next_step: Optional[NextStep] = None
    completed_required_count: int = 0
    total_required_count: int = 0
    status: EnrollmentStatus = EnrollmentStatus.NOT_STARTED

    @property
    def is_complete(self) -> bool:
        return self.status == EnrollmentStatus.COMPLETED


class EnrollmentSummary(BaseModel):
    user_id: Optional[str] = None
    path_id: str
    status: EnrollmentStatus
    progress_percentage: float
    completed_steps: int
    total_steps: int
    completed_required: int
    total_required: int
    time_spent_hours: float


class PathAnalytics(BaseModel):
    user_id: Optional[str] = None
    path_id: str
    percent_complete: float
    completed_steps: int
    total_steps: int
    time_spent_hours: float
    average_step_minutes: float
    struggling_steps: list[str] = []
    strong_steps: list[str] = []
    learning_velocity: float = 0.0  # completed steps per week
    estimated_completion: Optional[datetime] = None


# --- Skill gaps ---


class SkillGap(BaseModel):
    skill_name: str
    category: str = "general"
    current_level: Optional[ProficiencyLevel] = None  # None = skill not held
    required_level: ProficiencyLevel
    gap_size: int
    market_demand: float = 0.0
    priority_score: float
    priority: str  # HIGH | MEDIUM | LOW
    estimated_learning_hours: int


class SkillGapReport(BaseModel):
    user_id: str
    role: Optional[str] = None
    current_skills: list[str] = []
    missing_skills: list[str] = []
    gaps: list[SkillGap] = []
    estimated_time_to_fill: int = 0


class SkillCoverage(BaseModel):
    skill_name: str
    required_level: ProficiencyLevel
    users_with_skill: int
    users_without_skill: int
    users_meeting_target: int
    coverage: float  # 0-1
    level_distribution: dict[ProficiencyLevel, int] = {}
    average_proficiency: float = 0.0  # 1-4 scale over users holding the skill


class CohortGapReport(BaseModel):
    role: Optional[str] = None
    user_count: int
    skills: list[SkillCoverage] = []
    generated_at: datetime = Field(default_factory=datetime.now)


# --- Mentorship ---


class MenteeRequest(BaseModel):
    mentee_id: Optional[str] = None
    skills_to_learn: list[str] = []
    experience_level: Optional[ProficiencyLevel] = None
    industry_preference: Optional[str] = None
    preferred_mentorship_style: Optional[MentorshipStyle] = None
    preferred_time_slots: list[str] = []
    timezone: Optional[str] = None
    min_compatibility_score: float = 0.6
    max_results: int = 10

    @field_validator("experience_level", "preferred_mentorship_style", mode="before")
    @classmethod
    def normalize_enums(cls, v):
        return _lower(v)

    @field_validator("min_compatibility_score")
    @classmethod
    def validate_min_score(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"min_compatibility_score must be 0-1, got {v}")
        return v

    @field_validator("max_results")
    @classmethod
    def validate_max_results(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"max_results must be >= 0, got {v}")
        return v


class MentorshipMatchCandidate(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    mentor_id: str
    mentor_profile: MentorProfile
    compatibility_score: float = Field(..., ge=0.0, le=1.0)
    shared_skills: list[str] = []
    factors: dict[str, float] = {}
    match_reasons: list[str] = []
    match_reason: str = ""


# --- Path recommendations ---


class PathRecommendationRequest(BaseModel):
    target_role: Optional[str] = None
    skills: list[str] = []
    target_level: ProficiencyLevel = ProficiencyLevel.INTERMEDIATE
    category: Optional[PathCategory] = None
    difficulty: Optional[DifficultyLevel] = None
    max_duration_weeks: Optional[int] = None
    top_n_gaps: Optional[int] = None
    limit: Optional[int] = None
    include_completed: bool = False

    @field_validator("target_level", "category", "difficulty", mode="before")
    @classmethod
    def normalize_enums(cls, v):
        return _lower(v)

    @field_validator("max_duration_weeks", "top_n_gaps")
    @classmethod
    def validate_positive(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v <= 0:
            raise ValueError(f"must be > 0, got {v}")
        return v

    @field_validator("limit")
    @classmethod
    def validate_limit(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError(f"limit must be >= 0, got {v}")
        return v


class PathRecommendation(BaseModel):
    path_id: str
    title: str
    category: PathCategory
    difficulty: DifficultyLevel
    estimated_duration_weeks: Optional[int] = None
    match_score: float
    gap_coverage: float
    covered_gap_skills: list[str] = []
    percent_complete: Optional[float] = None
    enrollment_status: Optional[EnrollmentStatus] = None
    next_step: Optional[NextStep] = None
    reasons: list[str] = []


class RankedPaths(BaseModel):
    user_id: str
    recommendations: list[PathRecommendation] = []
    gaps: list[SkillGap] = []
