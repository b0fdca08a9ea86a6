"""Pydantic configuration models for skillpath."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from recommender.mentorship import MatchPolicy, MatchWeights
from recommender.path_graph import PathPolicy
from recommender.recommendations import RecommendationWeights
from recommender.skill_gaps import GapPolicy


class PathsConfig(BaseModel):
    """File paths configuration."""

    db: Path = Path("~/.skillpath/catalog.db")

    @model_validator(mode="after")
    def expand_paths(self):
        """Expand ~ in all paths."""
        if str(self.db) != ":memory:":
            self.db = self.db.expanduser()
        return self


VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "WARNING"
    json_output: bool = Field(False, alias="json")

    model_config = {"populate_by_name": True}

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v_upper = v.upper()
        if v_upper not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Must be one of {VALID_LOG_LEVELS}")
        return v_upper


class MatchingConfig(BaseModel):
    """Mentor compatibility scoring."""

    weights: dict[str, float] = Field(
        default_factory=lambda: {
            "skill_overlap": 0.4,
            "experience_fit": 0.2,
            "style": 0.15,
            "quality": 0.15,
            "schedule": 0.1,
        }
    )
    skill_match: Literal["exact", "normalized"] = "normalized"
    level_distance_penalty: float = 0.4
    all_levels_fit: float = 0.8
    neutral_score: float = 0.5

    @field_validator("weights")
    @classmethod
    def validate_weight_keys(cls, v: dict[str, float]) -> dict[str, float]:
        known = set(MatchWeights.__dataclass_fields__)
        unknown = set(v) - known
        if unknown:
            raise ValueError(f"Unknown matching weights: {sorted(unknown)}. Must be among {sorted(known)}")
        return v

    @model_validator(mode="after")
    def validate_weights(self):
        """Ensure weights sum to 1.0."""
        total = sum(self.weights.values())
        if not 0.99 <= total <= 1.01:
            raise ValueError(f"Matching weights must sum to 1.0, got {total}")
        return self

    def to_weights(self) -> MatchWeights:
        """Factors left out of the config weigh zero."""
        return MatchWeights(**{name: self.weights.get(name, 0.0) for name in MatchWeights.__dataclass_fields__})

    def to_policy(self) -> MatchPolicy:
        return MatchPolicy(
            skill_match=self.skill_match,
            level_distance_penalty=self.level_distance_penalty,
            all_levels_fit=self.all_levels_fit,
            neutral_score=self.neutral_score,
        )


class GapsConfig(BaseModel):
    """Skill gap priority and time estimates."""

    hours_per_level: float = 20.0
    escalation: float = 0.25
    demand_weight: float = 0.5
    top_n: int = 5

    @field_validator("demand_weight")
    @classmethod
    def validate_demand_weight(cls, v: float) -> float:
        if not 0.0 <= v < 1.0:
            raise ValueError(f"demand_weight must be in [0, 1), got {v}")
        return v

    @field_validator("top_n")
    @classmethod
    def validate_top_n(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"top_n must be > 0, got {v}")
        return v

    def to_policy(self) -> GapPolicy:
        return GapPolicy(
            hours_per_level=self.hours_per_level,
            escalation=self.escalation,
            demand_weight=self.demand_weight,
        )


class RecommendationsConfig(BaseModel):
    """Path ranking weights."""

    gap_weight: float = 0.7
    progress_weight: float = 0.2
    in_progress_boost: float = 0.1
    limit: int = 10

    @field_validator("gap_weight", "progress_weight", "in_progress_boost")
    @classmethod
    def validate_weight(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"weight must be 0-1, got {v}")
        return v

    def to_weights(self, top_n_gaps: int = 5) -> RecommendationWeights:
        return RecommendationWeights(
            gap_weight=self.gap_weight,
            progress_weight=self.progress_weight,
            in_progress_boost=self.in_progress_boost,
            top_n_gaps=top_n_gaps,
            limit=self.limit,
        )


class ProgressConfig(BaseModel):
    """Path completion policy."""

    optional_step_weight: float = 0.0
    complete_when_no_required_steps: bool = False

    def to_policy(self) -> PathPolicy:
        return PathPolicy(
            complete_when_no_required_steps=self.complete_when_no_required_steps,
            optional_step_weight=self.optional_step_weight,
        )


class RetryConfig(BaseModel):
    """Retry/backoff configuration for store access."""

    max_attempts: int = 3
    min_wait: float = 0.5
    max_wait: float = 5.0


class SkillpathConfig(BaseModel):
    """Main configuration model."""

    paths: PathsConfig = Field(default_factory=PathsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    gaps: GapsConfig = Field(default_factory=GapsConfig)
    recommendations: RecommendationsConfig = Field(default_factory=RecommendationsConfig)
    progress: ProgressConfig = Field(default_factory=ProgressConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)

    @classmethod
    def from_dict(cls, data: dict) -> "SkillpathConfig":
        """Create config from dict, accepting string paths."""
        if "paths" in data and isinstance(data["paths"].get("db"), str):
            data["paths"]["db"] = Path(data["paths"]["db"])
        return cls.model_validate(data)

    def to_dict(self) -> dict:
        return self.model_dump(mode="python", by_alias=True)
