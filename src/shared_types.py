"""Shared enums and types for skillpath."""

from enum import StrEnum


class ProficiencyLevel(StrEnum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"

    @property
    def ordinal(self) -> int:
        """0-based position, BEGINNER=0 .. EXPERT=3."""
        return _PROFICIENCY_ORDER.index(self)

    @property
    def rank(self) -> int:
        """1-based value used for averages (BEGINNER=1 .. EXPERT=4)."""
        return self.ordinal + 1

    # str ordering is alphabetical; compare by tier instead
    def __lt__(self, other):
        if not isinstance(other, ProficiencyLevel):
            return NotImplemented
        return self.ordinal < other.ordinal

    def __le__(self, other):
        if not isinstance(other, ProficiencyLevel):
            return NotImplemented
        return self.ordinal <= other.ordinal

    def __gt__(self, other):
        if not isinstance(other, ProficiencyLevel):
            return NotImplemented
        return self.ordinal > other.ordinal

    def __ge__(self, other):
        if not isinstance(other, ProficiencyLevel):
            return NotImplemented
        return self.ordinal >= other.ordinal

    @classmethod
    def parse(cls, value: "str | ProficiencyLevel") -> "ProficiencyLevel":
        """Accept enum members or case-insensitive names ("EXPERT", "expert")."""
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())


_PROFICIENCY_ORDER = list(ProficiencyLevel)

# Ordinal for a skill the user does not hold at all
ABSENT_ORDINAL = -1


class EnrollmentStatus(StrEnum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class MenteeLevel(StrEnum):
    """Mentor's preferred mentee level."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    ALL_LEVELS = "all_levels"


class MentorshipStyle(StrEnum):
    STRUCTURED = "structured"
    FLEXIBLE = "flexible"
    PROJECT_BASED = "project_based"
    CAREER_FOCUSED = "career_focused"
    TECHNICAL_DEEP_DIVE = "technical_deep_dive"


class PathCategory(StrEnum):
    PROGRAMMING = "programming"
    DATA_SCIENCE = "data_science"
    WEB_DEVELOPMENT = "web_development"
    MOBILE_DEVELOPMENT = "mobile_development"
    CLOUD_COMPUTING = "cloud_computing"
    CYBERSECURITY = "cybersecurity"
    AI_MACHINE_LEARNING = "ai_machine_learning"
    DEVOPS = "devops"
    UI_UX_DESIGN = "ui_ux_design"
    PROJECT_MANAGEMENT = "project_management"
    BUSINESS_ANALYSIS = "business_analysis"
    SOFT_SKILLS = "soft_skills"
    CERTIFICATION_PREP = "certification_prep"
    CAREER_TRANSITION = "career_transition"


class DifficultyLevel(StrEnum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"


class StepType(StrEnum):
    LEARNING = "learning"
    PRACTICE = "practice"
    ASSESSMENT = "assessment"
    PROJECT = "project"
    READING = "reading"
    VIDEO = "video"
    INTERACTIVE = "interactive"
    MILESTONE = "milestone"
