"""Mentor-mentee compatibility scoring and matching."""

import math
from dataclasses import asdict, dataclass
from typing import Iterable, Optional

import structlog

from shared_types import MenteeLevel, ProficiencyLevel

from .models import MentorProfile
from .schemas import MenteeRequest, MentorshipMatchCandidate

logger = structlog.get_logger()

SKILL_MATCH_MODES = {"exact", "normalized"}

_MENTEE_LEVEL_ORDINAL = {
    MenteeLevel.BEGINNER: ProficiencyLevel.BEGINNER.ordinal,
    MenteeLevel.INTERMEDIATE: ProficiencyLevel.INTERMEDIATE.ordinal,
    MenteeLevel.ADVANCED: ProficiencyLevel.ADVANCED.ordinal,
}


@dataclass(frozen=True)
class MatchWeights:
    """Weight table for the compatibility score. Normalized by its total."""

    skill_overlap: float = 0.4
    experience_fit: float = 0.2
    style: float = 0.15
    quality: float = 0.15
    schedule: float = 0.1

    def __post_init__(self):
        for name, value in asdict(self).items():
            if not math.isfinite(value) or value < 0:
                raise ValueError(f"Match weight {name} must be finite and >= 0, got {value}")
        if self.total <= 0:
            raise ValueError("Match weights must not all be zero")

    @property
    def total(self) -> float:
        return sum(asdict(self).values())


@dataclass(frozen=True)
class MatchPolicy:
    """Scoring policy outside the weight table.

    skill_match: "exact" compares skill names verbatim (trimmed); "normalized"
        also case-folds and collapses whitespace.
    level_distance_penalty: experience-fit loss per tier between the mentor's
        preferred level and the mentee's level.
    all_levels_fit: experience fit for mentors who take any level.
    neutral_score: factor value when a side left the preference unspecified.
    """

    skill_match: str = "normalized"
    level_distance_penalty: float = 0.4
    all_levels_fit: float = 0.8
    neutral_score: float = 0.5

    def __post_init__(self):
        if self.skill_match not in SKILL_MATCH_MODES:
            raise ValueError(f"skill_match must be one of {SKILL_MATCH_MODES}, got {self.skill_match!r}")
        if not math.isfinite(self.level_distance_penalty) or self.level_distance_penalty < 0:
            raise ValueError(f"level_distance_penalty must be >= 0, got {self.level_distance_penalty}")
        for name in ("all_levels_fit", "neutral_score"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be 0-1, got {value}")


def normalize_term(term: str, mode: str = "normalized") -> str:
    if mode == "exact":
        return term.strip()
    return " ".join(term.casefold().split())


def experience_fit(
    preferred: Optional[MenteeLevel], level: Optional[ProficiencyLevel], policy: MatchPolicy
) -> float:
    if preferred is None or level is None:
        return policy.neutral_score
    if preferred == MenteeLevel.ALL_LEVELS:
        return policy.all_levels_fit
    distance = abs(_MENTEE_LEVEL_ORDINAL[preferred] - level.ordinal)
    return max(0.0, 1.0 - distance * policy.level_distance_penalty)


def rating_quality(average_rating: Optional[float]) -> float:
    if average_rating is None:
        return 0.0
    return max(0.0, min(1.0, average_rating / 5.0))


class MentorshipMatcher:
    """Filter a mentor pool on hard constraints, then rank by weighted fit."""

    def __init__(self, weights: Optional[MatchWeights] = None, policy: Optional[MatchPolicy] = None):
        self.weights = weights or MatchWeights()
        self.policy = policy or MatchPolicy()

    def is_eligible(self, mentor: MentorProfile, request: MenteeRequest) -> bool:
        """Hard constraints: capacity, availability, industry, not the mentee."""
        if not mentor.is_available or not mentor.has_capacity:
            return False
        if request.mentee_id and mentor.user_id == request.mentee_id:
            return False
        if request.industry_preference:
            wanted = normalize_term(request.industry_preference)
            if wanted not in {normalize_term(i) for i in mentor.industries}:
                return False
        return True

    def _wanted_skills(self, request: MenteeRequest) -> dict[str, str]:
        """normalized key -> mentee spelling, first spelling wins."""
        wanted: dict[str, str] = {}
        for skill in request.skills_to_learn:
            key = normalize_term(skill, self.policy.skill_match)
            if key and key not in wanted:
                wanted[key] = skill.strip()
        return wanted

    def score(
        self, request: MenteeRequest, mentor: MentorProfile
    ) -> tuple[float, dict[str, float], list[str]]:
        """Compatibility in [0, 1], the per-factor breakdown, and shared skills."""
        policy = self.policy
        wanted = self._wanted_skills(request)
        expertise = {normalize_term(e, policy.skill_match) for e in mentor.expertise_areas}
        shared = sorted(spelling for key, spelling in wanted.items() if key in expertise)

        if request.preferred_mentorship_style is None:
            style = policy.neutral_score
        else:
            style = 1.0 if mentor.mentorship_style == request.preferred_mentorship_style else 0.0

        if request.preferred_time_slots:
            slots = {normalize_term(s) for s in request.preferred_time_slots}
            offered = {normalize_term(s) for s in mentor.available_time_slots}
            schedule = len(slots & offered) / len(slots)
        else:
            schedule = policy.neutral_score

        factors = {
            "skill_overlap": len(shared) / len(wanted) if wanted else 0.0,
            "experience_fit": experience_fit(
                mentor.preferred_mentee_level, request.experience_level, policy
            ),
            "style": style,
            "quality": rating_quality(mentor.average_rating),
            "schedule": schedule,
        }
        weights = asdict(self.weights)
        total = sum(weights[name] * value for name, value in factors.items()) / self.weights.total
        return round(max(0.0, min(1.0, total)), 6), factors, shared

    def match_reasons(
        self,
        request: MenteeRequest,
        mentor: MentorProfile,
        factors: dict[str, float],
        shared: list[str],
    ) -> list[str]:
        reasons = []
        if shared:
            reasons.append(
                f"Covers {len(shared)} of {len(self._wanted_skills(request))} skills "
                f"you want to learn ({', '.join(shared)})"
            )
        if request.experience_level and factors["experience_fit"] >= 1.0:
            reasons.append("Prefers mentees at your experience level")
        if request.preferred_mentorship_style and factors["style"] >= 1.0:
            reasons.append(f"Matches your preferred mentorship style ({request.preferred_mentorship_style})")
        if mentor.years_of_experience >= 5:
            reasons.append(f"Extensive industry experience ({mentor.years_of_experience} years)")
        if mentor.average_rating is not None and mentor.average_rating >= 4.5:
            reasons.append(f"Highly rated by previous mentees ({mentor.average_rating:.1f}/5.0)")
        if request.preferred_time_slots and factors["schedule"] > 0:
            reasons.append(f"Available in {factors['schedule']:.0%} of your preferred time slots")
        return reasons

    def match(
        self, request: MenteeRequest, mentor_pool: Iterable[MentorProfile]
    ) -> list[MentorshipMatchCandidate]:
        """Ranked candidates at or above request.min_compatibility_score.

        Ties on score fall back to rating desc, review count desc, profile id asc,
        so identical inputs always produce the same ordering.
        """
        pool = list(mentor_pool)
        if not pool or not self._wanted_skills(request):
            return []

        scored = []
        excluded = 0
        for mentor in pool:
            if not self.is_eligible(mentor, request):
                excluded += 1
                continue
            score, factors, shared = self.score(request, mentor)
            if score < request.min_compatibility_score:
                continue
            scored.append((score, mentor, factors, shared))

        scored.sort(
            key=lambda item: (
                -item[0],
                -(item[1].average_rating or 0.0),
                -item[1].total_reviews,
                item[1].id,
            )
        )

        candidates = []
        for score, mentor, factors, shared in scored[: request.max_results]:
            reasons = self.match_reasons(request, mentor, factors, shared)
            candidates.append(
                MentorshipMatchCandidate(
                    mentor_id=mentor.id,
                    mentor_profile=mentor,
                    compatibility_score=score,
                    shared_skills=shared,
                    factors={k: round(v, 4) for k, v in factors.items()},
                    match_reasons=reasons,
                    match_reason="; ".join(reasons),
                )
            )

        logger.info(
            "mentorship.matched",
            mentee_id=request.mentee_id,
            pool=len(pool),
            excluded=excluded,
            returned=len(candidates),
        )
        return candidates
