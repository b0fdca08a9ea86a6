"""Skill gap analysis: diff a user's proficiencies against a target profile."""

import math
from dataclasses import dataclass
from typing import Mapping, Optional, Union

import structlog

from shared_types import ABSENT_ORDINAL, ProficiencyLevel

from .models import Skill
from .schemas import CohortGapReport, SkillCoverage, SkillGap, SkillGapReport

logger = structlog.get_logger()

SkillKey = Union[Skill, str]

# priority_score thresholds for the HIGH/MEDIUM/LOW label
HIGH_PRIORITY = 2.5
MEDIUM_PRIORITY = 1.5


@dataclass(frozen=True)
class GapPolicy:
    """Coefficients for gap priority and learning-time estimates.

    hours_per_level: hours to climb one proficiency tier.
    escalation: extra cost per additional tier (0.25 = each further tier +25%).
    demand_weight: market-demand contribution to priority_score. Kept below 1
        so demand only reorders gaps of equal size.
    """

    hours_per_level: float = 20.0
    escalation: float = 0.25
    demand_weight: float = 0.5

    def __post_init__(self):
        for name in ("hours_per_level", "escalation", "demand_weight"):
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0:
                raise ValueError(f"{name} must be a finite non-negative number, got {value}")
        if self.demand_weight >= 1:
            raise ValueError(f"demand_weight must be < 1, got {self.demand_weight}")


def estimate_learning_hours(gap_size: int, policy: GapPolicy) -> int:
    """Hours to close a gap; 0 for closed gaps, grows with gap size."""
    if gap_size <= 0:
        return 0
    hours = policy.hours_per_level * gap_size * (1 + policy.escalation * (gap_size - 1))
    return int(round(hours))


def priority_label(score: float) -> str:
    if score >= HIGH_PRIORITY:
        return "HIGH"
    if score >= MEDIUM_PRIORITY:
        return "MEDIUM"
    return "LOW"


def _skill_name(key: SkillKey) -> str:
    return key.name if isinstance(key, Skill) else str(key)


class SkillGapAnalyzer:
    """Rank the skills a user is missing for a target profile."""

    def __init__(self, skills: Optional[Mapping[str, Skill]] = None, policy: Optional[GapPolicy] = None):
        self.skills = dict(skills or {})
        self.policy = policy or GapPolicy()

    def _skill_for(self, key: SkillKey) -> Skill:
        if isinstance(key, Skill):
            return key
        return self.skills.get(key) or Skill(name=key)

    def analyze(
        self,
        user_skills: Mapping[SkillKey, ProficiencyLevel],
        target_skills: Mapping[SkillKey, ProficiencyLevel],
    ) -> list[SkillGap]:
        """Gaps ordered by size desc, market demand desc, skill name asc.

        Skills the user already meets (gap <= 0) are left out. A skill the user
        does not hold counts as one tier below BEGINNER.
        """
        current = {_skill_name(k): ProficiencyLevel.parse(v) for k, v in user_skills.items()}

        targets: dict[str, tuple[Skill, ProficiencyLevel]] = {}
        for key, level in target_skills.items():
            skill = self._skill_for(key)
            required = ProficiencyLevel.parse(level)
            if skill.name in targets and targets[skill.name][1] >= required:
                continue
            targets[skill.name] = (skill, required)

        gaps = []
        for name, (skill, required) in targets.items():
            held = current.get(name)
            gap_size = required.ordinal - (held.ordinal if held is not None else ABSENT_ORDINAL)
            if gap_size <= 0:
                continue
            score = round(gap_size + self.policy.demand_weight * skill.market_demand, 4)
            gaps.append(
                SkillGap(
                    skill_name=name,
                    category=skill.category,
                    current_level=held,
                    required_level=required,
                    gap_size=gap_size,
                    market_demand=skill.market_demand,
                    priority_score=score,
                    priority=priority_label(score),
                    estimated_learning_hours=estimate_learning_hours(gap_size, self.policy),
                )
            )

        gaps.sort(key=lambda g: (-g.gap_size, -g.market_demand, g.skill_name))
        logger.debug("skill_gaps.analyzed", targets=len(targets), gaps=len(gaps))
        return gaps

    def report(
        self,
        user_id: str,
        user_skills: Mapping[SkillKey, ProficiencyLevel],
        target_skills: Mapping[SkillKey, ProficiencyLevel],
        role: Optional[str] = None,
    ) -> SkillGapReport:
        """Per-user gap report: gaps plus held/missing skill lists and total hours."""
        gaps = self.analyze(user_skills, target_skills)
        held = {_skill_name(k) for k in user_skills}
        target_names = {_skill_name(k) for k in target_skills}
        return SkillGapReport(
            user_id=user_id,
            role=role,
            current_skills=sorted(held),
            missing_skills=sorted(target_names - held),
            gaps=gaps,
            estimated_time_to_fill=sum(g.estimated_learning_hours for g in gaps),
        )

    def summarize_cohort(
        self,
        target_skills: Mapping[SkillKey, ProficiencyLevel],
        distribution: Mapping[str, Mapping[ProficiencyLevel, int]],
        total_users: int,
        role: Optional[str] = None,
    ) -> CohortGapReport:
        """Population-level coverage from a per-skill level histogram.

        The histogram comes from the store (see CatalogRepository.
        cohort_level_distribution); this only turns counts into ratios.
        Skills are ordered by coverage ascending so the widest gaps come first.
        """
        coverages = []
        for key, level in target_skills.items():
            name = _skill_name(key)
            required = ProficiencyLevel.parse(level)
            counts = {
                ProficiencyLevel.parse(lvl): int(n)
                for lvl, n in distribution.get(name, {}).items()
                if n
            }
            with_skill = sum(counts.values())
            meeting = sum(n for lvl, n in counts.items() if lvl >= required)
            coverage = round(with_skill / total_users, 4) if total_users > 0 else 0.0
            average = (
                round(sum(lvl.rank * n for lvl, n in counts.items()) / with_skill, 2)
                if with_skill
                else 0.0
            )
            coverages.append(
                SkillCoverage(
                    skill_name=name,
                    required_level=required,
                    users_with_skill=with_skill,
                    users_without_skill=max(total_users - with_skill, 0),
                    users_meeting_target=meeting,
                    coverage=min(coverage, 1.0),
                    level_distribution={lvl: counts.get(lvl, 0) for lvl in ProficiencyLevel},
                    average_proficiency=average,
                )
            )

        coverages.sort(key=lambda c: (c.coverage, c.skill_name))
        return CohortGapReport(role=role, user_count=total_users, skills=coverages)
