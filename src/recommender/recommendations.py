"""Rank learning paths by how well they close a user's top skill gaps."""

import math
from dataclasses import dataclass
from typing import Optional

import structlog

from shared_types import EnrollmentStatus, ProficiencyLevel

from .errors import InvalidRequestError
from .models import Skill
from .path_graph import PathGraph, PathGraphResolver
from .schemas import PathRecommendation, PathRecommendationRequest, RankedPaths
from .skill_gaps import SkillGapAnalyzer

logger = structlog.get_logger()


@dataclass(frozen=True)
class RecommendationWeights:
    """match_score = gap_weight*coverage + progress_weight*progress + boost."""

    gap_weight: float = 0.7
    progress_weight: float = 0.2
    in_progress_boost: float = 0.1
    top_n_gaps: int = 5
    limit: int = 10

    def __post_init__(self):
        for name in ("gap_weight", "progress_weight", "in_progress_boost"):
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0:
                raise ValueError(f"{name} must be finite and >= 0, got {value}")
        if self.top_n_gaps <= 0:
            raise ValueError(f"top_n_gaps must be > 0, got {self.top_n_gaps}")
        if self.limit < 0:
            raise ValueError(f"limit must be >= 0, got {self.limit}")


class RecommendationOrchestrator:
    """Compose gap analysis and path resolution into ranked path suggestions."""

    def __init__(
        self,
        repository,
        analyzer: Optional[SkillGapAnalyzer] = None,
        resolver: Optional[PathGraphResolver] = None,
        weights: Optional[RecommendationWeights] = None,
    ):
        self.repository = repository
        self.analyzer = analyzer or SkillGapAnalyzer()
        self.resolver = resolver or PathGraphResolver(repository)
        self.weights = weights or RecommendationWeights()

    def target_profile(self, request: PathRecommendationRequest) -> dict[str, ProficiencyLevel]:
        """Role profile merged with explicitly requested skills (higher level wins)."""
        if not request.target_role and not request.skills:
            raise InvalidRequestError("Path recommendations need a target_role or at least one skill")
        profile: dict[str, ProficiencyLevel] = {}
        if request.target_role:
            profile.update(self.repository.get_role_skill_profile(request.target_role))
        for name in request.skills:
            name = name.strip()
            if not name:
                continue
            profile[name] = max(profile.get(name, request.target_level), request.target_level)
        return profile

    def path_reasons(self, covered, top_gaps, view) -> list[str]:
        reasons = []
        if covered:
            reasons.append(
                f"Covers {len(covered)} of your top {len(top_gaps)} gaps "
                f"({', '.join(g.skill_name for g in covered)})"
            )
        if view is None:
            return reasons
        if view.status == EnrollmentStatus.IN_PROGRESS:
            reasons.append(f"You're {view.percent_complete:.0f}% through this path")
        elif view.status == EnrollmentStatus.COMPLETED:
            reasons.append("You have completed this path")
        if view.next_step is not None:
            reasons.append(f"Next step: {view.next_step.title or view.next_step.id}")
        return reasons

    def recommend(self, user_id: str, request: PathRecommendationRequest) -> RankedPaths:
        weights = self.weights
        profile = self.target_profile(request)
        user_skills = self.repository.get_user_skills(user_id)
        catalog = self.repository.get_skills(profile.keys())
        targets = {catalog.get(name) or Skill(name=name): level for name, level in profile.items()}

        gaps = self.analyzer.analyze(user_skills, targets)
        top_gaps = gaps[: request.top_n_gaps or weights.top_n_gaps]
        gap_total = sum(g.gap_size for g in top_gaps)

        candidates = self.repository.list_learning_paths(
            category=request.category,
            difficulty=request.difficulty,
            max_duration_weeks=request.max_duration_weeks,
        )

        ranked = []
        for path in candidates:
            graph = PathGraph.build(path.steps, path_id=path.id)
            enrollment = self.repository.get_enrollment(user_id, path.id)
            view = None
            if enrollment is not None:
                progress = self.repository.get_user_step_progress(user_id, path.id)
                view = self.resolver.evaluate(
                    path, progress, user_id=user_id, current_status=enrollment.status, graph=graph
                )
                if view.status == EnrollmentStatus.COMPLETED and not request.include_completed:
                    continue

            covered_skills = path.covered_skills
            covered = [g for g in top_gaps if g.skill_name in covered_skills]
            coverage = sum(g.gap_size for g in covered) / gap_total if gap_total else 0.0

            progress_credit = 0.0
            boost = 0.0
            if view is not None and view.status != EnrollmentStatus.ABANDONED:
                progress_credit = view.percent_complete / 100
                if view.status == EnrollmentStatus.IN_PROGRESS:
                    boost = weights.in_progress_boost

            score = weights.gap_weight * coverage + weights.progress_weight * progress_credit + boost
            reasons = self.path_reasons(covered, top_gaps, view)
            ranked.append(
                PathRecommendation(
                    path_id=path.id,
                    title=path.title,
                    category=path.category,
                    difficulty=path.difficulty,
                    estimated_duration_weeks=path.estimated_duration_weeks,
                    match_score=round(max(0.0, min(1.0, score)), 4),
                    gap_coverage=round(coverage, 4),
                    covered_gap_skills=[g.skill_name for g in covered],
                    percent_complete=view.percent_complete if view else None,
                    enrollment_status=view.status if view else None,
                    next_step=view.next_step if view else None,
                    reasons=reasons,
                )
            )

        ranked.sort(
            key=lambda r: (
                -r.match_score,
                r.estimated_duration_weeks if r.estimated_duration_weeks is not None else math.inf,
                r.path_id,
            )
        )
        limit = request.limit if request.limit is not None else weights.limit
        logger.info(
            "recommendations.ranked",
            user_id=user_id,
            candidates=len(candidates),
            gaps=len(top_gaps),
            returned=min(limit, len(ranked)),
        )
        return RankedPaths(user_id=user_id, recommendations=ranked[:limit], gaps=top_gaps)
