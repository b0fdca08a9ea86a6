"""Request -> response facade over the engine components."""

from datetime import datetime
from typing import Callable, Iterable, Mapping, Optional, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from observability import metrics
from shared_types import ProficiencyLevel

from .errors import InvalidRequestError
from .mentorship import MatchPolicy, MatchWeights, MentorshipMatcher
from .models import MentorProfile
from .path_analytics import path_analytics, summarize_enrollment
from .path_graph import PathGraphResolver, PathPolicy
from .recommendations import RecommendationOrchestrator, RecommendationWeights
from .repository import CatalogRepository, MentorPoolFilter
from .schemas import (
    CohortGapReport,
    EnrollmentSummary,
    MenteeRequest,
    MentorshipMatchCandidate,
    PathAnalytics,
    PathProgressView,
    PathRecommendationRequest,
    RankedPaths,
    SkillGapReport,
)
from .skill_gaps import GapPolicy, SkillGapAnalyzer

logger = structlog.get_logger()

M = TypeVar("M", bound=BaseModel)


def parse_request(model: type[M], data) -> M:
    """Validate a dict (or pass through a model); failures become InvalidRequestError."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data or {})
    except ValidationError as e:
        raise InvalidRequestError(
            f"Invalid {model.__name__}: {e.error_count()} error(s)",
            errors=e.errors(include_url=False, include_context=False),
        ) from e


def derive_experience_level(skills: Mapping[str, ProficiencyLevel]) -> ProficiencyLevel:
    """Mentee level from average proficiency rank (1-4); BEGINNER with no skills."""
    if not skills:
        return ProficiencyLevel.BEGINNER
    average = sum(ProficiencyLevel.parse(v).rank for v in skills.values()) / len(skills)
    if average <= 1.5:
        return ProficiencyLevel.BEGINNER
    if average <= 2.5:
        return ProficiencyLevel.INTERMEDIATE
    if average <= 3.5:
        return ProficiencyLevel.ADVANCED
    return ProficiencyLevel.EXPERT


class RecommenderService:
    """Stateless operations over read-only repository snapshots.

    Every call fetches what it needs once and computes in-process; nothing is
    cached between calls, so concurrent requests need no coordination.
    """

    def __init__(
        self,
        repository: CatalogRepository,
        gap_policy: Optional[GapPolicy] = None,
        match_weights: Optional[MatchWeights] = None,
        match_policy: Optional[MatchPolicy] = None,
        path_policy: Optional[PathPolicy] = None,
        recommendation_weights: Optional[RecommendationWeights] = None,
    ):
        self.repository = repository
        self.path_policy = path_policy or PathPolicy()
        self.gap_policy = gap_policy or GapPolicy()
        self.resolver = PathGraphResolver(repository, self.path_policy)
        self.analyzer = SkillGapAnalyzer(policy=self.gap_policy)
        self.matcher = MentorshipMatcher(match_weights, match_policy)
        self.orchestrator = RecommendationOrchestrator(
            repository, self.analyzer, self.resolver, recommendation_weights
        )

    # --- path progress ---

    def resolve_path_progress(self, user_id: str, path_id: str) -> PathProgressView:
        with metrics.operation("resolve_path_progress"):
            return self.resolver.resolve(user_id, path_id)

    def summarize_enrollment(self, user_id: str, path_id: str) -> EnrollmentSummary:
        with metrics.operation("summarize_enrollment"):
            path = self.repository.get_learning_path(path_id)
            progress = self.repository.get_user_step_progress(user_id, path_id)
            enrollment = self.repository.get_enrollment(user_id, path_id)
            return summarize_enrollment(
                path,
                progress,
                user_id=user_id,
                policy=self.path_policy,
                current_status=enrollment.status if enrollment else None,
            )

    def path_analytics(self, user_id: str, path_id: str, now: Optional[datetime] = None) -> PathAnalytics:
        with metrics.operation("path_analytics"):
            path = self.repository.get_learning_path(path_id)
            progress = self.repository.get_user_step_progress(user_id, path_id)
            return path_analytics(path, progress, user_id=user_id, now=now, policy=self.path_policy)

    # --- skill gaps ---

    def _targets(
        self, role: Optional[str], target_skills: Optional[Mapping[str, object]]
    ) -> dict[str, ProficiencyLevel]:
        if not role and not target_skills:
            raise InvalidRequestError("Skill gap analysis needs a role or target skills")
        targets: dict[str, ProficiencyLevel] = {}
        if role:
            targets.update(self.repository.get_role_skill_profile(role))
        for name, level in (target_skills or {}).items():
            try:
                targets[name] = ProficiencyLevel.parse(level)
            except ValueError as e:
                raise InvalidRequestError(f"Unknown proficiency level {level!r} for {name}") from e
        return targets

    def analyze_skill_gap(
        self,
        user_id: str,
        role: Optional[str] = None,
        target_skills: Optional[Mapping[str, object]] = None,
    ) -> SkillGapReport:
        with metrics.operation("analyze_skill_gap"):
            targets = self._targets(role, target_skills)
            user_skills = self.repository.get_user_skills(user_id)
            catalog = self.repository.get_skills(targets.keys())
            analyzer = SkillGapAnalyzer(catalog, self.gap_policy)
            report = analyzer.report(user_id, user_skills, targets, role=role)
            logger.info("skill_gaps.report", user_id=user_id, role=role, gaps=len(report.gaps))
            return report

    def cohort_gap_report(
        self,
        user_ids: Iterable[str],
        role: Optional[str] = None,
        target_skills: Optional[Mapping[str, object]] = None,
    ) -> CohortGapReport:
        """Coverage of a role's skills across a cohort; counting happens in the store."""
        with metrics.operation("cohort_gap_report"):
            users = list(dict.fromkeys(u for u in user_ids if u))
            if not users:
                raise InvalidRequestError("Cohort report needs at least one user id")
            targets = self._targets(role, target_skills)
            distribution = self.repository.cohort_level_distribution(users, list(targets))
            return self.analyzer.summarize_cohort(targets, distribution, len(users), role=role)

    # --- mentorship ---

    def match_mentors(
        self,
        request,
        eligibility: Optional[Callable[[MentorProfile], bool]] = None,
    ) -> list[MentorshipMatchCandidate]:
        """Rank mentors for a mentee request.

        Args:
            request: MenteeRequest or dict of its fields.
            eligibility: Capability predicate applied by the pool fetch (e.g.
                verified mentor role). Scoring never sees it.
        """
        with metrics.operation("match_mentors"):
            req = parse_request(MenteeRequest, request)
            if req.mentee_id and req.experience_level is None:
                level = derive_experience_level(self.repository.get_user_skills(req.mentee_id))
                req = req.model_copy(update={"experience_level": level})
            pool = self.repository.get_mentor_pool(
                MentorPoolFilter(
                    industry=req.industry_preference,
                    exclude_user_id=req.mentee_id,
                    predicate=eligibility,
                )
            )
            return self.matcher.match(req, pool)

    # --- recommendations ---

    def recommend_paths(self, user_id: str, request) -> RankedPaths:
        with metrics.operation("recommend_paths"):
            req = parse_request(PathRecommendationRequest, request)
            return self.orchestrator.recommend(user_id, req)
