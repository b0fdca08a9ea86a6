"""Recommendation and compatibility engine: path progress, skill gaps, mentor matching."""

from .errors import (
    DependencyUnavailableError,
    GraphIntegrityError,
    InvalidRequestError,
    NotFoundError,
    RecommenderError,
)
from .mentorship import MatchPolicy, MatchWeights, MentorshipMatcher
from .path_graph import PathGraph, PathGraphResolver, PathPolicy
from .recommendations import RecommendationOrchestrator, RecommendationWeights
from .repository import CatalogRepository, InMemoryRepository, MentorPoolFilter
from .service import RecommenderService
from .skill_gaps import GapPolicy, SkillGapAnalyzer
from .store import SQLiteCatalogStore

__all__ = [
    "CatalogRepository",
    "DependencyUnavailableError",
    "GapPolicy",
    "GraphIntegrityError",
    "InMemoryRepository",
    "InvalidRequestError",
    "MatchPolicy",
    "MatchWeights",
    "MentorPoolFilter",
    "MentorshipMatcher",
    "NotFoundError",
    "PathGraph",
    "PathGraphResolver",
    "PathPolicy",
    "RecommendationOrchestrator",
    "RecommendationWeights",
    "RecommenderError",
    "RecommenderService",
    "SQLiteCatalogStore",
    "SkillGapAnalyzer",
]
