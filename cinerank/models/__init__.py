"""Data models for the recommendation engine."""

from .candidate import (
    PROVENANCE_CURATED,
    PROVENANCE_SEARCH,
    PROVENANCE_TRENDING,
    CandidateItem,
    ensure_candidates,
)
from .config import DEFAULT_CONFIG, RecommendationConfig, resolve_config
from .context import EmbeddingVector, UserContextVector
from .history import HistoryRow, ensure_history
from .profile import (
    BehaviorProfile,
    ProfileInsights,
    RatingPatterns,
    TemporalAffinity,
    TemporalPatterns,
    TimeBucketAffinity,
    WatchlistPatterns,
)
from .recommendation import (
    RecommendationInsights,
    RecommendationOptions,
    RecommendationResult,
)
from .scoring import CATEGORY_BASIC, CATEGORY_GENERAL, ScoredCandidate, clamp01

__all__ = [
    "BehaviorProfile",
    "CATEGORY_BASIC",
    "CATEGORY_GENERAL",
    "CandidateItem",
    "DEFAULT_CONFIG",
    "EmbeddingVector",
    "HistoryRow",
    "PROVENANCE_CURATED",
    "PROVENANCE_SEARCH",
    "PROVENANCE_TRENDING",
    "ProfileInsights",
    "RatingPatterns",
    "RecommendationConfig",
    "RecommendationInsights",
    "RecommendationOptions",
    "RecommendationResult",
    "ScoredCandidate",
    "TemporalAffinity",
    "TemporalPatterns",
    "TimeBucketAffinity",
    "UserContextVector",
    "WatchlistPatterns",
    "clamp01",
    "ensure_candidates",
    "ensure_history",
    "resolve_config",
]
