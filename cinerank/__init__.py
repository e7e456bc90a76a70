"""
cinerank: personalized recommendation scoring and caching engine.

Turns a user's preference signals and viewing history into a ranked,
diversified list of scored candidates with reasons and insights.

Usage:
    from cinerank import RecommendationService, RecommendationOptions
"""

from .config_loader import ConfigLoader
from .errors import CinerankError, ConfigurationError, PartialComputationFailure, UpstreamUnavailable
from .models import (
    DEFAULT_CONFIG,
    BehaviorProfile,
    CandidateItem,
    HistoryRow,
    RecommendationConfig,
    RecommendationOptions,
    RecommendationResult,
    ScoredCandidate,
)
from .service import RecommendationService

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_CONFIG",
    "BehaviorProfile",
    "CandidateItem",
    "CinerankError",
    "ConfigLoader",
    "ConfigurationError",
    "HistoryRow",
    "PartialComputationFailure",
    "RecommendationConfig",
    "RecommendationOptions",
    "RecommendationResult",
    "RecommendationService",
    "ScoredCandidate",
    "UpstreamUnavailable",
]
