"""Pydantic request/response models for the API."""

from .cache import (
    CacheStatsResponse,
    InvalidateCacheRequest,
    InvalidateCacheResponse,
    WarmCacheRequest,
    WarmCacheResponse,
)
from .recommendations import RecommendationCard, RecommendationRequest, RecommendationResponse

__all__ = [
    "CacheStatsResponse",
    "InvalidateCacheRequest",
    "InvalidateCacheResponse",
    "RecommendationCard",
    "RecommendationRequest",
    "RecommendationResponse",
    "WarmCacheRequest",
    "WarmCacheResponse",
]
