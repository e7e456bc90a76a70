"""Generic in-process caching: SmartCache (TTL + tags + priority eviction)."""

from .smart_cache import (
    PRIORITY_WEIGHTS,
    CacheEntry,
    CacheStats,
    SmartCache,
    WarmTask,
    estimate_size,
)

__all__ = [
    "PRIORITY_WEIGHTS",
    "CacheEntry",
    "CacheStats",
    "SmartCache",
    "WarmTask",
    "estimate_size",
]
