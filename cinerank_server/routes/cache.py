"""Cache stats, invalidation and warming."""

from dataclasses import asdict

from fastapi import APIRouter

from ..models import (
    CacheStatsResponse,
    InvalidateCacheRequest,
    InvalidateCacheResponse,
    WarmCacheRequest,
    WarmCacheResponse,
)
from ..state import get_state

router = APIRouter()


@router.get("/stats", response_model=CacheStatsResponse)
def cache_stats():
    state = get_state()
    return CacheStatsResponse(**asdict(state.service.cache_stats()))


@router.post("/invalidate", response_model=InvalidateCacheResponse)
def invalidate_cache(request: InvalidateCacheRequest):
    """Drop a user's cached results and profile, or every entry carrying a tag."""
    service = get_state().service
    removed = 0
    if request.user_id:
        removed += service.invalidate_user_cache(request.user_id)
    if request.tag:
        removed += service.invalidate_tag(request.tag)
    return InvalidateCacheResponse(removed=removed)


@router.post("/warm", response_model=WarmCacheResponse)
def warm_cache(request: WarmCacheRequest):
    """Schedule background precomputation; returns immediately."""
    service = get_state().service
    option_sets = [r.to_options() for r in request.requests] or None
    futures = service.warm_cache_for_user(request.user_id, option_sets)
    return WarmCacheResponse(user_id=request.user_id, scheduled=len(futures))
