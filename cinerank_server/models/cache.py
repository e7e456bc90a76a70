"""Cache management request/response models."""

from typing import List, Optional

from pydantic import BaseModel, model_validator

from .recommendations import RecommendationRequest


class InvalidateCacheRequest(BaseModel):
    user_id: Optional[str] = None
    tag: Optional[str] = None

    @model_validator(mode="after")
    def check_target(self):
        if not self.user_id and not self.tag:
            raise ValueError("Provide user_id or tag")
        return self


class InvalidateCacheResponse(BaseModel):
    removed: int


class WarmCacheRequest(BaseModel):
    user_id: str
    # Option sets to precompute; empty -> the default request
    requests: List[RecommendationRequest] = []


class WarmCacheResponse(BaseModel):
    user_id: str
    scheduled: int


class CacheStatsResponse(BaseModel):
    hits: int
    misses: int
    total_requests: int
    hit_rate: float
    miss_rate: float
    memory_usage: int
    entry_count: int
    evictions: int
    average_access_time_ms: float
