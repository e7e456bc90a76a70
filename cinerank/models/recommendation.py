"""
Request/result models for the engine's public operations.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .scoring import ScoredCandidate


class RecommendationOptions(BaseModel):
    """Per-request options for get_recommendations."""

    limit: int = Field(default=10, ge=0, le=100)
    query: str = ""
    genres: List[str] = Field(default_factory=list)
    mood: str = ""
    # None = use the configured diversity factor.
    diversity: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    exclude_ids: List[str] = Field(default_factory=list)
    use_cache: bool = True

    def cache_key(self, user_id: str) -> str:
        genres = ",".join(sorted(self.genres))
        diversity = "" if self.diversity is None else f"{self.diversity:.2f}"
        excluded = ",".join(sorted(self.exclude_ids))
        return (
            f"rec:{user_id}:{self.limit}:{self.query.strip().lower()}:{genres}"
            f":{self.mood.lower()}:{diversity}:{excluded}"
        )


class RecommendationInsights(BaseModel):
    """Summary of how a recommendation list was produced."""

    degraded: bool = False
    degradation_reasons: List[str] = Field(default_factory=list)
    candidate_count: int = 0
    failed_count: int = 0
    context_confidence: float = 0.0
    primary_reasons: List[str] = Field(default_factory=list)
    semantic_matches: int = 0
    memory_influences: int = 0
    diversity_score: float = 0.0
    # Provenance tag -> number of returned items carrying it.
    sources: Dict[str, int] = Field(default_factory=dict)
    weights_version: str = ""
    cached: bool = False


class RecommendationResult(BaseModel):
    items: List[ScoredCandidate] = Field(default_factory=list)
    insights: RecommendationInsights = Field(default_factory=RecommendationInsights)
