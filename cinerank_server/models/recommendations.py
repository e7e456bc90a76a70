"""Recommendation request/response models."""

from typing import List, Optional

from pydantic import BaseModel, Field

from cinerank.models import RecommendationInsights, RecommendationOptions, ScoredCandidate


class RecommendationRequest(BaseModel):
    user_id: str = Field(min_length=1)
    limit: int = Field(default=10, ge=0, le=100)
    query: str = ""
    genres: List[str] = []
    mood: str = ""
    diversity: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    exclude_ids: List[str] = []
    use_cache: bool = True

    def to_options(self) -> RecommendationOptions:
        return RecommendationOptions(
            limit=self.limit,
            query=self.query,
            genres=self.genres,
            mood=self.mood,
            diversity=self.diversity,
            exclude_ids=self.exclude_ids,
            use_cache=self.use_cache,
        )


class RecommendationCard(BaseModel):
    id: str
    title: str
    genres: List[str] = []
    rating: Optional[float] = None
    year: Optional[int] = None
    confidence_score: float
    semantic_similarity: float
    match_categories: List[str] = []
    reason: str = ""
    provenance: List[str] = []
    queue_position: int

    @classmethod
    def from_scored(cls, scored: ScoredCandidate, position: int) -> "RecommendationCard":
        item = scored.candidate
        return cls(
            id=item.id,
            title=item.title,
            genres=item.genres,
            rating=item.rating,
            year=item.year,
            confidence_score=round(scored.confidence_score, 4),
            semantic_similarity=round(scored.semantic_similarity, 4),
            match_categories=scored.match_categories,
            reason=scored.reason,
            provenance=item.provenance,
            queue_position=position,
        )


class RecommendationResponse(BaseModel):
    user_id: str
    items: List[RecommendationCard]
    insights: RecommendationInsights
