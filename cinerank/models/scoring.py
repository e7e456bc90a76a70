"""
Scoring model: ScoredCandidate and the clamp helper used by the pipeline.

confidence_score is a heuristic ranking signal (bounded cosine similarity plus
additive business boosts), not a calibrated probability. Only its ordering matters.
"""

from typing import Dict, List

from pydantic import BaseModel, Field, field_validator

from .candidate import CandidateItem

CATEGORY_BASIC = "basic"
CATEGORY_GENERAL = "general"


def clamp01(value: float) -> float:
    """Clamp to [0, 1]; NaN becomes 0."""
    if value != value:
        return 0.0
    return max(0.0, min(1.0, float(value)))


class ScoredCandidate(BaseModel):
    """A candidate with its similarity, confidence, categories and reason."""

    candidate: CandidateItem
    semantic_similarity: float = 0.0
    confidence_score: float = 0.0
    match_categories: List[str] = Field(default_factory=list)
    reason: str = ""
    # Effective contribution of the base score and each applied boost.
    factors: Dict[str, float] = Field(default_factory=dict)
    failed: bool = False

    @field_validator("semantic_similarity", "confidence_score")
    @classmethod
    def _clamped(cls, value: float) -> float:
        return clamp01(value)

    @field_validator("match_categories")
    @classmethod
    def _unique(cls, value: List[str]) -> List[str]:
        return list(dict.fromkeys(value))

    @property
    def id(self) -> str:
        return self.candidate.id

    @property
    def genres(self) -> List[str]:
        return self.candidate.genres
