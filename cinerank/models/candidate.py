"""
Candidate model: typed representation of a catalog item eligible for recommendation.

Used by candidate_pool, ranking and embedding stages instead of raw dicts.
Built from catalog/API dicts via CandidateItem.model_validate(d) or ensure_candidates().
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

PROVENANCE_TRENDING = "trending"
PROVENANCE_CURATED = "curated"
PROVENANCE_SEARCH = "search"


class CandidateItem(BaseModel):
    """
    Catalog item payload used across the engine stages.

    All fields except id are optional to support partial catalog data.
    rating is on the catalog's 0-10 scale; popularity and critic_sentiment are
    normalised by the catalog adapter to [0, 1] and [-1, 1].
    """

    model_config = ConfigDict(extra="allow")

    id: str
    title: str = ""
    genres: List[str] = Field(default_factory=list)
    rating: Optional[float] = None
    plot: Optional[str] = None
    year: Optional[int] = None
    directors: List[str] = Field(default_factory=list)
    cast: List[str] = Field(default_factory=list)
    # Key under which the durable store keeps this item's embedding (defaults to id).
    embedding_id: Optional[str] = None
    provenance: List[str] = Field(default_factory=list)
    popularity: Optional[float] = None
    critic_sentiment: Optional[float] = None

    @property
    def embedding_key(self) -> str:
        return self.embedding_id or self.id

    def with_provenance(self, tag: str) -> "CandidateItem":
        """Copy of this item carrying tag in its provenance (no duplicates)."""
        if tag in self.provenance:
            return self
        return self.model_copy(update={"provenance": [*self.provenance, tag]})

    def matches_query(self, query: str) -> bool:
        """Case-insensitive substring match on title or plot."""
        needle = (query or "").strip().lower()
        if not needle:
            return False
        return needle in (self.title or "").lower() or needle in (self.plot or "").lower()


def ensure_candidates(
    items: List[Union[Dict[str, Any], "CandidateItem"]],
) -> List["CandidateItem"]:
    """Convert list of dicts or CandidateItems to list of CandidateItem models."""
    return [
        CandidateItem.model_validate(i) if isinstance(i, dict) else i
        for i in items
    ]
