"""
Vector models: embeddings and the per-request user context vector.
"""

from typing import List, Literal

from pydantic import BaseModel, Field

EmbeddingKind = Literal["item", "context"]


class EmbeddingVector(BaseModel):
    """A unit-normalized embedding tagged with its source kind."""

    vector: List[float]
    kind: EmbeddingKind = "item"
    model_tag: str = ""
    # True when produced by the deterministic hash fallback instead of the upstream model.
    fallback: bool = False

    @property
    def dims(self) -> int:
        return len(self.vector)


class UserContextVector(BaseModel):
    """Combined preference/behavior signal embedded once per request."""

    embedding: EmbeddingVector
    confidence: float = 0.0
    text: str = ""
    signal_count: int = 0
    memories: List[str] = Field(default_factory=list)

    @property
    def vector(self) -> List[float]:
        return self.embedding.vector
