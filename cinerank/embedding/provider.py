"""
Embedding providers: text -> unit-normalized vector.

OpenAIEmbeddingProvider calls the OpenAI embeddings API. On upstream failure it
returns a deterministic hash-derived fallback vector (same text => same vector),
so caching and similarity math downstream stay valid. It raises only for
configuration errors (missing API key).

Usage:
    provider = OpenAIEmbeddingProvider(api_key="sk-...", cache=SmartCache())
    emb = provider.embed("A heist thriller set in Lisbon", kind="context")
"""

import hashlib
import logging
import os
from typing import List, Optional, Protocol

import numpy as np
from openai import OpenAI

from ..cache import SmartCache
from ..errors import ConfigurationError
from ..models.candidate import CandidateItem
from ..models.context import EmbeddingKind, EmbeddingVector
from .similarity import mean_vector, normalize
from .text import get_content_text, get_metadata_text

logger = logging.getLogger(__name__)

EMBEDDING_MODEL = "text-embedding-3-small"
EMBEDDING_DIMENSIONS = 1536
HASH_MODEL_TAG = "hash-v1"


class EmbeddingProvider(Protocol):
    """Protocol for text embedding. Implementations must return normalized vectors."""

    dimensions: int

    def embed(self, text: str, kind: EmbeddingKind = "item") -> EmbeddingVector:
        ...


def hash_embedding(text: str, dimensions: int = EMBEDDING_DIMENSIONS) -> List[float]:
    """Deterministic pseudo-random unit vector seeded from the text's SHA-256."""
    seed = int.from_bytes(hashlib.sha256(text.encode("utf-8")).digest()[:8], "big")
    rng = np.random.default_rng(seed)
    return normalize(rng.standard_normal(dimensions))


class HashEmbeddingProvider:
    """
    Offline provider built on hash_embedding. Used for local runs and tests;
    similar texts do not get similar vectors, identical texts get identical ones.
    """

    def __init__(self, dimensions: int = EMBEDDING_DIMENSIONS):
        self.dimensions = dimensions

    def embed(self, text: str, kind: EmbeddingKind = "item") -> EmbeddingVector:
        return EmbeddingVector(
            vector=hash_embedding(text or "", self.dimensions),
            kind=kind,
            model_tag=HASH_MODEL_TAG,
        )


class OpenAIEmbeddingProvider:
    """
    Embeds text with OpenAI's embedding API, caching results in a SmartCache.

    Fallback vectors are cached for fallback_ttl only, so a recovered upstream
    is picked up quickly.
    """

    BATCH_SIZE = 100

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = EMBEDDING_MODEL,
        dimensions: int = EMBEDDING_DIMENSIONS,
        cache: Optional[SmartCache] = None,
        cache_ttl: float = 3600,
        fallback_ttl: float = 300,
    ):
        """
        Args:
            api_key: OpenAI API key (falls back to OPENAI_API_KEY env var)
            model: Embedding model to use
            dimensions: Embedding dimensions
            cache: Optional shared SmartCache for embedding results
        """
        self.api_key = api_key or os.environ.get("OPENAI_API_KEY")
        self.model = model
        self.dimensions = dimensions
        self.cache = cache
        self.cache_ttl = cache_ttl
        self.fallback_ttl = fallback_ttl
        self._client: Optional[OpenAI] = None

    @property
    def client(self) -> OpenAI:
        """Get or create OpenAI client."""
        if not self.api_key:
            raise ConfigurationError(
                "OpenAI API key not provided. Set OPENAI_API_KEY environment variable "
                "or set EMBEDDING_PROVIDER=hash for offline embeddings."
            )
        if self._client is None:
            self._client = OpenAI(api_key=self.api_key)
        return self._client

    def _cache_key(self, text: str) -> str:
        digest = hashlib.sha1(text.encode("utf-8")).hexdigest()
        return f"emb:{self.model}:{self.dimensions}:{digest}"

    def embed(self, text: str, kind: EmbeddingKind = "item") -> EmbeddingVector:
        text = (text or "").strip() or " "
        key = self._cache_key(text)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return cached.model_copy(update={"kind": kind})

        client = self.client  # ConfigurationError propagates
        try:
            response = client.embeddings.create(
                model=self.model,
                input=[text],
                dimensions=self.dimensions,
            )
            result = EmbeddingVector(
                vector=normalize(response.data[0].embedding),
                kind=kind,
                model_tag=self.model,
            )
            ttl = self.cache_ttl
        except Exception as e:
            logger.warning("[embed_fallback] UPSTREAM_ERROR kind=%s err=%s", kind, e)
            result = self._fallback(text, kind)
            ttl = self.fallback_ttl

        if self.cache is not None:
            self.cache.set(key, result, ttl=ttl, tags=("embeddings",), priority="low")
        return result

    def embed_batch(self, texts: List[str], kind: EmbeddingKind = "item") -> List[EmbeddingVector]:
        """Embed many texts in BATCH_SIZE requests; a failed batch falls back per text."""
        client = self.client
        results: List[EmbeddingVector] = []
        for i in range(0, len(texts), self.BATCH_SIZE):
            batch = [(t or "").strip() or " " for t in texts[i:i + self.BATCH_SIZE]]
            try:
                response = client.embeddings.create(
                    model=self.model,
                    input=batch,
                    dimensions=self.dimensions,
                )
                results.extend(
                    EmbeddingVector(vector=normalize(item.embedding), kind=kind, model_tag=self.model)
                    for item in response.data
                )
            except Exception as e:
                logger.warning(
                    "[embed_fallback] BATCH_UPSTREAM_ERROR batch=%s size=%s err=%s",
                    i // self.BATCH_SIZE + 1, len(batch), e,
                )
                results.extend(self._fallback(t, kind) for t in batch)
        return results

    def _fallback(self, text: str, kind: EmbeddingKind) -> EmbeddingVector:
        return EmbeddingVector(
            vector=hash_embedding(text, self.dimensions),
            kind=kind,
            model_tag=HASH_MODEL_TAG,
            fallback=True,
        )


def embed_candidate(provider: EmbeddingProvider, item: CandidateItem) -> EmbeddingVector:
    """Item embedding: normalized average of the content and metadata embeddings."""
    content = provider.embed(get_content_text(item), kind="item")
    metadata_text = get_metadata_text(item)
    if not metadata_text:
        return content
    metadata = provider.embed(metadata_text, kind="item")
    return EmbeddingVector(
        vector=mean_vector([content.vector, metadata.vector]),
        kind="item",
        model_tag=content.model_tag,
        fallback=content.fallback or metadata.fallback,
    )
