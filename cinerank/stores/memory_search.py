"""
Memory search abstraction.

Returns short preference snippets remembered about a user (e.g. "loves slow-burn
Nordic noir") relevant to a query text. Consumed only by the user context builder.
"""

import hashlib
import logging
from typing import Dict, List, Optional, Protocol, Tuple

from ..cache import SmartCache
from ..embedding.provider import EmbeddingProvider
from ..embedding.similarity import cosine_similarity

logger = logging.getLogger(__name__)

MEMORY_TAG = "memories"
MEMORY_VECTOR_MAX_ENTRIES = 1000
MEMORY_VECTOR_TTL_SECONDS = 86400


class MemorySearch(Protocol):
    def search_memories(self, user_id: str, query_text: str) -> List[str]:
        ...


class NullMemorySearch:
    """No memories. Used when no memory backend is configured."""

    def search_memories(self, user_id: str, query_text: str) -> List[str]:
        return []


class EmbeddingMemorySearch:
    """
    In-process memory search: snippets ranked by cosine similarity to the query,
    kept when similarity >= threshold, at most limit returned.

    Snippet vectors live in a SmartCache under the "memories" tag, so they
    are bounded and evicted like every other cached payload.
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        memories: Optional[Dict[str, List[str]]] = None,
        threshold: float = 0.7,
        limit: int = 5,
        cache: Optional[SmartCache] = None,
        cache_ttl: float = MEMORY_VECTOR_TTL_SECONDS,
    ):
        self.provider = provider
        self.threshold = threshold
        self.limit = limit
        self._memories: Dict[str, List[str]] = {k: list(v) for k, v in (memories or {}).items()}
        self.cache = cache if cache is not None else SmartCache(
            max_entries=MEMORY_VECTOR_MAX_ENTRIES, name="memories"
        )
        self.cache_ttl = cache_ttl

    def add_memory(self, user_id: str, snippet: str) -> None:
        self._memories.setdefault(user_id, []).append(snippet)

    @staticmethod
    def vector_key(snippet: str) -> str:
        return "memory:" + hashlib.sha1(snippet.encode("utf-8")).hexdigest()

    def _vector(self, snippet: str) -> List[float]:
        key = self.vector_key(snippet)
        vector = self.cache.get(key)
        if vector is None:
            vector = self.provider.embed(snippet, kind="context").vector
            self.cache.set(key, vector, ttl=self.cache_ttl, tags=(MEMORY_TAG,), priority="low")
        return vector

    def search_memories(self, user_id: str, query_text: str) -> List[str]:
        snippets = self._memories.get(user_id) or []
        if not snippets or not query_text:
            return []
        query_vector = self.provider.embed(query_text, kind="context").vector
        scored: List[Tuple[float, str]] = []
        for snippet in snippets:
            sim = cosine_similarity(query_vector, self._vector(snippet))
            if sim >= self.threshold:
                scored.append((sim, snippet))
        scored.sort(key=lambda pair: pair[0], reverse=True)
        return [snippet for _, snippet in scored[: self.limit]]
