"""
User context: preference/behavior signals -> one context vector.

Concatenates the free-text query, genre list, mood and the most relevant
remembered snippets into one context string, embeds it once, and reports a
confidence that grows with the number of distinct signal types present.

The public entry point is UserContextBuilder.build.
"""

import logging
from typing import List, Optional

from ..embedding.provider import EmbeddingProvider
from ..embedding.text import get_context_text
from ..errors import ConfigurationError
from ..models.config import DEFAULT_CONFIG, RecommendationConfig
from ..models.context import UserContextVector
from ..stores.memory_search import MemorySearch, NullMemorySearch

logger = logging.getLogger(__name__)


def context_confidence(signal_count: int, config: RecommendationConfig = DEFAULT_CONFIG) -> float:
    """base + step * signals, capped. Monotonically non-decreasing in signal_count."""
    raw = config.context_base_confidence + config.context_confidence_step * max(0, signal_count)
    return min(config.context_confidence_cap, raw)


class UserContextBuilder:
    """Builds the per-request UserContextVector. No side effects beyond the embed call."""

    def __init__(
        self,
        provider: EmbeddingProvider,
        memory_search: Optional[MemorySearch] = None,
        config: RecommendationConfig = DEFAULT_CONFIG,
    ):
        self.provider = provider
        self.memory_search = memory_search or NullMemorySearch()
        self.config = config

    def _search_memories(self, user_id: str, seed_text: str) -> List[str]:
        """Top memory snippets for seed_text; memory backend failure yields none."""
        try:
            memories = self.memory_search.search_memories(user_id, seed_text) or []
        except ConfigurationError:
            raise
        except Exception as e:
            logger.warning("[context] MEMORY_SEARCH_FAILED user_id=%s err=%s", user_id, e)
            return []
        return [m for m in memories if m][: self.config.memory_snippet_limit]

    def build(
        self,
        user_id: str,
        query: str = "",
        genres: Optional[List[str]] = None,
        mood: str = "",
        config: Optional[RecommendationConfig] = None,
    ) -> UserContextVector:
        config = config or self.config
        # --- 1. Explicit signals ---
        parts = get_context_text(query=query, genres=genres, mood=mood)

        # --- 2. Memories: searched only when there is something to search with ---
        memories: List[str] = []
        if parts:
            memories = self._search_memories(user_id, " ".join(parts))
            if memories:
                parts = get_context_text(query=query, genres=genres, mood=mood, memories=memories)

        # --- 3. Embed once ---
        text = ". ".join(parts) if parts else config.default_context_text
        embedding = self.provider.embed(text, kind="context")

        return UserContextVector(
            embedding=embedding,
            confidence=context_confidence(len(parts), config),
            text=text,
            signal_count=len(parts),
            memories=memories,
        )
