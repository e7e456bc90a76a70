"""Application state: the one RecommendationService and the stores it was built from."""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from cinerank import ConfigLoader, RecommendationService
from cinerank.cache import SmartCache
from cinerank.embedding import HashEmbeddingProvider, OpenAIEmbeddingProvider
from cinerank.models import DEFAULT_CONFIG
from cinerank.stores import (
    EmbeddingMemorySearch,
    HttpTrendingSource,
    InMemoryCatalog,
    InMemoryEmbeddingStore,
    InMemoryHistoryStore,
    JsonCatalog,
    JsonFileEmbeddingStore,
    JsonHistoryStore,
    QdrantEmbeddingStore,
)

from .config import ServerConfig, get_config

logger = logging.getLogger(__name__)


def _load_memories(path: Optional[Path]) -> Dict[str, List[str]]:
    """Memory snippets file: {user_id: ["snippet", ...]}."""
    if path is None:
        return {}
    with open(path) as f:
        data = json.load(f)
    return {str(user_id): [str(s) for s in snippets] for user_id, snippets in data.items()}


class AppState:
    """Global application state."""

    def __init__(self, config: ServerConfig, service: Optional[RecommendationService] = None):
        self.config = config
        self.service = service if service is not None else self._create_service(config)

    def _create_provider(self, config: ServerConfig, cache: SmartCache):
        if config.embedding_provider == "hash":
            logger.info("[startup] Embedding provider: hash (dims=%s)", config.embedding_dimensions)
            return HashEmbeddingProvider(dimensions=config.embedding_dimensions)
        logger.info("[startup] Embedding provider: openai (model=%s)", config.embedding_model)
        return OpenAIEmbeddingProvider(
            api_key=config.openai_api_key,
            model=config.embedding_model,
            dimensions=config.embedding_dimensions,
            cache=cache,
            cache_ttl=DEFAULT_CONFIG.embedding_ttl_seconds,
            fallback_ttl=DEFAULT_CONFIG.fallback_ttl_seconds,
        )

    def _create_embedding_store(self, config: ServerConfig):
        """Qdrant when QDRANT_URL is set, else a JSON file, else in-memory."""
        if config.qdrant_url:
            logger.info("[startup] Embedding store: Qdrant (%s)", config.qdrant_url)
            return QdrantEmbeddingStore(
                qdrant_url=config.qdrant_url,
                collection_name=config.qdrant_collection,
                dimensions=config.embedding_dimensions,
            )
        if config.embeddings_json_path:
            logger.info("[startup] Embedding store: JSON (%s)", config.embeddings_json_path)
            return JsonFileEmbeddingStore(config.embeddings_json_path)
        logger.info("[startup] Embedding store: in-memory")
        return InMemoryEmbeddingStore()

    def _create_service(self, config: ServerConfig) -> RecommendationService:
        cache = SmartCache(name="cinerank")
        provider = self._create_provider(config, cache)

        if config.catalog_json_path:
            catalog = JsonCatalog(config.catalog_json_path)
        else:
            logger.warning("[startup] CATALOG_JSON_PATH not set; catalog is empty")
            catalog = InMemoryCatalog([])

        trending = (
            HttpTrendingSource(config.trending_url, timeout=config.request_timeout_seconds)
            if config.trending_url
            else catalog
        )
        history_store = (
            JsonHistoryStore(config.history_json_path)
            if config.history_json_path
            else InMemoryHistoryStore()
        )
        memory_search = EmbeddingMemorySearch(provider, _load_memories(config.memories_json_path), cache=cache)

        logger.info(
            "[startup] Stores: catalog=%s trending=%s history=%s",
            type(catalog).__name__, type(trending).__name__, type(history_store).__name__,
        )
        return RecommendationService(
            provider=provider,
            history_store=history_store,
            catalog=catalog,
            trending=trending,
            embedding_store=self._create_embedding_store(config),
            memory_search=memory_search,
            config_loader=ConfigLoader(config.weights_path, cache=cache),
            cache=cache,
        )


_state: Optional[AppState] = None


def get_state() -> AppState:
    global _state
    if _state is None:
        config = get_config()
        _state = AppState(config)
    return _state


def set_state(state: Optional[AppState]) -> None:
    """Replace the global state (None resets it; next get_state rebuilds from env)."""
    global _state
    _state = state
