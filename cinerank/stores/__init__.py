"""
Collaborator interfaces consumed by the engine, with local and remote adapters.

- embedding_store: durable item embeddings (in-memory, JSON file, Qdrant)
- history_store: per-user history rows (in-memory, JSON file)
- catalog: search, curated pool, trending feed (in-memory, JSON file, HTTP)
- memory_search: remembered preference snippets (null, embedding-based)
"""

from .catalog import CatalogSource, HttpTrendingSource, InMemoryCatalog, JsonCatalog, TrendingSource
from .embedding_store import (
    EmbeddingStore,
    InMemoryEmbeddingStore,
    JsonFileEmbeddingStore,
    QdrantEmbeddingStore,
)
from .history_store import HistoryStore, InMemoryHistoryStore, JsonHistoryStore
from .memory_search import EmbeddingMemorySearch, MemorySearch, NullMemorySearch

__all__ = [
    "CatalogSource",
    "EmbeddingMemorySearch",
    "EmbeddingStore",
    "HistoryStore",
    "HttpTrendingSource",
    "InMemoryCatalog",
    "InMemoryEmbeddingStore",
    "InMemoryHistoryStore",
    "JsonCatalog",
    "JsonFileEmbeddingStore",
    "JsonHistoryStore",
    "MemorySearch",
    "NullMemorySearch",
    "QdrantEmbeddingStore",
    "TrendingSource",
]
