"""Embedding providers, embed-text strategy, cosine similarity and its memo cache."""

from .provider import (
    EMBEDDING_DIMENSIONS,
    EMBEDDING_MODEL,
    EmbeddingProvider,
    HashEmbeddingProvider,
    OpenAIEmbeddingProvider,
    embed_candidate,
    hash_embedding,
)
from .similarity import cosine_similarity, mean_vector, normalize
from .similarity_cache import SimilarityCache, fingerprint
from .text import STRATEGY_VERSION, get_content_text, get_context_text, get_metadata_text

__all__ = [
    "EMBEDDING_DIMENSIONS",
    "EMBEDDING_MODEL",
    "STRATEGY_VERSION",
    "EmbeddingProvider",
    "HashEmbeddingProvider",
    "OpenAIEmbeddingProvider",
    "SimilarityCache",
    "cosine_similarity",
    "embed_candidate",
    "fingerprint",
    "get_content_text",
    "get_context_text",
    "get_metadata_text",
    "hash_embedding",
    "mean_vector",
    "normalize",
]
