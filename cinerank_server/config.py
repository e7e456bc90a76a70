"""
Server Configuration

Loads configuration from environment variables and provides defaults.
A .env file at the project root is loaded first via python-dotenv.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

root_env = BASE_DIR / ".env"
if root_env.exists():
    load_dotenv(root_env)

EMBEDDING_PROVIDERS = ("openai", "hash")


def _path_env(key: str, default: Optional[Path] = None) -> Optional[Path]:
    """Path from env; relative paths resolve against the project root."""
    value = os.getenv(key)
    if not value:
        return default
    path = Path(value)
    return path if path.is_absolute() else (BASE_DIR / path).resolve()


@dataclass
class ServerConfig:
    """Server configuration."""

    # API Keys
    openai_api_key: Optional[str] = None

    # Embeddings: "openai" | "hash" (offline, deterministic)
    embedding_provider: str = "openai"
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = 1536

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000
    # Whole-pipeline timeout per recommendation request
    request_timeout_seconds: float = 10.0

    # Data files (JSON). Unset -> empty in-memory stores.
    catalog_json_path: Optional[Path] = None
    history_json_path: Optional[Path] = None
    memories_json_path: Optional[Path] = None
    embeddings_json_path: Optional[Path] = None
    # Versioned weights file overlaying the default RecommendationConfig
    weights_path: Optional[Path] = None

    # Qdrant embedding store (takes precedence over embeddings_json_path)
    qdrant_url: Optional[str] = None
    qdrant_collection: str = "cinerank_items"

    # Trending feed over HTTP; unset -> the catalog's own trending list
    trending_url: Optional[str] = None

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Load configuration from environment variables."""
        provider = (os.getenv("EMBEDDING_PROVIDER") or "openai").strip().lower()
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            embedding_provider=provider,
            embedding_model=os.getenv("EMBEDDING_MODEL", "text-embedding-3-small"),
            embedding_dimensions=int(os.getenv("EMBEDDING_DIMENSIONS", "1536")),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            request_timeout_seconds=float(os.getenv("REQUEST_TIMEOUT_SECONDS", "10")),
            catalog_json_path=_path_env("CATALOG_JSON_PATH"),
            history_json_path=_path_env("HISTORY_JSON_PATH"),
            memories_json_path=_path_env("MEMORIES_JSON_PATH"),
            embeddings_json_path=_path_env("EMBEDDINGS_JSON_PATH"),
            weights_path=_path_env("CINERANK_WEIGHTS_PATH"),
            qdrant_url=os.getenv("QDRANT_URL") or None,
            qdrant_collection=os.getenv("QDRANT_COLLECTION", "cinerank_items"),
            trending_url=os.getenv("TRENDING_URL") or None,
        )

    def validate(self) -> Tuple[bool, List[str]]:
        """
        Validate the configuration.

        Returns:
            (is_valid, list_of_errors)
        """
        errors = []

        if self.embedding_provider not in EMBEDDING_PROVIDERS:
            errors.append(
                f"EMBEDDING_PROVIDER must be one of {', '.join(EMBEDDING_PROVIDERS)}, got {self.embedding_provider!r}"
            )
        if self.embedding_provider == "openai" and not self.openai_api_key:
            errors.append("OPENAI_API_KEY is required when EMBEDDING_PROVIDER=openai")
        if self.embedding_dimensions < 1:
            errors.append(f"EMBEDDING_DIMENSIONS must be positive, got {self.embedding_dimensions}")
        if self.request_timeout_seconds <= 0:
            errors.append(f"REQUEST_TIMEOUT_SECONDS must be positive, got {self.request_timeout_seconds}")

        # Input files must exist; the embeddings file is created on first save
        for label, path in (
            ("CATALOG_JSON_PATH", self.catalog_json_path),
            ("HISTORY_JSON_PATH", self.history_json_path),
            ("MEMORIES_JSON_PATH", self.memories_json_path),
        ):
            if path is not None and not path.exists():
                errors.append(f"{label} not found: {path}")

        return len(errors) == 0, errors


# Global config instance
_config: Optional[ServerConfig] = None


def get_config() -> ServerConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = ServerConfig.from_env()
    return _config


def reload_config() -> ServerConfig:
    """Reload configuration from environment."""
    global _config
    _config = None
    return get_config()
