"""
Versioned weight loading.

RecommendationConfig is the only place weights live. ConfigLoader optionally
overlays a JSON weights file on top of it:

    {
      "version": "2025-06-01",
      "boosts": {"genre_affinity_max": 0.25, "storyline_weight": 0.15},
      "diversity": {"diversity_factor": 0.4}
    }

The parsed config is held in a SmartCache for config_reload_seconds, so edits
to the file are picked up without a restart. A missing or invalid file falls
back to the default config and says so in the log.

Usage:
    loader = ConfigLoader("weights/v3.json")
    config = loader.load()
"""

import json
import logging
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from .cache import SmartCache
from .models.config import DEFAULT_CONFIG, RecommendationConfig

logger = logging.getLogger(__name__)

CONFIG_CACHE_KEY = "config:weights"


class ConfigLoader:
    """Loads RecommendationConfig from an optional versioned JSON file."""

    def __init__(
        self,
        path: Optional[Union[Path, str]] = None,
        cache: Optional[SmartCache] = None,
        default: RecommendationConfig = DEFAULT_CONFIG,
    ):
        self.path = Path(path) if path else None
        self.cache = cache if cache is not None else SmartCache(name="config", max_entries=16)
        self.default = default

    def _read(self) -> RecommendationConfig:
        if self.path is None:
            return self.default
        try:
            with open(self.path) as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.warning("[config] WEIGHTS_FILE_MISSING path=%s using=default", self.path)
            return self.default
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("[config] WEIGHTS_FILE_UNREADABLE path=%s err=%s using=default", self.path, e)
            return self.default
        if not isinstance(data, dict):
            logger.warning("[config] WEIGHTS_FILE_INVALID path=%s err=not an object using=default", self.path)
            return self.default
        # Unset fields inherit from the default, not from the class defaults
        merged = {**self.default.model_dump(), **_flatten(data)}
        try:
            config = RecommendationConfig.from_dict(merged)
        except ValidationError as e:
            logger.warning("[config] WEIGHTS_FILE_INVALID path=%s err=%s using=default", self.path, e)
            return self.default
        logger.info("[config] WEIGHTS_LOADED path=%s version=%s", self.path, config.version)
        return config

    def load(self) -> RecommendationConfig:
        """Current config; re-reads the file at most every config_reload_seconds."""
        cached = self.cache.get(CONFIG_CACHE_KEY)
        if cached is not None:
            return cached
        config = self._read()
        self.cache.set(
            CONFIG_CACHE_KEY,
            config,
            ttl=config.config_reload_seconds,
            tags=("config",),
            priority="high",
        )
        return config

    def reload(self) -> RecommendationConfig:
        """Drop the cached config and read the file again."""
        self.cache.delete(CONFIG_CACHE_KEY)
        return self.load()


def _flatten(data: dict) -> dict:
    """Nested section layout -> flat field dict (top-level scalars win)."""
    flat = {}
    for value in data.values():
        if isinstance(value, dict):
            flat.update(value)
    flat.update({k: v for k, v in data.items() if not isinstance(v, dict)})
    return flat
