"""
Engine configuration: candidate pool, context, boosts, diversity, profiling, cache.

RecommendationConfig is the single source of truth for every weight and threshold.
A versioned JSON file may override any field; from_dict() merges it with these defaults.
"""

from typing import Dict, Optional

from pydantic import BaseModel, model_validator


class RecommendationConfig(BaseModel):
    """Configuration for the recommendation engine."""

    # Version tag of the weight set; bumped whenever a JSON override changes weights.
    version: str = "default"

    # -------------------------------------------------------------------------
    # Candidate Pool
    # -------------------------------------------------------------------------

    # Pool size = limit * candidate_multiplier, capped at candidate_pool_cap.
    candidate_multiplier: int = 5
    candidate_pool_cap: int = 100

    # No-query path: share of the pool filled from trending before curated.
    trending_share: float = 0.7
    # Cached trending sets smaller than this are refetched live.
    min_trending_items: int = 20
    trending_ttl_seconds: int = 86400

    # Curated pool admits catalog items rated above this (0-10 catalog scale).
    high_quality_rating_threshold: float = 7.0

    # -------------------------------------------------------------------------
    # User Context
    # confidence = min(cap, base + step * signal_count)
    # -------------------------------------------------------------------------

    context_base_confidence: float = 0.4
    context_confidence_step: float = 0.1
    context_confidence_cap: float = 0.8
    # Max memory snippets folded into the context text.
    memory_snippet_limit: int = 5
    default_context_text: str = "General movie preferences"

    # -------------------------------------------------------------------------
    # Boosts (applied in this order, running total clamped to [0, 1] after each)
    # -------------------------------------------------------------------------

    # a. Genre affinity: mean affinity over candidate genres * genre_affinity_max.
    genre_affinity_enabled: bool = True
    genre_affinity_max: float = 0.20
    # Affinity map is built from this many most recent interactions.
    genre_affinity_window: int = 200

    # b. Temporal affinity: hour and day signals, each up to temporal_max.
    temporal_enabled: bool = True
    temporal_max: float = 0.10

    # c. Talent: flat director bonus + per-cast-member bonus, total capped.
    talent_enabled: bool = True
    director_boost: float = 0.10
    cast_boost_per_match: float = 0.05
    talent_max: float = 0.30

    # d. Storyline: cosine(candidate, mean of liked items) * storyline_weight.
    storyline_enabled: bool = True
    storyline_weight: float = 0.2
    # History ratings (1-5) at or above this count as "liked".
    liked_rating_min: float = 4.0

    # e. Sentiment alignment: signed, magnitude at most sentiment_max.
    sentiment_enabled: bool = True
    sentiment_max: float = 0.05
    # Popular items (popularity > threshold, 0-1 scale) cannot score above the ceiling.
    popularity_ceiling_threshold: float = 0.9
    popularity_ceiling: float = 0.85

    # f. Preference insights: flat bonus for overlap with top interaction genres.
    preference_insights_enabled: bool = True
    preference_insights_boost: float = 0.05
    preference_top_genres: int = 3

    # g. High rating: rating above threshold adds high_rating_weight * rating / 10.
    high_rating_enabled: bool = True
    high_rating_threshold: float = 7.5
    high_rating_weight: float = 0.1

    # -------------------------------------------------------------------------
    # Scoring
    # -------------------------------------------------------------------------

    # Confidence given to a candidate whose scoring failed.
    failure_confidence: float = 0.3
    # Worker threads for per-candidate scoring. 1 = sequential.
    scoring_workers: int = 8

    # Category thresholds.
    semantic_match_threshold: float = 0.7
    high_quality_category_rating: float = 8.0
    # Insights count items above this similarity as semantic matches.
    semantic_insight_threshold: float = 0.6

    # -------------------------------------------------------------------------
    # Diversity
    # First floor(N * (1 - diversity_factor)) picks are unconditional.
    # -------------------------------------------------------------------------

    diversity_factor: float = 0.3

    # -------------------------------------------------------------------------
    # Behavioral Profiling
    # -------------------------------------------------------------------------

    # Unwatched watchlist items older than this are abandoned.
    abandoned_after_days: int = 30
    # Watched within this many days of being added = impulse watch.
    impulse_max_days: int = 2
    # Per-genre completion only for genres with at least this many items.
    genre_completion_min_items: int = 3
    # Director average only with at least this many rated items.
    director_min_ratings: int = 2
    # Viewing velocity window (items/week = count in window / (window / 7)).
    velocity_window_days: int = 28
    # Genre/director averages at or above this are "loyal".
    loyalty_min_average: float = 4.0
    weekend_top_genres: int = 5
    temporal_top_genres: int = 3
    # Hour confidence = min(1, total / saturation); day weight = min(1, count / saturation).
    hour_confidence_saturation: int = 10
    day_weight_saturation: int = 5

    # -------------------------------------------------------------------------
    # Cache TTLs (seconds)
    # -------------------------------------------------------------------------

    recommendations_ttl_seconds: int = 900
    profile_ttl_seconds: int = 1800
    embedding_ttl_seconds: int = 3600
    fallback_ttl_seconds: int = 300
    # Versioned weight file is re-read at most this often.
    config_reload_seconds: int = 300

    @model_validator(mode="after")
    def check_ranges(self):
        caps = {
            "genre_affinity_max": self.genre_affinity_max,
            "temporal_max": self.temporal_max,
            "talent_max": self.talent_max,
            "storyline_weight": self.storyline_weight,
            "sentiment_max": self.sentiment_max,
            "preference_insights_boost": self.preference_insights_boost,
            "high_rating_weight": self.high_rating_weight,
        }
        negative = [name for name, value in caps.items() if value < 0]
        if negative:
            raise ValueError(f"Boost weights must be non-negative: {', '.join(negative)}")
        for name in ("diversity_factor", "trending_share", "popularity_ceiling"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be in [0, 1], got {value}")
        if self.candidate_multiplier < 1 or self.candidate_pool_cap < 1:
            raise ValueError("candidate_multiplier and candidate_pool_cap must be >= 1")
        return self

    @classmethod
    def from_dict(cls, config_dict: Dict) -> "RecommendationConfig":
        """Create config from a (possibly nested) dictionary, e.g. a versioned weights file."""
        flat = {}
        for section in ("candidate_pool", "context", "boosts", "scoring", "diversity", "profiling", "cache"):
            if isinstance(config_dict.get(section), dict):
                flat.update(config_dict[section])
        # Top-level keys win over sections
        flat.update({k: v for k, v in config_dict.items() if not isinstance(v, dict)})
        allowed = set(cls.model_fields)
        filtered = {k: v for k, v in flat.items() if k in allowed}
        return cls.model_validate(filtered)


DEFAULT_CONFIG = RecommendationConfig()


def resolve_config(config: Optional["RecommendationConfig"]) -> "RecommendationConfig":
    """Return config or DEFAULT_CONFIG when none is provided."""
    return config if config is not None else DEFAULT_CONFIG
