"""
Behavior profile models: output of the behavioral profiler.

Every model has defaults so an empty history yields a well-defined profile
(all zeros/empties) instead of an error.
"""

from typing import Dict, List

from pydantic import BaseModel, Field


def _empty_buckets() -> Dict[int, List[str]]:
    return {star: [] for star in range(1, 6)}


def _empty_distribution() -> Dict[int, int]:
    return {star: 0 for star in range(1, 6)}


class RatingPatterns(BaseModel):
    """Rating histogram and per-genre/per-director averages (1-5 stars)."""

    # Item ids per star value 1..5
    ratings_by_star: Dict[int, List[str]] = Field(default_factory=_empty_buckets)
    distribution: Dict[int, int] = Field(default_factory=_empty_distribution)
    genre_averages: Dict[str, float] = Field(default_factory=dict)
    director_averages: Dict[str, float] = Field(default_factory=dict)
    average_rating: float = 0.0
    total_ratings: int = 0


class GenreWatchStats(BaseModel):
    added: int = 0
    watched: int = 0


class WatchlistPatterns(BaseModel):
    """Watched / abandoned / pending classification and completion stats."""

    watched: List[str] = Field(default_factory=list)
    abandoned: List[str] = Field(default_factory=list)
    pending: List[str] = Field(default_factory=list)
    impulse_watches: List[str] = Field(default_factory=list)
    # Percentage 0-100, rounded.
    completion_rate: int = 0
    genre_completion_rates: Dict[str, int] = Field(default_factory=dict)
    genre_add_vs_watch: Dict[str, GenreWatchStats] = Field(default_factory=dict)
    average_time_to_watch_days: float = 0.0
    total_items: int = 0


class TemporalPatterns(BaseModel):
    """Weekend/weekday genre preferences, viewing velocity and seasonal habits."""

    weekend_genres: List[str] = Field(default_factory=list)
    weekday_genres: List[str] = Field(default_factory=list)
    # Items per week over the velocity window.
    viewing_velocity: float = 0.0
    # Month name -> top genres watched in that month.
    seasonal_preferences: Dict[str, List[str]] = Field(default_factory=dict)
    viewing_contexts: List[str] = Field(default_factory=list)


class TimeBucketAffinity(BaseModel):
    """Genres preferred in one hour-of-day or day-of-week bucket, with its confidence weight."""

    preferred_genres: List[str] = Field(default_factory=list)
    genre_counts: Dict[str, int] = Field(default_factory=dict)
    confidence: float = 0.0


class TemporalAffinity(BaseModel):
    """Affinity maps keyed by hour (0-23) and weekday (0=Monday .. 6=Sunday)."""

    hourly: Dict[int, TimeBucketAffinity] = Field(default_factory=dict)
    daily: Dict[int, TimeBucketAffinity] = Field(default_factory=dict)


class ProfileInsights(BaseModel):
    """Derived scores summarising the other analyses."""

    taste_consistency: float = 0.0
    exploration_ratio: float = 0.0
    quality_threshold: float = 3.0
    genre_loyalty: List[str] = Field(default_factory=list)
    director_loyalty: List[str] = Field(default_factory=list)


class BehaviorProfile(BaseModel):
    """Aggregated behavior of one user, recomputed per request from history."""

    user_id: str = ""
    rating_patterns: RatingPatterns = Field(default_factory=RatingPatterns)
    watchlist_patterns: WatchlistPatterns = Field(default_factory=WatchlistPatterns)
    temporal_patterns: TemporalPatterns = Field(default_factory=TemporalPatterns)
    temporal_affinity: TemporalAffinity = Field(default_factory=TemporalAffinity)
    # Per-genre interaction affinity in [0, 1] (count / max count).
    genre_affinity: Dict[str, float] = Field(default_factory=dict)
    insights: ProfileInsights = Field(default_factory=ProfileInsights)
    history_size: int = 0

    @property
    def is_empty(self) -> bool:
        return self.history_size == 0
