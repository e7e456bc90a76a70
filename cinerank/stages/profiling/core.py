"""
Behavioral profiler: rating, watchlist, temporal and derived analyses in one profile.

Every sub-analysis tolerates zero rows; an empty history yields the empty profile.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from ...models.config import DEFAULT_CONFIG, RecommendationConfig
from ...models.history import HistoryRow
from ...models.profile import BehaviorProfile
from .affinity import analyze_temporal_affinity, genre_affinity_map
from .insights import derive_insights
from .rating import analyze_rating_patterns
from .temporal import analyze_temporal_patterns
from .watchlist import analyze_watchlist_patterns

logger = logging.getLogger(__name__)


def build_behavior_profile(
    user_id: str,
    rows: List[HistoryRow],
    config: RecommendationConfig = DEFAULT_CONFIG,
    now: Optional[datetime] = None,
) -> BehaviorProfile:
    """Aggregate a user's history into a BehaviorProfile."""
    now = now or datetime.now(timezone.utc)
    if not rows:
        logger.debug("[profile] EMPTY_HISTORY user_id=%s", user_id)
        return BehaviorProfile(user_id=user_id)

    # 1) Ratings
    ratings = analyze_rating_patterns(rows, config)
    # 2) Watchlist
    watchlist = analyze_watchlist_patterns(rows, now, config)
    # 3) Temporal patterns and affinity maps
    temporal = analyze_temporal_patterns(rows, now, config)
    temporal_affinity = analyze_temporal_affinity(rows, config)
    # 4) Derived insights
    insights = derive_insights(rows, ratings, config)

    return BehaviorProfile(
        user_id=user_id,
        rating_patterns=ratings,
        watchlist_patterns=watchlist,
        temporal_patterns=temporal,
        temporal_affinity=temporal_affinity,
        genre_affinity=genre_affinity_map(rows, config),
        insights=insights,
        history_size=len(rows),
    )


class BehavioralProfiler:
    """Thin object wrapper so the profiler can be injected with its config."""

    def __init__(self, config: RecommendationConfig = DEFAULT_CONFIG):
        self.config = config

    def analyze(
        self,
        user_id: str,
        rows: List[HistoryRow],
        now: Optional[datetime] = None,
        config: Optional[RecommendationConfig] = None,
    ) -> BehaviorProfile:
        return build_behavior_profile(user_id, rows, config or self.config, now)
