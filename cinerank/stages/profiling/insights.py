"""
Derived insights over rating patterns.

- taste consistency: 1 - (population stddev of ratings / MAX_RATING_STDDEV), in [0, 1]
- exploration ratio: share of 4-5 star ratings
- quality threshold: mean rating - 0.5, clamped to [1, 5]
"""

import statistics
from typing import Dict, List

from ...models.config import DEFAULT_CONFIG, RecommendationConfig
from ...models.history import HistoryRow
from ...models.profile import ProfileInsights, RatingPatterns

# Largest possible population stddev on a 1-5 scale (half 1s, half 5s).
MAX_RATING_STDDEV = 2.0
QUALITY_THRESHOLD_OFFSET = 0.5
DEFAULT_QUALITY_THRESHOLD = 3.0
HIGH_RATING_MIN_STAR = 4


def _loyal(averages: Dict[str, float], min_average: float) -> List[str]:
    loyal = [(key, avg) for key, avg in averages.items() if avg >= min_average]
    loyal.sort(key=lambda pair: pair[1], reverse=True)
    return [key for key, _ in loyal]


def derive_insights(
    rows: List[HistoryRow],
    ratings: RatingPatterns,
    config: RecommendationConfig = DEFAULT_CONFIG,
) -> ProfileInsights:
    """Empty ratings -> zeros and the default quality threshold."""
    values = [r.rating for r in rows if r.rating is not None]
    if not values:
        return ProfileInsights(quality_threshold=DEFAULT_QUALITY_THRESHOLD)

    spread = statistics.pstdev(values) if len(values) > 1 else 0.0
    consistency = max(0.0, min(1.0, 1.0 - spread / MAX_RATING_STDDEV))

    high = sum(
        count for star, count in ratings.distribution.items() if star >= HIGH_RATING_MIN_STAR
    )
    threshold = max(1.0, min(5.0, ratings.average_rating - QUALITY_THRESHOLD_OFFSET))

    return ProfileInsights(
        taste_consistency=round(consistency, 2),
        exploration_ratio=round(high / len(values), 2),
        quality_threshold=round(threshold, 2),
        genre_loyalty=_loyal(ratings.genre_averages, config.loyalty_min_average),
        director_loyalty=_loyal(ratings.director_averages, config.loyalty_min_average),
    )
