"""
Rating patterns: star buckets, distribution, per-genre and per-director averages.

Ratings are the user's own 1-5 stars. Director averages need at least
director_min_ratings rated items for that director to suppress noise.
"""

import math
from collections import defaultdict
from typing import Dict, List

from ...models.config import DEFAULT_CONFIG, RecommendationConfig
from ...models.history import HistoryRow
from ...models.profile import RatingPatterns


def star_bucket(rating: float) -> int:
    """Nearest whole star, half rounds up, clamped to 1..5."""
    return int(min(5, max(1, math.floor(rating + 0.5))))


def _averages(values: Dict[str, List[float]], min_count: int = 1) -> Dict[str, float]:
    return {
        key: round(sum(vals) / len(vals), 2)
        for key, vals in values.items()
        if len(vals) >= min_count
    }


def analyze_rating_patterns(
    rows: List[HistoryRow],
    config: RecommendationConfig = DEFAULT_CONFIG,
) -> RatingPatterns:
    """Partition rated rows by star and compute averages. Empty input -> empty patterns."""
    rated = [r for r in rows if r.rating is not None]
    if not rated:
        return RatingPatterns()

    patterns = RatingPatterns()
    by_genre: Dict[str, List[float]] = defaultdict(list)
    by_director: Dict[str, List[float]] = defaultdict(list)

    for row in rated:
        star = star_bucket(row.rating)
        patterns.ratings_by_star[star].append(row.item_id)
        patterns.distribution[star] += 1
        for genre in row.genres:
            by_genre[genre].append(row.rating)
        for director in row.directors:
            by_director[director].append(row.rating)

    patterns.genre_averages = _averages(by_genre)
    patterns.director_averages = _averages(by_director, min_count=config.director_min_ratings)
    patterns.total_ratings = len(rated)
    patterns.average_rating = round(sum(r.rating for r in rated) / len(rated), 2)
    return patterns
