"""
Affinity maps used by the ranking boosts.

- genre affinity: per-genre interaction count / max count over the most recent
  genre_affinity_window interactions, in [0, 1]
- temporal affinity: genres preferred per hour-of-day and per day-of-week, each
  bucket with its own confidence weight
"""

from collections import Counter, defaultdict
from typing import Dict, List

from ...models.config import DEFAULT_CONFIG, RecommendationConfig
from ...models.history import HistoryRow
from ...models.profile import TemporalAffinity, TimeBucketAffinity
from .temporal import top_genres


def _recent(rows: List[HistoryRow], limit: int) -> List[HistoryRow]:
    return sorted(rows, key=lambda r: r.interaction_time, reverse=True)[:limit]


def genre_affinity_map(
    rows: List[HistoryRow],
    config: RecommendationConfig = DEFAULT_CONFIG,
) -> Dict[str, float]:
    """Genre -> count / max count over recent interactions. Empty input -> {}."""
    counter: Counter = Counter()
    for row in _recent(rows, config.genre_affinity_window):
        counter.update(row.genres)
    if not counter:
        return {}
    max_count = max(counter.values())
    return {genre: round(count / max_count, 4) for genre, count in counter.items()}


def _bucket(counter: Counter, confidence: float, top_n: int) -> TimeBucketAffinity:
    return TimeBucketAffinity(
        preferred_genres=top_genres(counter, top_n),
        genre_counts=dict(counter),
        confidence=round(confidence, 4),
    )


def analyze_temporal_affinity(
    rows: List[HistoryRow],
    config: RecommendationConfig = DEFAULT_CONFIG,
) -> TemporalAffinity:
    """
    Hour and weekday genre preferences.

    Hour confidence = min(1, genre mentions in that hour / hour_confidence_saturation).
    Day weight = min(1, interactions on that day / day_weight_saturation).
    """
    hourly: Dict[int, Counter] = defaultdict(Counter)
    daily: Dict[int, Counter] = defaultdict(Counter)
    day_interactions: Counter = Counter()

    for row in rows:
        if not row.genres:
            continue
        ts = row.interaction_time
        hourly[ts.hour].update(row.genres)
        daily[ts.weekday()].update(row.genres)
        day_interactions[ts.weekday()] += 1

    return TemporalAffinity(
        hourly={
            hour: _bucket(
                counter,
                min(1.0, sum(counter.values()) / config.hour_confidence_saturation),
                config.temporal_top_genres,
            )
            for hour, counter in hourly.items()
        },
        daily={
            day: _bucket(
                counter,
                min(1.0, day_interactions[day] / config.day_weight_saturation),
                config.temporal_top_genres,
            )
            for day, counter in daily.items()
        },
    )
