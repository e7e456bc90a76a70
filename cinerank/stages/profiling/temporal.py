"""
Temporal patterns: weekend vs weekday genres, viewing velocity, seasonal habits.

Only watched rows count. Weekend = Saturday and Sunday.
"""

import calendar
from collections import Counter, defaultdict
from datetime import datetime, timedelta
from typing import Dict, Iterable, List

from ...models.config import DEFAULT_CONFIG, RecommendationConfig
from ...models.history import HistoryRow
from ...models.profile import TemporalPatterns

WEEKEND_DAYS = (5, 6)

# Month buckets report this many genres.
SEASONAL_TOP_GENRES = 3

# (genres, on_weekend, label): a context applies when a bucket's top genres include any of genres.
VIEWING_CONTEXT_RULES = [
    (("Action", "Adventure"), True, "Weekend excitement seeker"),
    (("Comedy", "Romance"), False, "Weekday relaxation"),
    (("Drama", "Thriller"), True, "Weekend deep viewing"),
]


def top_genres(counter: Counter, n: int) -> List[str]:
    """Most frequent genres, ties broken by first appearance."""
    return [genre for genre, _ in counter.most_common(n)]


def _count_genres(rows: Iterable[HistoryRow]) -> Counter:
    counter: Counter = Counter()
    for row in rows:
        counter.update(row.genres)
    return counter


def _viewing_contexts(weekend: List[str], weekday: List[str]) -> List[str]:
    contexts = []
    for genres, on_weekend, label in VIEWING_CONTEXT_RULES:
        bucket = weekend if on_weekend else weekday
        if any(g in bucket for g in genres):
            contexts.append(label)
    return contexts


def analyze_temporal_patterns(
    rows: List[HistoryRow],
    now: datetime,
    config: RecommendationConfig = DEFAULT_CONFIG,
) -> TemporalPatterns:
    """Split watched rows by weekend/weekday and month. Empty input -> empty patterns."""
    watched = [r for r in rows if r.watched]
    if not watched:
        return TemporalPatterns()

    weekend_rows = [r for r in watched if r.watched_at.weekday() in WEEKEND_DAYS]
    weekday_rows = [r for r in watched if r.watched_at.weekday() not in WEEKEND_DAYS]
    weekend = top_genres(_count_genres(weekend_rows), config.weekend_top_genres)
    weekday = top_genres(_count_genres(weekday_rows), config.weekend_top_genres)

    # Velocity: items/week over the trailing window
    window_start = now - timedelta(days=config.velocity_window_days)
    recent = sum(1 for r in watched if window_start <= r.watched_at <= now)
    weeks = config.velocity_window_days / 7.0
    velocity = round(recent / weeks, 2) if weeks > 0 else 0.0

    by_month: Dict[str, Counter] = defaultdict(Counter)
    for row in watched:
        by_month[calendar.month_name[row.watched_at.month]].update(row.genres)
    seasonal = {
        month: top_genres(counter, SEASONAL_TOP_GENRES)
        for month, counter in by_month.items()
        if counter
    }

    return TemporalPatterns(
        weekend_genres=weekend,
        weekday_genres=weekday,
        viewing_velocity=velocity,
        seasonal_preferences=seasonal,
        viewing_contexts=_viewing_contexts(weekend, weekday),
    )
