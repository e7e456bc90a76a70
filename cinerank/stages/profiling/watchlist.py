"""
Watchlist patterns: watched / abandoned / pending classification and completion.

- watched: has a watch time
- abandoned: unwatched and added more than abandoned_after_days ago
- pending: unwatched and recent
Impulse watches were watched within impulse_max_days of being added.
"""

import math
from collections import defaultdict
from datetime import datetime
from typing import Dict, List

from ...models.config import DEFAULT_CONFIG, RecommendationConfig
from ...models.history import HistoryRow
from ...models.profile import GenreWatchStats, WatchlistPatterns

SECONDS_PER_DAY = 86400.0


def days_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / SECONDS_PER_DAY


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def analyze_watchlist_patterns(
    rows: List[HistoryRow],
    now: datetime,
    config: RecommendationConfig = DEFAULT_CONFIG,
) -> WatchlistPatterns:
    """Classify every row and compute completion stats. Empty input -> empty patterns."""
    if not rows:
        return WatchlistPatterns()

    patterns = WatchlistPatterns(total_items=len(rows))
    genre_stats: Dict[str, GenreWatchStats] = defaultdict(GenreWatchStats)
    times_to_watch: List[float] = []

    for row in rows:
        for genre in row.genres:
            genre_stats[genre].added += 1
        if row.watched:
            patterns.watched.append(row.item_id)
            for genre in row.genres:
                genre_stats[genre].watched += 1
            ttw = max(0.0, days_between(row.added_at, row.watched_at))
            times_to_watch.append(ttw)
            if round_half_up(ttw) <= config.impulse_max_days:
                patterns.impulse_watches.append(row.item_id)
        elif days_between(row.added_at, now) > config.abandoned_after_days:
            patterns.abandoned.append(row.item_id)
        else:
            patterns.pending.append(row.item_id)

    patterns.completion_rate = round_half_up(len(patterns.watched) / len(rows) * 100)
    patterns.genre_add_vs_watch = dict(genre_stats)
    patterns.genre_completion_rates = {
        genre: round_half_up(stats.watched / stats.added * 100)
        for genre, stats in genre_stats.items()
        if stats.added >= config.genre_completion_min_items
    }
    if times_to_watch:
        patterns.average_time_to_watch_days = round(sum(times_to_watch) / len(times_to_watch), 1)
    return patterns
