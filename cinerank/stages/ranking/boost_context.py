"""
Per-request boost prerequisites.

Everything a boost needs that costs a lookup (affinity maps, preferred talent,
the liked-storyline vector, sentiment bias) is resolved once here, before any
candidate is scored. Boosts then run synchronously and purely per candidate.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, FrozenSet, List, Optional, Sequence

from ...embedding.similarity import cosine_similarity, mean_vector
from ...errors import ConfigurationError
from ...models.config import DEFAULT_CONFIG, RecommendationConfig
from ...models.history import HistoryRow
from ...models.profile import BehaviorProfile, TemporalAffinity

logger = logging.getLogger(__name__)

# A cast member counts as preferred after appearing in this many liked items.
MIN_CAST_APPEARANCES = 2
# Liked items (most recent first) averaged into the storyline vector.
STORYLINE_SAMPLE_SIZE = 20

VectorLookup = Callable[[HistoryRow], Optional[List[float]]]
Similarity = Callable[[Sequence[float], Sequence[float]], float]


def _lower_set(values) -> FrozenSet[str]:
    return frozenset(v.strip().lower() for v in values if v and v.strip())


@dataclass(frozen=True)
class BoostContext:
    """Read-only request context shared by every boost."""

    config: RecommendationConfig = field(default_factory=lambda: DEFAULT_CONFIG)
    hour: int = 0
    weekday: int = 0
    # Lowercased genre -> affinity in [0, 1]
    genre_affinity: Dict[str, float] = field(default_factory=dict)
    temporal_affinity: TemporalAffinity = field(default_factory=TemporalAffinity)
    preferred_directors: FrozenSet[str] = frozenset()
    preferred_cast: FrozenSet[str] = frozenset()
    storyline_vector: Optional[List[float]] = None
    # In [-1, 1]; > 0 means the user rates generously.
    sentiment_bias: float = 0.0
    top_genres: FrozenSet[str] = frozenset()
    request_genres: FrozenSet[str] = frozenset()
    mood: str = ""
    similarity: Similarity = cosine_similarity


def _liked_rows(rows: List[HistoryRow], config: RecommendationConfig) -> List[HistoryRow]:
    liked = [r for r in rows if r.rating is not None and r.rating >= config.liked_rating_min]
    liked.sort(key=lambda r: r.interaction_time, reverse=True)
    return liked


def preferred_talent(rows: List[HistoryRow], config: RecommendationConfig = DEFAULT_CONFIG):
    """(directors of liked items, cast appearing in >= MIN_CAST_APPEARANCES liked items)."""
    liked = _liked_rows(rows, config)
    directors = _lower_set(d for r in liked for d in r.directors)
    cast_counts: Counter = Counter(c.strip().lower() for r in liked for c in r.cast if c)
    cast = frozenset(name for name, n in cast_counts.items() if n >= MIN_CAST_APPEARANCES)
    return directors, cast


def storyline_vector(
    rows: List[HistoryRow],
    lookup: Optional[VectorLookup],
    config: RecommendationConfig = DEFAULT_CONFIG,
) -> Optional[List[float]]:
    """Normalized mean vector of recently liked items; None when unavailable."""
    if lookup is None:
        return None
    vectors = []
    for row in _liked_rows(rows, config)[:STORYLINE_SAMPLE_SIZE]:
        try:
            vector = lookup(row)
        except ConfigurationError:
            raise
        except Exception as e:
            logger.warning("[boosts] STORYLINE_LOOKUP_FAILED item_id=%s err=%s", row.item_id, e)
            continue
        if vector:
            vectors.append(vector)
    if not vectors:
        return None
    return mean_vector(vectors)


def sentiment_bias(profile: BehaviorProfile) -> float:
    """Map the mean 1-5 rating onto [-1, 1] around the midpoint 3."""
    ratings = profile.rating_patterns
    if ratings.total_ratings == 0:
        return 0.0
    return max(-1.0, min(1.0, (ratings.average_rating - 3.0) / 2.0))


def top_interaction_genres(affinity: Dict[str, float], n: int) -> FrozenSet[str]:
    ranked = sorted(affinity.items(), key=lambda kv: (-kv[1], kv[0]))
    return frozenset(genre.lower() for genre, _ in ranked[:n])


def resolve_boost_context(
    profile: BehaviorProfile,
    rows: List[HistoryRow],
    config: RecommendationConfig = DEFAULT_CONFIG,
    request_genres: Optional[List[str]] = None,
    mood: str = "",
    now: Optional[datetime] = None,
    vector_lookup: Optional[VectorLookup] = None,
    similarity: Similarity = cosine_similarity,
) -> BoostContext:
    """Resolve all boost prerequisites for one request."""
    now = now or datetime.now(timezone.utc)
    directors, cast = preferred_talent(rows, config)
    affinity = {genre.lower(): value for genre, value in profile.genre_affinity.items()}
    storyline = storyline_vector(rows, vector_lookup, config) if config.storyline_enabled else None
    return BoostContext(
        config=config,
        hour=now.hour,
        weekday=now.weekday(),
        genre_affinity=affinity,
        temporal_affinity=profile.temporal_affinity,
        preferred_directors=directors,
        preferred_cast=cast,
        storyline_vector=storyline,
        sentiment_bias=sentiment_bias(profile),
        top_genres=top_interaction_genres(affinity, config.preference_top_genres),
        request_genres=_lower_set(request_genres or []),
        mood=(mood or "").strip().lower(),
        similarity=similarity,
    )
