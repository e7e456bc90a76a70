"""
Boosts: pure (candidate, context) -> delta functions, folded in a fixed order.

Order: genre affinity, temporal affinity, talent, storyline, sentiment,
preference insights, high rating. The running total is clamped to [0, 1] after
each step; the popularity ceiling is applied after the last boost.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from ...models.candidate import CandidateItem
from ...models.scoring import clamp01
from .boost_context import BoostContext


@dataclass(frozen=True)
class ScoringCandidate:
    """A candidate with the vector and base similarity the boosts may read."""

    item: CandidateItem
    vector: Optional[List[float]] = None
    similarity: float = 0.0

    @property
    def genres(self) -> List[str]:
        return [g.lower() for g in self.item.genres]


BoostFn = Callable[[ScoringCandidate, BoostContext], float]


def genre_affinity_boost(candidate: ScoringCandidate, ctx: BoostContext) -> float:
    """a. Mean affinity over the candidate's genres, scaled to at most genre_affinity_max."""
    genres = candidate.genres
    if not genres or not ctx.genre_affinity:
        return 0.0
    mean = sum(ctx.genre_affinity.get(g, 0.0) for g in genres) / len(genres)
    return min(1.0, mean) * ctx.config.genre_affinity_max


def _bucket_overlap(genres: List[str], bucket) -> bool:
    if bucket is None:
        return False
    preferred = {g.lower() for g in bucket.preferred_genres}
    return any(g in preferred for g in genres)


def temporal_affinity_boost(candidate: ScoringCandidate, ctx: BoostContext) -> float:
    """b. Hour-of-day and day-of-week signals, each up to temporal_max, scaled by confidence."""
    genres = candidate.genres
    if not genres:
        return 0.0
    delta = 0.0
    hour = ctx.temporal_affinity.hourly.get(ctx.hour)
    if _bucket_overlap(genres, hour):
        delta += ctx.config.temporal_max * min(1.0, hour.confidence)
    day = ctx.temporal_affinity.daily.get(ctx.weekday)
    if _bucket_overlap(genres, day):
        delta += ctx.config.temporal_max * min(1.0, day.confidence)
    return delta


def talent_boost(candidate: ScoringCandidate, ctx: BoostContext) -> float:
    """c. Flat bonus for any preferred director, plus per matching cast member; capped."""
    config = ctx.config
    delta = 0.0
    directors = {d.lower() for d in candidate.item.directors}
    if directors & ctx.preferred_directors:
        delta += config.director_boost
    cast_matches = len({c.lower() for c in candidate.item.cast} & ctx.preferred_cast)
    delta += cast_matches * config.cast_boost_per_match
    return min(config.talent_max, delta)


def storyline_boost(candidate: ScoringCandidate, ctx: BoostContext) -> float:
    """d. Similarity to the mean vector of liked items, scaled by storyline_weight."""
    if not ctx.storyline_vector or not candidate.vector:
        return 0.0
    sim = ctx.similarity(candidate.vector, ctx.storyline_vector)
    return max(0.0, sim) * ctx.config.storyline_weight


def sentiment_boost(candidate: ScoringCandidate, ctx: BoostContext) -> float:
    """e. Signed alignment of critic sentiment with the user's bias, at most +/- sentiment_max."""
    sentiment = candidate.item.critic_sentiment
    if sentiment is None or ctx.sentiment_bias == 0:
        return 0.0
    alignment = max(-1.0, min(1.0, sentiment)) * max(-1.0, min(1.0, ctx.sentiment_bias))
    return ctx.config.sentiment_max * alignment


def preference_insights_boost(candidate: ScoringCandidate, ctx: BoostContext) -> float:
    """f. Flat bonus when the candidate shares a genre with the user's top interaction genres."""
    if ctx.top_genres and any(g in ctx.top_genres for g in candidate.genres):
        return ctx.config.preference_insights_boost
    return 0.0


def high_rating_boost(candidate: ScoringCandidate, ctx: BoostContext) -> float:
    """g. rating / 10 * high_rating_weight for items rated above high_rating_threshold."""
    rating = candidate.item.rating
    if rating is None or rating <= ctx.config.high_rating_threshold:
        return 0.0
    return ctx.config.high_rating_weight * min(10.0, rating) / 10.0


def popularity_ceiling(candidate: ScoringCandidate, ctx: BoostContext) -> Optional[float]:
    """Upper bound for very popular items, or None when no ceiling applies."""
    popularity = candidate.item.popularity
    if popularity is not None and popularity > ctx.config.popularity_ceiling_threshold:
        return ctx.config.popularity_ceiling
    return None


# (name, function, config flag) in application order
BOOSTS: List[Tuple[str, BoostFn, str]] = [
    ("genre_affinity", genre_affinity_boost, "genre_affinity_enabled"),
    ("temporal_affinity", temporal_affinity_boost, "temporal_enabled"),
    ("talent", talent_boost, "talent_enabled"),
    ("storyline", storyline_boost, "storyline_enabled"),
    ("sentiment", sentiment_boost, "sentiment_enabled"),
    ("preference_insights", preference_insights_boost, "preference_insights_enabled"),
    ("high_rating", high_rating_boost, "high_rating_enabled"),
]


def enabled_boosts(ctx: BoostContext) -> List[Tuple[str, BoostFn]]:
    return [(name, fn) for name, fn, flag in BOOSTS if getattr(ctx.config, flag)]


def apply_boosts(
    base: float,
    candidate: ScoringCandidate,
    ctx: BoostContext,
    boosts: Optional[List[Tuple[str, BoostFn]]] = None,
) -> Tuple[float, Dict[str, float]]:
    """
    Fold boosts left to right over a clamped base score.

    Returns (score, factors); factors holds the base similarity and the
    effective (post-clamp) change each non-zero boost made.
    """
    boosts = enabled_boosts(ctx) if boosts is None else boosts
    score = clamp01(base)
    factors: Dict[str, float] = {"similarity": score}
    for name, fn in boosts:
        delta = fn(candidate, ctx)
        if not delta:
            continue
        updated = clamp01(score + delta)
        factors[name] = round(updated - score, 6)
        score = updated
    if ctx.config.sentiment_enabled:
        ceiling = popularity_ceiling(candidate, ctx)
        if ceiling is not None and score > ceiling:
            factors["popularity_ceiling"] = round(ceiling - score, 6)
            score = ceiling
    return score, factors
