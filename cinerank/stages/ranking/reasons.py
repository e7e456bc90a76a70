"""
Reasons and match categories, derived deterministically from scoring factors.
No language model is involved.
"""

from typing import Dict, List

from ...models.scoring import CATEGORY_GENERAL
from .boost_context import BoostContext
from .boosts import ScoringCandidate

REASON_SEPARATOR = " • "
DEFAULT_REASON = "Recommended for you"
FAILURE_REASON = "Basic recommendation"
# Phrases taken from the largest factors, at most this many.
MAX_REASON_PHRASES = 2

SIMILARITY_PHRASES = [
    (0.8, "Perfect match for your preferences"),
    (0.6, "Great match for your taste"),
    (0.4, "Good match for your interests"),
]

# Lower rank wins ties between equal-magnitude factors.
FACTOR_RANK = {
    "similarity": 0,
    "genre_affinity": 1,
    "talent": 2,
    "storyline": 3,
    "temporal_affinity": 4,
    "preference_insights": 5,
    "high_rating": 6,
    "sentiment": 7,
}


def _similarity_phrase(similarity: float) -> str:
    for threshold, phrase in SIMILARITY_PHRASES:
        if similarity > threshold:
            return phrase
    return ""


def _factor_phrase(name: str, candidate: ScoringCandidate, ctx: BoostContext) -> str:
    item = candidate.item
    if name == "similarity":
        return _similarity_phrase(candidate.similarity)
    if name == "genre_affinity":
        liked = [g for g in item.genres if ctx.genre_affinity.get(g.lower(), 0) > 0]
        return f"Matches your {', '.join(liked[:2])} preferences" if liked else ""
    if name == "talent":
        names = [d for d in item.directors if d.lower() in ctx.preferred_directors]
        names += [c for c in item.cast if c.lower() in ctx.preferred_cast]
        return f"Features {', '.join(names[:2])}" if names else "Features talent you enjoy"
    if name == "storyline":
        return "Similar storylines to titles you liked"
    if name == "temporal_affinity":
        return "Fits what you usually watch at this time"
    if name == "preference_insights":
        return "From genres you explore most"
    if name == "high_rating":
        return f"Highly rated ({item.rating:g}/10)"
    if name == "sentiment":
        return "Critics share your taste"
    return ""


def build_reason(candidate: ScoringCandidate, factors: Dict[str, float], ctx: BoostContext) -> str:
    """Phrases for the largest positive factors, joined; DEFAULT_REASON when none apply."""
    positive = [(name, value) for name, value in factors.items() if value > 0 and name in FACTOR_RANK]
    positive.sort(key=lambda kv: (-abs(kv[1]), FACTOR_RANK[kv[0]]))
    phrases: List[str] = []
    for name, _ in positive:
        phrase = _factor_phrase(name, candidate, ctx)
        if phrase and phrase not in phrases:
            phrases.append(phrase)
        if len(phrases) >= MAX_REASON_PHRASES:
            break
    return REASON_SEPARATOR.join(phrases) if phrases else DEFAULT_REASON


def match_categories(candidate: ScoringCandidate, factors: Dict[str, float], ctx: BoostContext) -> List[str]:
    config = ctx.config
    item = candidate.item
    categories = []
    if candidate.similarity > config.semantic_match_threshold:
        categories.append("semantic-match")
    wanted = ctx.request_genres | ctx.top_genres
    if wanted and any(g in wanted for g in candidate.genres):
        categories.append("genre-match")
    if item.rating is not None and item.rating > config.high_quality_category_rating:
        categories.append("high-quality")
    if ctx.mood and item.plot and ctx.mood in item.plot.lower():
        categories.append("mood-match")
    if factors.get("talent", 0) > 0:
        categories.append("talent-match")
    if "trending" in item.provenance:
        categories.append("trending")
    return categories or [CATEGORY_GENERAL]
