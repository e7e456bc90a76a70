"""
Ranking: boost prerequisites, the boost fold, reasons and diversity selection.
"""

from .boost_context import BoostContext, resolve_boost_context
from .boosts import BOOSTS, ScoringCandidate, apply_boosts, enabled_boosts, popularity_ceiling
from .core import ScoringPipeline, ScoringResult, basic_candidate
from .diversity import genre_diversity_score, select_diverse, unconditional_slots
from .reasons import DEFAULT_REASON, FAILURE_REASON, build_reason, match_categories

__all__ = [
    "BOOSTS",
    "DEFAULT_REASON",
    "FAILURE_REASON",
    "BoostContext",
    "ScoringCandidate",
    "ScoringPipeline",
    "ScoringResult",
    "apply_boosts",
    "basic_candidate",
    "build_reason",
    "enabled_boosts",
    "genre_diversity_score",
    "match_categories",
    "popularity_ceiling",
    "resolve_boost_context",
    "select_diverse",
    "unconditional_slots",
]
