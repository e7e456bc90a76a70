"""
Behavioral profiling: history rows -> BehaviorProfile.

Public API: build_behavior_profile, BehavioralProfiler.
- Submodules: rating, watchlist, temporal, affinity, insights.
"""

from .affinity import analyze_temporal_affinity, genre_affinity_map
from .core import BehavioralProfiler, build_behavior_profile
from .insights import derive_insights
from .rating import analyze_rating_patterns
from .temporal import analyze_temporal_patterns
from .watchlist import analyze_watchlist_patterns

__all__ = [
    "BehavioralProfiler",
    "analyze_rating_patterns",
    "analyze_temporal_affinity",
    "analyze_temporal_patterns",
    "analyze_watchlist_patterns",
    "build_behavior_profile",
    "derive_insights",
    "genre_affinity_map",
]
