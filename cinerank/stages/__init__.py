"""
Pipeline stages: context, candidate pool, profiling, ranking, orchestration.
"""

from .candidate_pool import CandidatePool, CandidateSource, pool_size
from .context import UserContextBuilder, context_confidence
from .orchestrator import build_insights, run_pipeline
from .profiling import BehavioralProfiler, build_behavior_profile
from .ranking import ScoringPipeline, select_diverse

__all__ = [
    "BehavioralProfiler",
    "CandidatePool",
    "CandidateSource",
    "ScoringPipeline",
    "UserContextBuilder",
    "build_behavior_profile",
    "build_insights",
    "context_confidence",
    "pool_size",
    "run_pipeline",
    "select_diverse",
]
