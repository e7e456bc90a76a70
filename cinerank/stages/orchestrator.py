"""
Pipeline orchestrator: one recommendation request end to end.

    1. user context vector (query, genres, mood, memories)
    2. candidate pool (search, or trending + curated)
    3. boost prerequisites, resolved once
    4. per-candidate scoring (concurrent, failure-isolated)
    5. diversity selection
    6. insights

History loading, profile caching and result caching live in the service; this
module only wires stages together. The main entry point is run_pipeline.
"""

from collections import Counter
from datetime import datetime
from typing import Callable, List, Optional

from ..embedding.provider import EmbeddingProvider
from ..embedding.text import get_history_text
from ..models.config import RecommendationConfig, resolve_config
from ..models.context import UserContextVector
from ..models.history import HistoryRow
from ..models.profile import BehaviorProfile
from ..models.recommendation import RecommendationInsights, RecommendationOptions, RecommendationResult
from ..models.scoring import ScoredCandidate
from ..stores.embedding_store import EmbeddingStore
from .candidate_pool import CandidatePool, CandidateSource
from .context import UserContextBuilder
from .ranking import ScoringPipeline, ScoringResult, genre_diversity_score, resolve_boost_context, select_diverse

# Distinct reasons surfaced in insights.
PRIMARY_REASON_LIMIT = 5


def history_vector_lookup(
    store: EmbeddingStore,
    provider: EmbeddingProvider,
) -> Callable[[HistoryRow], Optional[List[float]]]:
    """Stored item vector for a history row, else an embedding of its text."""

    def lookup(row: HistoryRow) -> Optional[List[float]]:
        stored = store.get_embedding(row.item_id)
        if stored:
            return stored
        text = get_history_text(row)
        if not text:
            return None
        return provider.embed(text, kind="item").vector

    return lookup


def excluded_ids(options: RecommendationOptions, rows: List[HistoryRow]) -> set:
    """Explicit exclusions plus items the user has already watched."""
    return set(options.exclude_ids) | {r.item_id for r in rows if r.watched}


def _degradation_reasons(
    context: UserContextVector,
    pool: CandidatePool,
    scoring: ScoringResult,
) -> List[str]:
    reasons = [f"{source}_unavailable" for source in pool.failed_sources]
    if context.embedding.fallback:
        reasons.append("embedding_fallback")
    if not pool.items:
        reasons.append("empty_candidate_pool")
    if scoring.failures:
        reasons.append("partial_scoring_failure")
    return reasons


def build_insights(
    items: List[ScoredCandidate],
    context: UserContextVector,
    pool: CandidatePool,
    scoring: ScoringResult,
    config: RecommendationConfig,
    extra_reasons: Optional[List[str]] = None,
) -> RecommendationInsights:
    """Summarize how the returned list was produced."""
    reasons = list(extra_reasons or []) + _degradation_reasons(context, pool, scoring)
    primary = list(dict.fromkeys(s.reason for s in items if s.reason))[:PRIMARY_REASON_LIMIT]
    sources = Counter(tag for s in items for tag in s.candidate.provenance)
    return RecommendationInsights(
        degraded=bool(reasons),
        degradation_reasons=reasons,
        candidate_count=len(pool.items),
        failed_count=scoring.failed_count,
        context_confidence=context.confidence,
        primary_reasons=primary,
        semantic_matches=sum(1 for s in items if s.semantic_similarity > config.semantic_insight_threshold),
        memory_influences=len(context.memories),
        diversity_score=genre_diversity_score(items),
        sources=dict(sources),
        weights_version=config.version,
    )


def run_pipeline(
    user_id: str,
    options: RecommendationOptions,
    rows: List[HistoryRow],
    profile: BehaviorProfile,
    context_builder: UserContextBuilder,
    candidate_source: CandidateSource,
    scoring: ScoringPipeline,
    config: Optional[RecommendationConfig] = None,
    now: Optional[datetime] = None,
    extra_reasons: Optional[List[str]] = None,
) -> RecommendationResult:
    """
    Run stages 1-6 for one request.

    extra_reasons carries degradation noticed before the pipeline started
    (e.g. history unavailable) so it is reported in insights.
    """
    config = resolve_config(config)

    # 1) Context vector
    context = context_builder.build(
        user_id, query=options.query, genres=options.genres, mood=options.mood, config=config
    )

    # 2) Candidate pool
    pool = candidate_source.get_candidates(
        options.limit,
        query=options.query,
        exclude_ids=excluded_ids(options, rows),
        config=config,
    )

    # 3) Boost prerequisites
    boost_ctx = resolve_boost_context(
        profile,
        rows,
        config,
        request_genres=options.genres,
        mood=options.mood,
        now=now,
        vector_lookup=history_vector_lookup(scoring.embedding_store, scoring.provider),
        similarity=scoring.similarity_cache.similarity,
    )

    # 4) Scoring
    scored = scoring.score(pool.items, context, boost_ctx)

    # 5) Diversity
    diversity = options.diversity if options.diversity is not None else config.diversity_factor
    items = select_diverse(scored.scored, options.limit, diversity)

    # 6) Insights
    insights = build_insights(items, context, pool, scored, config, extra_reasons)
    return RecommendationResult(items=items, insights=insights)
