"""
Scoring pipeline: candidate vector, base similarity, then the boost fold.

Each candidate is scored in isolation. A failure on one candidate (store
read, embed, boost) yields a low-confidence "basic" entry for that candidate
only; the rest of the batch is unaffected. ConfigurationError is never
absorbed. Candidates are scored concurrently on a thread pool; all per-request
inputs (context vector, BoostContext) are resolved before the batch starts.

The public entry point is ScoringPipeline.score.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ...embedding.provider import EmbeddingProvider, embed_candidate
from ...embedding.similarity_cache import SimilarityCache
from ...errors import ConfigurationError, PartialComputationFailure, UpstreamUnavailable
from ...models.candidate import CandidateItem
from ...models.config import DEFAULT_CONFIG, RecommendationConfig
from ...models.context import UserContextVector
from ...models.scoring import CATEGORY_BASIC, ScoredCandidate, clamp01
from ...stores.embedding_store import EmbeddingStore, InMemoryEmbeddingStore
from .boost_context import BoostContext
from .boosts import ScoringCandidate, apply_boosts, enabled_boosts
from .reasons import FAILURE_REASON, build_reason, match_categories

logger = logging.getLogger(__name__)


@dataclass
class ScoringResult:
    scored: List[ScoredCandidate] = field(default_factory=list)
    failures: List[PartialComputationFailure] = field(default_factory=list)

    @property
    def failed_count(self) -> int:
        return len(self.failures)


def basic_candidate(item: CandidateItem, config: RecommendationConfig = DEFAULT_CONFIG) -> ScoredCandidate:
    """Fallback entry for a candidate whose scoring failed."""
    return ScoredCandidate(
        candidate=item,
        semantic_similarity=0.0,
        confidence_score=config.failure_confidence,
        match_categories=[CATEGORY_BASIC],
        reason=FAILURE_REASON,
        failed=True,
    )


class ScoringPipeline:
    """Scores candidates against a user context vector."""

    def __init__(
        self,
        provider: EmbeddingProvider,
        embedding_store: Optional[EmbeddingStore] = None,
        similarity_cache: Optional[SimilarityCache] = None,
    ):
        self.provider = provider
        self.embedding_store = embedding_store if embedding_store is not None else InMemoryEmbeddingStore()
        self.similarity_cache = similarity_cache if similarity_cache is not None else SimilarityCache()

    # -------------------------------------------------------------------------
    # Per-candidate steps
    # -------------------------------------------------------------------------

    def candidate_vector(self, item: CandidateItem) -> List[float]:
        """
        Stored vector for the item, or a freshly generated one.

        A fresh non-fallback vector is written back to the store; a failed
        write is logged and the fresh vector is still used.
        """
        key = item.embedding_key
        stored = self.embedding_store.get_embedding(key)
        if stored:
            return stored
        embedding = embed_candidate(self.provider, item)
        if not embedding.fallback:
            try:
                self.embedding_store.save_embedding(key, embedding.vector)
            except UpstreamUnavailable as e:
                logger.warning("[scoring] EMBEDDING_SAVE_FAILED item_id=%s err=%s", item.id, e)
        return embedding.vector

    def score_candidate(
        self,
        item: CandidateItem,
        context: UserContextVector,
        ctx: BoostContext,
    ) -> ScoredCandidate:
        # 1) Base: cosine(context, candidate) clamped to [0, 1]
        vector = self.candidate_vector(item)
        similarity = clamp01(self.similarity_cache.similarity(context.vector, vector))
        candidate = ScoringCandidate(item=item, vector=vector, similarity=similarity)

        # 2) Boost fold, clamped after every step
        confidence, factors = apply_boosts(similarity, candidate, ctx, enabled_boosts(ctx))

        # 3) Categories and reason from the factors
        return ScoredCandidate(
            candidate=item,
            semantic_similarity=similarity,
            confidence_score=confidence,
            match_categories=match_categories(candidate, factors, ctx),
            reason=build_reason(candidate, factors, ctx),
            factors=factors,
        )

    def _score_isolated(
        self,
        item: CandidateItem,
        context: UserContextVector,
        ctx: BoostContext,
    ) -> Tuple[ScoredCandidate, Optional[PartialComputationFailure]]:
        try:
            return self.score_candidate(item, context, ctx), None
        except ConfigurationError:
            raise
        except Exception as e:
            logger.warning("[scoring] CANDIDATE_FAILED item_id=%s err=%s", item.id, e)
            return basic_candidate(item, ctx.config), PartialComputationFailure(item.id, e)

    # -------------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------------

    def score(
        self,
        items: List[CandidateItem],
        context: UserContextVector,
        ctx: BoostContext,
    ) -> ScoringResult:
        """Score every item; output is in input order, one entry per item."""
        if not items:
            return ScoringResult()
        workers = max(1, min(ctx.config.scoring_workers, len(items)))
        if workers == 1:
            outcomes = [self._score_isolated(item, context, ctx) for item in items]
        else:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="scoring") as pool:
                outcomes = list(pool.map(lambda item: self._score_isolated(item, context, ctx), items))

        result = ScoringResult()
        for scored, failure in outcomes:
            result.scored.append(scored)
            if failure is not None:
                result.failures.append(failure)
        if result.failures:
            logger.info(
                "[scoring] PARTIAL_FAILURE failed=%s total=%s", result.failed_count, len(items)
            )
        return result
