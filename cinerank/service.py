"""
RecommendationService: the engine object constructed once per process.

Wires the stages to their collaborators and owns every cache. Callers get two
operations, get_recommendations and get_behavior_profile, plus cache
management (invalidate, warm, stats).

get_recommendations never raises for upstream or per-candidate failures; the
response is always a well-formed list (possibly empty) with insights.degraded
set when anything fell back. ConfigurationError is the one exception callers see.

Usage:
    service = RecommendationService(
        provider=HashEmbeddingProvider(),
        history_store=InMemoryHistoryStore(),
        catalog=InMemoryCatalog(items),
    )
    result = service.get_recommendations("u1", RecommendationOptions(limit=10))
"""

import logging
from concurrent.futures import Future
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from .cache import CacheStats, SmartCache, WarmTask
from .config_loader import ConfigLoader
from .embedding.provider import EmbeddingProvider
from .embedding.similarity_cache import SimilarityCache
from .errors import ConfigurationError
from .models.config import RecommendationConfig
from .models.history import HistoryRow, ensure_history
from .models.profile import BehaviorProfile
from .models.recommendation import RecommendationInsights, RecommendationOptions, RecommendationResult
from .stages.candidate_pool import CandidateSource
from .stages.context import UserContextBuilder
from .stages.orchestrator import excluded_ids, run_pipeline
from .stages.profiling import BehavioralProfiler
from .stages.ranking import ScoringPipeline, basic_candidate
from .stores.catalog import CatalogSource, TrendingSource
from .stores.embedding_store import EmbeddingStore
from .stores.history_store import HistoryStore
from .stores.memory_search import MemorySearch

logger = logging.getLogger(__name__)


def user_tag(user_id: str) -> str:
    return f"user:{user_id}"


def profile_cache_key(user_id: str) -> str:
    return f"profile:{user_id}"


class RecommendationService:
    """Single entry point to the recommendation engine."""

    def __init__(
        self,
        provider: EmbeddingProvider,
        history_store: HistoryStore,
        catalog: CatalogSource,
        trending: Optional[TrendingSource] = None,
        embedding_store: Optional[EmbeddingStore] = None,
        memory_search: Optional[MemorySearch] = None,
        config: Optional[RecommendationConfig] = None,
        config_loader: Optional[ConfigLoader] = None,
        cache: Optional[SmartCache] = None,
        similarity_cache: Optional[SimilarityCache] = None,
    ):
        self.cache = cache if cache is not None else SmartCache(name="cinerank")
        if config_loader is None:
            config_loader = ConfigLoader(cache=self.cache) if config is None else ConfigLoader(
                cache=self.cache, default=config
            )
        self.config_loader = config_loader
        self.history_store = history_store
        self.catalog = catalog
        self.context_builder = UserContextBuilder(provider, memory_search)
        self.candidate_source = CandidateSource(catalog, trending, cache=self.cache)
        self.profiler = BehavioralProfiler()
        self.scoring = ScoringPipeline(provider, embedding_store, similarity_cache)

    @property
    def config(self) -> RecommendationConfig:
        return self.config_loader.load()

    # -------------------------------------------------------------------------
    # History and profile
    # -------------------------------------------------------------------------

    def _load_history(self, user_id: str) -> Tuple[List[HistoryRow], bool]:
        """(rows, ok). A failing history store yields no rows and ok=False."""
        try:
            return ensure_history(self.history_store.get_history(user_id) or []), True
        except ConfigurationError:
            raise
        except Exception as e:
            logger.warning("[recommendations] HISTORY_UNAVAILABLE user_id=%s err=%s", user_id, e)
            return [], False

    def _profile(
        self,
        user_id: str,
        rows: List[HistoryRow],
        config: RecommendationConfig,
        now: Optional[datetime] = None,
        cacheable: bool = True,
    ) -> BehaviorProfile:
        key = profile_cache_key(user_id)
        if cacheable and now is None:
            cached = self.cache.get(key)
            if cached is not None:
                return cached
        profile = self.profiler.analyze(user_id, rows, now=now, config=config)
        if cacheable and now is None:
            self.cache.set(key, profile, ttl=config.profile_ttl_seconds, tags=(user_tag(user_id),))
        return profile

    def get_behavior_profile(self, user_id: str, now: Optional[datetime] = None) -> BehaviorProfile:
        """Behavior profile for user_id; empty (never an error) when there is no history."""
        config = self.config
        rows, ok = self._load_history(user_id)
        return self._profile(user_id, rows, config, now=now, cacheable=ok)

    # -------------------------------------------------------------------------
    # Recommendations
    # -------------------------------------------------------------------------

    def _compute(
        self,
        user_id: str,
        options: RecommendationOptions,
        config: RecommendationConfig,
        now: Optional[datetime] = None,
    ) -> RecommendationResult:
        rows, ok = self._load_history(user_id)
        profile = self._profile(user_id, rows, config, now=now, cacheable=ok)
        return run_pipeline(
            user_id,
            options,
            rows,
            profile,
            self.context_builder,
            self.candidate_source,
            self.scoring,
            config=config,
            now=now,
            extra_reasons=[] if ok else ["history_unavailable"],
        )

    def _fallback_result(
        self,
        user_id: str,
        options: RecommendationOptions,
        config: RecommendationConfig,
        reason: str,
    ) -> RecommendationResult:
        """
        Curated items at the minimal confidence, or nothing if the catalog fails too.

        Explicit exclusions and already-watched items are left out, as in the
        full pipeline.
        """
        reasons = [reason]
        items = []
        rows, _ = self._load_history(user_id)
        try:
            excluded = excluded_ids(options, rows)
            curated = self.catalog.curated(config.high_quality_rating_threshold, options.limit + len(excluded))
            items = [basic_candidate(item, config) for item in curated if item.id not in excluded]
            items = items[: options.limit]
        except ConfigurationError:
            raise
        except Exception as e:
            logger.warning("[recommendations] FALLBACK_FAILED err=%s", e)
            reasons.append("curated_unavailable")
        return RecommendationResult(
            items=items,
            insights=RecommendationInsights(
                degraded=True,
                degradation_reasons=reasons,
                candidate_count=len(items),
                context_confidence=0.0,
                primary_reasons=[items[0].reason] if items else [],
                weights_version=config.version,
            ),
        )

    @staticmethod
    def _result_ttl(result: RecommendationResult, config: RecommendationConfig) -> float:
        """Degraded results are cached only briefly so recovery is picked up soon."""
        return config.fallback_ttl_seconds if result.insights.degraded else config.recommendations_ttl_seconds

    def get_recommendations(
        self,
        user_id: str,
        options: Optional[RecommendationOptions] = None,
        now: Optional[datetime] = None,
    ) -> RecommendationResult:
        """
        Ranked, diversified recommendations for user_id.

        Results are cached per (user, options) for recommendations_ttl_seconds,
        degraded results only for fallback_ttl_seconds. Passing now bypasses
        the result cache (used for deterministic evaluation).
        """
        options = options or RecommendationOptions()
        config = self.config
        key = options.cache_key(user_id)
        use_cache = options.use_cache and now is None

        if use_cache:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug("[recommendations] CACHE_HIT key=%s", key)
                return cached.model_copy(
                    update={"insights": cached.insights.model_copy(update={"cached": True})}
                )

        try:
            result = self._compute(user_id, options, config, now=now)
        except ConfigurationError:
            raise
        except Exception as e:
            logger.exception("[recommendations] PIPELINE_FAILED user_id=%s err=%s", user_id, e)
            result = self._fallback_result(user_id, options, config, "pipeline_error")

        if use_cache:
            self.cache.set(key, result, ttl=self._result_ttl(result, config), tags=(user_tag(user_id),))
        logger.info(
            "[recommendations] DONE user_id=%s items=%s candidates=%s degraded=%s",
            user_id, len(result.items), result.insights.candidate_count, result.insights.degraded,
        )
        return result

    # -------------------------------------------------------------------------
    # Cache management
    # -------------------------------------------------------------------------

    def invalidate_user_cache(self, user_id: str) -> int:
        """Drop cached results and profile for user_id. Returns the removed count."""
        removed = self.cache.invalidate_by_tag(user_tag(user_id))
        logger.info("[cache] INVALIDATE_USER user_id=%s removed=%s", user_id, removed)
        return removed

    def invalidate_tag(self, tag: str) -> int:
        return self.cache.invalidate_by_tag(tag)

    def warm_cache_for_user(
        self,
        user_id: str,
        option_sets: Optional[Iterable[RecommendationOptions]] = None,
    ) -> List[Future]:
        """
        Precompute results for user_id in the background.

        Fire-and-forget: failures are logged by the cache and never raised here.
        """
        config = self.config
        option_sets = list(option_sets) if option_sets is not None else [RecommendationOptions()]
        tasks = [
            WarmTask(
                key=options.cache_key(user_id),
                loader=lambda options=options: self._compute(user_id, options, config),
                ttl=lambda result: self._result_ttl(result, config),
                tags=(user_tag(user_id),),
                priority="low",
            )
            for options in option_sets
        ]
        return self.cache.warm(tasks)

    def cache_stats(self) -> CacheStats:
        return self.cache.stats()

    def start(self) -> None:
        """Start the periodic expiry sweep."""
        self.cache.start_sweeper()

    def shutdown(self) -> None:
        self.cache.shutdown()
