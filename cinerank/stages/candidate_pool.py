"""
Candidate pool: deduplicated candidates from search, trending and curated origins.

Query path: title/plot search matches, up to pool_size (limit * multiplier, capped).
No-query path:
    1. trending set from a 24-hour SmartCache entry, refetched live when the
       cached set is missing or smaller than min_trending_items; a failed live
       fetch degrades to whatever is cached (possibly nothing)
    2. curated high-quality items (rating above the curated threshold)
Trending fills up to trending_share of the pool first, curated fills the rest.
Ids already seen (or excluded) are skipped across every origin.

The public entry point is CandidateSource.get_candidates.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Set

from ..cache import SmartCache
from ..errors import ConfigurationError
from ..models.candidate import (
    PROVENANCE_CURATED,
    PROVENANCE_SEARCH,
    PROVENANCE_TRENDING,
    CandidateItem,
)
from ..models.config import DEFAULT_CONFIG, RecommendationConfig
from ..stores.catalog import CatalogSource, TrendingSource

logger = logging.getLogger(__name__)

TRENDING_CACHE_KEY = "candidates:trending"


@dataclass
class CandidatePool:
    items: List[CandidateItem] = field(default_factory=list)
    # Origins that failed and were skipped (e.g. "trending", "curated", "search").
    failed_sources: List[str] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return bool(self.failed_sources)


def pool_size(limit: int, config: RecommendationConfig = DEFAULT_CONFIG) -> int:
    """limit * candidate_multiplier, capped at candidate_pool_cap."""
    return min(config.candidate_pool_cap, max(0, limit) * config.candidate_multiplier)


def _admit(
    items: List[CandidateItem],
    tag: str,
    seen: Set[str],
    out: List[CandidateItem],
    max_total: int,
) -> None:
    """Append items tagged with tag, skipping seen ids, until out holds max_total."""
    for item in items:
        if len(out) >= max_total:
            return
        if item.id in seen:
            continue
        seen.add(item.id)
        out.append(item.with_provenance(tag))


class CandidateSource:
    """Produces the per-request candidate pool."""

    def __init__(
        self,
        catalog: CatalogSource,
        trending: Optional[TrendingSource] = None,
        cache: Optional[SmartCache] = None,
        config: RecommendationConfig = DEFAULT_CONFIG,
    ):
        self.catalog = catalog
        self.trending = trending
        self.cache = cache if cache is not None else SmartCache(name="candidates")
        self.config = config

    # -------------------------------------------------------------------------
    # Origins
    # -------------------------------------------------------------------------

    def _cached_trending(self) -> List[CandidateItem]:
        return self.cache.get(TRENDING_CACHE_KEY) or []

    def _trending_items(self, config: RecommendationConfig, failed: List[str]) -> List[CandidateItem]:
        """Cached trending set, refreshed live when empty or too small."""
        cached = self._cached_trending()
        if len(cached) >= config.min_trending_items or self.trending is None:
            return cached
        try:
            live = self.trending.fetch_trending()
        except ConfigurationError:
            raise
        except Exception as e:
            logger.warning("[candidates] TRENDING_FETCH_FAILED cached=%s err=%s", len(cached), e)
            failed.append("trending")
            return cached
        if live:
            self.cache.set(
                TRENDING_CACHE_KEY,
                live,
                ttl=config.trending_ttl_seconds,
                tags=("trending",),
                priority="high",
            )
            return live
        return cached

    def _curated_items(self, limit: int, config: RecommendationConfig, failed: List[str]) -> List[CandidateItem]:
        try:
            return self.catalog.curated(config.high_quality_rating_threshold, limit)
        except ConfigurationError:
            raise
        except Exception as e:
            logger.warning("[candidates] CURATED_FETCH_FAILED err=%s", e)
            failed.append("curated")
            return []

    def _search_items(self, query: str, limit: int, failed: List[str]) -> List[CandidateItem]:
        try:
            return self.catalog.search(query, limit)
        except ConfigurationError:
            raise
        except Exception as e:
            logger.warning("[candidates] SEARCH_FAILED query=%r err=%s", query, e)
            failed.append("search")
            return []

    # -------------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------------

    def get_candidates(
        self,
        limit: int,
        query: str = "",
        exclude_ids: Optional[Set[str]] = None,
        config: Optional[RecommendationConfig] = None,
    ) -> CandidatePool:
        """Deduplicated candidate pool for one request. Never raises for upstream failures."""
        config = config or self.config
        target = pool_size(limit, config)
        seen: Set[str] = set(exclude_ids or ())
        items: List[CandidateItem] = []
        failed: List[str] = []
        if target == 0:
            return CandidatePool(items=items, failed_sources=failed)

        # Query path: direct search matches only
        if query and query.strip():
            matches = self._search_items(query.strip(), target, failed)
            _admit(matches, PROVENANCE_SEARCH, seen, items, target)
            return CandidatePool(items=items, failed_sources=failed)

        # 1) Trending first, up to trending_share of the pool
        trending_quota = int(target * config.trending_share)
        _admit(self._trending_items(config, failed), PROVENANCE_TRENDING, seen, items, trending_quota)

        # 2) Curated fills the remainder
        remaining = target - len(items)
        if remaining > 0:
            # Over-fetch so duplicates of trending ids don't starve the pool
            curated = self._curated_items(target, config, failed)
            _admit(curated, PROVENANCE_CURATED, seen, items, target)

        logger.debug(
            "[candidates] POOL target=%s size=%s failed=%s", target, len(items), failed
        )
        return CandidatePool(items=items, failed_sources=failed)

    def invalidate_trending(self) -> bool:
        return self.cache.delete(TRENDING_CACHE_KEY)
