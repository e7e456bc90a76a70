"""
Catalog and trending source abstractions.

CatalogSource answers title/plot search and the curated high-quality pool;
TrendingSource returns the current trending set (refreshed on a 24-hour cadence
by the candidate source's cache). Implementations: in-memory/JSON (local),
HTTP (remote trending feed).
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union

import requests

from ..errors import UpstreamUnavailable
from ..models.candidate import CandidateItem, ensure_candidates

logger = logging.getLogger(__name__)


class CatalogSource(Protocol):
    """Protocol for catalog lookups."""

    def search(self, query: str, limit: int) -> List[CandidateItem]:
        """Items whose title or plot matches query, up to limit."""
        ...

    def curated(self, min_rating: float, limit: int) -> List[CandidateItem]:
        """Items rated above min_rating, best first, up to limit."""
        ...


class TrendingSource(Protocol):
    """Protocol for the live trending feed."""

    def fetch_trending(self) -> List[CandidateItem]:
        """Current trending items. Raises UpstreamUnavailable on failure."""
        ...


class InMemoryCatalog:
    """Catalog and trending source over an in-memory item list."""

    def __init__(
        self,
        items: List[Union[Dict[str, Any], CandidateItem]],
        trending_ids: Optional[List[str]] = None,
    ):
        self._items = ensure_candidates(items)
        self._by_id = {item.id: item for item in self._items}
        self._trending_ids = list(trending_ids or [])

    def get(self, item_id: str) -> Optional[CandidateItem]:
        return self._by_id.get(item_id)

    def search(self, query: str, limit: int) -> List[CandidateItem]:
        matches = [item for item in self._items if item.matches_query(query)]
        return matches[:limit]

    def curated(self, min_rating: float, limit: int) -> List[CandidateItem]:
        rated = [
            item for item in self._items
            if item.rating is not None and item.rating > min_rating
        ]
        rated.sort(key=lambda item: item.rating, reverse=True)
        return rated[:limit]

    def fetch_trending(self) -> List[CandidateItem]:
        return [self._by_id[i] for i in self._trending_ids if i in self._by_id]

    def __len__(self) -> int:
        return len(self._items)


class JsonCatalog(InMemoryCatalog):
    """
    Catalog backed by a JSON file: {"items": [...], "trending": [item ids]}.
    Used when CATALOG_JSON_PATH is set.
    """

    def __init__(self, path: Union[Path, str]):
        self.path = Path(path)
        if not self.path.exists():
            raise FileNotFoundError(f"Catalog JSON not found: {self.path}")
        with open(self.path) as f:
            data = json.load(f)
        if isinstance(data, list):
            data = {"items": data}
        super().__init__(data.get("items") or [], data.get("trending") or [])
        logger.info(
            "[catalog] LOADED path=%s items=%s trending=%s",
            self.path, len(self._items), len(self._trending_ids),
        )


class HttpTrendingSource:
    """
    Trending feed fetched over HTTP. The endpoint returns either a list of
    items or {"items": [...]}.
    """

    def __init__(self, url: str, timeout: float = 10.0, session: Optional[requests.Session] = None):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch_trending(self) -> List[CandidateItem]:
        try:
            response = self.session.get(self.url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise UpstreamUnavailable("trending", str(e)) from e
        items = data.get("items", []) if isinstance(data, dict) else data
        if not isinstance(items, list):
            raise UpstreamUnavailable("trending", f"unexpected payload type {type(items).__name__}")
        try:
            return ensure_candidates(items)
        except ValueError as e:
            raise UpstreamUnavailable("trending", f"invalid item: {e}") from e
