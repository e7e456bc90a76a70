"""
Shared fixtures: in-memory stores, the hash embedding provider, a manual clock.
"""

from datetime import datetime, timedelta, timezone

import pytest

from cinerank.cache import SmartCache
from cinerank.embedding import HashEmbeddingProvider
from cinerank.models import CandidateItem, HistoryRow
from cinerank.stores import InMemoryCatalog, InMemoryEmbeddingStore, InMemoryHistoryStore

# Small vectors keep the tests fast; the math does not depend on dimension.
TEST_DIMENSIONS = 32

# Saturday 2025-06-14, 20:00 UTC
FIXED_NOW = datetime(2025, 6, 14, 20, 0, tzinfo=timezone.utc)


class ManualClock:
    """Monotonic clock the test advances by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_item(item_id: str, genres=("Drama",), rating=7.5, **kwargs) -> CandidateItem:
    return CandidateItem(
        id=item_id,
        title=kwargs.pop("title", f"Title {item_id}"),
        genres=list(genres),
        rating=rating,
        plot=kwargs.pop("plot", f"Plot of {item_id}"),
        year=kwargs.pop("year", 2020),
        **kwargs,
    )


def make_row(item_id: str, genres=("Drama",), rating=None, added_days_ago=10, watched_days_ago=None, **kwargs) -> HistoryRow:
    return HistoryRow(
        item_id=item_id,
        genres=list(genres),
        rating=rating,
        added_at=FIXED_NOW - timedelta(days=added_days_ago),
        watched_at=FIXED_NOW - timedelta(days=watched_days_ago) if watched_days_ago is not None else None,
        **kwargs,
    )


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def cache(clock):
    return SmartCache(clock=clock, name="test")


@pytest.fixture
def provider():
    return HashEmbeddingProvider(dimensions=TEST_DIMENSIONS)


@pytest.fixture
def embedding_store():
    return InMemoryEmbeddingStore()


@pytest.fixture
def history_store():
    return InMemoryHistoryStore()


@pytest.fixture
def catalog_items():
    genres = ["Action", "Comedy", "Drama", "Horror", "Sci-Fi"]
    return [
        make_item(f"{genre.lower()}-{i}", genres=(genre,), rating=6.0 + i * 0.5)
        for genre in genres
        for i in range(5)
    ]


@pytest.fixture
def catalog(catalog_items):
    trending = [item.id for item in catalog_items if item.id.endswith("-0")]
    return InMemoryCatalog(catalog_items, trending_ids=trending)
