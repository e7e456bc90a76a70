"""
Store Adapter Tests

JSON-file catalog, history and embedding stores, the HTTP trending feed
(with a fake session) and the Qdrant store (against qdrant-client's local
in-memory mode).

Run:
----
    pytest tests/test_stores.py -v
"""

import json

import pytest
import requests
from qdrant_client import QdrantClient

from cinerank.embedding.text import STRATEGY_VERSION
from cinerank.errors import UpstreamUnavailable
from cinerank.stores import (
    HttpTrendingSource,
    JsonCatalog,
    JsonFileEmbeddingStore,
    JsonHistoryStore,
    QdrantEmbeddingStore,
)

ITEMS = [
    {"id": "heat", "title": "Heat", "genres": ["Crime"], "rating": 8.3},
    {"id": "alien", "title": "Alien", "genres": ["Horror", "Sci-Fi"], "rating": 8.5},
    {"id": "cats", "title": "Cats", "genres": ["Musical"], "rating": 2.8},
]


class FakeResponse:
    def __init__(self, payload=None, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        if isinstance(self.payload, str):
            raise ValueError("not json")
        return self.payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        if self.error is not None:
            raise self.error
        return self.response


class TestJsonCatalog:
    def test_object_layout(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps({"items": ITEMS, "trending": ["alien", "unknown"]}))
        catalog = JsonCatalog(path)
        assert len(catalog) == 3
        assert [i.id for i in catalog.fetch_trending()] == ["alien"]
        assert [i.id for i in catalog.curated(7.0, 10)] == ["alien", "heat"]
        assert [i.id for i in catalog.search("HEAT", 10)] == ["heat"]

    def test_bare_list_layout(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps(ITEMS))
        catalog = JsonCatalog(path)
        assert catalog.get("cats").rating == pytest.approx(2.8)
        assert catalog.fetch_trending() == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            JsonCatalog(tmp_path / "nope.json")


class TestJsonHistoryStore:
    def test_rows_parsed(self, tmp_path):
        path = tmp_path / "history.json"
        path.write_text(json.dumps({
            "u1": [
                {"item_id": "heat", "genres": ["Crime"], "rating": 5, "added_at": "2025-06-01T10:00:00",
                 "watched_at": "2025-06-02T21:00:00Z"},
            ]
        }))
        store = JsonHistoryStore(path)
        rows = store.get_history("u1")
        assert len(rows) == 1
        assert rows[0].watched
        assert rows[0].added_at.tzinfo is not None
        assert store.get_history("u2") == []

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "history.json"
        path.write_text("{oops")
        with pytest.raises(UpstreamUnavailable):
            JsonHistoryStore(path)


class TestJsonFileEmbeddingStore:
    def test_saved_vectors_survive_reopen(self, tmp_path):
        path = tmp_path / "emb" / "embeddings.json"
        JsonFileEmbeddingStore(path).save_embedding("heat", [0.6, 0.8])
        reopened = JsonFileEmbeddingStore(path)
        assert reopened.get_embedding("heat") == [0.6, 0.8]
        assert json.loads(path.read_text())["strategy_version"] == STRATEGY_VERSION

    def test_stale_strategy_ignored(self, tmp_path):
        path = tmp_path / "embeddings.json"
        path.write_text(json.dumps({"strategy_version": "0.0-old", "embeddings": {"heat": [1.0]}}))
        assert JsonFileEmbeddingStore(path).get_embedding("heat") is None

    def test_unreadable_file_starts_empty(self, tmp_path):
        path = tmp_path / "embeddings.json"
        path.write_text("not json")
        assert len(JsonFileEmbeddingStore(path)) == 0


class TestHttpTrendingSource:
    def test_list_and_object_payloads(self):
        for payload in (ITEMS, {"items": ITEMS}):
            source = HttpTrendingSource("http://feed", timeout=3, session=FakeSession(FakeResponse(payload)))
            assert [i.id for i in source.fetch_trending()] == ["heat", "alien", "cats"]
            assert source.session.calls == [("http://feed", 3)]

    @pytest.mark.parametrize("session", [
        FakeSession(error=requests.ConnectionError("refused")),
        FakeSession(FakeResponse(status=503)),
        FakeSession(FakeResponse("<html>")),
        FakeSession(FakeResponse({"items": "nope"})),
        FakeSession(FakeResponse([{"title": "no id"}])),
    ])
    def test_failures_are_upstream_unavailable(self, session):
        with pytest.raises(UpstreamUnavailable) as exc:
            HttpTrendingSource("http://feed", session=session).fetch_trending()
        assert exc.value.source == "trending"


class TestQdrantEmbeddingStore:
    @pytest.fixture
    def store(self):
        store = QdrantEmbeddingStore(collection_name="test_items", dimensions=4)
        store._client = QdrantClient(":memory:")
        return store

    def test_save_and_get(self, store):
        assert store.get_embedding("heat") is None
        store.save_embedding("heat", [1.0, 0.0, 0.0, 0.0])
        assert store.get_embedding("heat") == pytest.approx([1.0, 0.0, 0.0, 0.0])

    def test_point_id_is_stable_uuid(self):
        assert QdrantEmbeddingStore.point_id("heat") == QdrantEmbeddingStore.point_id("heat")
        assert QdrantEmbeddingStore.point_id("heat") != QdrantEmbeddingStore.point_id("alien")

    def test_collection_name_carries_strategy_version(self, store):
        assert store.collection_name.startswith("test_items_s")
