"""
Durable embedding store abstraction.

Persists item embeddings generated on first use so later requests reuse them.
Implementations: in-memory (tests), JSON file (local), Qdrant (production).
Transport failures surface as UpstreamUnavailable.
"""

import json
import logging
import os
import threading
import time
import uuid
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Union

from qdrant_client import QdrantClient
from qdrant_client.http import models

from ..embedding.text import STRATEGY_VERSION
from ..errors import UpstreamUnavailable

logger = logging.getLogger(__name__)


class EmbeddingStore(Protocol):
    """Protocol for item embedding read/write."""

    def get_embedding(self, item_id: str) -> Optional[List[float]]:
        """Return the stored vector for item_id, or None when absent."""
        ...

    def save_embedding(self, item_id: str, vector: List[float]) -> None:
        """Persist one vector. Raises UpstreamUnavailable on failure."""
        ...


class InMemoryEmbeddingStore:
    """Embedding store held in a dict. Used for tests and offline runs."""

    def __init__(self, embeddings: Optional[Dict[str, List[float]]] = None):
        self._embeddings: Dict[str, List[float]] = dict(embeddings or {})
        self._lock = threading.Lock()

    def get_embedding(self, item_id: str) -> Optional[List[float]]:
        with self._lock:
            return self._embeddings.get(item_id)

    def save_embedding(self, item_id: str, vector: List[float]) -> None:
        with self._lock:
            self._embeddings[item_id] = list(vector)

    def __len__(self) -> int:
        with self._lock:
            return len(self._embeddings)


class JsonFileEmbeddingStore(InMemoryEmbeddingStore):
    """
    Embedding store backed by a JSON file:
        {"strategy_version": "1.0", "embeddings": {item_id: [floats]}}

    A file written under another strategy version is ignored (stale embed text).
    Every save rewrites the file.
    """

    def __init__(self, path: Union[Path, str]):
        self.path = Path(path)
        super().__init__(self._load())

    def _load(self) -> Dict[str, List[float]]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("[embedding_store] LOAD_FAILED path=%s err=%s", self.path, e)
            return {}
        if data.get("strategy_version") != STRATEGY_VERSION:
            logger.info(
                "[embedding_store] STALE_STRATEGY path=%s found=%s expected=%s",
                self.path, data.get("strategy_version"), STRATEGY_VERSION,
            )
            return {}
        return data.get("embeddings") or {}

    def save_embedding(self, item_id: str, vector: List[float]) -> None:
        super().save_embedding(item_id, vector)
        with self._lock:
            payload = {"strategy_version": STRATEGY_VERSION, "embeddings": self._embeddings}
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                tmp = self.path.with_suffix(".tmp")
                with open(tmp, "w") as f:
                    json.dump(payload, f)
                tmp.replace(self.path)
            except OSError as e:
                raise UpstreamUnavailable("embedding_store", str(e)) from e


class QdrantEmbeddingStore:
    """
    Item embeddings in a Qdrant collection.

    Qdrant point ids must be ints or UUIDs, so each item id maps to a uuid5;
    the original id is kept in the payload.
    """

    MAX_RETRIES = 3
    RETRY_DELAY = 1.0  # seconds

    def __init__(
        self,
        qdrant_url: Optional[str] = None,
        collection_name: str = "cinerank_items",
        dimensions: int = 1536,
        timeout: float = 30.0,
    ):
        self.qdrant_url = qdrant_url or os.environ.get("QDRANT_URL", "http://localhost:6333")
        self.collection_name = f"{collection_name}_s{STRATEGY_VERSION.replace('.', '_')}"
        self.dimensions = dimensions
        self.timeout = timeout
        self._client: Optional[QdrantClient] = None
        self._collection_ready = False

    @property
    def client(self) -> QdrantClient:
        """Get or create Qdrant client with connection retry."""
        if self._client is None:
            last_error: Optional[Exception] = None
            for attempt in range(self.MAX_RETRIES):
                try:
                    client = QdrantClient(url=self.qdrant_url, timeout=self.timeout)
                    client.get_collections()
                    self._client = client
                    break
                except Exception as e:
                    last_error = e
                    if attempt < self.MAX_RETRIES - 1:
                        time.sleep(self.RETRY_DELAY)
            if self._client is None:
                raise UpstreamUnavailable("qdrant", f"{self.qdrant_url}: {last_error}")
        return self._client

    @staticmethod
    def point_id(item_id: str) -> str:
        return str(uuid.uuid5(uuid.NAMESPACE_URL, f"cinerank:{item_id}"))

    def _ensure_collection(self) -> None:
        if self._collection_ready:
            return
        if not self.client.collection_exists(self.collection_name):
            self.client.create_collection(
                collection_name=self.collection_name,
                vectors_config=models.VectorParams(
                    size=self.dimensions,
                    distance=models.Distance.COSINE,
                ),
            )
            logger.info("[embedding_store] CREATED_COLLECTION name=%s", self.collection_name)
        self._collection_ready = True

    def get_embedding(self, item_id: str) -> Optional[List[float]]:
        try:
            self._ensure_collection()
            records = self.client.retrieve(
                collection_name=self.collection_name,
                ids=[self.point_id(item_id)],
                with_vectors=True,
            )
        except UpstreamUnavailable:
            raise
        except Exception as e:
            raise UpstreamUnavailable("qdrant", str(e)) from e
        if not records or records[0].vector is None:
            return None
        return list(records[0].vector)

    def save_embedding(self, item_id: str, vector: List[float]) -> None:
        try:
            self._ensure_collection()
            self.client.upsert(
                collection_name=self.collection_name,
                points=[
                    models.PointStruct(
                        id=self.point_id(item_id),
                        vector=list(vector),
                        payload={"item_id": item_id, "strategy_version": STRATEGY_VERSION},
                    )
                ],
            )
        except UpstreamUnavailable:
            raise
        except Exception as e:
            raise UpstreamUnavailable("qdrant", str(e)) from e
