"""
SmartCache: generic keyed cache with TTL, tags and priority-aware eviction.

Shared by the candidate source (trending sets), the embedding provider, the
profiler and the service (whole results). One lock serializes get/set/eviction
so size accounting stays atomic relative to concurrent inserts.

Eviction score = (access_count * priority_weight) / log(seconds_since_last_access + 1);
lowest scores go first. A background sweeper drops lapsed entries every
sweep_interval seconds regardless of access pattern.
"""

import json
import logging
import math
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Literal, Optional, Tuple, Union

import numpy as np
from pydantic import BaseModel

logger = logging.getLogger(__name__)

Priority = Literal["low", "medium", "high"]

PRIORITY_WEIGHTS: Dict[str, int] = {"low": 1, "medium": 2, "high": 3}

# Size charged for payloads that cannot be serialized for measurement.
DEFAULT_ENTRY_SIZE = 1024


@dataclass
class CacheEntry:
    key: str
    payload: Any
    created_at: float
    last_accessed: float
    ttl: float
    size_bytes: int
    tags: FrozenSet[str] = frozenset()
    priority: Priority = "medium"
    access_count: int = 1

    def is_expired(self, now: float) -> bool:
        # ttl <= 0 never serves a hit, even within the same clock tick.
        return self.ttl <= 0 or now > self.created_at + self.ttl

    def eviction_score(self, now: float) -> float:
        age = max(0.0, now - self.last_accessed)
        denominator = math.log(age + 1)
        weighted = self.access_count * PRIORITY_WEIGHTS.get(self.priority, 1)
        if denominator <= 0:
            return math.inf
        return weighted / denominator


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    total_requests: int = 0
    hit_rate: float = 0.0
    miss_rate: float = 0.0
    memory_usage: int = 0
    entry_count: int = 0
    evictions: int = 0
    average_access_time_ms: float = 0.0


@dataclass
class WarmTask:
    """A key plus the loader that produces its payload, for cache warming.

    ttl may be a callable taking the loaded payload and returning the TTL.
    """

    key: str
    loader: Callable[[], Any]
    ttl: Union[None, float, Callable[[Any], float]] = None
    tags: Tuple[str, ...] = ()
    priority: Priority = "medium"


def _json_default(obj: Any) -> Any:
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, (set, frozenset, tuple)):
        return list(obj)
    raise TypeError(f"not serializable: {type(obj).__name__}")


def estimate_size(payload: Any) -> int:
    """Approximate payload size as its JSON byte length."""
    try:
        if isinstance(payload, BaseModel):
            return len(payload.model_dump_json().encode("utf-8"))
        return len(json.dumps(payload, default=_json_default).encode("utf-8"))
    except (TypeError, ValueError):
        return DEFAULT_ENTRY_SIZE


class SmartCache:
    """
    Thread-safe TTL/tag/priority cache.

    Usage:
        cache = SmartCache(max_entries=1000, default_ttl=600)
        cache.set("trending:v1", items, ttl=86400, tags=("trending",), priority="high")
        items = cache.get("trending:v1")
        cache.invalidate_by_tag("user:42")
    """

    DEFAULT_MAX_MEMORY_BYTES = 100 * 1024 * 1024
    DEFAULT_MAX_ENTRIES = 10_000
    DEFAULT_TTL = 30 * 60  # seconds
    SWEEP_INTERVAL = 5 * 60  # seconds

    def __init__(
        self,
        max_memory_bytes: int = DEFAULT_MAX_MEMORY_BYTES,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        default_ttl: float = DEFAULT_TTL,
        sweep_interval: float = SWEEP_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        name: str = "smart_cache",
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.max_memory_bytes = max_memory_bytes
        self.max_entries = max_entries
        self.default_ttl = default_ttl
        self.sweep_interval = sweep_interval
        self.name = name
        self._clock = clock
        self._lock = threading.RLock()
        self._entries: Dict[str, CacheEntry] = {}
        self._memory_usage = 0
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._access_time_total = 0.0
        self._stop = threading.Event()
        self._sweeper: Optional[threading.Thread] = None
        self._warm_executor: Optional[ThreadPoolExecutor] = None

    # -------------------------------------------------------------------------
    # Core operations
    # -------------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        """Return the payload for key, or default when absent or expired."""
        started = time.perf_counter()
        with self._lock:
            try:
                entry = self._entries.get(key)
                now = self._clock()
                if entry is None:
                    self._misses += 1
                    return default
                if entry.is_expired(now):
                    self._remove(key)
                    self._misses += 1
                    return default
                entry.last_accessed = now
                entry.access_count += 1
                self._hits += 1
                return entry.payload
            finally:
                self._access_time_total += time.perf_counter() - started

    def set(
        self,
        key: str,
        payload: Any,
        ttl: Optional[float] = None,
        tags: Iterable[str] = (),
        priority: Priority = "medium",
    ) -> bool:
        """
        Store payload under key. Evicts lowest-scoring entries first when the
        insert would exceed max memory or max entry count.

        Returns False when the payload alone is larger than max memory.
        """
        if priority not in PRIORITY_WEIGHTS:
            raise ValueError(f"Unknown cache priority: {priority}")
        size = estimate_size(payload)
        if size > self.max_memory_bytes:
            logger.warning(
                "[%s] ENTRY_TOO_LARGE key=%s size=%s max=%s",
                self.name, key, size, self.max_memory_bytes,
            )
            return False
        with self._lock:
            now = self._clock()
            if key in self._entries:
                self._remove(key)
            self._ensure_space(size, now)
            self._entries[key] = CacheEntry(
                key=key,
                payload=payload,
                created_at=now,
                last_accessed=now,
                ttl=self.default_ttl if ttl is None else ttl,
                size_bytes=size,
                tags=frozenset(tags),
                priority=priority,
            )
            self._memory_usage += size
        return True

    def get_or_set(
        self,
        key: str,
        loader: Callable[[], Any],
        ttl: Optional[float] = None,
        tags: Iterable[str] = (),
        priority: Priority = "medium",
    ) -> Any:
        """Return the cached payload, or call loader (outside the lock), cache and return it."""
        payload = self.get(key)
        if payload is not None:
            return payload
        payload = loader()
        if payload is not None:
            self.set(key, payload, ttl=ttl, tags=tags, priority=priority)
        return payload

    def delete(self, key: str) -> bool:
        with self._lock:
            if key not in self._entries:
                return False
            self._remove(key)
            return True

    def invalidate_by_tag(self, tag: str) -> int:
        """Remove every entry whose tag set contains tag. Returns the removed count."""
        with self._lock:
            keys = [k for k, e in self._entries.items() if tag in e.tags]
            for k in keys:
                self._remove(k)
        if keys:
            logger.info("[%s] INVALIDATED tag=%s count=%s", self.name, tag, len(keys))
        return len(keys)

    def sweep(self) -> int:
        """Remove all entries whose ttl has lapsed. Returns the removed count."""
        with self._lock:
            now = self._clock()
            expired = [k for k, e in self._entries.items() if e.is_expired(now)]
            for k in expired:
                self._remove(k)
        if expired:
            logger.debug("[%s] SWEEP removed=%s", self.name, len(expired))
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._memory_usage = 0
            self._hits = 0
            self._misses = 0
            self._evictions = 0
            self._access_time_total = 0.0

    def stats(self) -> CacheStats:
        with self._lock:
            total = self._hits + self._misses
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                total_requests=total,
                hit_rate=self._hits / total if total else 0.0,
                miss_rate=self._misses / total if total else 0.0,
                memory_usage=self._memory_usage,
                entry_count=len(self._entries),
                evictions=self._evictions,
                average_access_time_ms=(self._access_time_total / total * 1000.0) if total else 0.0,
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        """True if key holds an unexpired entry. Does not touch access stats."""
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not entry.is_expired(self._clock())

    # -------------------------------------------------------------------------
    # Eviction
    # -------------------------------------------------------------------------

    def _remove(self, key: str) -> None:
        entry = self._entries.pop(key)
        self._memory_usage -= entry.size_bytes

    def _needs_space(self, incoming_size: int) -> bool:
        return (
            len(self._entries) >= self.max_entries
            or self._memory_usage + incoming_size > self.max_memory_bytes
        )

    def _ensure_space(self, incoming_size: int, now: float) -> None:
        """Evict in ascending score order until count and memory headroom both exist."""
        if not self._needs_space(incoming_size):
            return
        ranked = sorted(self._entries.values(), key=lambda e: e.eviction_score(now))
        for entry in ranked:
            if not self._needs_space(incoming_size):
                break
            self._remove(entry.key)
            self._evictions += 1
            logger.debug("[%s] EVICT key=%s priority=%s", self.name, entry.key, entry.priority)

    # -------------------------------------------------------------------------
    # Background work
    # -------------------------------------------------------------------------

    def start_sweeper(self) -> None:
        """Start the periodic expiry sweep on a daemon thread (idempotent)."""
        if self._sweeper is not None and self._sweeper.is_alive():
            return
        self._stop.clear()
        self._sweeper = threading.Thread(
            target=self._sweep_loop, name=f"{self.name}-sweeper", daemon=True
        )
        self._sweeper.start()

    def _sweep_loop(self) -> None:
        while not self._stop.wait(self.sweep_interval):
            try:
                self.sweep()
            except Exception:
                logger.exception("[%s] SWEEP_FAILED", self.name)

    def warm(self, tasks: Iterable[WarmTask]) -> List[Future]:
        """
        Fire-and-forget: load and cache each task on a background thread.
        Loader failures are logged and never propagated; returned futures always resolve.
        """
        with self._lock:
            if self._warm_executor is None:
                self._warm_executor = ThreadPoolExecutor(
                    max_workers=2, thread_name_prefix=f"{self.name}-warm"
                )
            executor = self._warm_executor
        return [executor.submit(self._warm_one, task) for task in tasks]

    def _warm_one(self, task: WarmTask) -> bool:
        try:
            payload = task.loader()
        except Exception as e:
            logger.warning("[%s] WARM_FAILED key=%s err=%s", self.name, task.key, e)
            return False
        if payload is None:
            return False
        ttl = task.ttl(payload) if callable(task.ttl) else task.ttl
        return self.set(task.key, payload, ttl=ttl, tags=task.tags, priority=task.priority)

    def shutdown(self) -> None:
        """Stop the sweeper and warm workers and drop all entries."""
        self._stop.set()
        if self._sweeper is not None:
            self._sweeper.join(timeout=1.0)
            self._sweeper = None
        if self._warm_executor is not None:
            self._warm_executor.shutdown(wait=False)
            self._warm_executor = None
        self.clear()
