"""
SimilarityCache: memoized pairwise cosine similarity.

Keys are cheap fingerprints of each vector (length plus a handful of sampled
components), not the full vector. Bounded at max_entries; when full, the oldest
evict_fraction of entries go first (FIFO). Entries are cheap to recompute, so
no TTL or priority bookkeeping.
"""

import threading
from collections import OrderedDict
from typing import Sequence, Tuple

from .similarity import cosine_similarity

# Components sampled (evenly spaced) into a fingerprint.
FINGERPRINT_SAMPLES = 8

Fingerprint = Tuple[float, ...]


def fingerprint(vector: Sequence[float]) -> Fingerprint:
    """Length plus FINGERPRINT_SAMPLES evenly spaced components, rounded."""
    n = len(vector)
    if n == 0:
        return (0,)
    step = max(1, n // FINGERPRINT_SAMPLES)
    samples = tuple(round(float(vector[i]), 8) for i in range(0, n, step)[:FINGERPRINT_SAMPLES])
    return (n, round(float(vector[-1]), 8)) + samples


class SimilarityCache:
    """Thread-safe bounded FIFO memo for cosine(a, b)."""

    def __init__(self, max_entries: int = 1000, evict_fraction: float = 0.2):
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.max_entries = max_entries
        self.evict_fraction = evict_fraction
        self._entries: "OrderedDict[Tuple[Fingerprint, Fingerprint], float]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def _key(a: Sequence[float], b: Sequence[float]) -> Tuple[Fingerprint, Fingerprint]:
        fa, fb = fingerprint(a), fingerprint(b)
        # cosine is symmetric
        return (fa, fb) if fa <= fb else (fb, fa)

    def similarity(self, a: Sequence[float], b: Sequence[float]) -> float:
        """Cosine similarity of a and b, memoized. 0.0 when lengths differ."""
        if len(a) != len(b):
            return 0.0
        key = self._key(a, b)
        with self._lock:
            cached = self._entries.get(key)
            if cached is not None:
                self.hits += 1
                return cached
            self.misses += 1
        value = cosine_similarity(a, b)
        with self._lock:
            if key not in self._entries:
                if len(self._entries) >= self.max_entries:
                    self._evict_oldest()
                self._entries[key] = value
        return value

    def _evict_oldest(self) -> None:
        count = max(1, int(self.max_entries * self.evict_fraction))
        for _ in range(min(count, len(self._entries))):
            self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
