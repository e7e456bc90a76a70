"""
Similarity utilities: cosine similarity and normalization for semantic matching.
"""

from typing import List, Sequence

import numpy as np


def cosine_similarity(v1: Sequence[float], v2: Sequence[float]) -> float:
    """Cosine similarity in [-1, 1]. 0.0 for empty, zero-norm or mismatched-length vectors."""
    if v1 is None or v2 is None or len(v1) == 0 or len(v2) == 0:
        return 0.0
    if len(v1) != len(v2):
        return 0.0
    v1_arr = np.asarray(v1, dtype=float)
    v2_arr = np.asarray(v2, dtype=float)
    norm_product = np.linalg.norm(v1_arr) * np.linalg.norm(v2_arr)
    if norm_product <= 0:
        return 0.0
    return float(np.dot(v1_arr, v2_arr) / norm_product)


def normalize(vector: Sequence[float]) -> List[float]:
    """L2-normalize; zero vectors are returned unchanged."""
    arr = np.asarray(vector, dtype=float)
    norm = np.linalg.norm(arr)
    if norm <= 1e-12:
        return arr.tolist()
    return (arr / norm).tolist()


def mean_vector(vectors: List[Sequence[float]]) -> List[float]:
    """Normalized mean of same-length vectors; vectors of another length than the first are skipped."""
    if not vectors:
        return []
    dims = len(vectors[0])
    usable = [np.asarray(v, dtype=float) for v in vectors if len(v) == dims]
    return normalize(np.mean(usable, axis=0))
