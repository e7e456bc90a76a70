"""
Diversity selection over scored candidates.

Candidates are taken in descending confidence order. The first
floor(n * (1 - diversity_factor)) picks are unconditional; after that a
candidate is only admitted if it brings at least one genre not yet selected.
A candidate without genres counts as the single genre "unknown".
The result is never padded back up to n with skipped candidates.
"""

import math
from typing import List, Set

from ...models.scoring import ScoredCandidate

UNKNOWN_GENRE = "unknown"


def unconditional_slots(n: int, diversity_factor: float) -> int:
    """Slots filled purely by confidence before the new-genre rule applies."""
    d = max(0.0, min(1.0, diversity_factor))
    # Tolerance keeps e.g. 10 * (1 - 0.7) from flooring to 2.
    return max(0, math.floor(n * (1.0 - d) + 1e-9))


def select_diverse(
    scored: List[ScoredCandidate],
    n: int,
    diversity_factor: float,
) -> List[ScoredCandidate]:
    """
    Select up to n candidates.

    Args:
        scored: Scored candidates in any order. Not mutated.
        n: Maximum number to return.
        diversity_factor: In [0, 1]; 0 is pure confidence order.

    Returns:
        Selected candidates in descending confidence order, ids unique.
    """
    if n <= 0:
        return []
    # Stable sort: ties keep candidate-pool order
    ordered = sorted(scored, key=lambda s: s.confidence_score, reverse=True)
    free = unconditional_slots(n, diversity_factor)

    selected: List[ScoredCandidate] = []
    seen_ids: Set[str] = set()
    seen_genres: Set[str] = set()
    for candidate in ordered:
        if len(selected) >= n:
            break
        if candidate.id in seen_ids:
            continue
        genres = {g.lower() for g in candidate.genres} or {UNKNOWN_GENRE}
        if len(selected) >= free and not (genres - seen_genres):
            continue
        selected.append(candidate)
        seen_ids.add(candidate.id)
        seen_genres |= genres
    return selected


def genre_diversity_score(items: List[ScoredCandidate]) -> float:
    """Distinct genres per returned item, 2 decimals; 0 for an empty list."""
    if not items:
        return 0.0
    genres = {g.lower() for s in items for g in s.genres}
    return round(len(genres) / len(items), 2)
