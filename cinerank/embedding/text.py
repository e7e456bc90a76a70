"""
Embedding text strategy for catalog items and user context.

Changes to these formulas require regenerating stored item embeddings
(bump STRATEGY_VERSION so stores keyed by it stop serving stale vectors).

Item embedding = normalized average of:
    content text:  "{plot}. {title}. Year: {year}"
    metadata text: "Genres: {genres}. Director: {directors}. Cast: {cast}. Rating: {rating}"
"""

from typing import List, Optional

from ..models.candidate import CandidateItem
from ..models.history import HistoryRow

STRATEGY_VERSION = "1.0"

# Cast members beyond this are left out of the metadata text.
MAX_CAST_IN_TEXT = 5


def get_content_text(item: CandidateItem) -> str:
    """Plot, title and year. Falls back to the title alone."""
    parts = []
    if item.plot:
        parts.append(item.plot.strip().rstrip("."))
    if item.title:
        parts.append(item.title.strip())
    if item.year:
        parts.append(f"Year: {item.year}")
    text = ". ".join(p for p in parts if p)
    return text or item.title or f"Item {item.id}"


def get_metadata_text(item: CandidateItem) -> Optional[str]:
    """Genres, directors, cast and rating; None when the item carries none of them."""
    parts = []
    if item.genres:
        parts.append(f"Genres: {', '.join(item.genres)}")
    if item.directors:
        parts.append(f"Director: {', '.join(item.directors)}")
    if item.cast:
        parts.append(f"Cast: {', '.join(item.cast[:MAX_CAST_IN_TEXT])}")
    if item.rating is not None:
        parts.append(f"Rating: {item.rating:g}")
    return ". ".join(parts) if parts else None


def get_history_text(row: HistoryRow) -> str:
    """Storyline text for a history item (plot and title), same shape as get_content_text."""
    return get_content_text(
        CandidateItem(id=row.item_id, title=row.title, plot=row.plot, genres=row.genres)
    )


def get_context_text(
    query: str = "",
    genres: Optional[List[str]] = None,
    mood: str = "",
    memories: Optional[List[str]] = None,
) -> List[str]:
    """
    Context parts in fixed order: query, genres, mood, memories.
    Returns only the parts that are present; callers join them.
    """
    parts = []
    if query and query.strip():
        parts.append(f"User query: {query.strip()}")
    if genres:
        parts.append(f"Preferred genres: {', '.join(genres)}")
    if mood and mood.strip():
        parts.append(f"Mood: {mood.strip()}")
    if memories:
        parts.append(f"Previous preferences: {'; '.join(memories)}")
    return parts
