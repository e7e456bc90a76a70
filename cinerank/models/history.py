"""
History model: one row of a user's rating/watchlist history.

Read-only input to the behavioral profiler and the boost prerequisites.
Built from history-store dicts via HistoryRow.model_validate(d) or ensure_history().
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class HistoryRow(BaseModel):
    """
    A single item in the user's history.

    rating: the user's own rating on the 1-5 star scale, None when unrated.
    added_at: when the item entered the user's list (or was first interacted with).
    watched_at: when the user watched it; None means still unwatched.
    """

    model_config = ConfigDict(extra="allow")

    item_id: str
    genres: List[str] = Field(default_factory=list)
    rating: Optional[float] = None
    added_at: datetime
    watched_at: Optional[datetime] = None
    title: str = ""
    plot: Optional[str] = None
    directors: List[str] = Field(default_factory=list)
    cast: List[str] = Field(default_factory=list)

    @field_validator("added_at", "watched_at")
    @classmethod
    def _as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def watched(self) -> bool:
        return self.watched_at is not None

    @property
    def interaction_time(self) -> datetime:
        """Watch time when known, else the time the item was added."""
        return self.watched_at or self.added_at


def ensure_history(
    rows: List[Union[Dict[str, Any], "HistoryRow"]],
) -> List["HistoryRow"]:
    """Convert list of dicts or HistoryRows to list of HistoryRow models."""
    return [
        HistoryRow.model_validate(r) if isinstance(r, dict) else r
        for r in rows
    ]
