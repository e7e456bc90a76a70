"""
History store abstraction (read-only).

Supplies per-user rating/watchlist rows to the profiler and boost prerequisites.
Implementations: in-memory (tests), JSON file (local).
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union

from ..errors import UpstreamUnavailable
from ..models.history import HistoryRow, ensure_history

logger = logging.getLogger(__name__)


class HistoryStore(Protocol):
    """Protocol for user history reads."""

    def get_history(self, user_id: str) -> List[HistoryRow]:
        """Return all history rows for user_id; empty list when the user has none."""
        ...


class InMemoryHistoryStore:
    """History held in a dict user_id -> rows."""

    def __init__(self, history: Optional[Dict[str, List[Union[Dict[str, Any], HistoryRow]]]] = None):
        self._history: Dict[str, List[HistoryRow]] = {
            user_id: ensure_history(rows) for user_id, rows in (history or {}).items()
        }

    def get_history(self, user_id: str) -> List[HistoryRow]:
        return list(self._history.get(user_id, []))

    def add(self, user_id: str, row: Union[Dict[str, Any], HistoryRow]) -> None:
        self._history.setdefault(user_id, []).extend(ensure_history([row]))


class JsonHistoryStore(InMemoryHistoryStore):
    """
    History backed by a JSON file: {user_id: [row, ...]}.
    Used when HISTORY_JSON_PATH is set.
    """

    def __init__(self, path: Union[Path, str]):
        self.path = Path(path)
        if not self.path.exists():
            raise FileNotFoundError(f"History JSON not found: {self.path}")
        try:
            with open(self.path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise UpstreamUnavailable("history_store", f"{self.path}: {e}") from e
        super().__init__(data)
        logger.info("[history_store] LOADED path=%s users=%s", self.path, len(data))
