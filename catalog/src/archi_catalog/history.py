from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from .utils import Clock, utc_now

MAX_HISTORY_ENTRIES = 20


@dataclass
class SearchHistoryEntry:
    query: str
    searched_at: str
    count: int = 1

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class SearchHistory:
    """Most-recent-first log of the free-text queries of one session."""

    def __init__(self, limit: int = MAX_HISTORY_ENTRIES, clock: Clock = utc_now) -> None:
        self._limit = limit
        self._clock = clock
        self._entries: list[SearchHistoryEntry] = []

    @property
    def entries(self) -> list[SearchHistoryEntry]:
        return list(self._entries)

    def record(self, query: str) -> SearchHistoryEntry | None:
        text = query.strip()
        if not text:
            return None
        searched_at = self._clock().isoformat()
        for entry in self._entries:
            if entry.query == text:
                entry.count += 1
                entry.searched_at = searched_at
                return entry
        entry = SearchHistoryEntry(query=text, searched_at=searched_at)
        self._entries.insert(0, entry)
        del self._entries[self._limit :]
        return entry
