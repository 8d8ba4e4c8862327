# ============================================================
# SQDesk - Terminal SQL Client
# core/history.py - Undo / Redo Snapshot History
# ============================================================

from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class HistoryEntry:
    """A saved (text, cursor) pair."""
    text: str
    cursor: int


class EditHistory:
    """
    Ordered snapshots plus a current index.

    Snapshots are taken on semantic boundaries (space, enter, around
    destructive edits), not per keystroke. Pushing discards the redo tail;
    a snapshot whose text equals the current entry is dropped.
    """

    def __init__(self, max_entries: int = 500):
        self._entries: List[HistoryEntry] = []
        self._index: int = -1
        self._max_entries = max_entries

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def index(self) -> int:
        return self._index

    @property
    def current(self) -> Optional[HistoryEntry]:
        if 0 <= self._index < len(self._entries):
            return self._entries[self._index]
        return None

    def can_undo(self) -> bool:
        return self._index > 0

    def can_redo(self) -> bool:
        return self._index < len(self._entries) - 1

    def snapshot(self, text: str, cursor: int) -> bool:
        """Record a snapshot. Returns False when it was suppressed as a duplicate."""
        current = self.current
        if current is not None and current.text == text:
            return False

        del self._entries[self._index + 1:]
        self._entries.append(HistoryEntry(text, cursor))

        if len(self._entries) > self._max_entries:
            del self._entries[0]
        self._index = len(self._entries) - 1
        return True

    def undo(self, text: str, cursor: int) -> Optional[HistoryEntry]:
        """
        Step back one entry. The live (text, cursor) is recorded first so a
        matching number of redo() calls lands exactly where undo started.
        """
        current = self.current
        if current is not None and current.text == text:
            self._entries[self._index] = HistoryEntry(text, cursor)
        else:
            self.snapshot(text, cursor)

        if not self.can_undo():
            return None
        self._index -= 1
        return self._entries[self._index]

    def redo(self) -> Optional[HistoryEntry]:
        if not self.can_redo():
            return None
        self._index += 1
        return self._entries[self._index]

    def clear(self):
        self._entries.clear()
        self._index = -1
