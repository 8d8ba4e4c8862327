# ============================================================
# SQDesk - Terminal SQL Client
# core/search.py - Incremental Search & Replace State
# ============================================================

from dataclasses import dataclass, field
from typing import List, Optional


def find_all(text: str, query: str) -> List[int]:
    """Every (possibly overlapping) case-sensitive occurrence of `query`, left to right."""
    if not query:
        return []
    matches = []
    idx = text.find(query)
    while idx != -1:
        matches.append(idx)
        idx = text.find(query, idx + 1)
    return matches


@dataclass
class SearchState:
    """
    Lives from search start until cancel. `editing_replace` selects which
    field receives typed characters while in replace mode.
    """
    query: str = ""
    matches: List[int] = field(default_factory=list)
    index: int = 0
    replace_query: str = ""
    replace_mode: bool = False
    editing_replace: bool = False
    active: bool = True

    def refresh(self, text: str):
        self.matches = find_all(text, self.query)
        if self.index >= len(self.matches):
            self.index = 0

    @property
    def current_match(self) -> Optional[int]:
        if not self.matches:
            return None
        return self.matches[self.index]

    def next(self) -> Optional[int]:
        if not self.matches:
            return None
        self.index = (self.index + 1) % len(self.matches)
        return self.matches[self.index]

    def prev(self) -> Optional[int]:
        if not self.matches:
            return None
        self.index = (self.index - 1) % len(self.matches)
        return self.matches[self.index]

    @property
    def status(self) -> str:
        """Short "(i/n)" indicator for the search bar."""
        if not self.matches:
            return ""
        return f"({self.index + 1}/{len(self.matches)})"
