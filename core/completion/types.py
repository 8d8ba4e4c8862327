# ============================================================
# SQDesk - Terminal SQL Client
# core/completion/types.py - Completion Data Model
# ============================================================

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import List


class ItemKind(Enum):
    KEYWORD = "keyword"
    TABLE = "table"
    COLUMN = "column"
    FUNCTION = "function"
    SNIPPET = "snippet"
    AI = "ai"
    HISTORY = "history"

    @property
    def icon(self) -> str:
        return _ICONS[self]

    @property
    def display_name(self) -> str:
        return self.value.upper() if self is ItemKind.AI else self.value.capitalize()


_ICONS = {
    ItemKind.KEYWORD: "🔤",
    ItemKind.TABLE: "📊",
    ItemKind.COLUMN: "📋",
    ItemKind.FUNCTION: "ƒ ",
    ItemKind.SNIPPET: "✂️",
    ItemKind.AI: "🤖",
    ItemKind.HISTORY: "📜",
}


@dataclass
class CompletionItem:
    """One suggestion. `filter_text` falls back to `label` when empty."""
    label: str
    insert_text: str
    kind: ItemKind
    detail: str = ""
    source: str = ""
    score: float = 0.0
    filter_text: str = ""

    @property
    def match_text(self) -> str:
        return self.filter_text or self.label


@dataclass(frozen=True)
class CompletionContext:
    """
    Snapshot of the buffer around the cursor.

    `line_prefix` is the upper-cased, trimmed text from the last line
    break to the cursor; it still contains the word being typed.
    """
    query: str
    cursor: int
    word: str
    word_start: int
    database: str = ""
    tables: List[str] = field(default_factory=list)
    line_prefix: str = ""

    @property
    def trigger_prefix(self) -> str:
        """The line prefix without the word being typed, for grammar triggers."""
        line_start = self.query.rfind("\n", 0, self.word_start) + 1
        return self.query[line_start:self.word_start].strip().upper()


class CompletionSource(ABC):
    """A provider of completion items. `complete` may raise; the engine isolates it."""

    name: str = "source"
    priority: int = 0

    @abstractmethod
    def complete(self, context: CompletionContext) -> List[CompletionItem]:
        ...
