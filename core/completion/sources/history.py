# ============================================================
# SQDesk - Terminal SQL Client
# core/completion/sources/history.py - Executed Query History Source
# ============================================================

from typing import List, Tuple

from core.completion.types import CompletionContext, CompletionItem, CompletionSource, ItemKind
from utils.helpers import collapse_whitespace, truncate_string

HISTORY_SCORE = 60
LABEL_WIDTH = 50


class HistorySource(CompletionSource):
    """
    Most-recent-first list of executed queries, de-duplicated by exact text.

    Single writer: only the query-execution flow calls add_query().
    """

    name = "history"
    priority = 70

    def __init__(self, capacity: int = 100, max_suggestions: int = 5):
        self.capacity = capacity
        self.max_suggestions = max_suggestions
        self._entries: List[str] = []

    def add_query(self, query: str) -> None:
        query = query.strip()
        if not query:
            return
        if query in self._entries:
            self._entries.remove(query)
        self._entries.insert(0, query)
        del self._entries[self.capacity:]

    @property
    def entries(self) -> Tuple[str, ...]:
        return tuple(self._entries)

    def clear(self) -> None:
        self._entries = []

    def complete(self, context: CompletionContext) -> List[CompletionItem]:
        prefix = context.line_prefix
        items = []
        for position, query in enumerate(tuple(self._entries)):
            if prefix and not query.upper().startswith(prefix):
                continue
            items.append(CompletionItem(
                label=truncate_string(collapse_whitespace(query), LABEL_WIDTH),
                insert_text=query,
                kind=ItemKind.HISTORY,
                detail="From history",
                source=self.name,
                score=HISTORY_SCORE - position,
                filter_text=query,
            ))
            if len(items) >= self.max_suggestions:
                break
        return items
