# ============================================================
# SQDesk - Terminal SQL Client
# core/completion/sources/ai.py - LLM-backed Completion Source
# ============================================================
#
# Lowest priority and the only source with a deadline. The provider
# call runs on this source's own executor; when the deadline passes the
# call is abandoned (left to finish in the background) and TimeoutError
# is raised so the engine logs it and moves on without these items.
# ============================================================

import re
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Callable, Dict, List, Optional, Tuple

from loguru import logger

from core.completion.types import CompletionContext, CompletionItem, CompletionSource, ItemKind
from utils.helpers import strip_think_blocks, truncate_string

AI_SCORE = 20
LABEL_WIDTH = 40

PROMPT_TEMPLATE = """Given this SQL query context, suggest completions.

Current query:
{query}

Cursor is at position {cursor}, current word being typed: "{word}"
Context: {line_prefix}
Available tables: {tables}

Provide 3-5 SQL completion suggestions. Each line should be a single completion.
Only output the completions, one per line."""

LIST_MARKER = re.compile(r"^(?:\d+[.)]|[-*•])\s+")


def build_prompt(context: CompletionContext) -> str:
    return PROMPT_TEMPLATE.format(
        query=context.query,
        cursor=context.cursor,
        word=context.word,
        line_prefix=context.line_prefix,
        tables=", ".join(context.tables),
    )


def parse_suggestions(response: str) -> List[str]:
    """One candidate per line, without list markers, fences or <think> blocks."""
    suggestions = []
    for line in strip_think_blocks(response).splitlines():
        line = line.strip()
        if not line or line.startswith("```"):
            continue
        line = LIST_MARKER.sub("", line).strip().strip("`").strip()
        if line:
            suggestions.append(line)
    return suggestions


class AISource(CompletionSource):
    name = "ai"
    priority = 30

    def __init__(
        self,
        provider=None,
        min_word_length: int = 3,
        timeout: float = 3.0,
        cache_ttl: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._provider = provider
        self.enabled = provider is not None
        self.min_word_length = min_word_length
        self.timeout = timeout
        self.cache_ttl = cache_ttl
        self._clock = clock
        self._cache: Dict[str, Tuple[float, List[CompletionItem]]] = {}
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="ai-completion")

    def set_provider(self, provider) -> None:
        self._provider = provider
        self.enabled = provider is not None

    @property
    def provider(self):
        return self._provider

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)

    def complete(self, context: CompletionContext) -> List[CompletionItem]:
        provider = self._provider
        if not self.enabled or provider is None:
            return []
        if len(context.word) < self.min_word_length:
            return []

        key = f"{context.line_prefix}|{context.word}"
        cached = self._cached(key)
        if cached is not None:
            return cached

        future = self._executor.submit(provider.nl2sql, build_prompt(context))
        try:
            response = future.result(timeout=self.timeout)
        except FutureTimeout as e:
            future.cancel()
            raise TimeoutError(f"AI completion exceeded {self.timeout:.1f}s") from e

        items = self._to_items(parse_suggestions(response or ""))
        self._store(key, items)
        logger.debug(f"AI completion returned {len(items)} suggestion(s) for {context.word!r}")
        return list(items)

    def _store(self, key: str, items: List[CompletionItem]) -> None:
        now = self._clock()
        with self._lock:
            expired = [k for k, (stored_at, _) in self._cache.items() if now - stored_at > self.cache_ttl]
            for k in expired:
                del self._cache[k]
            self._cache[key] = (now, items)

    def _cached(self, key: str) -> Optional[List[CompletionItem]]:
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            stored_at, items = entry
            if self._clock() - stored_at > self.cache_ttl:
                del self._cache[key]
                return None
            return list(items)

    def _to_items(self, suggestions: List[str]) -> List[CompletionItem]:
        return [
            CompletionItem(
                label=truncate_string(text, LABEL_WIDTH),
                insert_text=text,
                kind=ItemKind.AI,
                detail="AI Suggestion",
                source=self.name,
                score=AI_SCORE + (5 - position),
                filter_text=text,
            )
            for position, text in enumerate(suggestions)
        ]
