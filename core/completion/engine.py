# ============================================================
# SQDesk - Terminal SQL Client
# core/completion/engine.py - Multi-source Completion Engine
# ============================================================
#
# complete() fans a CompletionContext out to every registered source in
# a request-scoped thread pool, waits for all of them, and merges what
# came back. A source that raises (the AI source raises on its own
# deadline) contributes nothing and is logged at debug level.
#
#   context ─▶ cache? ─▶ fan-out ─▶ merge ─▶ filter/boost ─▶ rank ─▶ cap
# ============================================================

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from loguru import logger

from config import CompletionConfig
from core.buffer import Buffer
from core.completion.types import CompletionContext, CompletionItem, CompletionSource

PREFIX_BONUS = 100
CONTAINS_BONUS = 50


class CompletionEngine:
    """Priority-ordered source registry plus a (word, line prefix) result cache."""

    def __init__(self, config: Optional[CompletionConfig] = None):
        self.config = config or CompletionConfig()
        self._sources: Tuple[CompletionSource, ...] = ()
        self._cache: Dict[str, List[CompletionItem]] = {}
        self._generation = 0
        self._lock = threading.Lock()

    # ── Registry ──────────────────────────────────────────────

    def register(self, source: CompletionSource) -> None:
        """Add a source. The list is re-sorted here, never per request."""
        with self._lock:
            ordered = sorted(self._sources + (source,), key=lambda s: -s.priority)
            self._sources = tuple(ordered)
            self._cache.clear()
            self._generation += 1
        logger.debug(f"Registered completion source '{source.name}' (priority {source.priority})")

    def unregister(self, name: str) -> None:
        with self._lock:
            self._sources = tuple(s for s in self._sources if s.name != name)
            self._cache.clear()
            self._generation += 1

    @property
    def sources(self) -> Tuple[CompletionSource, ...]:
        return self._sources

    def get_source(self, name: str) -> Optional[CompletionSource]:
        for source in self._sources:
            if source.name == name:
                return source
        return None

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()
            self._generation += 1

    # ── Completion ────────────────────────────────────────────

    def build_context(
        self,
        query: str,
        cursor: int,
        database: str = "",
        tables: Optional[List[str]] = None,
    ) -> CompletionContext:
        buffer = Buffer(query)
        cursor = buffer.clamp(cursor)
        word_start = buffer.word_start(cursor)
        line_start = query.rfind("\n", 0, cursor) + 1
        return CompletionContext(
            query=query,
            cursor=cursor,
            word=query[word_start:cursor],
            word_start=word_start,
            database=database,
            tables=list(tables or []),
            line_prefix=query[line_start:cursor].strip().upper(),
        )

    def complete(
        self,
        query: str,
        cursor: int,
        database: str = "",
        tables: Optional[List[str]] = None,
    ) -> List[CompletionItem]:
        """Ranked, de-duplicated completions for `query` at `cursor`."""
        return self.complete_context(self.build_context(query, cursor, database, tables))

    def complete_context(self, context: CompletionContext) -> List[CompletionItem]:
        cache_key = f"{context.word}|{context.line_prefix}"
        with self._lock:
            cached = self._cache.get(cache_key)
            sources = self._sources
            generation = self._generation
        if cached is not None:
            return list(cached)

        items = self._fan_out(sources, context)
        if context.word:
            items = self._filter(items, context.word)

        items.sort(key=lambda item: item.score, reverse=True)
        items = self._dedupe(items)[: self.config.max_items]

        with self._lock:
            # A clear during the fan-out means these items may predate it.
            if generation == self._generation:
                self._cache[cache_key] = items
        return list(items)

    def _fan_out(self, sources: Tuple[CompletionSource, ...], context: CompletionContext) -> List[CompletionItem]:
        if not sources:
            return []

        with ThreadPoolExecutor(max_workers=len(sources), thread_name_prefix="completion") as pool:
            futures = [(source, pool.submit(source.complete, context)) for source in sources]

        items: List[CompletionItem] = []
        for source, future in futures:
            try:
                items.extend(future.result() or [])
            except Exception as e:
                logger.debug(f"Completion source '{source.name}' failed: {type(e).__name__}: {e}")
        return items

    @staticmethod
    def _filter(items: List[CompletionItem], word: str) -> List[CompletionItem]:
        """Keep prefix / substring matches of `word`, boosted. Returns copies."""
        needle = word.lower()
        result = []
        for item in items:
            text = item.match_text.lower()
            if text.startswith(needle):
                result.append(replace(item, score=item.score + PREFIX_BONUS))
            elif needle in text:
                result.append(replace(item, score=item.score + CONTAINS_BONUS))
        return result

    @staticmethod
    def _dedupe(items: List[CompletionItem]) -> List[CompletionItem]:
        seen = set()
        result = []
        for item in items:
            key = (item.kind, item.insert_text)
            if key in seen:
                continue
            seen.add(key)
            result.append(item)
        return result
