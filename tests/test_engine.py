# ============================================================
# SQDesk - Terminal SQL Client
# tests/test_engine.py - Fan-out, filtering, ranking, caching
# ============================================================

import threading
import time

from config import CompletionConfig
from core.completion.engine import CONTAINS_BONUS, PREFIX_BONUS, CompletionEngine
from core.completion.sources import AISource, KeywordSource
from core.completion.types import CompletionItem, ItemKind
from tests.fakes import BrokenSource, FakeProvider, StaticSource


def item(label: str, kind: ItemKind = ItemKind.KEYWORD, score: float = 10, insert_text: str = "") -> CompletionItem:
    return CompletionItem(label=label, insert_text=insert_text or label, kind=kind, score=score)


class TestRegistry:
    """Sources are ordered by priority once, at registration."""

    def test_sources_sorted_by_priority(self):
        engine = CompletionEngine()
        engine.register(StaticSource("low", 10, []))
        engine.register(StaticSource("high", 90, []))
        engine.register(StaticSource("mid", 50, []))
        assert [s.name for s in engine.sources] == ["high", "mid", "low"]

    def test_unregister_and_lookup(self):
        engine = CompletionEngine()
        engine.register(StaticSource("a", 1, []))
        engine.register(StaticSource("b", 2, []))
        engine.unregister("a")
        assert engine.get_source("a") is None
        assert engine.get_source("b").name == "b"


class TestFilteringAndRanking:

    def test_prefix_and_contains_bonuses(self):
        engine = CompletionEngine()
        engine.register(StaticSource("s", 1, [
            item("users", score=10),
            item("all_users", score=10),
            item("orders", score=10),
        ]))
        results = engine.complete("SELECT * FROM use", 17)
        assert [(r.label, r.score) for r in results] == [
            ("users", 10 + PREFIX_BONUS),
            ("all_users", 10 + CONTAINS_BONUS),
        ]

    def test_filter_is_case_insensitive(self):
        engine = CompletionEngine()
        engine.register(StaticSource("s", 1, [item("SELECT")]))
        assert [r.label for r in engine.complete("sel", 3)] == ["SELECT"]

    def test_empty_word_keeps_everything_unboosted(self):
        engine = CompletionEngine()
        engine.register(StaticSource("s", 1, [item("a", score=1), item("b", score=2)]))
        results = engine.complete("SELECT ", 7)
        assert [(r.label, r.score) for r in results] == [("b", 2), ("a", 1)]

    def test_source_items_are_not_mutated(self):
        shared = item("users", score=10)

        class SharedSource(StaticSource):
            def complete(self, context):
                return [shared]

        engine = CompletionEngine()
        engine.register(SharedSource("s", 1, []))
        engine.complete("use", 3)
        assert shared.score == 10

    def test_filter_text_overrides_label(self):
        engine = CompletionEngine()
        fn = CompletionItem(label="COUNT()", insert_text="COUNT()", kind=ItemKind.FUNCTION,
                            score=35, filter_text="COUNT")
        engine.register(StaticSource("s", 1, [fn]))
        assert engine.complete("cou", 3)[0].score == 35 + PREFIX_BONUS

    def test_results_capped(self):
        engine = CompletionEngine(CompletionConfig(max_items=20))
        engine.register(StaticSource("s", 1, [item(f"col{i}", score=i) for i in range(50)]))
        results = engine.complete("col", 3)
        assert len(results) == 20
        assert results[0].label == "col49"

    def test_duplicates_keep_best_score(self):
        engine = CompletionEngine()
        engine.register(StaticSource("a", 2, [item("users", ItemKind.TABLE, score=90)]))
        engine.register(StaticSource("b", 1, [item("users", ItemKind.TABLE, score=20)]))
        results = engine.complete("us", 2)
        assert len(results) == 1
        assert results[0].score == 90 + PREFIX_BONUS

    def test_same_text_different_kind_both_kept(self):
        engine = CompletionEngine()
        engine.register(StaticSource("s", 1, [
            item("status", ItemKind.COLUMN, score=85),
            item("status", ItemKind.AI, score=20),
        ]))
        assert len(engine.complete("sta", 3)) == 2

    def test_history_prefix_outranks_column_contains(self):
        """Additive scoring: a lower base score can win on a better match."""
        engine = CompletionEngine()
        engine.register(StaticSource("schema", 100, [item("user_id", ItemKind.COLUMN, score=85,
                                                          insert_text="user_id")]))
        engine.register(StaticSource("history", 70, [
            CompletionItem(label="id = 1", insert_text="SELECT id FROM t WHERE id = 1",
                           kind=ItemKind.HISTORY, score=60, filter_text="id = 1"),
        ]))
        results = engine.complete("SELECT * FROM t WHERE id", 24)
        assert [r.kind for r in results] == [ItemKind.HISTORY, ItemKind.COLUMN]
        assert results[0].score == 160
        assert results[1].score == 135


class TestIsolation:
    """One failing or slow source never takes the others down."""

    def test_broken_source_contributes_nothing(self):
        engine = CompletionEngine()
        engine.register(BrokenSource())
        engine.register(StaticSource("ok", 1, [item("SELECT")]))
        assert [r.label for r in engine.complete("SE", 2)] == ["SELECT"]

    def test_ai_timeout_does_not_block_result(self):
        ai = AISource(FakeProvider("SELECT 1", delay=1.0), timeout=0.05)
        engine = CompletionEngine()
        engine.register(KeywordSource())
        engine.register(ai)
        try:
            started = time.monotonic()
            results = engine.complete("SELE", 4)
            elapsed = time.monotonic() - started
        finally:
            ai.close()
        assert elapsed < 0.9
        assert results[0].label == "SELECT"
        assert all(r.kind is not ItemKind.AI for r in results)


class TestCache:

    def test_second_call_served_from_cache(self):
        source = StaticSource("s", 1, [item("users")])
        engine = CompletionEngine()
        engine.register(source)
        first = engine.complete("SELECT * FROM us", 16)
        second = engine.complete("SELECT * FROM us", 16)
        assert source.calls == 1
        assert [r.label for r in first] == [r.label for r in second]

    def test_cache_key_includes_line_prefix(self):
        source = StaticSource("s", 1, [item("users")])
        engine = CompletionEngine()
        engine.register(source)
        engine.complete("SELECT * FROM us", 16)
        engine.complete("UPDATE us", 9)
        assert source.calls == 2

    def test_clear_cache_forces_fan_out(self):
        source = StaticSource("s", 1, [item("users")])
        engine = CompletionEngine()
        engine.register(source)
        engine.complete("us", 2)
        engine.clear_cache()
        engine.complete("us", 2)
        assert source.calls == 2

    def test_register_invalidates_cache(self):
        engine = CompletionEngine()
        engine.register(StaticSource("a", 1, [item("users")]))
        engine.complete("us", 2)
        engine.register(StaticSource("b", 2, [item("usage", ItemKind.COLUMN)]))
        assert {r.label for r in engine.complete("us", 2)} == {"users", "usage"}

    def test_cached_list_is_a_copy(self):
        engine = CompletionEngine()
        engine.register(StaticSource("s", 1, [item("users")]))
        engine.complete("us", 2).clear()
        assert len(engine.complete("us", 2)) == 1

    def test_clear_during_fan_out_is_not_undone(self):
        """A request that started before a schema reload must not cache its items."""
        entered, release = threading.Event(), threading.Event()

        class GatedSource(StaticSource):
            def complete(self, context):
                items = super().complete(context)
                if self.calls == 1:
                    entered.set()
                    release.wait(2)
                return items

        source = GatedSource("schema", 1, [])
        engine = CompletionEngine()
        engine.register(source)

        stale = []
        worker = threading.Thread(target=lambda: stale.extend(engine.complete("SELECT * FROM us", 16)))
        worker.start()
        assert entered.wait(2)
        source.items = [item("users", ItemKind.TABLE, score=90)]
        engine.clear_cache()
        release.set()
        worker.join(2)

        assert stale == []
        assert [r.label for r in engine.complete("SELECT * FROM us", 16)] == ["users"]
        assert source.calls == 2


class TestContext:

    def test_build_context(self):
        engine = CompletionEngine()
        ctx = engine.build_context("SELECT 1;\nselect * from us", 26, "shop", ["users"])
        assert ctx.word == "us"
        assert ctx.word_start == 24
        assert ctx.line_prefix == "SELECT * FROM US"
        assert ctx.trigger_prefix == "SELECT * FROM"
        assert ctx.database == "shop"
        assert ctx.tables == ["users"]

    def test_cursor_is_clamped(self):
        ctx = CompletionEngine().build_context("SEL", 99)
        assert ctx.cursor == 3
        assert ctx.word == "SEL"
