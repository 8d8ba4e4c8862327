# ============================================================
# SQDesk - Terminal SQL Client
# tests/test_sources.py - Keyword, schema, history and AI sources
# ============================================================

import pytest

from core.completion.engine import CompletionEngine
from core.completion.sources import AISource, ColumnInfo, HistorySource, KeywordSource, SchemaSource
from core.completion.sources.ai import build_prompt, parse_suggestions
from core.completion.sources.keywords import relevant_categories
from core.completion.sources.schema import find_table, should_suggest_columns, should_suggest_tables
from core.completion.types import ItemKind
from tests.fakes import FakeProvider


def ctx(query: str, cursor: int = None, tables=None):
    return CompletionEngine().build_context(query, len(query) if cursor is None else cursor, "shop", tables)


@pytest.fixture
def schema():
    source = SchemaSource()
    source.load_schema({
        "users": [
            ColumnInfo("id", "int", nullable=False, primary_key=True),
            ColumnInfo("email", "varchar(255)"),
        ],
        "orders": [
            ColumnInfo("id", "int", nullable=False, primary_key=True),
            ColumnInfo("user_id", "int"),
        ],
    })
    return source


class TestKeywordSource:

    @pytest.mark.parametrize("prefix,expected", [
        ("", ["start"]),
        ("SELECT *", ["select"]),
        ("DELETE FROM t", ["select"]),
        ("CREATE TABLE t (id", ["types"]),
        ("GRANT", ["select"]),
    ])
    def test_categories(self, prefix, expected):
        assert relevant_categories(prefix) == expected

    def test_statement_start_offers_start_keywords(self):
        items = KeywordSource().complete(ctx("SEL"))
        scores = {i.label: i.score for i in items if i.kind is ItemKind.KEYWORD}
        assert scores["SELECT"] == 70
        assert scores["INSERT"] == 40
        assert "FROM" not in scores

    def test_functions_always_offered(self):
        items = KeywordSource().complete(ctx("SELECT "))
        functions = [i for i in items if i.kind is ItemKind.FUNCTION]
        assert functions
        count = next(i for i in functions if i.label == "COUNT()")
        assert count.insert_text == "COUNT()"
        assert count.filter_text == "COUNT"
        assert count.score == 35

    def test_keywords_insert_trailing_space(self):
        items = KeywordSource().complete(ctx("SELECT * FR"))
        from_item = next(i for i in items if i.label == "FROM")
        assert from_item.insert_text == "FROM "

    def test_create_offers_types(self):
        labels = {i.label for i in KeywordSource().complete(ctx("CREATE TABLE t (id IN"))}
        assert "INT" in labels
        assert "SELECT" not in labels


class TestSchemaSource:

    @pytest.mark.parametrize("prefix", ["SELECT * FROM", "UPDATE", "INSERT INTO", "SELECT A FROM T JOIN"])
    def test_table_triggers(self, prefix):
        assert should_suggest_tables(prefix)

    @pytest.mark.parametrize("prefix", ["SELECT", "SELECT * FROM T WHERE", "ORDER BY", "USERS."])
    def test_column_triggers(self, prefix):
        assert should_suggest_columns(prefix)

    def test_tables_after_from(self, schema):
        items = schema.complete(ctx("SELECT * FROM "))
        tables = [i.label for i in items if i.kind is ItemKind.TABLE]
        assert tables == ["users", "orders"]
        assert all(i.score == 90 for i in items if i.kind is ItemKind.TABLE)

    def test_columns_after_select(self, schema):
        items = schema.complete(ctx("SELECT "))
        assert {i.label for i in items} == {"id", "email", "user_id"}
        assert all(i.kind is ItemKind.COLUMN and i.score == 85 for i in items)

    def test_qualified_columns_only_from_that_table(self, schema):
        items = schema.complete(ctx("SELECT Users."))
        assert [i.label for i in items] == ["id", "email"]
        assert items[0].detail == "users.id (int PRIMARY KEY NOT NULL)"

    def test_unknown_qualifier_falls_back_to_triggers(self, schema):
        items = schema.complete(ctx("nothing."))
        assert {i.label for i in items} == {"id", "email", "user_id"}

    def test_no_trigger_no_items(self, schema):
        assert schema.complete(ctx("us")) == []

    def test_load_from_strings_and_clear(self):
        source = SchemaSource()
        source.load_from_strings(["a", "b"])
        assert source.tables == ["a", "b"]
        assert source.columns_for("a") == []
        source.clear()
        assert source.tables == []

    def test_columns_for_is_case_insensitive(self, schema):
        assert [c.name for c in schema.columns_for("ORDERS")] == ["id", "user_id"]
        assert find_table("USERS", ["users", "orders"]) == "users"
        assert find_table("nope", ["users"]) is None


class TestHistorySource:

    def test_capacity_evicts_oldest(self):
        history = HistorySource(capacity=3)
        for i in range(5):
            history.add_query(f"SELECT {i}")
        assert history.entries == ("SELECT 4", "SELECT 3", "SELECT 2")

    def test_re_running_moves_to_front(self):
        history = HistorySource()
        history.add_query("SELECT 1")
        history.add_query("SELECT 2")
        history.add_query("SELECT 1")
        assert history.entries == ("SELECT 1", "SELECT 2")

    def test_blank_queries_ignored(self):
        history = HistorySource()
        history.add_query("   ")
        assert history.entries == ()

    def test_matches_line_prefix_most_recent_first(self):
        history = HistorySource()
        history.add_query("SELECT * FROM orders")
        history.add_query("UPDATE users SET x = 1")
        history.add_query("select * from users")
        items = history.complete(ctx("SELECT * FR"))
        assert [i.insert_text for i in items] == ["select * from users", "SELECT * FROM orders"]
        assert [i.score for i in items] == [60, 58]

    def test_suggestions_capped(self):
        history = HistorySource(max_suggestions=5)
        for i in range(10):
            history.add_query(f"SELECT {i}")
        assert len(history.complete(ctx("SEL"))) == 5

    def test_label_collapsed_and_truncated(self):
        history = HistorySource()
        history.add_query("SELECT id,\n       email\nFROM users WHERE created_at > NOW() - INTERVAL 7 DAY")
        label = history.complete(ctx(""))[0].label
        assert "\n" not in label
        assert len(label) == 50
        assert label.endswith("...")


class TestAISource:

    def test_short_word_never_calls_provider(self):
        provider = FakeProvider("SELECT 1")
        source = AISource(provider)
        assert source.complete(ctx("SELECT us")) == []
        assert provider.prompts == []

    def test_disabled_without_provider(self):
        source = AISource()
        assert not source.enabled
        assert source.complete(ctx("SELECT user")) == []

    def test_items_scored_in_reply_order(self):
        provider = FakeProvider("1. users\n2) user_id\n- user_email\n* `username`")
        source = AISource(provider)
        items = source.complete(ctx("SELECT user"))
        assert [i.insert_text for i in items] == ["users", "user_id", "user_email", "username"]
        assert [i.score for i in items] == [25, 24, 23, 22]
        assert all(i.kind is ItemKind.AI for i in items)

    def test_prompt_mentions_word_and_tables(self):
        provider = FakeProvider("users")
        AISource(provider).complete(ctx("SELECT * FROM use", tables=["users", "orders"]))
        assert '"use"' in provider.prompts[0]
        assert "users, orders" in provider.prompts[0]

    def test_cache_until_ttl(self):
        now = [100.0]
        provider = FakeProvider("users")
        source = AISource(provider, cache_ttl=300.0, clock=lambda: now[0])
        context = ctx("SELECT user")
        source.complete(context)
        source.complete(context)
        assert len(provider.prompts) == 1
        now[0] += 301
        source.complete(context)
        assert len(provider.prompts) == 2

    def test_storing_prunes_expired_entries(self):
        now = [100.0]
        source = AISource(FakeProvider("users"), cache_ttl=300.0, clock=lambda: now[0])
        source.complete(ctx("SELECT user"))
        source.complete(ctx("SELECT * FROM orde"))
        assert len(source._cache) == 2
        now[0] += 301
        source.complete(ctx("SELECT * FROM paym"))
        assert len(source._cache) == 1

    def test_timeout_raises(self):
        source = AISource(FakeProvider("users", delay=1.0), timeout=0.05)
        try:
            with pytest.raises(TimeoutError):
                source.complete(ctx("SELECT user"))
        finally:
            source.close()

    def test_parse_suggestions_strips_noise(self):
        reply = "<think>hmm</think>\n```sql\n1. SELECT * FROM users\n\n• LIMIT 10\n```"
        assert parse_suggestions(reply) == ["SELECT * FROM users", "LIMIT 10"]

    def test_markers_need_trailing_space(self):
        assert parse_suggestions("1.5\n*\n-1\n- users\n3) orders") == ["1.5", "*", "-1", "users", "orders"]

    def test_build_prompt(self):
        prompt = build_prompt(ctx("SELECT * FROM use", tables=["users"]))
        assert "SELECT * FROM use" in prompt
        assert "Available tables: users" in prompt
