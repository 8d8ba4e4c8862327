# ============================================================
# SQDesk - Terminal SQL Client
# tests/test_buffer.py - Buffer offset arithmetic and edit history
# ============================================================

import pytest

from core.buffer import Buffer, Selection
from core.history import EditHistory


class TestBufferOffsets:
    """Line/column translation is derived from the text and always clamped."""

    def test_line_col_round_trip(self):
        buf = Buffer("SELECT *\nFROM users\nWHERE id = 1")
        offset = buf.offset_of(1, 5)
        assert buf.slice(offset, offset + 5) == "users"
        assert buf.line_col(offset) == (1, 5)

    def test_offset_of_clamps_line_and_column(self):
        buf = Buffer("ab\ncd")
        assert buf.offset_of(1, 99) == 5
        assert buf.offset_of(42, 0) == 3
        assert buf.offset_of(-1, -1) == 0

    @pytest.mark.parametrize("offset,expected", [(-5, 0), (3, 3), (100, 6)])
    def test_clamp(self, offset, expected):
        assert Buffer("SELECT").clamp(offset) == expected

    def test_line_bounds(self):
        buf = Buffer("one\ntwo\nthree")
        assert buf.line_count == 3
        assert buf.line_start(2) == 8
        assert buf.line_end(1) == 7
        assert buf.line_text(5) == "three"

    def test_empty_buffer_has_one_line(self):
        buf = Buffer()
        assert buf.line_count == 1
        assert buf.line_col(10) == (0, 0)


class TestBufferMutation:

    def test_insert_returns_offset_after_text(self):
        buf = Buffer("SELECT FROM")
        assert buf.insert(7, "* ") == 9
        assert buf.text == "SELECT * FROM"

    def test_delete_accepts_reversed_range(self):
        buf = Buffer("SELECT * FROM")
        assert buf.delete(8, 6) == " *"
        assert buf.text == "SELECT FROM"

    def test_replace_clamps_out_of_range(self):
        buf = Buffer("abc")
        assert buf.replace(1, 50, "XY") == 3
        assert buf.text == "aXY"


class TestWords:

    def test_word_before_cursor(self):
        buf = Buffer("SELECT * FROM us")
        assert buf.word_before(len(buf)) == "us"
        assert buf.word_start(len(buf)) == 14

    def test_word_before_after_dot_is_empty(self):
        buf = Buffer("SELECT users.")
        assert buf.word_before(len(buf)) == ""

    def test_previous_word_boundary_skips_trailing_spaces(self):
        buf = Buffer("SELECT name  ")
        assert buf.previous_word_boundary(len(buf)) == 7

    def test_previous_word_boundary_on_punctuation(self):
        buf = Buffer("count(*)")
        assert buf.previous_word_boundary(len(buf)) == 5


class TestSelection:

    def test_normalized_orders_ends(self):
        assert Selection(9, 2).normalized() == (2, 9)
        assert Selection(2, 2).is_empty


class TestEditHistory:
    """Snapshots, duplicate suppression, redo truncation."""

    def test_duplicate_snapshot_is_suppressed(self):
        history = EditHistory()
        assert history.snapshot("a", 1)
        assert not history.snapshot("a", 0)
        assert len(history) == 1

    def test_undo_then_redo_lands_on_live_state(self):
        history = EditHistory()
        history.snapshot("a", 1)
        history.snapshot("ab", 2)
        live_text, live_cursor = "abc", 3

        assert history.undo(live_text, live_cursor).text == "ab"
        assert history.undo("ab", 2).text == "a"
        assert history.undo("a", 1) is None
        assert history.redo().text == "ab"
        entry = history.redo()
        assert (entry.text, entry.cursor) == (live_text, live_cursor)
        assert history.redo() is None

    def test_new_snapshot_discards_redo_tail(self):
        history = EditHistory()
        history.snapshot("a", 1)
        history.snapshot("ab", 2)
        history.undo("ab", 2)
        history.snapshot("aX", 2)
        assert not history.can_redo()
        assert history.current.text == "aX"

    def test_oldest_entry_dropped_at_capacity(self):
        history = EditHistory(max_entries=3)
        for text in ("a", "b", "c", "d"):
            history.snapshot(text, 0)
        assert len(history) == 3
        history.undo("d", 0)
        history.undo("c", 0)
        assert history.current.text == "b"
        assert not history.can_undo()
