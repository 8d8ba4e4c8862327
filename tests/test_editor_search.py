# ============================================================
# SQDesk - Terminal SQL Client
# tests/test_editor_search.py - Search / replace and goto-line overlays
# ============================================================

from core.search import SearchState, find_all
from tests.fakes import make_editor, type_text

QUERY = "SELECT * FROM users FROM orders"


class TestFindAll:

    def test_matches_left_to_right(self):
        assert find_all(QUERY, "FROM") == [9, 20]

    def test_case_sensitive(self):
        assert find_all(QUERY, "from") == []

    def test_empty_query_has_no_matches(self):
        assert find_all(QUERY, "") == []


class TestSearchState:

    def test_next_wraps_to_first(self):
        state = SearchState(query="FROM")
        state.refresh(QUERY)
        assert state.current_match == 9
        assert state.next() == 20
        assert state.next() == 9

    def test_prev_wraps_to_last(self):
        state = SearchState(query="FROM")
        state.refresh(QUERY)
        assert state.prev() == 20

    def test_status(self):
        state = SearchState(query="FROM")
        state.refresh(QUERY)
        assert state.status == "(1/2)"
        state.query = "nothing"
        state.refresh(QUERY)
        assert state.status == ""
        assert state.next() is None


class TestEditorSearch:
    """Typing into the search overlay moves the cursor to the current match."""

    def test_incremental_search_and_find_next(self):
        ed = make_editor(QUERY, cursor=0)
        ed.handle_key("ctrl+f")
        type_text(ed, "FROM")
        assert ed.search.matches == [9, 20]
        assert ed.cursor == 9
        ed.handle_key("f3")
        assert ed.cursor == 20
        ed.handle_key("f3")
        assert ed.cursor == 9
        ed.handle_key("shift+f3")
        assert ed.cursor == 20

    def test_overlay_swallows_normal_mode_keys(self):
        ed = make_editor(QUERY, cursor=0)
        ed.handle_key("ctrl+f")
        ed.handle_key("x", "x")
        assert ed.get_value() == QUERY
        assert ed.search.query == "x"

    def test_backspace_edits_query(self):
        ed = make_editor(QUERY, cursor=0)
        ed.handle_key("ctrl+f")
        type_text(ed, "FROMX")
        assert ed.search.matches == []
        ed.handle_key("backspace")
        assert ed.search.query == "FROM"
        assert ed.search.matches == [9, 20]

    def test_no_match_leaves_cursor(self):
        ed = make_editor(QUERY, cursor=3)
        ed.set_search_query("JOIN")
        assert ed.cursor == 3
        ed.action_find_next()
        assert ed.cursor == 3

    def test_escape_cancels(self):
        ed = make_editor(QUERY, cursor=0)
        ed.handle_key("ctrl+f")
        ed.handle_key("escape")
        assert ed.search is None

    def test_matches_follow_edits(self):
        ed = make_editor(QUERY, cursor=0)
        ed.set_search_query("FROM")
        ed.insert_text("-- ")
        assert ed.search.matches == [12, 23]


class TestEditorReplace:

    def test_replace_current_match(self):
        ed = make_editor(QUERY, cursor=0)
        ed.handle_key("ctrl+h")
        type_text(ed, "FROM")
        ed.handle_key("tab")
        type_text(ed, "JOIN")
        ed.handle_key("enter")
        assert ed.get_value() == "SELECT * JOIN users FROM orders"
        assert ed.search.matches == [20]

    def test_replace_all(self):
        ed = make_editor(QUERY, cursor=0)
        ed.set_search_query("FROM")
        ed.set_replace_query("JOIN")
        ed.handle_key("ctrl+enter")
        assert ed.get_value() == "SELECT * JOIN users JOIN orders"

    def test_replace_all_is_undoable(self):
        ed = make_editor(QUERY, cursor=0)
        ed.set_search_query("FROM")
        ed.set_replace_query("JOIN")
        ed.replace_all()
        ed.cancel_search()
        ed.handle_key("u")
        assert ed.get_value() == QUERY

    def test_empty_replacement_is_noop(self):
        ed = make_editor(QUERY, cursor=0)
        ed.set_search_query("FROM")
        ed.set_replace_query("")
        ed.replace_all()
        ed.replace_current()
        assert ed.get_value() == QUERY

    def test_tab_switches_field_only_in_replace_mode(self):
        ed = make_editor(QUERY, cursor=0)
        ed.handle_key("ctrl+f")
        ed.handle_key("tab")
        assert not ed.search.editing_replace
        ed.cancel_search()
        ed.handle_key("ctrl+h")
        ed.handle_key("tab")
        assert ed.search.editing_replace


class TestGotoLine:
    """Bad input cancels silently; out-of-range numbers clamp."""

    TEXT = "SELECT *\nFROM users\nWHERE id = 1"

    def test_jump_to_line(self):
        ed = make_editor(self.TEXT, cursor=0)
        ed.handle_key("ctrl+g")
        ed.handle_key("2")
        ed.handle_key("enter")
        assert ed.goto_line_input is None
        assert ed.cursor == 9

    def test_large_number_clamps_to_last_line(self):
        ed = make_editor(self.TEXT, cursor=0)
        ed.goto_line("99")
        assert ed.cursor_line_col == (2, 0)

    def test_zero_cancels_without_moving(self):
        ed = make_editor(self.TEXT, cursor=4)
        ed.handle_key("ctrl+g")
        ed.handle_key("0")
        ed.handle_key("enter")
        assert ed.goto_line_input is None
        assert ed.cursor == 4

    def test_empty_input_cancels(self):
        ed = make_editor(self.TEXT, cursor=4)
        ed.handle_key("ctrl+g")
        ed.handle_key("enter")
        assert ed.cursor == 4

    def test_non_digits_are_ignored(self):
        ed = make_editor(self.TEXT, cursor=4)
        ed.handle_key("ctrl+g")
        ed.handle_key("a", "a")
        ed.handle_key("3")
        assert ed.goto_line_input == "3"
        ed.handle_key("backspace")
        assert ed.goto_line_input == ""

    def test_superscript_digit_is_ignored(self):
        ed = make_editor(self.TEXT, cursor=4)
        ed.handle_key("ctrl+g")
        ed.handle_key("²", "²")
        assert ed.goto_line_input == ""
        ed.handle_key("enter")
        assert ed.goto_line_input is None
        assert ed.cursor == 4

    def test_goto_line_rejects_non_ascii_digits(self):
        ed = make_editor(self.TEXT, cursor=4)
        ed.goto_line("²")
        ed.goto_line("٣")
        assert ed.cursor == 4

    def test_junk_value_is_ignored(self):
        ed = make_editor(self.TEXT, cursor=4)
        ed.goto_line("two")
        assert ed.cursor == 4
