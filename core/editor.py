# ============================================================
# SQDesk - Terminal SQL Client
# core/editor.py - Modal SQL Editor State Machine
# ============================================================
#
# The Editor owns the buffer, cursor, selection, undo history and the
# search / goto-line overlays. It knows nothing about rendering or
# completion: the UI feeds it key and mouse events, reads its state to
# draw, and pushes completion results back through set_suggestion() or
# apply_completion().
#
# Modes:  NORMAL ──i──▶ INSERT ──esc──▶ NORMAL
#         NORMAL ──v──▶ VISUAL ──esc / yank / cut──▶ NORMAL
#         any ──select-all──▶ VISUAL (whole buffer)
#
# Offsets are never trusted: every index is clamped, and bad user
# input (goto-line, search without matches) is a silent no-op.
# ============================================================

from typing import Callable, Dict, List, Optional, Tuple

from loguru import logger

from config import EditorConfig
from core.buffer import Buffer, Selection
from core.clipboard import Clipboard, SystemClipboard
from core.history import EditHistory
from core.keymap import DispatchTable, EditorMode
from core.search import SearchState


# SQL vocabulary used for the inline ghost suggestion and highlighting.
SQL_KEYWORDS = [
    "SELECT", "FROM", "WHERE", "LIMIT", "OFFSET", "GROUP", "HAVING", "JOIN",
    "LEFT", "RIGHT", "INNER", "OUTER", "ON", "INSERT", "INTO", "VALUES",
    "UPDATE", "SET", "DELETE", "CREATE", "TABLE", "DROP", "ALTER", "INDEX",
    "VIEW", "AS", "DISTINCT", "UNION", "ALL", "CASE", "WHEN", "THEN", "ELSE", "END",
]

SQL_OPERATORS = [
    "AND", "OR", "NOT", "IN", "LIKE", "IS", "BETWEEN", "EXISTS", "TRUE", "FALSE", "NULL",
    "ORDER", "BY", "ASC", "DESC",
]

SQL_TYPES = [
    "INT", "INTEGER", "VARCHAR", "TEXT", "BOOLEAN", "DATE", "TIMESTAMP", "FLOAT", "DOUBLE", "CHAR", "BLOB",
]

SQL_FUNCTIONS = [
    "COUNT", "SUM", "AVG", "MIN", "MAX", "NOW", "COALESCE", "CONCAT", "SUBSTRING", "LENGTH",
]

COMMENT_PREFIX = "-- "
LINE_NUMBER_GUTTER = 5   # "%4d "

# (line, column, removed, inserted) for one per-line edit
LineEdit = Tuple[int, int, int, int]


class Editor:
    """
    Sublime/vim-flavoured SQL editor core.

    Every key or mouse event is processed to completion before the next
    one; nothing here is thread-safe and nothing needs to be.
    """

    def __init__(
        self,
        config: Optional[EditorConfig] = None,
        clipboard: Optional[Clipboard] = None,
        dispatch: Optional[DispatchTable] = None,
    ):
        self.config = config or EditorConfig()
        self.clipboard: Clipboard = clipboard or SystemClipboard()
        self.dispatch = dispatch or DispatchTable(self.config.keymap)

        self.buffer = Buffer()
        self._cursor: int = 0
        self.mode: EditorMode = EditorMode.NORMAL
        self.selection: Optional[Selection] = None
        self.history = EditHistory()

        # Overlays
        self.search: Optional[SearchState] = None
        self.goto_line_input: Optional[str] = None

        # Suggestions
        self.suggestion: str = ""
        self._schema: Dict[str, List[str]] = {}

        # View flags
        self.show_line_numbers: bool = self.config.show_line_numbers
        self.soft_wrap: bool = self.config.soft_wrap
        self.ruler_column: int = self.config.ruler_column

        # Viewport & mouse
        self.width: int = 60
        self.height: int = 10
        self.pos_x: int = 0
        self.pos_y: int = 0
        self.offset_y: int = 0
        self._mouse_down: bool = False
        self._mouse_start: int = 0

        self._snapshot()

    # ── Boundary used by the UI ───────────────────────────────

    def get_value(self) -> str:
        return self.buffer.text

    def set_value(self, value: str) -> None:
        """Replace the whole text (AI result, loaded file...). Undoable."""
        self._snapshot()
        self.buffer.text = value
        self._cursor = self.buffer.clamp(self._cursor)
        self.selection = None
        self.suggestion = ""
        self._after_text_change()
        self._snapshot()

    @property
    def cursor(self) -> int:
        return self._cursor

    def set_cursor(self, offset: int) -> None:
        self._cursor = self.buffer.clamp(offset)
        self.update_viewport()

    @property
    def cursor_line_col(self) -> Tuple[int, int]:
        return self.buffer.line_col(self._cursor)

    def has_active_selection(self) -> bool:
        return self.selection is not None and not self.selection.is_empty

    def selection_range(self) -> Optional[Tuple[int, int]]:
        """Normalized, clamped selection or None."""
        if self.selection is None:
            return None
        start, end = self.selection.normalized()
        return self.buffer.clamp(start), self.buffer.clamp(end)

    def get_selected_text(self) -> str:
        """The text to execute: the selection when one exists, else everything."""
        if self.has_active_selection():
            start, end = self.selection_range()
            if start < end:
                return self.buffer.slice(start, end)
        return self.buffer.text

    def insert_text(self, text: str) -> None:
        self._cursor = self.buffer.insert(self._cursor, text)
        self._after_text_change()

    def apply_completion(self, text: str, start: Optional[int] = None) -> None:
        """
        Replace the word before the cursor (or [start, cursor) when given)
        with an accepted completion.
        """
        self._snapshot()
        if start is None:
            start = self.buffer.word_start(self._cursor)
        start = min(self.buffer.clamp(start), self._cursor)
        self._cursor = self.buffer.replace(start, self._cursor, text)
        self.suggestion = ""
        self._after_text_change()
        self._snapshot()

    def set_schema(self, schema: Dict[str, List[str]]) -> None:
        """Table -> column names, used for the local ghost suggestion."""
        self._schema = dict(schema)

    def set_size(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self.update_viewport()

    def set_position(self, x: int, y: int) -> None:
        self.pos_x = x
        self.pos_y = y

    # ── Key Dispatch ──────────────────────────────────────────

    def handle_key(self, key: str, character: Optional[str] = None) -> bool:
        """
        Process one key. Returns True when the editor consumed it.
        Raises ClipboardError when a copy/cut/paste could not reach the
        system clipboard; the editor state is left unchanged in that case.
        """
        if character is None and len(key) == 1:
            character = key

        if self.goto_line_input is not None:
            return self._handle_goto_key(key)
        if self.search is not None:
            return self._handle_search_key(key, character)

        action = self.dispatch.lookup(self.mode, key)
        if action:
            handler: Callable[[], None] = getattr(self, f"action_{action}")
            handler()
            return True

        if self.mode is EditorMode.INSERT and character and character.isprintable():
            self._type(character)
            return True

        return False

    # ── Mode Transitions ──────────────────────────────────────

    def action_enter_insert(self) -> None:
        self.mode = EditorMode.INSERT
        self.selection = None

    def action_exit_insert(self) -> None:
        self.mode = EditorMode.NORMAL
        self.selection = None
        self.suggestion = ""

    def action_enter_visual(self) -> None:
        self.mode = EditorMode.VISUAL
        self.selection = Selection(self._cursor, self._cursor)

    def action_exit_visual(self) -> None:
        self.mode = EditorMode.NORMAL
        self.selection = None

    def action_select_all(self) -> None:
        self.mode = EditorMode.VISUAL
        self.selection = Selection(0, len(self.buffer))
        self.set_cursor(len(self.buffer))

    # ── Cursor Movement ───────────────────────────────────────

    def _move_horizontal(self, delta: int) -> None:
        self.set_cursor(self._cursor + delta)

    def _move_vertical(self, delta: int) -> None:
        line, col = self.cursor_line_col
        target = max(0, min(line + delta, self.buffer.line_count - 1))
        if target != line:
            self.set_cursor(self.buffer.offset_of(target, col))

    def _plain_move(self, mover: Callable[[], None]) -> None:
        mover()
        if self.mode is EditorMode.INSERT:
            self.selection = None
            self.suggestion = ""

    def action_cursor_left(self) -> None:
        self._plain_move(lambda: self._move_horizontal(-1))

    def action_cursor_right(self) -> None:
        self._plain_move(lambda: self._move_horizontal(1))

    def action_cursor_up(self) -> None:
        self._plain_move(lambda: self._move_vertical(-1))

    def action_cursor_down(self) -> None:
        self._plain_move(lambda: self._move_vertical(1))

    def action_line_start(self) -> None:
        line, _ = self.cursor_line_col
        self._plain_move(lambda: self.set_cursor(self.buffer.line_start(line)))

    def action_line_end(self) -> None:
        line, _ = self.cursor_line_col
        self._plain_move(lambda: self.set_cursor(self.buffer.line_end(line)))

    def _extend_selection(self, mover: Callable[[], None]) -> None:
        # Visual mode always has a selection; shift+arrow in Insert starts one.
        if self.selection is None:
            self.selection = Selection(self._cursor, self._cursor)
        mover()
        self.selection.end = self._cursor

    def action_select_left(self) -> None:
        self._extend_selection(lambda: self._move_horizontal(-1))

    def action_select_right(self) -> None:
        self._extend_selection(lambda: self._move_horizontal(1))

    def action_select_up(self) -> None:
        self._extend_selection(lambda: self._move_vertical(-1))

    def action_select_down(self) -> None:
        self._extend_selection(lambda: self._move_vertical(1))

    # ── History ───────────────────────────────────────────────

    def _snapshot(self) -> None:
        self.history.snapshot(self.buffer.text, self._cursor)

    def action_undo(self) -> None:
        entry = self.history.undo(self.buffer.text, self._cursor)
        if entry is not None:
            self._restore(entry.text, entry.cursor)

    def action_redo(self) -> None:
        entry = self.history.redo()
        if entry is not None:
            self._restore(entry.text, entry.cursor)

    def _restore(self, text: str, cursor: int) -> None:
        self.buffer.text = text
        self._cursor = self.buffer.clamp(cursor)
        if self.mode is EditorMode.VISUAL:
            self.mode = EditorMode.NORMAL
        self.selection = None
        self.suggestion = ""
        self._after_text_change()

    # ── Normal-mode Editing ───────────────────────────────────

    def action_delete_char(self) -> None:
        """Delete the character under the cursor (vim `x`)."""
        if self._cursor >= len(self.buffer):
            return
        self._snapshot()
        self.buffer.delete(self._cursor, self._cursor + 1)
        self._after_text_change()
        self._snapshot()

    def action_move_line_up(self) -> None:
        line, col = self.cursor_line_col
        if line == 0:
            return
        lines = self.buffer.lines
        lines[line - 1], lines[line] = lines[line], lines[line - 1]
        self._replace_lines(lines, line - 1, col)

    def action_move_line_down(self) -> None:
        line, col = self.cursor_line_col
        lines = self.buffer.lines
        if line >= len(lines) - 1:
            return
        lines[line], lines[line + 1] = lines[line + 1], lines[line]
        self._replace_lines(lines, line + 1, col)

    def action_duplicate_line(self) -> None:
        line, col = self.cursor_line_col
        lines = self.buffer.lines
        lines.insert(line + 1, lines[line])
        self._replace_lines(lines, line + 1, col)

    def action_delete_line(self) -> None:
        line, col = self.cursor_line_col
        lines = self.buffer.lines
        del lines[line]
        if not lines:
            lines = [""]
        self._replace_lines(lines, min(line, len(lines) - 1), col)

    def _replace_lines(self, lines: List[str], cursor_line: int, cursor_col: int) -> None:
        self._snapshot()
        self.buffer.text = "\n".join(lines)
        self._cursor = self.buffer.offset_of(cursor_line, cursor_col)
        self._after_text_change()
        self._snapshot()

    def action_toggle_soft_wrap(self) -> None:
        self.soft_wrap = not self.soft_wrap

    def action_toggle_line_numbers(self) -> None:
        self.show_line_numbers = not self.show_line_numbers

    # ── Line-range Operations ─────────────────────────────────

    def _touched_lines(self) -> Tuple[int, int]:
        """First/last line covered by the selection, or the cursor line."""
        if self.selection is not None:
            start, end = self.selection_range()
            return self.buffer.line_col(start)[0], self.buffer.line_col(end)[0]
        line = self.cursor_line_col[0]
        return line, line

    def _apply_line_edits(self, lines: List[str], edits: List[LineEdit]) -> None:
        """Commit rewritten lines; cursor and selection follow the per-line edits."""
        by_line = {edit[0]: edit for edit in edits}

        def remap(offset: int) -> Tuple[int, int]:
            line, col = self.buffer.line_col(offset)
            if line in by_line:
                _, at, removed, inserted = by_line[line]
                if col >= at + removed:
                    col = col - removed + inserted
                elif col > at:
                    col = at
            return line, col

        cursor = remap(self._cursor)
        selection = None
        if self.selection is not None:
            selection = (remap(self.selection.anchor), remap(self.selection.end))

        self._snapshot()
        self.buffer.text = "\n".join(lines)
        self._cursor = self.buffer.offset_of(*cursor)
        if selection is not None:
            self.selection = Selection(self.buffer.offset_of(*selection[0]), self.buffer.offset_of(*selection[1]))
        self._after_text_change()
        self._snapshot()

    def action_toggle_comment(self) -> None:
        """Comment / uncomment the touched lines with `-- `."""
        first, last = self._touched_lines()
        lines = self.buffer.lines
        touched = range(first, min(last, len(lines) - 1) + 1)

        all_commented = all(lines[i].lstrip(" \t").startswith("--") for i in touched)
        edits: List[LineEdit] = []

        if all_commented:
            for i in touched:
                idx = len(lines[i]) - len(lines[i].lstrip(" \t"))
                size = len(COMMENT_PREFIX) if lines[i].startswith(COMMENT_PREFIX, idx) else 2
                lines[i] = lines[i][:idx] + lines[i][idx + size:]
                edits.append((i, idx, size, 0))
        else:
            indents = [len(lines[i]) - len(lines[i].lstrip(" \t")) for i in touched if lines[i].strip()]
            at = min(indents) if indents else 0
            for i in touched:
                pos = min(at, len(lines[i]))
                lines[i] = lines[i][:pos] + COMMENT_PREFIX + lines[i][pos:]
                edits.append((i, pos, 0, len(COMMENT_PREFIX)))

        self._apply_line_edits(lines, edits)

    def action_indent(self) -> None:
        if self.selection is None:
            return
        unit = self.config.indent_unit
        first, last = self._touched_lines()
        lines = self.buffer.lines
        for i in range(first, min(last, len(lines) - 1) + 1):
            lines[i] = unit + lines[i]
        self._resize_selection(lines, (last - first + 1) * len(unit))

    def action_outdent(self) -> None:
        if self.selection is None:
            return
        unit = self.config.indent_unit
        first, last = self._touched_lines()
        lines = self.buffer.lines
        removed = 0
        for i in range(first, min(last, len(lines) - 1) + 1):
            if lines[i].startswith(unit):
                lines[i] = lines[i][len(unit):]
                removed += len(unit)
            elif lines[i][:1] in (" ", "\t"):
                lines[i] = lines[i][1:]
                removed += 1
        if removed:
            self._resize_selection(lines, -removed)

    def _resize_selection(self, lines: List[str], delta: int) -> None:
        start, end = self.selection_range()
        backwards = self.selection.anchor > self.selection.end
        self._snapshot()
        self.buffer.text = "\n".join(lines)
        far = self.buffer.clamp(end + delta)
        # The far edge absorbs the delta; the cursor stays on its own side.
        self.selection = Selection(far, start) if backwards else Selection(start, far)
        self._cursor = self.selection.end
        self._after_text_change()
        self._snapshot()

    # ── Clipboard ─────────────────────────────────────────────

    def action_yank(self) -> None:
        """Copy the selection and leave Visual mode."""
        if self.has_active_selection():
            self.clipboard.write(self.get_selected_text())
        self.action_exit_visual()

    def action_copy(self) -> None:
        if self.has_active_selection():
            self.clipboard.write(self.get_selected_text())

    def action_cut(self) -> None:
        if self.has_active_selection():
            self.clipboard.write(self.get_selected_text())
            self._delete_selection()
        if self.mode is EditorMode.VISUAL:
            self.action_exit_visual()
        else:
            self.selection = None

    def action_paste(self) -> None:
        text = self.clipboard.read()
        if not text:
            return
        self._snapshot()
        if self.has_active_selection():
            start, end = self.selection_range()
            self.buffer.delete(start, end)
            self._cursor = start
        self.selection = None
        if self.mode is EditorMode.VISUAL:
            self.mode = EditorMode.NORMAL
        self._cursor = self.buffer.insert(self._cursor, text)
        self._after_text_change()
        self._snapshot()

    def _delete_selection(self) -> None:
        start, end = self.selection_range()
        self._snapshot()
        self.buffer.delete(start, end)
        self._cursor = start
        self.selection = None
        self._after_text_change()
        self._snapshot()

    # ── Insert-mode Editing ───────────────────────────────────

    def _type(self, text: str) -> None:
        if self.has_active_selection():
            self._delete_selection()
        self.selection = None
        self.insert_text(text)
        self._update_local_suggestion()

    def action_space(self) -> None:
        self._snapshot()
        self._type(" ")
        self.suggestion = ""

    def action_newline(self) -> None:
        """Break the line, carrying over the current line's leading whitespace."""
        self._snapshot()
        line, col = self.cursor_line_col
        current = self.buffer.line_text(line)[:col]
        indent = current[: len(current) - len(current.lstrip(" \t"))]
        self._type("\n" + indent)
        self.suggestion = ""

    def action_tab(self) -> None:
        if self.accept_suggestion():
            return
        self._type(self.config.indent_unit)
        self.suggestion = ""

    def action_delete_backward(self) -> None:
        if self.has_active_selection():
            self._delete_selection()
            return
        self.selection = None
        if self._cursor == 0:
            return
        self.buffer.delete(self._cursor - 1, self._cursor)
        self._cursor -= 1
        self._after_text_change()
        self._update_local_suggestion()

    def action_delete_forward(self) -> None:
        if self.has_active_selection():
            self._delete_selection()
            return
        self.selection = None
        self.buffer.delete(self._cursor, self._cursor + 1)
        self._after_text_change()

    def action_delete_word(self) -> None:
        self._snapshot()
        start = self.buffer.previous_word_boundary(self._cursor)
        self.buffer.delete(start, self._cursor)
        self._cursor = start
        self.selection = None
        self._after_text_change()
        self._snapshot()

    # ── Ghost Suggestion ──────────────────────────────────────

    def set_suggestion(self, text: str) -> None:
        """Set the pending inline suggestion (usually the top completion)."""
        self.suggestion = text or ""

    @property
    def ghost_text(self) -> str:
        """What accepting the suggestion would append at the cursor."""
        word = self.buffer.word_before(self._cursor)
        suggestion = self.suggestion
        if not word or not suggestion:
            return ""
        if not suggestion.upper().startswith(word.upper()) or len(suggestion) <= len(word):
            return ""
        remainder = suggestion[len(word):]
        if word.lower() == word:
            remainder = remainder.lower()
        return remainder

    def accept_suggestion(self) -> bool:
        """Complete the word before the cursor with the pending suggestion."""
        remainder = self.ghost_text
        if not remainder:
            return False
        self.insert_text(remainder)
        self.suggestion = ""
        self._snapshot()
        return True

    def _update_local_suggestion(self) -> None:
        word = self.buffer.word_before(self._cursor).upper()
        self.suggestion = ""
        if not word:
            return
        for vocabulary in (SQL_KEYWORDS, SQL_OPERATORS, SQL_TYPES, SQL_FUNCTIONS):
            for item in vocabulary:
                if item.startswith(word) and item != word:
                    self.suggestion = item
                    return
        for table in self._schema:
            if table.upper().startswith(word) and table.upper() != word:
                self.suggestion = table
                return

    # ── Search & Replace ──────────────────────────────────────

    def action_start_search(self) -> None:
        self.search = SearchState()

    def action_start_replace(self) -> None:
        self.search = SearchState(replace_mode=True)

    def cancel_search(self) -> None:
        self.search = None

    def set_search_query(self, query: str) -> None:
        if self.search is None:
            self.search = SearchState()
        self.search.query = query
        self.search.refresh(self.buffer.text)
        match = self.search.current_match
        if match is not None:
            self.set_cursor(match)

    def set_replace_query(self, replacement: str) -> None:
        if self.search is None:
            self.search = SearchState(replace_mode=True)
        self.search.replace_mode = True
        self.search.replace_query = replacement

    def action_find_next(self) -> None:
        if self.search is None:
            return
        match = self.search.next()
        if match is not None:
            self.set_cursor(match)

    def action_find_prev(self) -> None:
        if self.search is None:
            return
        match = self.search.prev()
        if match is not None:
            self.set_cursor(match)

    def replace_current(self) -> None:
        search = self.search
        if search is None or not search.matches or not search.replace_query:
            return
        start = search.current_match
        self._snapshot()
        self._cursor = self.buffer.replace(start, start + len(search.query), search.replace_query)
        self._after_text_change()
        self._snapshot()

    def replace_all(self) -> None:
        search = self.search
        if search is None or not search.query or not search.replace_query:
            return
        count = len(search.matches)
        self._snapshot()
        self.buffer.text = self.buffer.text.replace(search.query, search.replace_query)
        self._cursor = self.buffer.clamp(self._cursor)
        self._after_text_change()
        self._snapshot()
        logger.debug(f"Replaced {count} occurrence(s) of {search.query!r}")

    def _handle_search_key(self, key: str, character: Optional[str]) -> bool:
        search = self.search
        if key == "escape":
            self.cancel_search()
        elif key == "enter":
            if search.replace_mode:
                self.replace_current()
            else:
                self.action_find_next()
        elif key == "f3":
            self.action_find_next()
        elif key == "shift+f3":
            self.action_find_prev()
        elif key == "ctrl+enter":
            if search.replace_mode:
                self.replace_all()
        elif key == "tab":
            if search.replace_mode:
                search.editing_replace = not search.editing_replace
        elif key == "backspace":
            if search.editing_replace:
                search.replace_query = search.replace_query[:-1]
            elif search.query:
                self.set_search_query(search.query[:-1])
        elif key == "space" or (character and character.isprintable()):
            ch = " " if key == "space" else character
            if search.editing_replace:
                search.replace_query += ch
            else:
                self.set_search_query(search.query + ch)
        return True

    # ── Goto Line ─────────────────────────────────────────────

    def action_start_goto_line(self) -> None:
        self.goto_line_input = ""

    def cancel_goto_line(self) -> None:
        self.goto_line_input = None

    def goto_line(self, value: str) -> None:
        """Jump to 1-based line `value`; clamps high, cancels on junk."""
        self.cancel_goto_line()
        if not (value.isascii() and value.isdigit()) or int(value) < 1:
            return
        line = min(int(value), self.buffer.line_count)
        self.set_cursor(self.buffer.line_start(line - 1))

    def _handle_goto_key(self, key: str) -> bool:
        if key == "escape":
            self.cancel_goto_line()
        elif key == "enter":
            self.goto_line(self.goto_line_input)
        elif key == "backspace":
            self.goto_line_input = self.goto_line_input[:-1]
        elif len(key) == 1 and key in "0123456789":
            self.goto_line_input += key
        return True

    # ── Viewport & Mouse ──────────────────────────────────────

    @property
    def header_height(self) -> int:
        height = 1
        if self.search is not None:
            height += 2 if self.search.replace_mode else 1
        if self.goto_line_input is not None:
            height += 1
        return height

    @property
    def gutter_width(self) -> int:
        return LINE_NUMBER_GUTTER if self.show_line_numbers else 0

    @property
    def viewport_height(self) -> int:
        return max(1, self.height - 2)

    def visible_lines(self) -> range:
        end = min(self.buffer.line_count, self.offset_y + self.viewport_height)
        return range(self.offset_y, end)

    def update_viewport(self) -> None:
        """Scroll just enough to keep the cursor line visible."""
        line = self.cursor_line_col[0]
        if line < self.offset_y:
            self.offset_y = line
        elif line >= self.offset_y + self.viewport_height:
            self.offset_y = line - self.viewport_height + 1
        self.offset_y = max(0, min(self.offset_y, self.buffer.line_count - 1))

    def offset_at(self, x: int, y: int) -> Optional[int]:
        """Screen cell -> text offset, or None outside the text area."""
        content_y = self.pos_y + self.header_height
        if y < content_y or y >= self.pos_y + self.height:
            return None
        line = self.offset_y + (y - content_y)
        if line < 0 or line >= self.buffer.line_count:
            return None
        col = max(0, x - (self.pos_x + self.gutter_width))
        return self.buffer.offset_of(line, col)

    def mouse_down(self, x: int, y: int) -> bool:
        offset = self.offset_at(x, y)
        if offset is None:
            return False
        self._mouse_down = True
        self._mouse_start = offset
        self.selection = None
        if self.mode is EditorMode.VISUAL:
            self.mode = EditorMode.NORMAL
        self.set_cursor(offset)
        return True

    def mouse_move(self, x: int, y: int) -> bool:
        """Drag: once the pointer leaves the press point, select in Visual mode."""
        if not self._mouse_down:
            return False
        offset = self.offset_at(x, y)
        if offset is None or offset == self._mouse_start:
            return False
        self.mode = EditorMode.VISUAL
        self.selection = Selection(self._mouse_start, offset)
        self.set_cursor(offset)
        return True

    def mouse_up(self, x: int = 0, y: int = 0) -> None:
        self._mouse_down = False

    def scroll(self, lines: int) -> None:
        """Mouse wheel: move the cursor `lines` lines (negative is up)."""
        self._move_vertical(lines)
        self.update_viewport()

    # ── Internals ─────────────────────────────────────────────

    def _after_text_change(self) -> None:
        self._cursor = self.buffer.clamp(self._cursor)
        if self.search is not None:
            self.search.refresh(self.buffer.text)
        self.update_viewport()
