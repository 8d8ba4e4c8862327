# ============================================================
# SQDesk - Terminal SQL Client
# ui/editor_view.py - Textual Widget around the Editor core
# ============================================================
#
# Draws an Editor with rich Text (mode header, search / goto rows,
# gutter, syntax colours, selection, cursor, ghost suggestion) and
# forwards key and mouse events to it. Completion results are pushed in
# by the app through show_completions(); while a list is open, up/down
# move through it and tab/enter accept the highlighted item.
# ============================================================

import re
from typing import List, Optional

from rich.style import Style
from rich.text import Text
from textual import events
from textual.message import Message
from textual.widget import Widget

from core.clipboard import ClipboardError
from core.completion.types import CompletionItem, ItemKind
from core.editor import SQL_FUNCTIONS, SQL_KEYWORDS, SQL_OPERATORS, SQL_TYPES, Editor
from core.keymap import EditorMode

MODE_STYLES = {
    EditorMode.NORMAL: "bold white on #1f6feb",
    EditorMode.INSERT: "bold black on #3fb950",
    EditorMode.VISUAL: "bold white on #a371f7",
}

KEYWORD_RE = re.compile(r"\b(" + "|".join(SQL_KEYWORDS + SQL_OPERATORS) + r")\b", re.IGNORECASE)
TYPE_RE = re.compile(r"\b(" + "|".join(SQL_TYPES) + r")\b", re.IGNORECASE)
FUNCTION_RE = re.compile(r"\b(" + "|".join(SQL_FUNCTIONS) + r")(?=\s*\()", re.IGNORECASE)
NUMBER_RE = re.compile(r"\b\d+(?:\.\d+)?\b")
STRING_RE = re.compile(r"'(?:[^'\\]|\\.)*'?|\"(?:[^\"\\]|\\.)*\"?")
COMMENT_RE = re.compile(r"--.*$")

SELECTION_STYLE = Style(bgcolor="#264f78")
MATCH_STYLE = Style(bgcolor="#614d00")
CURRENT_MATCH_STYLE = Style(bgcolor="#9e6a03", bold=True)
CURSOR_STYLE = Style(reverse=True)
GHOST_STYLE = Style(color="#6e7681", italic=True)
RULER_STYLE = Style(bgcolor="#161b22")


def highlight_line(line: str) -> Text:
    """SQL syntax colours for one line."""
    text = Text(line, no_wrap=True, overflow="crop")
    for pattern, style in (
        (KEYWORD_RE, "bold #ff7b72"),
        (TYPE_RE, "#ffa657"),
        (FUNCTION_RE, "#d2a8ff"),
        (NUMBER_RE, "#79c0ff"),
        (STRING_RE, "#a5d6ff"),
        (COMMENT_RE, "italic #8b949e"),
    ):
        for m in pattern.finditer(line):
            text.stylize(style, m.start(), m.end())
    return text


class EditorView(Widget, can_focus=True):
    """Focusable SQL editor surface."""

    class Changed(Message):
        """Text or cursor moved; the app may request completions."""

        def __init__(self, view: "EditorView") -> None:
            self.view = view
            super().__init__()

    class ExecuteRequested(Message):
        def __init__(self, sql: str) -> None:
            self.sql = sql
            super().__init__()

    class AIPromptRequested(Message):
        def __init__(self, selection: str) -> None:
            self.selection = selection
            super().__init__()

    class CompletionsChanged(Message):
        """The open completion list or its highlighted row changed."""

        def __init__(self, items: List[CompletionItem], index: int) -> None:
            self.items = items
            self.index = index
            super().__init__()

    def __init__(self, editor: Editor, **kwargs):
        super().__init__(**kwargs)
        self.editor = editor
        self.completions: List[CompletionItem] = []
        self.completion_index: int = 0

    # ── Completion List ───────────────────────────────────────

    def show_completions(self, items: List[CompletionItem]) -> None:
        self.completions = list(items)
        self.completion_index = 0
        top = self.completions[0] if self.completions else None
        self.editor.set_suggestion(top.insert_text.strip() if top and top.kind is not ItemKind.HISTORY else "")
        self.post_message(self.CompletionsChanged(self.completions, self.completion_index))
        self.refresh()

    def hide_completions(self) -> None:
        if self.completions:
            self.completions = []
            self.post_message(self.CompletionsChanged([], 0))

    def accept_completion(self, index: Optional[int] = None) -> None:
        if not self.completions:
            return
        item = self.completions[self.completion_index if index is None else index]
        start = None
        if item.kind is ItemKind.HISTORY:
            line, _ = self.editor.cursor_line_col
            start = self.editor.buffer.line_start(line)
        self.editor.apply_completion(item.insert_text, start=start)
        self.hide_completions()
        self._changed()

    def _move_completion(self, delta: int) -> None:
        self.completion_index = (self.completion_index + delta) % len(self.completions)
        item = self.completions[self.completion_index]
        self.editor.set_suggestion(item.insert_text.strip() if item.kind is not ItemKind.HISTORY else "")
        self.post_message(self.CompletionsChanged(self.completions, self.completion_index))
        self.refresh()

    # ── Events ────────────────────────────────────────────────

    def on_key(self, event: events.Key) -> None:
        keymap = self.editor.config.keymap
        key = event.key

        if key in keymap.execute_selection:
            event.stop()
            self.post_message(self.ExecuteRequested(self.editor.get_selected_text()))
            return
        if key in keymap.ai_prompt_selection:
            event.stop()
            selection = self.editor.get_selected_text() if self.editor.has_active_selection() else ""
            self.post_message(self.AIPromptRequested(selection))
            return

        if self.completions and self.editor.mode is EditorMode.INSERT and self.editor.search is None:
            if key in ("down", "up"):
                event.stop()
                event.prevent_default()
                self._move_completion(1 if key == "down" else -1)
                return
            if key in ("tab", "enter"):
                event.stop()
                event.prevent_default()
                self.accept_completion()
                return
            if key == "escape":
                event.stop()
                event.prevent_default()
                self.hide_completions()
                self.refresh()
                return

        before = (self.editor.get_value(), self.editor.cursor)
        try:
            consumed = self.editor.handle_key(key, event.character)
        except ClipboardError as e:
            self.app.notify(str(e), title="Clipboard", severity="warning")
            consumed = True

        if consumed:
            event.stop()
            event.prevent_default()
            if self.editor.mode is not EditorMode.INSERT:
                self.hide_completions()
            if (self.editor.get_value(), self.editor.cursor) != before:
                self._changed()
            self.refresh()

    def on_mouse_down(self, event: events.MouseDown) -> None:
        if self.editor.mouse_down(event.x, event.y):
            self.capture_mouse()
            self.hide_completions()
            self._changed()
        event.stop()

    def on_mouse_move(self, event: events.MouseMove) -> None:
        if self.editor.mouse_move(event.x, event.y):
            self.refresh()

    def on_mouse_up(self, event: events.MouseUp) -> None:
        self.editor.mouse_up(event.x, event.y)
        self.release_mouse()

    def on_mouse_scroll_down(self, event: events.MouseScrollDown) -> None:
        self.editor.scroll(1)
        self.refresh()
        event.stop()

    def on_mouse_scroll_up(self, event: events.MouseScrollUp) -> None:
        self.editor.scroll(-1)
        self.refresh()
        event.stop()

    def on_resize(self, event: events.Resize) -> None:
        self._fit()

    def _fit(self) -> None:
        extra_rows = self.editor.header_height - 1
        self.editor.set_position(0, 0)
        self.editor.set_size(self.size.width, max(3, self.size.height - extra_rows))

    def _changed(self) -> None:
        self.refresh()
        self.post_message(self.Changed(self))

    # ── Rendering ─────────────────────────────────────────────

    def render(self) -> Text:
        self._fit()
        editor = self.editor
        rows: List[Text] = [self._render_header()]

        if editor.search is not None:
            search = editor.search
            focus = not search.editing_replace
            rows.append(self._render_prompt("Find", search.query, focus, search.status or "(no matches)"))
            if search.replace_mode:
                rows.append(self._render_prompt("Replace", search.replace_query, not focus, "tab: switch  enter: replace  ctrl+enter: all"))
        if editor.goto_line_input is not None:
            rows.append(self._render_prompt("Go to line", editor.goto_line_input, True, f"1-{editor.buffer.line_count}"))

        for line in editor.visible_lines():
            rows.append(self._render_line(line))

        return Text("\n").join(rows)

    def _render_header(self) -> Text:
        editor = self.editor
        line, col = editor.cursor_line_col
        header = Text(no_wrap=True, overflow="crop")
        header.append(editor.mode.label, style=MODE_STYLES[editor.mode])
        header.append(f"  Ln {line + 1}, Col {col + 1}", style="dim")
        if editor.soft_wrap:
            header.append("  WRAP", style="dim cyan")
        if editor.history.can_undo():
            header.append("  ●", style="#f0883e")
        return header

    @staticmethod
    def _render_prompt(label: str, value: str, focused: bool, hint: str) -> Text:
        row = Text(no_wrap=True, overflow="crop")
        row.append(f" {label}: ", style="bold #58a6ff" if focused else "dim")
        row.append(value, style="bold" if focused else "")
        if focused:
            row.append("▏", style="#58a6ff")
        row.append(f"  {hint}", style="dim")
        return row

    def _render_line(self, line: int) -> Text:
        editor = self.editor
        buffer = editor.buffer
        start = buffer.line_start(line)
        content = buffer.line_text(line)
        text = highlight_line(content)

        if editor.soft_wrap:
            text.no_wrap = False
            text.overflow = "fold"

        if 0 < editor.ruler_column < len(content):
            text.stylize(RULER_STYLE, editor.ruler_column, editor.ruler_column + 1)

        search = editor.search
        if search is not None and search.query:
            for i, match in enumerate(search.matches):
                lo, hi = match - start, match - start + len(search.query)
                if hi > 0 and lo < len(content):
                    style = CURRENT_MATCH_STYLE if i == search.index else MATCH_STYLE
                    text.stylize(style, max(0, lo), min(len(content), hi))

        selection = editor.selection_range()
        if selection is not None:
            lo, hi = selection[0] - start, selection[1] - start
            if hi > 0 and lo <= len(content):
                text.stylize(SELECTION_STYLE, max(0, lo), min(len(content), hi))

        cursor_line, cursor_col = editor.cursor_line_col
        if line == cursor_line:
            ghost = editor.ghost_text if editor.mode is EditorMode.INSERT else ""
            if ghost:
                text = text[:cursor_col] + Text(ghost, style=GHOST_STYLE) + text[cursor_col:]
            if cursor_col >= len(text.plain):
                text.append(" ", style=CURSOR_STYLE)
            else:
                text.stylize(CURSOR_STYLE, cursor_col, cursor_col + 1)

        if editor.show_line_numbers:
            style = "bold #e6edf3" if line == cursor_line else "#6e7681"
            gutter = Text(f"{line + 1:4d} ", style=style)
            return gutter + text
        return text
