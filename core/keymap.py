# ============================================================
# SQDesk - Terminal SQL Client
# core/keymap.py - Modal Key Dispatch Table
# ============================================================
#
# Maps (mode, key) to an action name. The editor resolves the name to
# its `action_<name>` method, so transition logic lives in one table
# that can be inspected and tested without rendering anything.
# ============================================================

from enum import Enum
from typing import Dict, Optional, Tuple

from config import KeyMap


class EditorMode(Enum):
    NORMAL = "normal"
    INSERT = "insert"
    VISUAL = "visual"

    @property
    def label(self) -> str:
        return f" {self.value.upper()} "


# Overlays that work in every mode.
GLOBAL_KEYS: Dict[str, str] = {
    "ctrl+f": "start_search",
    "ctrl+h": "start_replace",
    "f3": "find_next",
    "shift+f3": "find_prev",
    "ctrl+g": "start_goto_line",
}

NORMAL_KEYS: Dict[str, str] = {
    "i": "enter_insert",
    "v": "enter_visual",
    "h": "cursor_left",
    "left": "cursor_left",
    "l": "cursor_right",
    "right": "cursor_right",
    "k": "cursor_up",
    "up": "cursor_up",
    "j": "cursor_down",
    "down": "cursor_down",
    "x": "delete_char",
    "delete": "delete_char",
    "u": "undo",
    "ctrl+r": "redo",
    "p": "paste",
    "0": "line_start",
    "home": "line_start",
    "$": "line_end",
    "dollar_sign": "line_end",
    "end": "line_end",
    "alt+up": "move_line_up",
    "alt+down": "move_line_down",
    "ctrl+d": "duplicate_line",
    "ctrl+k": "delete_line",
    "ctrl+/": "toggle_comment",
    "ctrl+slash": "toggle_comment",
    "alt+z": "toggle_soft_wrap",
    "ctrl+l": "toggle_line_numbers",
}

VISUAL_KEYS: Dict[str, str] = {
    "escape": "exit_visual",
    "ctrl+left_square_bracket": "exit_visual",
    "h": "select_left",
    "left": "select_left",
    "l": "select_right",
    "right": "select_right",
    "k": "select_up",
    "up": "select_up",
    "j": "select_down",
    "down": "select_down",
    "y": "yank",
    "d": "cut",
    "x": "cut",
    "tab": "indent",
    "shift+tab": "outdent",
    "ctrl+/": "toggle_comment",
    "ctrl+slash": "toggle_comment",
}

INSERT_KEYS: Dict[str, str] = {
    "escape": "exit_insert",
    "ctrl+left_square_bracket": "exit_insert",
    "shift+left": "select_left",
    "shift+right": "select_right",
    "shift+up": "select_up",
    "shift+down": "select_down",
    "left": "cursor_left",
    "right": "cursor_right",
    "up": "cursor_up",
    "down": "cursor_down",
    "home": "line_start",
    "end": "line_end",
    "backspace": "delete_backward",
    "delete": "delete_forward",
    "tab": "tab",
    "enter": "newline",
    "space": "space",
}

# KeyMap field -> action, per mode. Configured bindings win over built-ins.
KEYMAP_ACTIONS: Dict[EditorMode, Dict[str, str]] = {
    EditorMode.NORMAL: {
        "undo": "undo",
        "redo": "redo",
        "paste": "paste",
        "select_all": "select_all",
    },
    EditorMode.VISUAL: {
        "copy_": "yank",
        "cut": "cut",
        "select_all": "select_all",
    },
    EditorMode.INSERT: {
        "undo": "undo",
        "redo": "redo",
        "copy_": "copy",
        "paste": "paste",
        "cut": "cut",
        "word": "delete_word",
        "select_all": "select_all",
    },
}

BUILTIN_KEYS: Dict[EditorMode, Dict[str, str]] = {
    EditorMode.NORMAL: NORMAL_KEYS,
    EditorMode.VISUAL: VISUAL_KEYS,
    EditorMode.INSERT: INSERT_KEYS,
}


class DispatchTable:
    """(mode, key) -> action name, built once per KeyMap and shareable between editors."""

    def __init__(self, keymap: Optional[KeyMap] = None):
        self.keymap = keymap or KeyMap.default()
        self._table: Dict[Tuple[EditorMode, str], str] = {}
        self._build()

    def _build(self):
        for mode, keys in BUILTIN_KEYS.items():
            for key, action in keys.items():
                self._table[(mode, key)] = action

        for mode, fields in KEYMAP_ACTIONS.items():
            for field_name, action in fields.items():
                for key in getattr(self.keymap, field_name):
                    self._table[(mode, key)] = action

    def lookup(self, mode: EditorMode, key: str) -> Optional[str]:
        action = GLOBAL_KEYS.get(key)
        if action:
            return action
        return self._table.get((mode, key))

    def bindings_for(self, mode: EditorMode) -> Dict[str, str]:
        """Key -> action for one mode (global overlays included), for the help screen."""
        result = dict(GLOBAL_KEYS)
        result.update({k: a for (m, k), a in self._table.items() if m == mode})
        return result
