# ============================================================
# SQDesk - Terminal SQL Client
# core/buffer.py - Text Buffer & Offset Arithmetic
# ============================================================
#
# Offsets are linear indexes into the text. Line / column are always
# derived from the text on demand, never stored. Every public method
# clamps its offsets into [0, len(text)] instead of raising.
# ============================================================

from dataclasses import dataclass
from typing import List, Tuple


def is_word_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


@dataclass
class Selection:
    """An unordered (anchor, end) range. Normalize before use."""
    anchor: int
    end: int

    def normalized(self) -> Tuple[int, int]:
        if self.anchor <= self.end:
            return self.anchor, self.end
        return self.end, self.anchor

    @property
    def is_empty(self) -> bool:
        return self.anchor == self.end


class Buffer:
    """Owned, mutable editor text."""

    def __init__(self, text: str = ""):
        self._text = text

    @property
    def text(self) -> str:
        return self._text

    @text.setter
    def text(self, value: str):
        self._text = value

    def __len__(self) -> int:
        return len(self._text)

    def clamp(self, offset: int) -> int:
        return max(0, min(offset, len(self._text)))

    # ── Lines ─────────────────────────────────────────────────

    @property
    def lines(self) -> List[str]:
        return self._text.split("\n")

    @property
    def line_count(self) -> int:
        return self._text.count("\n") + 1

    def line_start(self, line: int) -> int:
        """Offset of the first character of `line` (clamped)."""
        lines = self.lines
        line = max(0, min(line, len(lines) - 1))
        return sum(len(l) + 1 for l in lines[:line])

    def line_end(self, line: int) -> int:
        """Offset just past the last character of `line` (before its newline)."""
        lines = self.lines
        line = max(0, min(line, len(lines) - 1))
        return self.line_start(line) + len(lines[line])

    def line_text(self, line: int) -> str:
        lines = self.lines
        line = max(0, min(line, len(lines) - 1))
        return lines[line]

    def line_col(self, offset: int) -> Tuple[int, int]:
        offset = self.clamp(offset)
        before = self._text[:offset]
        line = before.count("\n")
        col = offset - (before.rfind("\n") + 1)
        return line, col

    def offset_of(self, line: int, col: int) -> int:
        lines = self.lines
        line = max(0, min(line, len(lines) - 1))
        col = max(0, min(col, len(lines[line])))
        return self.line_start(line) + col

    # ── Mutation ──────────────────────────────────────────────

    def insert(self, offset: int, s: str) -> int:
        """Insert `s` at `offset`; returns the offset just after the insert."""
        offset = self.clamp(offset)
        self._text = self._text[:offset] + s + self._text[offset:]
        return offset + len(s)

    def delete(self, start: int, end: int) -> str:
        """Delete [start, end) in either order; returns the removed text."""
        start, end = sorted((self.clamp(start), self.clamp(end)))
        removed = self._text[start:end]
        self._text = self._text[:start] + self._text[end:]
        return removed

    def replace(self, start: int, end: int, s: str) -> int:
        start, end = sorted((self.clamp(start), self.clamp(end)))
        self._text = self._text[:start] + s + self._text[end:]
        return start + len(s)

    def slice(self, start: int, end: int) -> str:
        start, end = sorted((self.clamp(start), self.clamp(end)))
        return self._text[start:end]

    # ── Words ─────────────────────────────────────────────────

    def word_start(self, offset: int) -> int:
        """Start of the run of letters/digits/underscore ending at `offset`."""
        offset = self.clamp(offset)
        start = offset
        while start > 0 and is_word_char(self._text[start - 1]):
            start -= 1
        return start

    def word_before(self, offset: int) -> str:
        offset = self.clamp(offset)
        return self._text[self.word_start(offset):offset]

    def previous_word_boundary(self, offset: int) -> int:
        """
        Where a delete-word-backward stops: skip trailing whitespace,
        then the word (or the run of punctuation) before it.
        """
        offset = self.clamp(offset)
        pos = offset
        while pos > 0 and self._text[pos - 1] in " \t":
            pos -= 1
        if pos > 0 and is_word_char(self._text[pos - 1]):
            return self.word_start(pos)
        while pos > 0 and not is_word_char(self._text[pos - 1]) and self._text[pos - 1] not in " \t\n":
            pos -= 1
        if pos == offset and pos > 0:
            pos -= 1
        return pos
