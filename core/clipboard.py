# ============================================================
# SQDesk - Terminal SQL Client
# core/clipboard.py - System Clipboard Collaborator
# ============================================================

from typing import Protocol

import pyperclip
from loguru import logger


class ClipboardError(Exception):
    """Clipboard read/write failed. Recoverable: show it, keep editing."""


class Clipboard(Protocol):
    def read(self) -> str:
        ...

    def write(self, text: str) -> None:
        ...


class SystemClipboard:
    """Full-text clipboard access through pyperclip (pbcopy, xclip, wl-copy, ...)."""

    def read(self) -> str:
        try:
            return pyperclip.paste() or ""
        except pyperclip.PyperclipException as e:
            logger.warning(f"Clipboard read failed: {e}")
            raise ClipboardError(f"Clipboard unavailable: {e}") from e

    def write(self, text: str) -> None:
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as e:
            logger.warning(f"Clipboard write failed: {e}")
            raise ClipboardError(f"Clipboard unavailable: {e}") from e
