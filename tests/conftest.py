# ============================================================
# SQDesk - Terminal SQL Client
# tests/conftest.py - Shared fixtures
# ============================================================

import pytest

from config import EditorConfig, KeyMap
from core.editor import Editor
from tests.fakes import FailingClipboard, FakeClipboard


@pytest.fixture
def clipboard():
    return FakeClipboard()


@pytest.fixture
def failing_clipboard():
    return FailingClipboard()


@pytest.fixture
def editor_config():
    return EditorConfig(keymap=KeyMap.default("linux"))


@pytest.fixture
def editor(editor_config, clipboard):
    return Editor(editor_config, clipboard=clipboard)
