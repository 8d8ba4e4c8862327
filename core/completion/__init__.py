from core.completion.engine import CompletionEngine
from core.completion.types import (
    CompletionContext,
    CompletionItem,
    CompletionSource,
    ItemKind,
)

__all__ = [
    "CompletionEngine",
    "CompletionContext",
    "CompletionItem",
    "CompletionSource",
    "ItemKind",
]
