from core.completion.sources.ai import AISource
from core.completion.sources.history import HistorySource
from core.completion.sources.keywords import KeywordSource
from core.completion.sources.schema import ColumnInfo, SchemaSource, TableInfo

__all__ = [
    "AISource",
    "HistorySource",
    "KeywordSource",
    "SchemaSource",
    "TableInfo",
    "ColumnInfo",
]
