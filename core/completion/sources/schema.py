# ============================================================
# SQDesk - Terminal SQL Client
# core/completion/sources/schema.py - Live Schema Source
# ============================================================
#
# Tables after FROM / JOIN / INTO / UPDATE / TABLE / TRUNCATE (or
# anywhere once the line has a FROM), columns after SELECT / WHERE /
# AND / OR / SET / ORDER BY / GROUP BY / HAVING or a trailing dot.
# Triggers look at the line prefix with the current word removed.
# ============================================================

import re
import threading
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional

from core.completion.types import CompletionContext, CompletionItem, CompletionSource, ItemKind

TABLE_TRIGGER = re.compile(r"\b(FROM|JOIN|INTO|UPDATE|TABLE|TRUNCATE)$")
FROM_ANYWHERE = re.compile(r"\bFROM\b")
COLUMN_TRIGGER = re.compile(r"\b(SELECT|WHERE|AND|OR|SET|ORDER BY|GROUP BY|HAVING)$")
QUALIFIED = re.compile(r"(\w+)\.$")

TABLE_SCORE = 90
COLUMN_SCORE = 85


@dataclass
class TableInfo:
    name: str
    schema: str = ""
    comment: str = ""


@dataclass
class ColumnInfo:
    name: str
    type: str = ""
    nullable: bool = True
    primary_key: bool = False
    comment: str = ""

    def describe(self) -> str:
        detail = self.type
        if self.primary_key:
            detail += " PRIMARY KEY"
        if not self.nullable:
            detail += " NOT NULL"
        return detail.strip()


def should_suggest_tables(prefix: str) -> bool:
    return bool(TABLE_TRIGGER.search(prefix) or FROM_ANYWHERE.search(prefix))


def should_suggest_columns(prefix: str) -> bool:
    return bool(COLUMN_TRIGGER.search(prefix)) or prefix.endswith(".")


def find_table(name: str, tables: Iterable[str]) -> Optional[str]:
    """Case-insensitive lookup of a known table name."""
    lowered = name.lower()
    for table in tables:
        if table.lower() == lowered:
            return table
    return None


class SchemaSource(CompletionSource):
    """Table and column names of the active database, loaded by the UI."""

    name = "schema"
    priority = 100

    def __init__(self):
        self._tables: List[TableInfo] = []
        self._columns: Dict[str, List[ColumnInfo]] = {}
        self._lock = threading.Lock()

    # ── Loading ───────────────────────────────────────────────

    def set_tables(self, tables: Iterable[TableInfo]) -> None:
        with self._lock:
            self._tables = list(tables)

    def load_from_strings(self, names: Iterable[str]) -> None:
        self.set_tables(TableInfo(name=name) for name in names)

    def set_columns(self, table: str, columns: Iterable[ColumnInfo]) -> None:
        with self._lock:
            self._columns[table] = list(columns)

    def load_schema(self, schema: Mapping[str, Iterable[ColumnInfo]]) -> None:
        """Replace everything with a `{table: [ColumnInfo]}` mapping."""
        with self._lock:
            self._tables = [TableInfo(name=table) for table in schema]
            self._columns = {table: list(columns) for table, columns in schema.items()}

    def clear(self) -> None:
        with self._lock:
            self._tables = []
            self._columns = {}

    @property
    def tables(self) -> List[str]:
        return [t.name for t in self._tables]

    def columns_for(self, table: str) -> List[ColumnInfo]:
        columns = self._columns
        return list(columns.get(find_table(table, columns) or table, []))

    # ── Completion ────────────────────────────────────────────

    def complete(self, context: CompletionContext) -> List[CompletionItem]:
        prefix = context.trigger_prefix
        with self._lock:
            tables = list(self._tables)
            columns = dict(self._columns)

        qualified = QUALIFIED.search(prefix)
        if qualified:
            table = find_table(qualified.group(1), columns)
            if table is not None:
                return self._column_items({table: columns[table]})

        items = []
        if should_suggest_tables(prefix):
            items.extend(self._table_items(tables))
        if should_suggest_columns(prefix):
            items.extend(self._column_items(columns))
        return items

    def _table_items(self, tables: List[TableInfo]) -> List[CompletionItem]:
        items = []
        for table in tables:
            detail = f"{table.schema}.{table.name}" if table.schema else "Table"
            if table.comment:
                detail += f" - {table.comment}"
            items.append(CompletionItem(
                label=table.name,
                insert_text=table.name,
                kind=ItemKind.TABLE,
                detail=detail,
                source=self.name,
                score=TABLE_SCORE,
                filter_text=table.name,
            ))
        return items

    def _column_items(self, columns: Mapping[str, List[ColumnInfo]]) -> List[CompletionItem]:
        items = []
        for table, cols in columns.items():
            for col in cols:
                items.append(CompletionItem(
                    label=col.name,
                    insert_text=col.name,
                    kind=ItemKind.COLUMN,
                    detail=f"{table}.{col.name} ({col.describe()})",
                    source=self.name,
                    score=COLUMN_SCORE,
                    filter_text=col.name,
                ))
        return items
