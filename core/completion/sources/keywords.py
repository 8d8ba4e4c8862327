# ============================================================
# SQDesk - Terminal SQL Client
# core/completion/sources/keywords.py - Static SQL Keyword Source
# ============================================================

from typing import Dict, List

from core.completion.types import CompletionContext, CompletionItem, CompletionSource, ItemKind

SQL_KEYWORDS: Dict[str, List[str]] = {
    "start": [
        "SELECT", "INSERT", "UPDATE", "DELETE", "CREATE", "ALTER", "DROP",
        "TRUNCATE", "GRANT", "REVOKE", "BEGIN", "COMMIT", "ROLLBACK",
        "EXPLAIN", "ANALYZE", "SHOW", "DESCRIBE", "USE", "WITH",
    ],
    "select": [
        "DISTINCT", "ALL", "TOP", "AS", "FROM", "WHERE", "AND", "OR", "NOT",
        "IN", "BETWEEN", "LIKE", "IS", "NULL", "TRUE", "FALSE",
        "ORDER", "BY", "ASC", "DESC", "LIMIT", "OFFSET",
        "GROUP", "HAVING", "UNION", "INTERSECT", "EXCEPT",
        "JOIN", "INNER", "LEFT", "RIGHT", "FULL", "OUTER", "CROSS", "ON",
        "CASE", "WHEN", "THEN", "ELSE", "END",
    ],
    "functions": [
        "COUNT", "SUM", "AVG", "MIN", "MAX", "COALESCE", "NULLIF",
        "CONCAT", "SUBSTRING", "LENGTH", "UPPER", "LOWER", "TRIM",
        "NOW", "CURRENT_DATE", "CURRENT_TIME", "CURRENT_TIMESTAMP",
        "CAST", "CONVERT", "IFNULL", "NVL",
    ],
    "types": [
        "INT", "INTEGER", "BIGINT", "SMALLINT", "TINYINT",
        "VARCHAR", "CHAR", "TEXT", "NVARCHAR",
        "DECIMAL", "NUMERIC", "FLOAT", "DOUBLE", "REAL",
        "DATE", "TIME", "DATETIME", "TIMESTAMP",
        "BOOLEAN", "BOOL", "BLOB", "JSON",
    ],
}

KEYWORD_SCORE = 40
KEYWORD_PREFIX_BOOST = 30
FUNCTION_SCORE = 35


def relevant_categories(prefix: str) -> List[str]:
    """Keyword categories for the statement text before the current word."""
    prefix = prefix.strip().upper()
    if not prefix:
        return ["start"]
    if prefix.startswith(("SELECT", "UPDATE", "DELETE")):
        return ["select"]
    if prefix.startswith(("CREATE", "ALTER")):
        return ["types"]
    return ["select"]


class KeywordSource(CompletionSource):
    name = "keywords"
    priority = 50

    def complete(self, context: CompletionContext) -> List[CompletionItem]:
        word = context.word.lower()
        items = []

        for category in relevant_categories(context.trigger_prefix):
            for keyword in SQL_KEYWORDS[category]:
                score = KEYWORD_SCORE
                if word and keyword.lower().startswith(word):
                    score += KEYWORD_PREFIX_BOOST
                items.append(CompletionItem(
                    label=keyword,
                    insert_text=keyword + " ",
                    kind=ItemKind.KEYWORD,
                    detail="SQL Keyword",
                    source=self.name,
                    score=score,
                    filter_text=keyword,
                ))

        for fn in SQL_KEYWORDS["functions"]:
            items.append(CompletionItem(
                label=f"{fn}()",
                insert_text=f"{fn}()",
                kind=ItemKind.FUNCTION,
                detail="SQL Function",
                source=self.name,
                score=FUNCTION_SCORE,
                filter_text=fn,
            ))

        return items
