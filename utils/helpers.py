import re
from typing import Optional


DESTRUCTIVE_KEYWORDS = {"DELETE", "DROP", "TRUNCATE"}


def truncate_string(s: str, max_len: int = 80, suffix: str = "...") -> str:
    if len(s) <= max_len:
        return s
    return s[: max_len - len(suffix)] + suffix


def collapse_whitespace(s: str) -> str:
    """Fold newlines, tabs and runs of spaces into single spaces."""
    return " ".join(s.split())


def first_keyword(sql: str) -> str:
    parts = sql.strip().split()
    return parts[0].upper() if parts else ""


def is_destructive_query(sql: str) -> bool:
    return first_keyword(sql) in DESTRUCTIVE_KEYWORDS


def strip_think_blocks(text: str) -> str:
    """Remove <think>...</think> reasoning emitted by qwen3 / deepseek-r1."""
    text = re.sub(r"<think>[\s\S]*?</think>", "", text, flags=re.IGNORECASE)
    text = re.sub(r"<think>[\s\S]*$", "", text, flags=re.IGNORECASE)
    return re.sub(r"</?think>", "", text, flags=re.IGNORECASE)


def extract_sql_block(text: str) -> Optional[str]:
    """Return the body of the first ``` fenced block, if any."""
    m = re.search(r"```(?:sql)?\s*(.*?)\s*```", text, re.DOTALL | re.IGNORECASE)
    if m and m.group(1).strip():
        return m.group(1).strip()
    return None

