# ============================================================
# SQDesk - Terminal SQL Client
# core/ai_provider.py - AI Collaborator (Ollama via LangChain)
# ============================================================
#
# Two capabilities: natural language -> SQL, and rewriting a SQL
# statement according to an instruction. Both return free text; callers
# decide how to use it (the editor replaces the selection, the AI
# completion source splits it into lines).
#
# Make sure Ollama is running: `ollama serve`
# ============================================================

from typing import List, Mapping, Optional

from langchain_community.llms import Ollama
from loguru import logger

from config import OllamaConfig, ollama_config
from core.completion.sources.schema import ColumnInfo
from utils.helpers import extract_sql_block, strip_think_blocks

NL2SQL_PROMPT = """You are a SQL expert. Convert the following natural language request into a valid SQL query.
Only respond with the SQL query, no explanations or markdown formatting.
Do not include any backticks or code blocks in your response."""

REFACTOR_PROMPT = """You are a SQL expert. Modify the following SQL query based on the given instruction.
Only respond with the modified SQL query, no explanations or markdown formatting.
Do not include any backticks or code blocks in your response."""


def build_schema_context(schema: Optional[Mapping[str, List[ColumnInfo]]]) -> str:
    """Plain-text schema listing embedded into AI prompts."""
    if not schema:
        return ""

    lines = ["Database Schema:"]
    for table, columns in schema.items():
        lines.append(f"\nTable: {table}")
        lines.append("Columns:")
        for col in columns:
            nullable = " NULL" if col.nullable else " NOT NULL"
            primary = " (PRIMARY KEY)" if col.primary_key else ""
            lines.append(f"  - {col.name} {col.type}{nullable}{primary}")
    return "\n".join(lines) + "\n"


def clean_reply(text: str) -> str:
    """Drop reasoning blocks and code fences the model added anyway."""
    text = strip_think_blocks(text)
    return (extract_sql_block(text) or text).strip()


class AIProvider:
    """Base AI collaborator. Subclasses override _invoke()."""

    provider_name = "none"

    def __init__(self, model: str = ""):
        self._model = model

    @property
    def model_name(self) -> str:
        return self._model

    @property
    def is_configured(self) -> bool:
        return False

    def nl2sql(self, prompt: str, schema_context: Optional[str] = None) -> str:
        user_prompt = f"{schema_context or ''}\n\nUser request: {prompt}"
        return self._invoke(NL2SQL_PROMPT, user_prompt)

    def refactor_sql(self, sql: str, instruction: str, schema_context: Optional[str] = None) -> str:
        user_prompt = f"{schema_context or ''}\n\nOriginal SQL:\n{sql}\n\nInstruction: {instruction}"
        return self._invoke(REFACTOR_PROMPT, user_prompt)

    def _invoke(self, system_prompt: str, user_prompt: str) -> str:
        raise NotImplementedError


class NoopProvider(AIProvider):
    """Used when AI is disabled: no suggestions, SQL comes back unchanged."""

    def nl2sql(self, prompt: str, schema_context: Optional[str] = None) -> str:
        return ""

    def refactor_sql(self, sql: str, instruction: str, schema_context: Optional[str] = None) -> str:
        return sql


class OllamaProvider(AIProvider):
    """Local Ollama model through LangChain's community LLM wrapper."""

    provider_name = "ollama"

    def __init__(self, config: Optional[OllamaConfig] = None, llm=None):
        self.config = config or ollama_config
        super().__init__(self.config.model)
        self._llm = llm or Ollama(
            base_url=self.config.base_url,
            model=self.config.model,
            temperature=self.config.temperature,
            timeout=self.config.timeout,
        )
        logger.info(f"Ollama provider initialized with model: {self.config.model}")

    @property
    def is_configured(self) -> bool:
        return bool(self.config.base_url and self.config.model)

    def _invoke(self, system_prompt: str, user_prompt: str) -> str:
        # /no_think suppresses qwen3 chain-of-thought
        full_prompt = f"[SYSTEM]\n{system_prompt}\n\n[USER]\n{user_prompt}\n\n[ASSISTANT]\n/no_think\n"
        try:
            response = self._llm.invoke(full_prompt)
        except Exception as e:
            logger.error(f"Ollama call failed: {e}")
            raise
        return clean_reply(response)


def create_provider(config: Optional[OllamaConfig] = None) -> AIProvider:
    config = config or ollama_config
    if not config.enabled:
        logger.info("AI disabled (OLLAMA_ENABLED=false)")
        return NoopProvider()
    return OllamaProvider(config)

