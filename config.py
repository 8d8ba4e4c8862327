# ============================================================
# SQDesk - Terminal SQL Client
# config.py - Central Configuration Management
# ============================================================

import sys
from pathlib import Path
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load .env file
BASE_DIR = Path(__file__).parent
load_dotenv(BASE_DIR / ".env")


class MySQLConfig(BaseSettings):
    """MySQL connection configuration."""
    model_config = SettingsConfigDict(env_prefix="MYSQL_", extra="ignore")

    host: str = "localhost"
    port: int = 3306
    user: str = "root"
    password: str = ""
    default_database: Optional[str] = None

    def get_connection_params(self, database: Optional[str] = None) -> dict:
        params = {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
            "autocommit": True,
            "connection_timeout": 30,
        }
        if database:
            params["database"] = database
        return params


class OllamaConfig(BaseSettings):
    """Ollama LLM configuration (AI completions, NL2SQL, refactor)."""
    model_config = SettingsConfigDict(env_prefix="OLLAMA_", extra="ignore")

    enabled: bool = False
    base_url: str = "http://localhost:11434"
    model: str = "qwen3:8b"
    timeout: int = 120
    temperature: float = 0.1


class KeyMap(BaseModel):
    """
    Logical editor actions mapped to key names (Textual key syntax).
    Every action accepts several keys; the first one is shown in help.
    """
    model_config = ConfigDict(populate_by_name=True)

    undo: List[str] = Field(default_factory=lambda: ["ctrl+z"])
    redo: List[str] = Field(default_factory=lambda: ["ctrl+y"])
    copy_: List[str] = Field(default_factory=lambda: ["alt+c"], alias="copy")
    paste: List[str] = Field(default_factory=lambda: ["alt+v"])
    cut: List[str] = Field(default_factory=lambda: ["alt+x"])
    word: List[str] = Field(default_factory=lambda: ["ctrl+w", "alt+backspace"])
    select_all: List[str] = Field(default_factory=lambda: ["ctrl+a"])
    execute_selection: List[str] = Field(default_factory=lambda: ["ctrl+shift+e", "f5"])
    ai_prompt_selection: List[str] = Field(default_factory=lambda: ["ctrl+shift+k", "f6"])

    @classmethod
    def default(cls, platform: Optional[str] = None) -> "KeyMap":
        """
        Platform-aware defaults. Outside macOS the usual Ctrl clipboard
        keys are added next to the Alt ones.
        """
        km = cls()
        if (platform or sys.platform) != "darwin":
            km.copy_.append("ctrl+c")
            km.paste.append("ctrl+v")
            km.cut.append("ctrl+x")
        return km


class EditorConfig(BaseSettings):
    """Editor behaviour and view defaults."""
    model_config = SettingsConfigDict(env_prefix="SQDESK_EDITOR_", extra="ignore")

    indent_unit: str = "  "
    show_line_numbers: bool = True
    soft_wrap: bool = False
    ruler_column: int = 80
    keymap: KeyMap = Field(default_factory=KeyMap.default)


class CompletionConfig(BaseSettings):
    """Completion engine and source tuning."""
    model_config = SettingsConfigDict(env_prefix="SQDESK_COMPLETION_", extra="ignore")

    max_items: int = 20
    debounce_ms: int = 100
    history_size: int = 100
    history_suggestions: int = 5
    ai_min_word_length: int = 3
    ai_timeout: float = 3.0
    ai_cache_ttl: float = 300.0


class AppConfig(BaseSettings):
    """Application-level configuration."""
    model_config = SettingsConfigDict(env_prefix="SQDESK_", extra="ignore")

    name: str = "SQDesk"
    version: str = "1.0.0"
    log_level: str = "INFO"
    log_file: str = "logs/sqdesk.log"


# ── Singleton Config Instances ────────────────────────────────
mysql_config = MySQLConfig()
ollama_config = OllamaConfig()
editor_config = EditorConfig()
completion_config = CompletionConfig()
app_config = AppConfig()
