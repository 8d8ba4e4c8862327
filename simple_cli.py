# ============================================================
# SQDesk - Terminal SQL Client
# simple_cli.py — Fallback Simple CLI (no Textual TUI)
# ============================================================
#
# A prompt_toolkit shell when the Textual TUI is not available or
# not desired. Same completion engine, simpler interface: SQL is
# executed on Enter, /commands manage the session.
# ============================================================

import os
import sys
from typing import Iterable, Optional

from loguru import logger
from prompt_toolkit import PromptSession
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from prompt_toolkit.completion import CompleteEvent, Completer, Completion
from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import HTML
from prompt_toolkit.history import FileHistory
from rich.console import Console

from config import app_config, completion_config, mysql_config, ollama_config
from core.ai_provider import AIProvider, build_schema_context, create_provider
from core.completion.engine import CompletionEngine
from core.completion.sources import AISource, HistorySource, KeywordSource, SchemaSource
from core.completion.types import ItemKind
from core.mysql_manager import DatabaseError, MySQLManager
from core.query_executor import QueryExecutor
from utils.helpers import is_destructive_query


class SqlCompleter(Completer):
    """prompt_toolkit adapter over CompletionEngine."""

    def __init__(self, engine: CompletionEngine, database: str = ""):
        self.engine = engine
        self.database = database

    def get_completions(self, document: Document, complete_event: CompleteEvent) -> Iterable[Completion]:
        text = document.text
        cursor = document.cursor_position
        schema = self.engine.get_source("schema")
        tables = schema.tables if isinstance(schema, SchemaSource) else []

        context = self.engine.build_context(text, cursor, self.database, tables)
        line_start = text.rfind("\n", 0, cursor) + 1

        for item in self.engine.complete_context(context):
            start = line_start if item.kind is ItemKind.HISTORY else context.word_start
            yield Completion(
                item.insert_text,
                start_position=start - cursor,
                display=item.label,
                display_meta=f"{item.kind.display_name}  {item.detail}".strip(),
            )


class SimpleCLI:
    """
    Simple single-window shell for SQDesk.
    Lines are SQL unless they start with `/`. The current database is
    shown in the prompt.
    """

    def __init__(self, database: Optional[str] = None, mysql: Optional[MySQLManager] = None):
        self.console = Console()
        self.mysql = mysql or MySQLManager()
        self.provider: Optional[AIProvider] = None
        self._initial_db = database
        self._running: bool = True

        self.schema_source = SchemaSource()
        self.history_source = HistorySource(
            capacity=completion_config.history_size,
            max_suggestions=completion_config.history_suggestions,
        )
        self.ai_source = AISource(
            min_word_length=completion_config.ai_min_word_length,
            timeout=completion_config.ai_timeout,
            cache_ttl=completion_config.ai_cache_ttl,
        )
        self.engine = CompletionEngine(completion_config)
        for source in (KeywordSource(), self.schema_source, self.history_source, self.ai_source):
            self.engine.register(source)

        self.executor = QueryExecutor(self.mysql, history=self.history_source, console=self.console)
        self.completer = SqlCompleter(self.engine)

        # Prompt toolkit session with history
        history_file = os.path.expanduser("~/.sqdesk_history")
        self.session = PromptSession(
            history=FileHistory(history_file),
            auto_suggest=AutoSuggestFromHistory(),
            completer=self.completer,
            complete_while_typing=True,
        )

    @property
    def current_db(self) -> Optional[str]:
        return self.mysql.current_database

    def run(self):
        """Main loop."""
        self._print_banner()
        self._initialize()

        while self._running:
            try:
                user_input = self._get_input()
                if user_input is None:
                    break
                user_input = user_input.strip()
                if not user_input:
                    continue
                self._handle_input(user_input)
            except KeyboardInterrupt:
                self.console.print("\n[dim]Use /exit to quit[/dim]")
            except EOFError:
                break

        self._shutdown()

    def _initialize(self):
        """Connect to MySQL and the optional AI provider."""
        self.console.print(f"[dim]Connecting to MySQL at {mysql_config.host}:{mysql_config.port}...[/dim]")

        if not self.mysql.connect(self._initial_db):
            self.console.print("[red]Failed to connect to MySQL! Check your .env[/red]")
            sys.exit(1)
        self.console.print("[green]✓ MySQL connected[/green]")

        self.provider = create_provider(ollama_config)
        if self.provider.is_configured:
            self.ai_source.set_provider(self.provider)
            self.console.print(f"[green]✓ AI completions on[/green] [dim](model: {self.provider.model_name})[/dim]")

        if self.current_db:
            self._refresh_schema()

        self.console.print()
        self.console.print("[dim]Type [bold]/help[/bold] for commands; anything else runs as SQL.[/dim]")
        dbs = self.mysql.list_databases()
        if dbs:
            self.console.print(f"[dim]Databases: {', '.join(dbs)}[/dim]\n")

    def _get_input(self) -> Optional[str]:
        """Get input from user with database-aware prompt."""
        db_part = f"[{self.current_db}]" if self.current_db else ""
        try:
            return self.session.prompt(
                HTML(
                    f"<ansigreen><b>sqdesk{db_part}</b></ansigreen>"
                    f"<ansicyan> ▶ </ansicyan>"
                )
            )
        except KeyboardInterrupt:
            return ""
        except EOFError:
            return None

    def _handle_input(self, user_input: str):
        """Route input to appropriate handler."""
        if user_input.startswith("/"):
            self._handle_command(user_input)
        else:
            self._execute_sql(user_input)

    def _execute_sql(self, sql: str):
        """Execute SQL and display MySQL-CLI-style output."""
        if is_destructive_query(sql):
            self.console.print(self.executor.destructive_warning(sql))
            try:
                confirm = self.session.prompt(
                    HTML("<ansiyellow>Execute this query? (y/n): </ansiyellow>"),
                    completer=None,
                ).strip().lower()
            except (KeyboardInterrupt, EOFError):
                confirm = "n"
            if confirm != "y":
                self.console.print("[dim]Query not executed.[/dim]")
                return

        db_before = self.current_db
        results = self.executor.execute_and_format(sql, print_output=True)

        if self.current_db != db_before:
            self.console.print(
                f"[green]Database changed to[/green] [bold #58a6ff]{self.current_db}[/bold #58a6ff]"
            )
        if any(r.success and r.query_type in ("USE", "CREATE", "DROP", "ALTER") for r in results):
            self._refresh_schema()
        self.engine.clear_cache()

    def _refresh_schema(self):
        try:
            schema = self.mysql.get_schema()
        except DatabaseError as e:
            self.console.print(f"[red]Could not load schema: {e}[/red]")
            return
        self.schema_source.load_schema(schema)
        self.completer.database = self.current_db or ""
        self.engine.clear_cache()
        self.ai_source.clear_cache()
        logger.debug(f"Completer schema refreshed: {len(schema)} table(s)")

    def _ask_ai(self, request: str):
        if self.provider is None or not self.provider.is_configured:
            self.console.print("[yellow]AI is disabled. Set OLLAMA_ENABLED=true in .env[/yellow]")
            return
        self.console.print("[dim]Thinking...[/dim]")
        try:
            schema = {t: self.schema_source.columns_for(t) for t in self.schema_source.tables}
            sql = self.provider.nl2sql(request, build_schema_context(schema))
        except Exception as e:
            self.console.print(f"[red]AI error: {e}[/red]")
            return
        if not sql:
            self.console.print("[yellow]The model returned nothing[/yellow]")
            return
        try:
            edited = self.session.prompt(HTML("<ansicyan>Edit SQL: </ansicyan>"), default=sql).strip()
        except (KeyboardInterrupt, EOFError):
            self.console.print("[dim]Cancelled[/dim]")
            return
        if edited:
            self._execute_sql(edited)

    def _handle_command(self, command: str):
        """Handle /slash commands."""
        parts = command.strip().split(maxsplit=1)
        cmd = parts[0].lower()
        arg = parts[1] if len(parts) > 1 else ""

        if cmd in ("/exit", "/quit"):
            self._running = False

        elif cmd == "/help":
            self.console.print(
                "[bold]Commands[/bold]\n"
                "  /use <db>       switch database\n"
                "  /databases      list databases\n"
                "  /tables         list tables of the current database\n"
                "  /refresh        reload schema completions\n"
                "  /history        recent successful queries\n"
                "  /ai <request>   natural language to SQL\n"
                "  /clear          clear the screen\n"
                "  /version        show version\n"
                "  /exit           quit"
            )

        elif cmd == "/use" and arg:
            result = self.mysql.use_database(arg)
            if result.success:
                self.console.print(f"[green]Database changed to[/green] [bold #58a6ff]{arg}[/bold #58a6ff]")
                self._refresh_schema()
            else:
                self.console.print(f"[red]Failed: {result.error}[/red]")

        elif cmd in ("/databases", "/dbs"):
            self._execute_sql("SHOW DATABASES")

        elif cmd == "/tables":
            if self.current_db:
                self._execute_sql(f"SHOW TABLES FROM `{self.current_db}`")

        elif cmd == "/refresh":
            self._refresh_schema()
            self.console.print("[green]Schema refreshed[/green]")

        elif cmd == "/history":
            for i, query in enumerate(self.history_source.entries[:20], 1):
                self.console.print(f"  {i}. {query[:80]}")

        elif cmd == "/ai" and arg:
            self._ask_ai(arg)

        elif cmd == "/clear":
            self.console.clear()

        elif cmd == "/version":
            self.console.print(f"SQDesk v{app_config.version}")

        else:
            self.console.print(f"[yellow]Unknown command: {command}. Type /help[/yellow]")

    def _print_banner(self):
        """Print the banner."""
        self.console.print(
            f"\n[bold #58a6ff]  ◆ SQDesk[/bold #58a6ff] [bold]v{app_config.version}[/bold]\n"
            "[dim]  Terminal SQL client • schema, history and AI completions[/dim]\n"
        )

    def _shutdown(self):
        """Clean up on exit."""
        self.console.print("\n[dim]Shutting down SQDesk...[/dim]")
        self.ai_source.close()
        self.mysql.disconnect()
        self.console.print("[green]Goodbye![/green]")
