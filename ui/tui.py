# ============================================================
# SQDesk - Terminal SQL Client
# ui/tui.py - Main Textual TUI Application
# ============================================================
#
# Layout: schema tree (left) | editor + completion list + results
# (right) | status bar. All blocking work (MySQL, Ollama, completion
# fan-out) runs in @work(thread=True) workers and comes back through
# call_from_thread.
#
# Completion requests are debounced and numbered; a result is applied
# only when its number is still the latest (last result wins).
# ============================================================

from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from loguru import logger
from textual import work
from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.timer import Timer
from textual.widgets import Button, Input, Label, OptionList, RichLog, Static, Tree
from textual.widgets.option_list import Option

from config import (
    app_config,
    completion_config,
    editor_config,
    mysql_config,
    ollama_config,
)
from core.ai_provider import AIProvider, build_schema_context, create_provider
from core.clipboard import Clipboard
from core.completion.engine import CompletionEngine
from core.completion.sources import AISource, ColumnInfo, HistorySource, KeywordSource, SchemaSource
from core.completion.types import CompletionItem
from core.editor import Editor
from core.keymap import EditorMode
from core.mysql_manager import MySQLManager
from core.query_executor import QueryExecutor
from ui.editor_view import EditorView
from utils.helpers import is_destructive_query, truncate_string

SCHEMA_CHANGING = ("USE", "CREATE", "DROP", "ALTER")


# ── Confirmation Modal ────────────────────────────────────────
class DestructiveConfirmModal(ModalScreen):
    """
    Modal for confirming destructive SQL operations.
    Y = confirm. N or Escape = cancel.
    """

    BINDINGS = [
        ("escape", "cancel",  "Cancel"),
        ("y",      "execute", "Yes Execute"),
        ("n",      "cancel",  "No Cancel"),
    ]

    def __init__(self, sql: str, callback):
        self._sql = sql
        self._callback = callback
        super().__init__()

    def compose(self) -> ComposeResult:
        with Container(id="confirm-modal-container"):
            yield Label("DESTRUCTIVE OPERATION", id="modal-title")
            yield Label("SQL to execute:", id="modal-subtitle")
            yield Static(truncate_string(self._sql, 300), id="modal-query", markup=False)
            yield Label("This CANNOT be undone!", id="modal-warning")
            yield Label("Press Y to confirm  |  N or Escape to cancel", id="modal-hint")
            with Horizontal(id="modal-buttons"):
                yield Button("No, Cancel", id="btn-cancel")
                yield Button("Yes, Execute It", id="btn-execute")

    def on_mount(self) -> None:
        self.query_one("#btn-cancel", Button).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self._finish(event.button.id == "btn-execute")

    def action_execute(self) -> None:
        self._finish(True)

    def action_cancel(self) -> None:
        self._finish(False)

    def _finish(self, confirmed: bool) -> None:
        self.dismiss()
        self._callback(confirmed)


# ── AI Prompt Modal ───────────────────────────────────────────
class AIPromptModal(ModalScreen):
    """
    Ask the model for SQL. With a selection the text is an instruction
    for rewriting it, otherwise a natural-language request.
    """

    BINDINGS = [("escape", "cancel", "Cancel")]

    def __init__(self, selection: str, callback):
        self._selection = selection
        self._callback = callback
        super().__init__()

    def compose(self) -> ComposeResult:
        title = "Refactor selection" if self._selection else "Natural language to SQL"
        placeholder = (
            "e.g. add a LIMIT 10 and order by created_at"
            if self._selection
            else "e.g. users who signed up this week"
        )
        with Container(id="ai-modal-container"):
            yield Label(f"🤖 {title}", id="ai-modal-title")
            if self._selection:
                yield Static(truncate_string(self._selection, 300), id="ai-modal-selection", markup=False)
            yield Input(placeholder=placeholder, id="ai-modal-input")

    def on_mount(self) -> None:
        self.query_one("#ai-modal-input", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        value = event.value.strip()
        self.dismiss()
        if value:
            self._callback(value)

    def action_cancel(self) -> None:
        self.dismiss()


# ── Main SQDesk TUI Application ───────────────────────────────
class SQDeskApp(App):
    """
    Main Textual application for SQDesk.
    Schema tree (left) + editor / results (right).
    """

    CSS_PATH = str(Path(__file__).parent / "sqdesk.tcss")
    TITLE = "SQDesk - Terminal SQL Client"

    BINDINGS = [
        ("ctrl+q", "quit",               "Quit"),
        ("f1",     "toggle_help",        "Help"),
        ("f2",     "refresh_schema",     "Refresh Schema"),
        ("f4",     "clear_results",      "Clear Results"),
    ]

    ENABLE_COMMAND_PALETTE = False

    # Reactive state
    current_db   = reactive("None")
    is_connected = reactive(False)
    query_count  = reactive(0)

    def __init__(
        self,
        database: Optional[str] = None,
        mysql_manager: Optional[MySQLManager] = None,
        provider: Optional[AIProvider] = None,
        clipboard: Optional[Clipboard] = None,
    ):
        super().__init__()
        self._initial_database = database or mysql_config.default_database
        self.mysql_manager = mysql_manager or MySQLManager()
        self.provider = provider

        self.editor = Editor(editor_config, clipboard=clipboard)

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

        self.query_executor = QueryExecutor(self.mysql_manager, history=self.history_source)
        self._schema: Dict[str, List[ColumnInfo]] = {}
        self._completion_seq: int = 0
        self._completion_timer: Optional[Timer] = None

    # ── App Lifecycle ─────────────────────────────────────────

    def compose(self) -> ComposeResult:
        """Build the UI layout."""
        yield Container(
            # ── Header ──────────────────────────────────────
            Horizontal(
                Label(f"◆ SQDesk v{app_config.version}", id="header-title"),
                Label("", id="header-db-badge"),
                Label("", id="header-ai-badge"),
                id="header",
            ),

            # ── Main Split ───────────────────────────────────
            Horizontal(
                Vertical(
                    Label(" 🗂 Schema", id="schema-panel-header"),
                    Tree("tables", id="schema-tree"),
                    id="schema-panel",
                ),
                Vertical(
                    EditorView(self.editor, id="editor"),
                    OptionList(id="completion-list"),
                    Label(" 📊 Results", id="results-header"),
                    RichLog(highlight=True, markup=True, wrap=True, auto_scroll=True, id="results"),
                    id="work-panel",
                ),
                id="main-container",
            ),

            # ── Status Bar ───────────────────────────────────
            Horizontal(
                Label("", id="status-left"),
                Label("", id="status-right"),
                id="status-bar",
            ),
        )

    def on_mount(self) -> None:
        """Called when app starts."""
        self.query_one("#completion-list", OptionList).display = False
        self.query_one("#schema-tree", Tree).root.expand()
        self.query_one(EditorView).focus()
        self._update_status_bar()
        self._initialize()

    @work(thread=True, exclusive=True)
    def _initialize(self):
        """Connect MySQL and the AI provider without blocking the UI."""
        self._sys(f"Connecting to MySQL at {mysql_config.host}:{mysql_config.port}...")
        if self.mysql_manager.connect(self._initial_database):
            self.call_from_thread(setattr, self, "is_connected", True)
            self._sys("✓ MySQL connected", "success")
            dbs = self.mysql_manager.list_databases()
            if dbs:
                self._sys(f"Available databases: {', '.join(dbs)}")
            if self.mysql_manager.current_database:
                self.call_from_thread(setattr, self, "current_db", self.mysql_manager.current_database)
                self._load_schema()
        else:
            self._sys("✗ MySQL connection failed! Check your .env", "error")

        provider = self.provider or create_provider(ollama_config)
        self.call_from_thread(self._attach_provider, provider)

    def _attach_provider(self, provider: AIProvider) -> None:
        self.provider = provider
        if provider.is_configured:
            self.ai_source.set_provider(provider)
            self._sys(f"✓ AI completions via {provider.provider_name} ({provider.model_name})", "success")
        else:
            self.ai_source.set_provider(None)
        self._update_status_bar()

    # ── Schema ────────────────────────────────────────────────

    @work(thread=True, exclusive=True, group="schema")
    def _load_schema(self):
        """Pull tables and columns for the current database."""
        try:
            schema = self.mysql_manager.get_schema()
        except Exception as e:
            logger.error(f"Schema load failed: {e}")
            self._sys(f"✗ Could not load schema: {e}", "error")
            return
        self.call_from_thread(self._apply_schema, schema)

    def _apply_schema(self, schema: Dict[str, List[ColumnInfo]]) -> None:
        self._schema = schema
        self.schema_source.load_schema(schema)
        self.editor.set_schema({table: [c.name for c in cols] for table, cols in schema.items()})
        self.engine.clear_cache()
        self.ai_source.clear_cache()

        tree = self.query_one("#schema-tree", Tree)
        tree.clear()
        tree.root.set_label(self.current_db)
        for table, columns in schema.items():
            node = tree.root.add(f"📊 {table}", data=table)
            for col in columns:
                key = " 🔑" if col.primary_key else ""
                node.add_leaf(f"{col.name} [dim]{col.type}[/dim]{key}", data=col.name)
        tree.root.expand()

        self._print_result(f"[dim]Loaded {len(schema)} table(s) from[/dim] [bold #58a6ff]{self.current_db}[/bold #58a6ff]")
        self._update_status_bar()

    def on_tree_node_selected(self, event: Tree.NodeSelected) -> None:
        """Insert the table / column name at the cursor."""
        if event.node.data and self.editor.mode is EditorMode.INSERT:
            self.editor.insert_text(str(event.node.data))
            self.query_one(EditorView).refresh()
        self.query_one(EditorView).focus()

    # ── Completion ────────────────────────────────────────────

    def on_editor_view_changed(self, event: EditorView.Changed) -> None:
        self._update_status_bar()
        if self.editor.mode is not EditorMode.INSERT:
            return
        if self._completion_timer is not None:
            self._completion_timer.stop()
        self._completion_timer = self.set_timer(
            completion_config.debounce_ms / 1000, self._request_completion
        )

    def _request_completion(self) -> None:
        self._completion_seq += 1
        self._complete(
            self._completion_seq,
            self.editor.get_value(),
            self.editor.cursor,
            self.current_db if self.current_db != "None" else "",
            self.schema_source.tables,
        )

    @work(thread=True, group="completion")
    def _complete(self, seq: int, text: str, cursor: int, database: str, tables: List[str]):
        items = self.engine.complete(text, cursor, database, tables)
        self.call_from_thread(self._apply_completions, seq, text, cursor, items)

    def _apply_completions(self, seq: int, text: str, cursor: int, items: List[CompletionItem]) -> None:
        if seq != self._completion_seq:
            return
        view = self.query_one(EditorView)
        if self.editor.mode is not EditorMode.INSERT:
            view.hide_completions()
            return
        word = self.editor.buffer.word_before(cursor)
        after_dot = text[cursor - 1:cursor] == "."
        view.show_completions(items if (word or after_dot) else [])

    def on_editor_view_completions_changed(self, event: EditorView.CompletionsChanged) -> None:
        menu = self.query_one("#completion-list", OptionList)
        menu.clear_options()
        if not event.items:
            menu.display = False
            return
        menu.add_options([
            Option(f"{item.kind.icon} {item.label}  [dim]{item.detail}[/dim]")
            for item in event.items
        ])
        menu.highlighted = event.index
        menu.display = True

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        view = self.query_one(EditorView)
        view.accept_completion(event.option_index)
        view.focus()

    # ── Query Execution ───────────────────────────────────────

    def on_editor_view_execute_requested(self, event: EditorView.ExecuteRequested) -> None:
        sql = event.sql.strip()
        if not sql:
            return
        if is_destructive_query(sql):
            self.push_screen(
                DestructiveConfirmModal(
                    sql,
                    callback=lambda ok: (
                        self._execute_sql(sql) if ok
                        else self._print_result("[dim]Query cancelled.[/dim]")
                    ),
                )
            )
        else:
            self._execute_sql(sql)

    @work(thread=True, exclusive=False, group="query")
    def _execute_sql(self, sql: str):
        """Run the buffer or selection against MySQL in a background thread."""
        self.call_from_thread(
            self._print_result,
            f"\n[dim #58a6ff]mysql [{self.current_db}]>[/dim #58a6ff]",
        )
        self.call_from_thread(self._print_result, self.query_executor.format_sql_syntax(sql))

        results = self.query_executor.execute_and_format(
            sql,
            print_output=False,
            output_callback=lambda renderable: self.call_from_thread(self._print_result, renderable),
        )

        self.call_from_thread(setattr, self, "query_count", self.query_count + len(results))
        self.call_from_thread(self.engine.clear_cache)
        self.call_from_thread(self._update_status_bar)

        if any(r.success and r.query_type in SCHEMA_CHANGING for r in results):
            db = self.mysql_manager.current_database
            if db:
                self.call_from_thread(setattr, self, "current_db", db)
                self._load_schema()

    # ── AI Prompt ─────────────────────────────────────────────

    def on_editor_view_ai_prompt_requested(self, event: EditorView.AIPromptRequested) -> None:
        if self.provider is None or not self.provider.is_configured:
            self.notify("AI is disabled. Set OLLAMA_ENABLED=true in .env", title="AI", severity="warning")
            return
        self.push_screen(AIPromptModal(event.selection, callback=lambda text: self._run_ai(text, event.selection)))

    @work(thread=True, exclusive=True, group="ai")
    def _run_ai(self, text: str, selection: str):
        context = build_schema_context(self._schema)
        self.call_from_thread(self._update_status_bar, "⏳ Asking the model...")
        try:
            if selection:
                sql = self.provider.refactor_sql(selection, text, context)
            else:
                sql = self.provider.nl2sql(text, context)
        except Exception as e:
            logger.error(f"AI request failed: {e}")
            self.call_from_thread(
                self.notify,
                f"{e}\nMake sure Ollama is running: ollama serve",
                title="AI",
                severity="error",
            )
            return
        finally:
            self.call_from_thread(self._update_status_bar)
        self.call_from_thread(self._apply_ai_sql, sql, bool(selection))

    def _apply_ai_sql(self, sql: str, replace_selection: bool) -> None:
        if not sql:
            self.notify("The model returned nothing", title="AI", severity="warning")
            return
        if replace_selection and self.editor.has_active_selection():
            start, end = self.editor.selection_range()
            self.editor.set_cursor(end)
            self.editor.apply_completion(sql, start=start)
            self.editor.action_exit_visual()
        elif self.editor.get_value().strip():
            self.editor.apply_completion(("\n" if self.editor.cursor else "") + sql, start=self.editor.cursor)
        else:
            self.editor.set_value(sql)
        self.query_one(EditorView).refresh()

    # ── UI Helpers ────────────────────────────────────────────

    def _print_result(self, renderable) -> None:
        """Write to the results panel."""
        self.query_one("#results", RichLog).write(renderable)

    def _sys(self, msg: str, level: str = "info") -> None:
        """Write a [System] line to the results panel from a worker thread."""
        colors = {
            "info":    "dim",
            "success": "green",
            "error":   "bold red",
            "warning": "yellow",
        }
        c = colors.get(level, "dim")
        self.call_from_thread(self._print_result, f"[{c}][System] {msg}[/{c}]")

    def _update_status_bar(self, activity: str = "") -> None:
        """Update the bottom status bar."""
        line, col = self.editor.cursor_line_col
        conn = "[green]● Connected[/green]" if self.is_connected else "[red]● Disconnected[/red]"
        ai = "[green]AI on[/green]" if self.ai_source.enabled else "[dim]AI off[/dim]"
        left = (
            f"{self.editor.mode.label.strip()}  │  Ln {line + 1}, Col {col + 1}  │  "
            f"{conn}  │  DB: [bold #58a6ff]{self.current_db}[/bold #58a6ff]  │  "
            f"Queries: {self.query_count}  │  History: {len(self.history_source.entries)}  │  {ai}"
        )
        if activity:
            left += f"  │  {activity}"
        ts = datetime.now().strftime("%H:%M:%S")
        self.query_one("#status-left", Label).update(left)
        self.query_one("#status-right", Label).update(f"mysql@{mysql_config.host}  │  {ts}")
        self.query_one("#header-db-badge", Label).update(f" ◆ {self.current_db} ")
        self.query_one("#header-ai-badge", Label).update(
            f" 🤖 {self.provider.model_name} " if self.ai_source.enabled and self.provider else ""
        )

    def _help_text(self) -> str:
        lines = [f"[bold]Key bindings ({self.editor.mode.label.strip()} mode)[/bold]"]
        for key, action in sorted(self.editor.dispatch.bindings_for(self.editor.mode).items()):
            lines.append(f"  [#58a6ff]{key:<24}[/#58a6ff] {action.replace('_', ' ')}")
        keymap = self.editor.config.keymap
        lines.append(f"  [#58a6ff]{' / '.join(keymap.execute_selection):<24}[/#58a6ff] run buffer or selection")
        lines.append(f"  [#58a6ff]{' / '.join(keymap.ai_prompt_selection):<24}[/#58a6ff] ask AI")
        return "\n".join(lines)

    # ── Action Handlers (keyboard shortcuts) ─────────────────

    def action_refresh_schema(self) -> None:
        """F2"""
        if self.is_connected and self.current_db != "None":
            self._load_schema()

    def action_clear_results(self) -> None:
        """F4"""
        self.query_one("#results", RichLog).clear()

    def action_toggle_help(self) -> None:
        """F1"""
        self._print_result(self._help_text())

    def action_quit(self) -> None:
        """Ctrl+Q"""
        self.ai_source.close()
        self.mysql_manager.disconnect()
        self.exit()

    # ── Watch Reactive State ──────────────────────────────────

    def watch_current_db(self, db_name: str) -> None:
        if self.is_mounted:
            self._update_status_bar()
            if db_name != "None":
                self._print_result(f"[green]Database changed to[/green] [bold #58a6ff]{db_name}[/bold #58a6ff]")

    def watch_is_connected(self, _: bool) -> None:
        if self.is_mounted:
            self._update_status_bar()

    def watch_query_count(self, _: int) -> None:
        if self.is_mounted:
            self._update_status_bar()
