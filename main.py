#!/usr/bin/env python3
# ============================================================
# SQDesk - Terminal SQL Client
# main.py — Application Entry Point
# ============================================================
#
# Usage:
#   sqdesk                         → Launch full TUI (editor + results)
#   sqdesk simple                  → Launch simple prompt_toolkit shell
#   sqdesk inspect shop            → Print tables/columns of a database
#   sqdesk complete "SELECT * FR"  → Print ranked completions
#   sqdesk version                 → Show version info
#
# Prerequisites:
#   1. MySQL server running and accessible
#   2. Optional: Ollama running for AI completions
#      → ollama serve
#      → ollama pull qwen3:8b   (or your chosen model)
#   3. .env file configured
# ============================================================

import sys
import os
from typing import Optional

import click
from loguru import logger

# Add project root to path
sys.path.insert(0, os.path.dirname(__file__))

from utils.logger import setup_logger
from config import app_config, completion_config, mysql_config, ollama_config


@click.group(invoke_without_command=True)
@click.option("--database", "-d", default=None, help="Database to open on start.")
@click.pass_context
def cli(ctx, database: Optional[str]):
    """SQDesk — Terminal SQL Client"""
    ctx.ensure_object(dict)
    ctx.obj["database"] = database
    if ctx.invoked_subcommand is None:
        launch_tui(database)


@cli.command()
@click.pass_context
def tui(ctx):
    """Launch the full TUI editor (default)."""
    launch_tui(ctx.obj.get("database"))


@cli.command()
@click.pass_context
def simple(ctx):
    """Launch the simple prompt_toolkit shell."""
    launch_simple_cli(ctx.obj.get("database"))


@cli.command()
def version():
    """Display SQDesk version information."""
    show_version()


@cli.command()
@click.argument("database")
def inspect(database: str):
    """Print the tables and columns the completer would load."""
    run_inspect(database)


@cli.command()
@click.argument("sql")
@click.option("--cursor", "-c", type=int, default=None, help="Cursor offset (default: end of SQL).")
@click.option("--database", "-d", default=None, help="Load schema completions from this database.")
def complete(sql: str, cursor: Optional[int], database: Optional[str]):
    """Print ranked completions for SQL at the cursor."""
    run_complete(sql, cursor, database)


# ── Launch Functions ──────────────────────────────────────────

def launch_tui(database: Optional[str] = None):
    """Start the full Textual TUI application."""
    setup_logger(app_config.log_file, app_config.log_level)
    logger.info(f"Starting SQDesk v{app_config.version} (TUI mode)")

    from ui.tui import SQDeskApp
    app = SQDeskApp(database=database)
    app.run()


def launch_simple_cli(database: Optional[str] = None):
    """
    Simple CLI mode — no Textual TUI, just a prompt_toolkit shell.
    Useful for environments where TUI doesn't work or for debugging.
    """
    setup_logger(app_config.log_file, app_config.log_level)

    from simple_cli import SimpleCLI
    cli_app = SimpleCLI(database=database)
    cli_app.run()


def show_version():
    """Display version and configuration info."""
    ai = f"{ollama_config.model} @ {ollama_config.base_url}" if ollama_config.enabled else "disabled"
    print(f"""
╔══════════════════════════════════════════════════════╗
║            SQDesk — Terminal SQL Client              ║
╠══════════════════════════════════════════════════════╣
║  Version    : {app_config.version:<38}║
║  MySQL      : {f"{mysql_config.host}:{mysql_config.port} (user: {mysql_config.user})":<38}║
║  AI         : {ai[:38]:<38}║
║  Completion : {f"max {completion_config.max_items}, debounce {completion_config.debounce_ms}ms":<38}║
╚══════════════════════════════════════════════════════╝
""")


def run_inspect(database: str):
    """Inspect and print a database schema."""
    setup_logger(app_config.log_file, "WARNING")

    from core.mysql_manager import MySQLManager
    mysql = MySQLManager()

    if not mysql.connect(database):
        print(f"❌ Failed to connect to MySQL database: {database}")
        sys.exit(1)

    print(f"\nInspecting database: {database}\n")
    schema = mysql.get_schema(database)
    for table, columns in schema.items():
        print(table)
        for column in columns:
            print(f"  {column.describe()}")
    mysql.disconnect()


def build_oneshot_engine(database: Optional[str], mysql=None):
    """
    Engine for a single `complete` call: keywords, plus the schema when
    `database` is reachable. Query history only exists inside a session,
    so it has no source here.
    """
    from core.completion.engine import CompletionEngine
    from core.completion.sources import KeywordSource, SchemaSource

    engine = CompletionEngine(completion_config)
    engine.register(KeywordSource())

    tables = []
    if database:
        from core.mysql_manager import DatabaseError, MySQLManager
        mysql = mysql or MySQLManager()
        if mysql.connect(database):
            schema_source = SchemaSource()
            try:
                schema_source.load_schema(mysql.get_schema(database))
            except DatabaseError as e:
                print(f"⚠️  Schema unavailable: {e}")
            engine.register(schema_source)
            tables = schema_source.tables
            mysql.disconnect()
        else:
            print(f"⚠️  Could not connect to {database}; keyword completions only")
    return engine, tables


def run_complete(sql: str, cursor: Optional[int], database: Optional[str]):
    """One-shot completion, handy for checking ranking from a shell."""
    setup_logger(app_config.log_file, "WARNING")

    engine, tables = build_oneshot_engine(database)
    offset = len(sql) if cursor is None else cursor
    for item in engine.complete(sql, offset, database or "", tables):
        print(f"{item.score:>5}  {item.kind.icon} {item.label:<30} {item.detail}")


# ── Entry Point ───────────────────────────────────────────────

if __name__ == "__main__":
    cli()
