# ============================================================
# SQDesk - Terminal SQL Client
# core/query_executor.py - Run Command & MySQL-style Output Formatter
# ============================================================

from typing import Callable, List, Optional

from loguru import logger
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from core.completion.sources.history import HistorySource
from core.mysql_manager import MySQLManager, QueryResult


def split_statements(script: str) -> List[str]:
    """Split on `;` into non-empty statements."""
    return [s.strip() for s in script.split(";") if s.strip()]


class QueryExecutor:
    """
    Executes the editor's SQL (whole buffer or selection) and formats
    output like the MySQL CLI: tables, row counts, timing, errors.

    Successful statements are recorded into the HistorySource; this is the
    only place that writes to it.
    """

    def __init__(
            self,
            mysql_manager: MySQLManager,
            history: Optional[HistorySource] = None,
            console: Optional[Console] = None,
    ):
        self.mysql = mysql_manager
        self.history = history
        self.console = console or Console()

    def run(self, sql: str) -> QueryResult:
        """Execute one statement; remember it for completion when it succeeds."""
        result = self.mysql.execute_query(sql)
        if result.success and self.history is not None:
            self.history.add_query(sql)
        logger.info(f"Ran {result.query_type} in {result.execution_ms}ms (success={result.success})")
        return result

    def run_script(self, script: str) -> List[QueryResult]:
        """Run `;`-separated statements in order, stopping at the first failure."""
        results = []
        for statement in split_statements(script):
            result = self.run(statement)
            results.append(result)
            if not result.success:
                logger.warning(f"Script stopped at failed statement: {statement}")
                break
        return results

    def execute_and_format(
            self,
            sql: str,
            print_output: bool = True,
            output_callback: Optional[Callable[[object], None]] = None,
    ) -> List[QueryResult]:
        """
        Run `sql` and emit the MySQL-style renderables.

        Args:
            sql: One or more `;`-separated statements
            print_output: Whether to print to the console directly
            output_callback: Receives each rich renderable (the TUI results log)
        """
        results = self.run_script(sql)
        for result in results:
            for renderable in self.render(result):
                if print_output:
                    self.console.print(renderable)
                if output_callback:
                    output_callback(renderable)
        return results

    # ── Rich Rendering ────────────────────────────────────────

    def render(self, result: QueryResult) -> List:
        """Rich renderables that mimic MySQL CLI output."""
        output = []
        timing = f"({result.execution_ms / 1000:.3f} sec)"

        if not result.success:
            error_text = Text()
            error_text.append("ERROR", style="bold red")
            error_text.append(f": {result.error}", style="red")
            output.append(error_text)
            return output

        query_type = result.query_type

        if result.returns_rows:
            if result.rows:
                output.append(self._build_mysql_table(result))
                row_word = "row" if len(result.rows) == 1 else "rows"
                count_text = Text()
                count_text.append(f"{len(result.rows)} {row_word} in set ", style="dim")
                count_text.append(timing, style="dim italic")
                output.append(count_text)
            else:
                empty_text = Text()
                empty_text.append("Empty set ", style="dim")
                empty_text.append(timing, style="dim italic")
                output.append(empty_text)

        elif query_type == "USE":
            output.append(Text("Database changed", style="green"))

        elif query_type in ("INSERT", "UPDATE", "DELETE"):
            ok_text = Text()
            ok_text.append("Query OK", style="bold green")
            row_word = "row" if result.affected_rows == 1 else "rows"
            ok_text.append(f", {result.affected_rows} {row_word} affected ", style="green")
            ok_text.append(timing, style="dim italic")
            output.append(ok_text)
            if result.last_insert_id and query_type == "INSERT":
                output.append(Text(f"  Last INSERT ID: {result.last_insert_id}", style="dim cyan"))

        else:
            ok_text = Text()
            ok_text.append("Query OK ", style="bold green")
            ok_text.append(timing, style="dim italic")
            output.append(ok_text)

        return output

    def _build_mysql_table(self, result: QueryResult) -> Table:
        table = Table(
            box=box.SIMPLE_HEAVY,
            show_header=True,
            header_style="bold cyan",
            border_style="dim white",
            show_lines=False,
            pad_edge=False,
        )

        for col_name in result.columns:
            table.add_column(str(col_name), style="white", no_wrap=False)

        for row in result.rows:
            table.add_row(*[
                Text("NULL", style="dim italic yellow") if cell is None else str(cell)
                for cell in row
            ])

        return table

    def format_sql_syntax(self, sql: str) -> Syntax:
        """Highlighted echo of the statement being run."""
        return Syntax(sql, "sql", theme="monokai", line_numbers=False, word_wrap=True)

    def destructive_warning(self, sql: str) -> Panel:
        return Panel(
            f"[bold red]⚠️  DESTRUCTIVE OPERATION WARNING[/bold red]\n\n"
            f"[yellow]{sql}[/yellow]\n\n"
            "[red]This operation cannot be undone![/red]",
            title="[bold red]Confirm Execution",
            border_style="red",
        )

    # ── Plain Text ────────────────────────────────────────────

    def format_result_as_text(self, result: QueryResult) -> str:
        """Plain-text MySQL CLI rendering, for the simple shell and tests."""
        if not result.success:
            return f"ERROR: {result.error}"

        if result.returns_rows:
            if not result.rows:
                return "Empty set"
            if not result.columns:
                return str(result.rows)

            col_widths = [len(str(c)) for c in result.columns]
            for row in result.rows:
                for i, cell in enumerate(row):
                    col_widths[i] = max(col_widths[i], len("NULL" if cell is None else str(cell)))

            sep = "+" + "+".join("-" * (w + 2) for w in col_widths) + "+"
            header = "|" + "|".join(f" {str(c):<{w}} " for c, w in zip(result.columns, col_widths)) + "|"
            lines = [sep, header, sep]
            for row in result.rows:
                cells = [f" {'NULL' if cell is None else str(cell):<{w}} " for cell, w in zip(row, col_widths)]
                lines.append("|" + "|".join(cells) + "|")
            lines.append(sep)

            row_word = "row" if len(result.rows) == 1 else "rows"
            lines.append(f"{len(result.rows)} {row_word} in set ({result.execution_ms / 1000:.3f} sec)")
            return "\n".join(lines)

        if result.query_type in ("INSERT", "UPDATE", "DELETE"):
            return f"Query OK, {result.affected_rows} row(s) affected ({result.execution_ms / 1000:.3f} sec)"
        if result.query_type == "USE":
            return "Database changed"
        return f"Query OK ({result.execution_ms / 1000:.3f} sec)"
