# ============================================================
# SQDesk - Terminal SQL Client
# core/mysql_manager.py - MySQL Connection & Operations Manager
# ============================================================

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import mysql.connector
from loguru import logger
from mysql.connector import Error as MySQLError

from config import MySQLConfig, mysql_config
from core.completion.sources.schema import ColumnInfo

ROW_QUERY_TYPES = ("SELECT", "SHOW", "DESCRIBE", "EXPLAIN")

SCHEMA_QUERY = """
    SELECT TABLE_NAME, COLUMN_NAME, COLUMN_TYPE, IS_NULLABLE, COLUMN_KEY, COLUMN_COMMENT
    FROM information_schema.COLUMNS
    WHERE TABLE_SCHEMA = %s
    ORDER BY TABLE_NAME, ORDINAL_POSITION
"""


class DatabaseError(Exception):
    """Raised by query()/execute() when MySQL rejects a statement or is unreachable."""


@dataclass
class QueryResult:
    """Outcome of one statement run through execute_query()."""
    success: bool
    query: str
    columns: List[str] = field(default_factory=list)
    rows: List[Tuple] = field(default_factory=list)
    affected_rows: int = 0
    last_insert_id: Optional[int] = None
    error: Optional[str] = None
    execution_ms: int = 0
    query_type: str = "UNKNOWN"

    @property
    def returns_rows(self) -> bool:
        return self.query_type in ROW_QUERY_TYPES

    def __repr__(self):
        if self.success:
            return f"<QueryResult {self.query_type} rows={len(self.rows)} affected={self.affected_rows}>"
        return f"<QueryResult failed: {self.error}>"


def detect_query_type(query: str) -> str:
    """Classify a statement by its first keyword."""
    first_word = query.strip().split()[0].upper() if query.strip() else ""
    type_map = {
        "SELECT": "SELECT",
        "WITH": "SELECT",
        "SHOW": "SHOW",
        "DESCRIBE": "DESCRIBE",
        "DESC": "DESCRIBE",
        "EXPLAIN": "EXPLAIN",
        "INSERT": "INSERT",
        "UPDATE": "UPDATE",
        "DELETE": "DELETE",
        "CREATE": "CREATE",
        "DROP": "DROP",
        "ALTER": "ALTER",
        "TRUNCATE": "TRUNCATE",
        "USE": "USE",
        "SET": "SET",
        "BEGIN": "TRANSACTION",
        "COMMIT": "TRANSACTION",
        "ROLLBACK": "TRANSACTION",
        "CALL": "PROCEDURE",
        "GRANT": "PRIVILEGE",
        "REVOKE": "PRIVILEGE",
    }
    return type_map.get(first_word, "UNKNOWN")


class MySQLManager:
    """
    Database collaborator: connection lifecycle, schema introspection for
    the completion engine, and statement execution for the run command.
    """

    def __init__(self, config: Optional[MySQLConfig] = None):
        self.config = config or mysql_config
        self._connection: Optional[mysql.connector.MySQLConnection] = None
        self._cursor = None
        self._current_database: Optional[str] = None
        self._connected: bool = False

    # ── Connection Management ─────────────────────────────────

    def connect(self, database: Optional[str] = None) -> bool:
        """Establish connection to MySQL server."""
        database = database or self.config.default_database or None
        try:
            params = self.config.get_connection_params(database)
            self._connection = mysql.connector.connect(**params)
            self._cursor = self._connection.cursor(buffered=True)
            self._connected = True
            self._current_database = database
            logger.info(f"Connected to MySQL at {self.config.host}:{self.config.port}")
            return True
        except MySQLError as e:
            logger.error(f"MySQL connection failed: {e}")
            self._connected = False
            return False

    def disconnect(self):
        """Close the MySQL connection gracefully."""
        try:
            if self._cursor:
                self._cursor.close()
            if self._connection and self._connection.is_connected():
                self._connection.close()
            logger.info("Disconnected from MySQL")
        except MySQLError as e:
            logger.warning(f"Error during disconnect: {e}")
        finally:
            self._connected = False
            self._connection = None
            self._cursor = None

    def is_connected(self) -> bool:
        """Check if connection is alive."""
        try:
            if self._connection and self._connection.is_connected():
                self._connection.ping(reconnect=True, attempts=3, delay=1)
                return True
        except MySQLError as e:
            logger.debug(f"Connection check failed: {e}")
        return False

    def reconnect(self) -> bool:
        """Attempt to reconnect."""
        self.disconnect()
        return self.connect(self._current_database)

    def _ensure_connected(self) -> bool:
        return self.is_connected() or self.reconnect()

    # ── Database Selection ────────────────────────────────────

    def use_database(self, database_name: str) -> QueryResult:
        """Switch to a specific database."""
        result = self.execute_query(f"USE `{database_name}`")
        if result.success:
            self._current_database = database_name
            logger.info(f"Switched to database: {database_name}")
        return result

    @property
    def current_database(self) -> Optional[str]:
        return self._current_database

    def list_databases(self) -> List[str]:
        """Return list of all MySQL databases."""
        result = self.execute_query("SHOW DATABASES")
        if result.success:
            return [row[0] for row in result.rows]
        return []

    # ── Schema Introspection ──────────────────────────────────

    def get_tables(self, database: Optional[str] = None) -> List[str]:
        """Table names of the current or given database."""
        db = database or self._current_database
        if not db:
            return []
        result = self.execute_query(f"SHOW TABLES FROM `{db}`")
        if result.success:
            return [row[0] for row in result.rows]
        return []

    def get_schema(self, database: Optional[str] = None) -> Dict[str, List[ColumnInfo]]:
        """`{table: [ColumnInfo]}` for every table, in ordinal column order."""
        db = database or self._current_database
        if not db:
            return {}

        rows, _ = self.query(SCHEMA_QUERY, (db,))
        schema: Dict[str, List[ColumnInfo]] = {table: [] for table in self.get_tables(db)}
        for table, name, col_type, nullable, key, comment in rows:
            schema.setdefault(table, []).append(ColumnInfo(
                name=name,
                type=col_type.decode() if isinstance(col_type, bytes) else str(col_type),
                nullable=nullable == "YES",
                primary_key=key == "PRI",
                comment=comment or "",
            ))

        logger.info(f"Loaded schema for {db}: {len(schema)} table(s)")
        return schema

    # ── Query Execution ───────────────────────────────────────

    def query(self, sql: str, params: Optional[Sequence[Any]] = None) -> Tuple[List[Tuple], List[str]]:
        """Run a row-returning statement. Raises DatabaseError."""
        if not self._ensure_connected():
            raise DatabaseError("Not connected to MySQL")
        try:
            self._cursor.execute(sql, params)
            columns = [desc[0] for desc in self._cursor.description] if self._cursor.description else []
            return list(self._cursor.fetchall()), columns
        except MySQLError as e:
            logger.error(f"Query failed: {e}\nQuery: {sql}")
            raise DatabaseError(str(e)) from e

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> int:
        """Run a modifying statement and commit. Returns the affected row count. Raises DatabaseError."""
        if not self._ensure_connected():
            raise DatabaseError("Not connected to MySQL")
        try:
            self._cursor.execute(sql, params)
            self._connection.commit()
            return self._cursor.rowcount
        except MySQLError as e:
            logger.error(f"Execute failed: {e}\nQuery: {sql}")
            raise DatabaseError(str(e)) from e

    def execute_query(self, query: str) -> QueryResult:
        """
        Run any statement and describe the outcome. SQL errors come back
        as success=False (and are logged); this never raises for them.
        """
        if not self._ensure_connected():
            return QueryResult(success=False, query=query, error="Not connected to MySQL. Reconnection failed.")

        query = query.strip().rstrip(";").strip()
        result = QueryResult(success=True, query=query, query_type=detect_query_type(query))
        started = time.perf_counter()
        try:
            if result.query_type == "USE":
                # Switching through the connection keeps `database` in sync for reconnects.
                db_name = query.split()[-1].strip("`'\"")
                self._connection.database = db_name
                self._current_database = db_name
            else:
                self._cursor.execute(query)
                if result.returns_rows:
                    description = self._cursor.description or []
                    result.columns = [desc[0] for desc in description]
                    result.rows = list(self._cursor.fetchall())
                else:
                    self._connection.commit()
                    result.affected_rows = self._cursor.rowcount
                    result.last_insert_id = self._cursor.lastrowid
        except MySQLError as e:
            logger.error(f"Statement failed ({result.query_type}): {e}\nQuery: {query}")
            result.success = False
            result.error = str(e)
        result.execution_ms = int((time.perf_counter() - started) * 1000)
        return result
