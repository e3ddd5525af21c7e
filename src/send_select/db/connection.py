"""
Connection management for the pooled SEND data store.

Two backends share one DB-API code path:
- SQLite via the standard library (default, a single file per pool)
- SQL Server via mssql-python (Microsoft's native Python driver)
  https://github.com/microsoft/mssql-python

Both use qmark (``?``) parameter placeholders, so SQL text is shared.
"""

import re
import sqlite3
from collections.abc import Generator, Iterable, Sequence, Sized
from contextlib import contextmanager
from typing import Any

from send_select.config import settings


@contextmanager
def get_connection() -> Generator[Any, None, None]:
    """
    Get a database connection as a context manager.

    The backend is taken from ``settings.db_backend`` at call time.

    Usage:
        with get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT 1")
    """
    if settings.db_backend == "mssql":
        from mssql_python import connect as mssql_connect

        conn = mssql_connect(settings.connection_string())
    else:
        conn = sqlite3.connect(settings.db_path)
    try:
        yield conn
    finally:
        conn.close()


def _run(cursor: Any, sql: str, params: Sequence | None) -> None:
    # mssql-python takes parameters positionally, sqlite3 as one sequence
    if settings.db_backend == "mssql":
        if params:
            cursor.execute(sql, *params)
        else:
            cursor.execute(sql)
    else:
        cursor.execute(sql, tuple(params or ()))


def execute(sql: str, params: Sequence | None = None, commit: bool = True) -> list[tuple]:
    """
    Execute a SQL query and return all rows.

    Args:
        sql: SQL statement to execute
        params: Optional parameters for parameterized queries
        commit: Whether to commit the transaction (default True for writes)

    Returns:
        List of result rows as tuples (empty for statements without a result set)
    """
    with get_connection() as conn:
        cursor = conn.cursor()
        _run(cursor, sql, params)
        rows = [tuple(row) for row in cursor.fetchall()] if cursor.description else []
        if commit:
            conn.commit()
        return rows


def execute_many(sql: str, params_list: list[tuple]) -> int:
    """
    Execute a SQL statement with multiple parameter sets (batch insert).

    Args:
        sql: SQL statement with parameter placeholders
        params_list: List of parameter tuples

    Returns:
        Number of rows affected
    """
    if not params_list:
        return 0
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.executemany(sql, params_list)
        conn.commit()
        return cursor.rowcount


def execute_script(sql_script: str) -> None:
    """
    Execute a multi-statement SQL script.

    Splits on 'GO' statements for SQL Server compatibility and on ';' for
    SQLite, which runs one statement per execute call.

    Args:
        sql_script: SQL script, optionally with GO separators
    """
    batches = re.split(r"(?m)^\s*GO\s*$", sql_script, flags=re.IGNORECASE)
    with get_connection() as conn:
        cursor = conn.cursor()
        for batch in batches:
            batch = batch.strip()
            if not batch:
                continue
            if settings.db_backend == "mssql":
                cursor.execute(batch)
            else:
                for statement in batch.split(";"):
                    if statement.strip():
                        cursor.execute(statement)
        conn.commit()


def placeholders(values: Sized) -> str:
    """Return ``?, ?, ...`` for an IN (...) list with one marker per value."""
    return ", ".join("?" * len(values))


def batched(values: Iterable[str], size: int | None = None) -> Generator[list[str], None, None]:
    """Split ids into lists no longer than ``settings.query_batch_size``."""
    size = size or settings.query_batch_size
    batch: list[str] = []
    for value in values:
        batch.append(value)
        if len(batch) == size:
            yield batch
            batch = []
    if batch:
        yield batch


def table_exists(table: str) -> bool:
    """Check whether a table is present in the data store (case-insensitive)."""
    if settings.db_backend == "mssql":
        sql = "SELECT 1 FROM INFORMATION_SCHEMA.TABLES WHERE UPPER(TABLE_NAME) = ?"
    else:
        sql = "SELECT 1 FROM sqlite_master WHERE type = 'table' AND UPPER(name) = ?"
    return bool(execute(sql, (table.upper(),), commit=False))


def column_names(table: str) -> list[str]:
    """List the upper-cased column names of a table (empty if the table is missing)."""
    if settings.db_backend == "mssql":
        rows = execute(
            """
            SELECT COLUMN_NAME
            FROM INFORMATION_SCHEMA.COLUMNS
            WHERE UPPER(TABLE_NAME) = ?
            ORDER BY ORDINAL_POSITION
            """,
            (table.upper(),),
            commit=False,
        )
        return [row[0].upper() for row in rows]
    # PRAGMA does not accept parameters; only names validated by table_exists get here
    if not table_exists(table) or not table.isidentifier():
        return []
    rows = execute(f"PRAGMA table_info({table})", commit=False)
    return [row[1].upper() for row in rows]
