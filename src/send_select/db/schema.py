"""
Database schema management.

Creates the SEND domain tables read by the attribute queries and bulk-loads
domain data from polars frames.
"""

import logging
from pathlib import Path

import polars as pl

from send_select.db.connection import column_names, execute_many, execute_script

logger = logging.getLogger(__name__)

SCHEMA_FILE = Path(__file__).parent / "schema.sql"

DOMAINS = ("TS", "DM", "EX", "POOLDEF")


def load_schema_sql(schema_path: Path) -> str:
    """Load SQL schema from file."""
    return schema_path.read_text(encoding="utf-8")


def init_schema() -> None:
    """
    Initialize the database schema from schema.sql.

    This creates the domain tables TS, DM, EX and POOLDEF.
    """
    if not SCHEMA_FILE.exists():
        raise FileNotFoundError(f"Schema file not found: {SCHEMA_FILE}")

    execute_script(load_schema_sql(SCHEMA_FILE))


def drop_schema() -> None:
    """
    Drop all SEND domain tables (for testing/reset).

    WARNING: This destroys all data!
    """
    execute_script("\n".join(f"DROP TABLE IF EXISTS {domain};" for domain in DOMAINS))


def load_domain(domain: str, frame: pl.DataFrame) -> int:
    """
    Append the rows of a polars frame to a domain table.

    Frame columns are matched to table columns case-insensitively; columns the
    table does not have are ignored.

    Args:
        domain: Domain table name (e.g. "EX")
        frame: Rows to insert

    Returns:
        Number of rows inserted
    """
    domain = domain.upper()
    if domain not in DOMAINS:
        raise ValueError(f"Unknown domain {domain!r}, expected one of {', '.join(DOMAINS)}")

    table_columns = set(column_names(domain))
    frame = frame.rename({col: col.upper() for col in frame.columns})
    columns = [col for col in frame.columns if col in table_columns]
    skipped = [col for col in frame.columns if col not in table_columns]
    if skipped:
        logger.warning("%s: ignoring columns not in table: %s", domain, ", ".join(skipped))
    if not columns:
        return 0

    sql = f"INSERT INTO {domain} ({', '.join(columns)}) VALUES ({', '.join('?' * len(columns))})"
    rows = list(frame.select(columns).iter_rows())
    execute_many(sql, rows)
    logger.debug("%s: loaded %d rows", domain, len(rows))
    return len(rows)
