"""
Database utilities for the pooled SEND data store.

Provides connection management, schema initialization, and bulk loading utilities.
"""

from send_select.db.connection import (
    column_names,
    execute,
    execute_many,
    get_connection,
    table_exists,
)
from send_select.db.schema import init_schema, load_domain

__all__ = [
    "get_connection",
    "execute",
    "execute_many",
    "table_exists",
    "column_names",
    "init_schema",
    "load_domain",
]
