"""Outbound adapters - implementations of outbound ports.

These adapters talk to the backing SQLite store: brokering connections
and reading schema facts for result columns.
"""

from sqlite_engine.adapters.outbound.column_origins import ColumnOrigin, ColumnOriginResolver
from sqlite_engine.adapters.outbound.sqlite_pool import SQLitePool

__all__ = [
    "ColumnOrigin",
    "ColumnOriginResolver",
    "SQLitePool",
]
