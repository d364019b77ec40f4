"""Adapters layer - concrete implementations of port interfaces."""

from sqlite_engine.adapters.outbound import (
    ColumnOrigin,
    ColumnOriginResolver,
    SQLitePool,
)

__all__ = [
    # Outbound adapters
    "ColumnOrigin",
    "ColumnOriginResolver",
    "SQLitePool",
]
