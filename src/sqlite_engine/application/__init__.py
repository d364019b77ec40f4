"""Application layer for the SQLite engine.

Exports:
    - Engine: Main entry point wrapping one database file
    - TransactionExecutor: Commit-or-rollback around a unit of work
    - ResultMaterializer: Converts cursor rows into typed cells
"""

from sqlite_engine.application.engine import Engine
from sqlite_engine.application.materializer import (
    DECLARED_TYPE_CONVERTERS,
    ResultMaterializer,
    normalize_type_name,
)
from sqlite_engine.application.transaction_executor import TransactionExecutor

__all__ = [
    "Engine",
    "TransactionExecutor",
    "ResultMaterializer",
    "DECLARED_TYPE_CONVERTERS",
    "normalize_type_name",
]
