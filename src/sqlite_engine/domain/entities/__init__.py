"""Domain entities for materialized query results.

Exports:
    - ColumnMetadata: Name, declared type and nullability of a result column
    - QueryResult: Detached, fully-copied columns and rows of a query
"""

from sqlite_engine.domain.entities.query_result import ColumnMetadata, QueryResult

__all__ = [
    "ColumnMetadata",
    "QueryResult",
]
