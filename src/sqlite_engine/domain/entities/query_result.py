"""Materialized query result.

A QueryResult is an owned copy of everything a cursor produced: column
metadata plus every row converted into ColumnValue cells. It outlives the
connection and cursor that produced it.

Serialized shape (``to_dict``)::

    {
        "columns": [{"name": ..., "typeName": ..., "isNullable": ...}],
        "rows": [[{"kind": ..., "value": ...}, ...], ...]
    }
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Iterator

from sqlite_engine.domain.value_objects.column_values import ColumnValue


@dataclass(frozen=True, slots=True)
class ColumnMetadata:
    """Metadata for one result column.

    Attributes:
        name: Column label as reported by the cursor (alias if given)
        declared_type: Declared type of the originating table column; empty
            for expression columns, which have no declared type
        is_nullable: False when the origin is NOT NULL or a PRIMARY KEY column
    """

    name: str
    declared_type: str = ""
    is_nullable: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "typeName": self.declared_type,
            "isNullable": self.is_nullable,
        }


@dataclass(frozen=True, slots=True)
class QueryResult:
    """Columns and rows copied out of a cursor."""

    columns: tuple[ColumnMetadata, ...] = ()
    rows: tuple[tuple[ColumnValue, ...], ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        """Validate that every row has one cell per column."""
        width = len(self.columns)
        for position, row in enumerate(self.rows):
            if len(row) != width:
                raise ValueError(
                    f"row {position} has {len(row)} cells, expected {width}"
                )

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]

    def column(self, name: str) -> int:
        """Return the index of the first column labelled ``name``.

        Raises:
            KeyError: If no column has that name.
        """
        for idx, col in enumerate(self.columns):
            if col.name == name:
                return idx
        raise KeyError(f"Column '{name}' not found")

    def __iter__(self) -> Iterator[tuple[ColumnValue, ...]]:
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)

    def to_dict(self) -> dict[str, Any]:
        return {
            "columns": [c.to_dict() for c in self.columns],
            "rows": [[cell.to_dict() for cell in row] for row in self.rows],
        }

    def to_json(self, **kwargs: Any) -> str:
        return json.dumps(self.to_dict(), **kwargs)
