"""Result materialization: cursor rows to typed ColumnValue cells.

The materializer copies everything out of a live cursor before the
transaction commits, since the cursor is unusable afterwards.

Conversion rules for one cell:
    1. A NULL cell is NullValue, whatever the column's declared type.
    2. Otherwise the declared type name is normalized (upper-cased, size
       suffix such as ``(100)`` dropped) and looked up in
       DECLARED_TYPE_CONVERTERS.
    3. Unknown declared types render the value as TextValue.
    4. Columns without a declared type (expressions such as ``COUNT(*)``)
       use the storage class of the value itself.
    5. A value that cannot be represented losslessly by its column's
       variant (e.g. ``'abc'`` in an INTEGER column, which SQLite allows)
       also falls back to its storage class.

References:
    - https://www.sqlite.org/datatype3.html (storage classes and affinity)
"""

from __future__ import annotations

import sqlite3
from typing import Any, Callable, Sequence

from sqlite_engine.adapters.outbound.column_origins import ColumnOrigin
from sqlite_engine.domain.entities import ColumnMetadata, QueryResult
from sqlite_engine.domain.errors import StatementFailed
from sqlite_engine.domain.value_objects import (
    INT64_MAX,
    INT64_MIN,
    NULL,
    BooleanValue,
    ColumnValue,
    IntegerValue,
    RealValue,
    TextValue,
)
from sqlite_engine.infrastructure.metrics import MetricsRegistry, get_metrics


Converter = Callable[[Any], "ColumnValue | None"]


def render_text(value: Any) -> str:
    """Render a stored value the way SQLite casts it to TEXT."""
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, float):
        return repr(value)
    return str(value)


def _to_integer(value: Any) -> ColumnValue | None:
    if isinstance(value, int):
        return IntegerValue(value)
    if isinstance(value, float) and value.is_integer() and INT64_MIN <= value <= INT64_MAX:
        return IntegerValue(int(value))
    return None


def _to_real(value: Any) -> ColumnValue | None:
    if isinstance(value, (int, float)):
        return RealValue(float(value))
    return None


def _to_boolean(value: Any) -> ColumnValue | None:
    if isinstance(value, (int, float)):
        return BooleanValue(value != 0)
    if isinstance(value, str) and value.lower() in ("true", "false"):
        return BooleanValue(value.lower() == "true")
    return None


def _to_text(value: Any) -> ColumnValue:
    return TextValue(render_text(value))


DECLARED_TYPE_CONVERTERS: dict[str, Converter] = {
    "INTEGER": _to_integer,
    "REAL": _to_real,
    "BOOLEAN": _to_boolean,
    "TEXT": _to_text,
    "VARCHAR": _to_text,
    "CHAR": _to_text,
}
"""Declared type name -> converter. Anything not listed renders as text."""


def normalize_type_name(declared_type: str) -> str:
    """Upper-case a declared type and drop any size suffix.

    Example:
        >>> normalize_type_name("varchar(100)")
        'VARCHAR'
    """
    return declared_type.split("(", 1)[0].strip().upper()


def storage_class_value(value: Any) -> ColumnValue:
    """Convert a non-NULL value by its SQLite storage class."""
    if isinstance(value, int):
        return IntegerValue(value)
    if isinstance(value, float):
        return RealValue(value)
    return TextValue(render_text(value))


class ResultMaterializer:
    """Copies cursor metadata and rows into a QueryResult."""

    def __init__(self, metrics: MetricsRegistry | None = None) -> None:
        self._metrics = metrics or get_metrics()

    def read_metadata(
        self,
        cursor: sqlite3.Cursor,
        origins: Sequence[ColumnOrigin | None] | None = None,
    ) -> tuple[ColumnMetadata, ...]:
        """Build column metadata, left to right.

        Args:
            cursor: Cursor of an executed SELECT.
            origins: One resolved origin per column (None entries for
                expression columns). Missing origins mean no declared types.

        Raises:
            StatementFailed: If the statement produced no result set.
        """
        if cursor.description is None:
            raise StatementFailed("Statement did not return a result set")

        columns = []
        for idx, description in enumerate(cursor.description):
            origin = origins[idx] if origins is not None and idx < len(origins) else None
            if origin is None:
                columns.append(ColumnMetadata(name=description[0]))
            else:
                columns.append(
                    ColumnMetadata(
                        name=description[0],
                        declared_type=origin.declared_type,
                        is_nullable=origin.is_nullable,
                    )
                )
        return tuple(columns)

    def read_value(self, raw: Any, column: ColumnMetadata) -> ColumnValue:
        """Convert one stored value according to its column."""
        if raw is None:
            return NULL

        type_name = normalize_type_name(column.declared_type)
        if not type_name:
            return storage_class_value(raw)

        converter = DECLARED_TYPE_CONVERTERS.get(type_name)
        if converter is None:
            return TextValue(render_text(raw))

        value = converter(raw)
        if value is None:
            return storage_class_value(raw)
        return value

    def materialize(
        self,
        cursor: sqlite3.Cursor,
        origins: Sequence[ColumnOrigin | None] | None = None,
    ) -> QueryResult:
        """Drain ``cursor`` into a detached QueryResult."""
        columns = self.read_metadata(cursor, origins)
        rows = []
        for raw_row in cursor:
            rows.append(
                tuple(self.read_value(raw_row[idx], col) for idx, col in enumerate(columns))
            )
        self._metrics.rows_materialized_total.inc(len(rows))
        return QueryResult(columns=columns, rows=tuple(rows))
