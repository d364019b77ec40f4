"""Column origin resolution using sqlglot and PRAGMA table_info.

The sqlite3 driver only reports column labels. To recover the declared
type and nullability of each result column, the SELECT text is parsed with
sqlglot and every projection that is a plain column reference (or a star)
is traced back to its table, whose schema is read with ``PRAGMA
table_info``.

Projections that are expressions (aggregates, arithmetic, literals,
subqueries) have no origin, and neither do columns read from common
table expressions. Statements that are not a single SELECT, or
whose projections cannot be lined up with the cursor's columns, resolve to
no origins at all.

References:
    - https://www.sqlite.org/pragma.html#pragma_table_info
    - sqlglot documentation: https://sqlglot.com/
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

import sqlglot
from sqlglot import exp
from sqlglot.errors import SqlglotError


@dataclass(frozen=True)
class ColumnOrigin:
    """Schema facts for a result column that maps to a table column."""

    table: str
    column: str
    declared_type: str
    not_null: bool
    primary_key: bool

    @property
    def is_nullable(self) -> bool:
        return not (self.not_null or self.primary_key)


@dataclass(frozen=True)
class _TableColumn:
    name: str
    declared_type: str
    not_null: bool
    primary_key: bool


class ColumnOriginResolver:
    """Resolves result columns of a SELECT back to table columns.

    A resolver is bound to one connection and caches table schemas for its
    own lifetime, which is a single transaction.
    """

    def __init__(self, connection: sqlite3.Connection, dialect: str = "sqlite") -> None:
        self._connection = connection
        self._dialect = dialect
        self._schemas: dict[str, list[_TableColumn]] = {}

    def resolve(self, sql: str, width: int) -> list[ColumnOrigin | None]:
        """Return one origin (or None) per result column.

        Args:
            sql: The statement that produced the cursor.
            width: Number of columns the cursor reports.
        """
        unresolved: list[ColumnOrigin | None] = [None] * width
        try:
            statements = sqlglot.parse(sql, dialect=self._dialect)
        except SqlglotError:
            return unresolved

        statements = [s for s in statements if s is not None]
        if len(statements) != 1 or not isinstance(statements[0], exp.Select):
            return unresolved

        origins = self._resolve_select(statements[0])
        if origins is None or len(origins) != width:
            return unresolved
        return origins

    def _resolve_select(self, select: exp.Select) -> list[ColumnOrigin | None] | None:
        tables = self._source_tables(select)
        origins: list[ColumnOrigin | None] = []

        for projection in select.expressions:
            if isinstance(projection, exp.Star):
                if None in tables.values():
                    # Derived sources have no schema to expand.
                    return None
                for table in tables.values():
                    origins.extend(self._expand(table))
                continue

            target = projection.this if isinstance(projection, exp.Alias) else projection
            if not isinstance(target, exp.Column):
                origins.append(None)
                continue

            if isinstance(target.this, exp.Star):
                table = tables.get(target.table)
                if table is None:
                    return None
                origins.extend(self._expand(table))
                continue

            origins.append(self._lookup(target, tables))

        return origins

    def _source_tables(self, select: exp.Select) -> dict[str, str | None]:
        """Map alias (or name) to table name for sources read directly by ``select``.

        References to common table expressions map to None: they name a
        derived result, not a stored table, even when they shadow one.
        """
        root = select.root()
        ctes = {cte.alias_or_name.lower() for cte in root.find_all(exp.CTE)}

        tables: dict[str, str | None] = {}
        for table in select.find_all(exp.Table):
            if table.find_ancestor(exp.Select) is not select:
                continue
            if not table.name:
                continue
            derived = not table.db and table.name.lower() in ctes
            tables[table.alias_or_name] = None if derived else table.name
        return tables

    def _lookup(self, column: exp.Column, tables: dict[str, str | None]) -> ColumnOrigin | None:
        if column.table:
            if column.table not in tables:
                return None
            sources = [tables[column.table]]
        else:
            sources = list(tables.values())

        if None in sources:
            # A derived source may supply the column; its origin is unknown.
            return None

        matches = []
        for table in sources:
            for col in self._schema(table):
                if col.name.lower() == column.name.lower():
                    matches.append(self._origin(table, col))
        # Ambiguous or unknown references carry no origin.
        return matches[0] if len(matches) == 1 else None

    def _expand(self, table: str) -> list[ColumnOrigin | None]:
        return [self._origin(table, col) for col in self._schema(table)]

    def _schema(self, table: str) -> list[_TableColumn]:
        if table not in self._schemas:
            # table_info takes an identifier, not a bound parameter.
            quoted = table.replace('"', '""')
            rows = self._connection.execute(f'PRAGMA table_info("{quoted}")').fetchall()
            self._schemas[table] = [
                _TableColumn(
                    name=row[1],
                    declared_type=row[2] or "",
                    not_null=bool(row[3]),
                    primary_key=bool(row[5]),
                )
                for row in rows
            ]
        return self._schemas[table]

    @staticmethod
    def _origin(table: str, col: _TableColumn) -> ColumnOrigin:
        return ColumnOrigin(
            table=table,
            column=col.name,
            declared_type=col.declared_type,
            not_null=col.not_null,
            primary_key=col.primary_key,
        )
