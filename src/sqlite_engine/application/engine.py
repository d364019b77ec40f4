"""Engine - Unified entry point for a SQLite database file.

This module provides the Engine class that wires the connection pool,
the transaction executor and the result materializer together.

Usage:
    from sqlite_engine.application import Engine

    with Engine("/path/to/app.db") as db:
        db.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT)").unwrap()
        db.execute("INSERT INTO users (name) VALUES ('Alice')").unwrap()

        result = db.query("SELECT * FROM users")
        if result.ok:
            for row in result.value.rows:
                print([cell.as_string() for cell in row])

Every public operation returns a Result instead of raising. Each call is
one transaction: it either commits everything it did or nothing.
"""

from __future__ import annotations

import sqlite3
import time
from pathlib import Path
from typing import Any, Callable, Sequence, TypeVar

from opentelemetry.trace import Status, StatusCode

from sqlite_engine.adapters.outbound.column_origins import ColumnOriginResolver
from sqlite_engine.adapters.outbound.sqlite_pool import SQLitePool
from sqlite_engine.application.materializer import ResultMaterializer
from sqlite_engine.application.transaction_executor import TransactionExecutor
from sqlite_engine.domain.entities import QueryResult
from sqlite_engine.domain.value_objects import Result
from sqlite_engine.infrastructure.config import Config, get_config
from sqlite_engine.infrastructure.logging import get_logger
from sqlite_engine.infrastructure.metrics import MetricsRegistry, get_metrics
from sqlite_engine.infrastructure.tracing import statement_span
from sqlite_engine.ports.connection_pool import ConnectionPool

T = TypeVar("T")


class Engine:
    """Transactional access to one SQLite database file.

    The engine owns its pool exclusively. The pool holds a single
    connection, so concurrent callers are serialized: each call sees the
    database as if it ran alone.

    Lifecycle:
        The pool is created eagerly, but the file is not opened until the
        first operation. ``close()`` (or leaving a ``with`` block) disposes
        the pool; later operations fail with PoolClosed.
    """

    def __init__(
        self,
        path: str | Path,
        config: Config | None = None,
        metrics: MetricsRegistry | None = None,
        pool: ConnectionPool | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            path: Filesystem location of the database file.
            config: Engine configuration (global config if None).
            metrics: Metrics registry (global registry if None).
            pool: Pre-built pool, mainly for tests. Built from ``config`` if None.
        """
        self._path = str(path)
        self._config = config or get_config()
        self._metrics = metrics or get_metrics()
        self._pool = pool or SQLitePool(self._path, self._config.pool, metrics=self._metrics)
        self._executor = TransactionExecutor(self._pool, metrics=self._metrics)
        self._materializer = ResultMaterializer(metrics=self._metrics)
        self._log = get_logger(__name__, db_path=self._path)

    @property
    def path(self) -> str:
        return self._path

    @property
    def closed(self) -> bool:
        return self._pool.closed

    def execute(self, sql: str) -> Result[bool]:
        """Run a single statement in its own transaction.

        Returns:
            Result holding True if the statement produced a result set
            (e.g. a SELECT), False otherwise (DDL, INSERT, UPDATE, ...).
        """

        def op(connection: sqlite3.Connection) -> bool:
            cursor = connection.execute(sql)
            return cursor.description is not None

        return self._run("execute", op, sql)

    def query(self, sql: str) -> Result[QueryResult]:
        """Run a query and materialize its rows into typed cells.

        The whole result is copied before the transaction commits.
        """

        def op(connection: sqlite3.Connection) -> QueryResult:
            cursor = connection.execute(sql)
            width = len(cursor.description) if cursor.description else 0
            origins = ColumnOriginResolver(connection).resolve(sql, width)
            return self._materializer.materialize(cursor, origins)

        return self._run("query", op, sql)

    def query_map(self, sql: str, mapper: Callable[[sqlite3.Row], T]) -> Result[list[T]]:
        """Run a query and map each raw row with ``mapper``.

        The mapper sees ``sqlite3.Row`` objects (index or name access) and
        runs inside the transaction; if it raises, the call fails.
        """

        def op(connection: sqlite3.Connection) -> list[T]:
            return [mapper(row) for row in connection.execute(sql)]

        return self._run("query_map", op, sql)

    def execute_script(self, statements: Sequence[str]) -> Result[int]:
        """Run several statements in one transaction, all or nothing.

        Returns:
            Result holding the total number of rows changed.
        """

        def op(connection: sqlite3.Connection) -> int:
            changed = 0
            for sql in statements:
                cursor = connection.execute(sql)
                changed += max(cursor.rowcount, 0)
            return changed

        return self._run("execute_script", op, "; ".join(statements))

    def transaction(self, op: Callable[[sqlite3.Connection], T]) -> Result[T]:
        """Run a caller-supplied operation in one transaction.

        Everything ``op`` does through the connection is committed if it
        returns, and rolled back if it raises.
        """
        return self._run("transaction", op)

    def stats(self) -> dict[str, Any]:
        """Return engine and pool statistics."""
        pool_stats = self._pool.stats()
        return {
            "path": self._path,
            "closed": self.closed,
            "pool": {
                "capacity": pool_stats.capacity,
                "checked_out": pool_stats.checked_out,
                "checked_in": pool_stats.checked_in,
            },
        }

    def close(self) -> None:
        """Dispose the pool. Safe to call more than once."""
        if not self._pool.closed:
            self._pool.close()
            self._log.info("engine_closed")

    def _run(
        self,
        operation: str,
        op: Callable[[sqlite3.Connection], T],
        sql: str | None = None,
    ) -> Result[T]:
        with statement_span(operation, self._path, sql) as span:
            started = time.perf_counter()
            result = self._executor.run_in_transaction(op)
            self._metrics.query_latency_seconds.labels(operation=operation).observe(
                time.perf_counter() - started
            )

            status = "success" if result.ok else "error"
            self._metrics.queries_total.labels(operation=operation, status=status).inc()
            span.set_attribute("engine.status", status)

            if not result.ok:
                span.set_status(Status(StatusCode.ERROR, type(result.error).__name__))
                self._log.warning(
                    "operation_failed",
                    operation=operation,
                    error_type=type(result.error).__name__,
                    error=str(result.error),
                )
        return result

    def __enter__(self) -> Engine:
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()
