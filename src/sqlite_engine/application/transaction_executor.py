"""Transaction executor: commit-or-rollback around a unit of work.

Lifecycle of one unit of work::

    acquire ──> BEGIN ──> op(connection) ──ok──> COMMIT ──> release
                              │
                            error
                              │
                              v
                          ROLLBACK ──> release ──> re-raise cause

Guarantees:
    - A failed acquire starts no transaction and releases nothing.
    - COMMIT is never attempted after the operation failed.
    - The connection is released on every exit path, including when COMMIT
      or ROLLBACK themselves fail.
    - The failure surfaced is the original cause. If ROLLBACK also fails,
      RollbackFailed is raised carrying the cause in ``original``.
"""

from __future__ import annotations

import sqlite3
import time
from contextlib import contextmanager
from typing import Callable, Iterator, TypeVar

from sqlite_engine.domain.errors import (
    CommitFailed,
    EngineError,
    OperationFailed,
    RollbackFailed,
    StatementFailed,
)
from sqlite_engine.domain.value_objects import Result
from sqlite_engine.infrastructure.logging import get_logger
from sqlite_engine.infrastructure.metrics import MetricsRegistry, get_metrics
from sqlite_engine.ports.connection_pool import ConnectionPool

T = TypeVar("T")

logger = get_logger(__name__)


def as_engine_error(error: BaseException) -> BaseException:
    """Map an arbitrary failure onto the engine taxonomy.

    Driver errors become StatementFailed, other exceptions OperationFailed.
    EngineErrors and non-Exception BaseExceptions pass through unchanged.
    """
    if isinstance(error, EngineError) or not isinstance(error, Exception):
        return error
    if isinstance(error, sqlite3.Error):
        return StatementFailed(str(error))
    return OperationFailed(f"{type(error).__name__}: {error}")


class TransactionExecutor:
    """Runs operations inside explicit transactions on pooled connections.

    Thread Safety:
        Safe to share between threads. Mutual exclusion comes from the pool:
        with capacity 1 a second caller blocks in ``acquire`` until the
        first caller's transaction has been committed or rolled back.
    """

    def __init__(
        self,
        pool: ConnectionPool,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        self._pool = pool
        self._metrics = metrics or get_metrics()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Open a transaction and yield its connection.

        Commits when the block exits normally, rolls back when it raises.

        Raises:
            PoolTimeout, PoolExhausted, PoolClosed, ConnectFailed: From acquire.
            StatementFailed: A driver error escaped the block (or BEGIN failed).
            OperationFailed: Any other exception escaped the block.
            CommitFailed: COMMIT was rejected; the transaction was rolled back.
            RollbackFailed: ROLLBACK was rejected after an earlier failure.
        """
        connection = self._pool.acquire()
        started = time.perf_counter()
        try:
            try:
                connection.execute("BEGIN")
            except sqlite3.Error as e:
                raise StatementFailed(f"BEGIN failed: {e}") from e

            try:
                yield connection
            except BaseException as e:
                cause = as_engine_error(e)
                self._rollback(connection, cause)
                self._metrics.transactions_total.labels(status="rollback").inc()
                logger.warning("transaction_rolled_back", error=str(cause))
                if cause is e:
                    raise
                raise cause from e

            self._commit(connection)
            self._metrics.transactions_total.labels(status="commit").inc()
            logger.debug("transaction_committed")
        finally:
            self._metrics.transaction_duration_seconds.observe(time.perf_counter() - started)
            self._pool.release(connection)

    def run_in_transaction(self, op: Callable[[sqlite3.Connection], T]) -> Result[T]:
        """Run ``op`` in a transaction and return its outcome without raising.

        Args:
            op: Operation receiving the connection. Everything it writes is
                committed together, or nothing is.

        Returns:
            Result holding op's return value, or the EngineError that ended it.
        """
        try:
            with self.transaction() as connection:
                value = op(connection)
        except EngineError as e:
            return Result.failure(e)
        except Exception as e:
            # Only reachable for failures outside the block, e.g. inside the pool.
            logger.error("transaction_unexpected_error", error=str(e))
            return Result.failure(as_engine_error(e))  # type: ignore[arg-type]
        return Result.success(value)

    def _commit(self, connection: sqlite3.Connection) -> None:
        if not connection.in_transaction:
            # The operation ended the transaction itself.
            return
        try:
            connection.execute("COMMIT")
        except sqlite3.Error as e:
            self._metrics.transactions_total.labels(status="error").inc()
            logger.error("commit_failed", error=str(e))
            try:
                self._rollback(connection, None)
            except RollbackFailed as rollback_error:
                logger.error("rollback_after_commit_failed", error=str(rollback_error))
            raise CommitFailed(f"COMMIT failed: {e}") from e

    def _rollback(self, connection: sqlite3.Connection, cause: BaseException | None) -> None:
        if not connection.in_transaction:
            # SQLite already rolled back (e.g. after SQLITE_FULL) or op ended it.
            return
        try:
            connection.execute("ROLLBACK")
        except sqlite3.Error as e:
            self._metrics.transactions_total.labels(status="error").inc()
            logger.error("rollback_failed", error=str(e), cause=str(cause))
            raise RollbackFailed(f"ROLLBACK failed: {e}", original=cause) from e
