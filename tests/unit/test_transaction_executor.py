"""Unit tests for TransactionExecutor."""

from __future__ import annotations

import sqlite3

import pytest

from sqlite_engine.application import TransactionExecutor
from sqlite_engine.domain.errors import (
    CommitFailed,
    ConnectFailed,
    OperationFailed,
    PoolExhausted,
    RollbackFailed,
    StatementFailed,
)
from sqlite_engine.infrastructure.metrics import MetricsRegistry
from sqlite_engine.ports.connection_pool import PoolStats


class FakeConnection:
    """Records statements and tracks transaction state like sqlite3."""

    def __init__(self, fail_on: set[str] | None = None) -> None:
        self.statements: list[str] = []
        self.in_transaction = False
        self._fail_on = fail_on or set()

    def execute(self, sql: str) -> None:
        self.statements.append(sql)
        if sql in self._fail_on:
            raise sqlite3.OperationalError(f"{sql} rejected")
        if sql == "BEGIN":
            self.in_transaction = True
        elif sql in ("COMMIT", "ROLLBACK"):
            self.in_transaction = False


class FakePool:
    """Lends out one FakeConnection and counts releases."""

    def __init__(self, connection: FakeConnection, error: Exception | None = None) -> None:
        self.connection = connection
        self.error = error
        self.acquired = 0
        self.released = 0
        self.closed = False

    @property
    def capacity(self) -> int:
        return 1

    def acquire(self) -> FakeConnection:
        if self.error is not None:
            raise self.error
        self.acquired += 1
        return self.connection

    def release(self, connection: FakeConnection) -> None:
        assert connection is self.connection
        self.released += 1

    def stats(self) -> PoolStats:
        return PoolStats(capacity=1, checked_out=self.acquired - self.released, checked_in=0)

    def close(self) -> None:
        self.closed = True


def _executor(pool: FakePool, metrics: MetricsRegistry) -> TransactionExecutor:
    return TransactionExecutor(pool, metrics=metrics)  # type: ignore[arg-type]


@pytest.mark.unit
class TestRunInTransaction:
    """Commit/rollback/release behavior of run_in_transaction."""

    def test_commit_on_success(self, metrics_registry: MetricsRegistry) -> None:
        """A successful op is committed and its value returned."""
        conn = FakeConnection()
        pool = FakePool(conn)

        result = _executor(pool, metrics_registry).run_in_transaction(lambda c: 42)

        assert result.ok
        assert result.value == 42
        assert conn.statements == ["BEGIN", "COMMIT"]
        assert pool.released == 1

    def test_rollback_on_statement_failure(self, metrics_registry: MetricsRegistry) -> None:
        """A driver error rolls back, never commits, and is reported as StatementFailed."""
        conn = FakeConnection(fail_on={"INSERT"})
        pool = FakePool(conn)

        def op(c: FakeConnection) -> None:
            c.execute("UPDATE")
            c.execute("INSERT")

        result = _executor(pool, metrics_registry).run_in_transaction(op)

        assert isinstance(result.error, StatementFailed)
        assert isinstance(result.error.__cause__, sqlite3.OperationalError)
        assert conn.statements == ["BEGIN", "UPDATE", "INSERT", "ROLLBACK"]
        assert "COMMIT" not in conn.statements
        assert pool.released == 1

    def test_rollback_on_arbitrary_exception(self, metrics_registry: MetricsRegistry) -> None:
        """Non-SQL exceptions are wrapped as OperationFailed."""
        conn = FakeConnection()
        pool = FakePool(conn)

        def op(c: FakeConnection) -> None:
            raise KeyError("missing")

        result = _executor(pool, metrics_registry).run_in_transaction(op)

        assert isinstance(result.error, OperationFailed)
        assert isinstance(result.error.__cause__, KeyError)
        assert conn.statements == ["BEGIN", "ROLLBACK"]
        assert pool.released == 1

    def test_engine_error_passes_through(self, metrics_registry: MetricsRegistry) -> None:
        """An EngineError raised by the op is surfaced unchanged."""
        conn = FakeConnection()
        pool = FakePool(conn)
        error = PoolExhausted("nested")

        def op(c: FakeConnection) -> None:
            raise error

        result = _executor(pool, metrics_registry).run_in_transaction(op)

        assert result.error is error
        assert conn.statements == ["BEGIN", "ROLLBACK"]

    def test_acquire_failure_starts_nothing(self, metrics_registry: MetricsRegistry) -> None:
        """A pool failure short-circuits: no BEGIN, no release."""
        conn = FakeConnection()
        pool = FakePool(conn, error=ConnectFailed("bad path"))
        calls = []

        result = _executor(pool, metrics_registry).run_in_transaction(calls.append)

        assert isinstance(result.error, ConnectFailed)
        assert calls == []
        assert conn.statements == []
        assert pool.released == 0

    def test_begin_failure_releases(self, metrics_registry: MetricsRegistry) -> None:
        """A rejected BEGIN fails without running the op and frees the slot."""
        conn = FakeConnection(fail_on={"BEGIN"})
        pool = FakePool(conn)
        calls = []

        result = _executor(pool, metrics_registry).run_in_transaction(calls.append)

        assert isinstance(result.error, StatementFailed)
        assert calls == []
        assert pool.released == 1

    def test_commit_failure_rolls_back_and_releases(
        self, metrics_registry: MetricsRegistry
    ) -> None:
        """A rejected COMMIT is reported and the connection is still released."""
        conn = FakeConnection(fail_on={"COMMIT"})
        pool = FakePool(conn)

        result = _executor(pool, metrics_registry).run_in_transaction(lambda c: "value")

        assert isinstance(result.error, CommitFailed)
        assert conn.statements == ["BEGIN", "COMMIT", "ROLLBACK"]
        assert pool.released == 1

    def test_rollback_failure_reports_both(self, metrics_registry: MetricsRegistry) -> None:
        """When ROLLBACK fails too, the original failure is kept alongside it."""
        conn = FakeConnection(fail_on={"INSERT", "ROLLBACK"})
        pool = FakePool(conn)

        result = _executor(pool, metrics_registry).run_in_transaction(
            lambda c: c.execute("INSERT")
        )

        assert isinstance(result.error, RollbackFailed)
        assert isinstance(result.error.original, StatementFailed)
        assert "INSERT rejected" in str(result.error)
        assert pool.released == 1

    def test_op_that_ends_transaction_is_not_committed_twice(
        self, metrics_registry: MetricsRegistry
    ) -> None:
        """No COMMIT is issued when the op already closed the transaction."""
        conn = FakeConnection()
        pool = FakePool(conn)

        result = _executor(pool, metrics_registry).run_in_transaction(
            lambda c: c.execute("COMMIT")
        )

        assert result.ok
        assert conn.statements == ["BEGIN", "COMMIT"]

    def test_metrics(self, metrics_registry: MetricsRegistry) -> None:
        """Commits and rollbacks are counted separately."""
        executor = _executor(FakePool(FakeConnection()), metrics_registry)
        executor.run_in_transaction(lambda c: None)
        executor.run_in_transaction(lambda c: 1 / 0)

        registry = metrics_registry._registry
        assert registry.get_sample_value(
            "sqlite_engine_transactions_total", {"status": "commit"}
        ) == 1.0
        assert registry.get_sample_value(
            "sqlite_engine_transactions_total", {"status": "rollback"}
        ) == 1.0


@pytest.mark.unit
class TestTransactionContextManager:
    """The raising transaction() variant."""

    def test_raises_wrapped_error(self, metrics_registry: MetricsRegistry) -> None:
        """Failures inside the block surface as EngineErrors."""
        conn = FakeConnection()
        pool = FakePool(conn)
        executor = _executor(pool, metrics_registry)

        with pytest.raises(StatementFailed):
            with executor.transaction() as c:
                raise sqlite3.IntegrityError("UNIQUE constraint failed")

        assert conn.statements == ["BEGIN", "ROLLBACK"]
        assert pool.released == 1

    def test_keyboard_interrupt_is_not_wrapped(self, metrics_registry: MetricsRegistry) -> None:
        """BaseExceptions roll back and propagate as-is."""
        conn = FakeConnection()
        pool = FakePool(conn)
        executor = _executor(pool, metrics_registry)

        with pytest.raises(KeyboardInterrupt):
            with executor.transaction():
                raise KeyboardInterrupt

        assert conn.statements == ["BEGIN", "ROLLBACK"]
        assert pool.released == 1
