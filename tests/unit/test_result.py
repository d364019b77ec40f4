"""Unit tests for Result and the error taxonomy."""

from __future__ import annotations

import pytest

from sqlite_engine.domain.errors import (
    EngineError,
    PoolExhausted,
    PoolTimeout,
    RollbackFailed,
    StatementFailed,
)
from sqlite_engine.domain.value_objects import Result


@pytest.mark.unit
class TestResult:
    """Tests for the Result outcome type."""

    def test_success(self) -> None:
        result = Result.success(5)

        assert result.ok
        assert bool(result)
        assert result.error is None
        assert result.unwrap() == 5

    def test_failure(self) -> None:
        error = StatementFailed("no such table: t")
        result: Result[int] = Result.failure(error)

        assert not result.ok
        assert result.error is error
        with pytest.raises(StatementFailed, match="no such table"):
            result.unwrap()

    def test_success_may_hold_falsy_value(self) -> None:
        """False is a valid successful value, e.g. execute() of an INSERT."""
        result = Result.success(False)

        assert result.ok
        assert result.unwrap() is False

    def test_map(self) -> None:
        assert Result.success(2).map(lambda v: v * 10).unwrap() == 20

        error = StatementFailed("bad")
        assert Result.failure(error).map(lambda v: v * 10).error is error


@pytest.mark.unit
class TestErrors:
    """Tests for the error hierarchy."""

    def test_all_errors_are_engine_errors(self) -> None:
        assert issubclass(PoolTimeout, PoolExhausted)
        assert issubclass(PoolExhausted, EngineError)
        assert issubclass(RollbackFailed, EngineError)

    def test_rollback_failed_keeps_original(self) -> None:
        original = StatementFailed("constraint violated")
        error = RollbackFailed("ROLLBACK failed: disk I/O error", original=original)

        assert error.original is original
        assert "constraint violated" in str(error)
        assert "disk I/O error" in str(error)

    def test_rollback_failed_without_original(self) -> None:
        assert str(RollbackFailed("ROLLBACK failed")) == "ROLLBACK failed"
