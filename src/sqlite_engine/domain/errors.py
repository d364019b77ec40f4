"""Error taxonomy for the engine.

Every failure the engine can report is an ``EngineError``. Errors raised by
the underlying driver are chained as ``__cause__``.

Hierarchy:
    EngineError
    ├── PoolExhausted      the pool refused to hand out a connection
    │   └── PoolTimeout    no connection became available in time
    ├── PoolClosed         the pool (and engine) has been closed
    ├── ConnectFailed      the database file could not be opened
    ├── StatementFailed    SQL rejected or failed during execution
    ├── OperationFailed    a caller-supplied operation raised a non-SQL error
    ├── CommitFailed       COMMIT was rejected
    └── RollbackFailed     ROLLBACK was rejected
"""

from __future__ import annotations


class EngineError(Exception):
    """Base class for all engine failures."""


class PoolExhausted(EngineError):
    """The pool could not provide a connection."""


class PoolTimeout(PoolExhausted):
    """No connection became available within the configured wait."""


class PoolClosed(EngineError):
    """The pool has been closed and no longer hands out connections."""


class ConnectFailed(EngineError):
    """The backing store could not be opened (bad path, corruption)."""


class StatementFailed(EngineError):
    """A statement was rejected or failed during execution."""


class OperationFailed(EngineError):
    """A caller-supplied operation raised something other than a SQL error."""


class CommitFailed(EngineError):
    """The store rejected COMMIT."""


class RollbackFailed(EngineError):
    """The store rejected ROLLBACK.

    When the rollback was triggered by an earlier failure, that failure is
    kept in ``original`` so both are reported.
    """

    def __init__(self, message: str, original: BaseException | None = None) -> None:
        super().__init__(message)
        self.original = original

    def __str__(self) -> str:
        message = super().__str__()
        if self.original is not None:
            return f"{message} (after: {self.original})"
        return message
