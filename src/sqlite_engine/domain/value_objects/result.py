"""Explicit success/failure outcome returned across the engine boundary."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from sqlite_engine.domain.errors import EngineError

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True, slots=True)
class Result(Generic[T]):
    """Outcome of an engine operation.

    Exactly one of ``value`` and ``error`` is meaningful: ``error`` is None
    on success. Use the ``success``/``failure`` constructors rather than
    building instances directly.

    Example:
        >>> result = engine.query("SELECT 1")
        >>> if result.ok:
        ...     print(result.value.rows)
        ... else:
        ...     print(result.error)
    """

    value: T | None = None
    error: EngineError | None = None

    @classmethod
    def success(cls, value: T) -> Result[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: EngineError) -> Result[T]:
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value, or raise the stored error.

        Raises:
            EngineError: If this result is a failure.
        """
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    def map(self, fn: Callable[[T], U]) -> Result[U]:
        """Apply ``fn`` to a successful value; failures pass through."""
        if self.error is not None:
            return Result(error=self.error)
        return Result(value=fn(self.value))  # type: ignore[arg-type]

    def __bool__(self) -> bool:
        return self.ok
