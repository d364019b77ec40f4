"""Connection Pool port.

This port defines the contract for brokering connections to the backing
store. The engine treats the pool as a black box with a fixed capacity:
whoever holds a connection owns it exclusively until it is released.

Key responsibilities:
- Bounded wait when every connection is lent out
- Opening connections lazily and reporting open failures
- Recycling connections past their idle time or lifetime
"""

from __future__ import annotations

import sqlite3
from abc import abstractmethod
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class PoolStats:
    """Point-in-time view of pool occupancy."""

    capacity: int
    checked_out: int
    checked_in: int


class ConnectionPool(Protocol):
    """Protocol for a bounded connection broker.

    Thread Safety:
        Implementations must be safe to call from any thread. A connection
        returned by ``acquire`` is used by one caller at a time.
    """

    @property
    @abstractmethod
    def capacity(self) -> int:
        """Return the maximum number of connections lent out at once."""
        ...

    @abstractmethod
    def acquire(self) -> sqlite3.Connection:
        """Borrow a connection, waiting up to the configured timeout.

        Returns:
            A live connection with no transaction open.

        Raises:
            PoolTimeout: If no connection became available in time.
            ConnectFailed: If a new connection could not be opened.
            PoolClosed: If the pool has been closed.
        """
        ...

    @abstractmethod
    def release(self, connection: sqlite3.Connection) -> None:
        """Return a borrowed connection.

        Must not raise for a connection obtained from ``acquire``; the slot
        is freed even if resetting the connection fails.
        """
        ...

    @abstractmethod
    def stats(self) -> PoolStats:
        """Return current occupancy."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Close every pooled connection. Idempotent."""
        ...

    @property
    @abstractmethod
    def closed(self) -> bool:
        """Return True once ``close`` has been called."""
        ...
