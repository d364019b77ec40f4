"""SQLite connection pool backed by SQLAlchemy's QueuePool.

This adapter implements the ConnectionPool protocol for a single SQLite
database file. SQLAlchemy brokers the connections; this module adds the
engine's error taxonomy, idle/lifetime recycling and occupancy metrics.

Connection settings:
    - Opened lazily on first acquire, never at construction
    - ``isolation_level=None``: the driver never opens transactions on its
      own; every unit of work issues an explicit BEGIN
    - ``check_same_thread=False``: the pool lends the same connection to
      different threads, one at a time
    - Rows come back as ``sqlite3.Row``
    - TEXT that is not valid UTF-8 is decoded with replacement characters
      instead of failing the fetch

Recycling:
    A connection is discarded on checkout when it has been idle longer than
    ``idle_timeout_seconds`` or open longer than ``max_lifetime_seconds``.
    SQLAlchemy transparently opens a replacement.
"""

from __future__ import annotations

import sqlite3
import threading
import time
from pathlib import Path
from typing import Any, Callable

from sqlalchemy import event, exc
from sqlalchemy.pool import QueuePool

from sqlite_engine.domain.errors import ConnectFailed, PoolClosed, PoolExhausted, PoolTimeout
from sqlite_engine.infrastructure.config import PoolConfig
from sqlite_engine.infrastructure.logging import get_logger
from sqlite_engine.infrastructure.metrics import MetricsRegistry, get_metrics
from sqlite_engine.ports.connection_pool import PoolStats


_OPENED_AT = "opened_at"
_CHECKED_IN_AT = "checked_in_at"


def decode_text(raw: bytes) -> str:
    """Decode a TEXT cell, replacing bytes that are not valid UTF-8."""
    return raw.decode("utf-8", errors="replace")


class SQLitePool:
    """ConnectionPool implementation for one SQLite database file.

    Attributes:
        path: Filesystem location of the database file.
        capacity: Maximum connections lent out at once (always 1).
    """

    def __init__(
        self,
        path: str | Path,
        config: PoolConfig | None = None,
        metrics: MetricsRegistry | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the pool without opening any connection.

        Args:
            path: Path of the SQLite database file.
            config: Pool settings (defaults if None).
            metrics: Metrics registry (global registry if None).
            clock: Monotonic time source used for idle/lifetime checks.
        """
        self._path = str(path)
        self._config = config or PoolConfig()
        self._metrics = metrics or get_metrics()
        self._clock = clock
        self._log = get_logger(__name__, pool=self._config.pool_name, db_path=self._path)

        self._lock = threading.Lock()
        # id(raw connection) -> (proxied connection, holder thread ident)
        self._lent: dict[int, tuple[Any, int]] = {}
        self._closed = False

        self._pool = QueuePool(
            self._create_connection,
            pool_size=self._config.capacity,
            max_overflow=0,
            timeout=self._config.connection_timeout_seconds,
            recycle=-1,
            reset_on_return="rollback",
        )
        event.listen(self._pool, "connect", self._on_connect)
        event.listen(self._pool, "checkout", self._on_checkout)
        event.listen(self._pool, "checkin", self._on_checkin)

    @property
    def path(self) -> str:
        return self._path

    @property
    def capacity(self) -> int:
        return self._config.capacity

    @property
    def closed(self) -> bool:
        return self._closed

    def acquire(self) -> sqlite3.Connection:
        """Borrow the connection, waiting up to the configured timeout.

        Raises:
            PoolClosed: If the pool has been closed.
            PoolExhausted: If the calling thread already holds every connection.
            PoolTimeout: If no connection became available in time.
            ConnectFailed: If SQLite could not open the database file.
        """
        if self._closed:
            raise PoolClosed(f"Pool '{self._config.pool_name}' is closed")

        me = threading.get_ident()
        with self._lock:
            held = sum(1 for _, holder in self._lent.values() if holder == me)
        if held >= self.capacity:
            # Waiting would only time out: the slot can't be released meanwhile.
            raise PoolExhausted(
                f"Thread already holds all {self.capacity} connection(s) of "
                f"pool '{self._config.pool_name}'"
            )

        started = self._clock()
        try:
            proxy = self._pool.connect()
        except exc.TimeoutError as e:
            self._metrics.pool_timeouts_total.inc()
            self._log.warning(
                "pool_acquire_timeout",
                timeout_seconds=self._config.connection_timeout_seconds,
            )
            raise PoolTimeout(
                f"No connection available after {self._config.connection_timeout_seconds}s"
            ) from e
        except sqlite3.Error as e:
            self._log.error("connect_failed", error=str(e))
            raise ConnectFailed(f"Cannot open database '{self._path}': {e}") from e
        finally:
            self._metrics.pool_wait_seconds.observe(max(self._clock() - started, 0.0))

        connection = proxy.dbapi_connection
        with self._lock:
            self._lent[id(connection)] = (proxy, me)
        self._metrics.pool_checked_out.inc()
        return connection

    def release(self, connection: sqlite3.Connection) -> None:
        """Return a borrowed connection to the pool.

        Unknown connections are ignored. Any failure while resetting the
        connection invalidates it instead of propagating, so the slot is
        always freed.
        """
        with self._lock:
            entry = self._lent.pop(id(connection), None)
        if entry is None:
            self._log.warning("release_unknown_connection")
            return

        proxy, _ = entry
        self._metrics.pool_checked_out.dec()
        try:
            if self._closed:
                proxy.invalidate()
            else:
                proxy.close()
        except Exception as e:
            self._log.error("connection_reset_failed", error=str(e))
            proxy.invalidate(e)

    def stats(self) -> PoolStats:
        return PoolStats(
            capacity=self.capacity,
            checked_out=self._pool.checkedout(),
            checked_in=self._pool.checkedin(),
        )

    def close(self) -> None:
        """Dispose pooled connections. Connections still lent out are closed on release."""
        if self._closed:
            return
        self._closed = True
        self._pool.dispose()
        self._log.info("pool_closed")

    def _create_connection(self) -> sqlite3.Connection:
        connection = sqlite3.connect(
            self._path,
            timeout=self._config.busy_timeout_seconds,
            isolation_level=None,
            check_same_thread=False,
        )
        connection.row_factory = sqlite3.Row
        connection.text_factory = decode_text
        try:
            # Forces SQLite to read the header, so a non-database file fails here.
            connection.execute("PRAGMA schema_version").fetchone()
        except sqlite3.Error:
            connection.close()
            raise
        return connection

    def _on_connect(self, dbapi_connection: Any, record: Any) -> None:
        record.info[_OPENED_AT] = self._clock()
        record.info.pop(_CHECKED_IN_AT, None)
        self._log.debug("connection_opened")

    def _on_checkout(self, dbapi_connection: Any, record: Any, proxy: Any) -> None:
        now = self._clock()
        opened_at = record.info.get(_OPENED_AT, now)
        checked_in_at = record.info.get(_CHECKED_IN_AT)

        reason = None
        if now - opened_at > self._config.max_lifetime_seconds:
            reason = "lifetime"
        elif checked_in_at is not None and now - checked_in_at > self._config.idle_timeout_seconds:
            reason = "idle"

        if reason is not None:
            self._metrics.connections_recycled_total.labels(reason=reason).inc()
            self._log.info("connection_recycled", reason=reason)
            # SQLAlchemy invalidates the record and retries with a fresh connection.
            raise exc.DisconnectionError(f"connection exceeded {reason} limit")

    def _on_checkin(self, dbapi_connection: Any, record: Any) -> None:
        if dbapi_connection is not None:
            record.info[_CHECKED_IN_AT] = self._clock()
