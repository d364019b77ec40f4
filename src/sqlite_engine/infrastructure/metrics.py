"""Prometheus metrics for the SQLite engine."""

from __future__ import annotations

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    Info,
    start_http_server,
    REGISTRY,
    CollectorRegistry,
)


class MetricsRegistry:
    """Registry of all engine metrics."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize metrics registry."""
        self._registry = registry or REGISTRY

        # Transaction metrics
        self.transactions_total = Counter(
            "sqlite_engine_transactions_total",
            "Total number of transactions by outcome",
            ["status"],  # commit, rollback, error
            registry=self._registry,
        )

        self.transaction_duration_seconds = Histogram(
            "sqlite_engine_transaction_duration_seconds",
            "Time from BEGIN to COMMIT/ROLLBACK",
            buckets=(0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 30.0),
            registry=self._registry,
        )

        # Query metrics
        self.queries_total = Counter(
            "sqlite_engine_queries_total",
            "Total number of engine operations",
            ["operation", "status"],  # operation: execute, query, ...; status: success, error
            registry=self._registry,
        )

        self.query_latency_seconds = Histogram(
            "sqlite_engine_query_latency_seconds",
            "Engine operation latency in seconds",
            ["operation"],
            buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
            registry=self._registry,
        )

        self.rows_materialized_total = Counter(
            "sqlite_engine_rows_materialized_total",
            "Total rows copied out of cursors",
            registry=self._registry,
        )

        # Pool metrics
        self.pool_wait_seconds = Histogram(
            "sqlite_engine_pool_wait_seconds",
            "Time spent waiting to acquire a connection",
            buckets=(0.0001, 0.001, 0.01, 0.1, 1.0, 5.0, 10.0, 30.0),
            registry=self._registry,
        )

        self.pool_timeouts_total = Counter(
            "sqlite_engine_pool_timeouts_total",
            "Total acquisitions that timed out",
            registry=self._registry,
        )

        self.pool_checked_out = Gauge(
            "sqlite_engine_pool_checked_out",
            "Connections currently lent out",
            registry=self._registry,
        )

        self.connections_recycled_total = Counter(
            "sqlite_engine_connections_recycled_total",
            "Connections discarded for exceeding idle time or lifetime",
            ["reason"],  # idle, lifetime
            registry=self._registry,
        )

        # Engine info
        self.info = Info(
            "sqlite_engine",
            "SQLite engine information",
            registry=self._registry,
        )


# Global metrics registry
_metrics: MetricsRegistry | None = None


def setup_metrics(port: int = 8001, registry: CollectorRegistry | None = None) -> MetricsRegistry:
    """
    Set up the Prometheus scrape endpoint.

    Args:
        port: Port for the metrics HTTP server
        registry: Optional custom registry

    Returns:
        The metrics registry
    """
    global _metrics
    _metrics = MetricsRegistry(registry)

    import sqlite3

    from sqlite_engine import __version__
    _metrics.info.info({
        "version": __version__,
        "sqlite_version": sqlite3.sqlite_version,
    })

    start_http_server(port, registry=registry or REGISTRY)

    return _metrics


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsRegistry()
    return _metrics
