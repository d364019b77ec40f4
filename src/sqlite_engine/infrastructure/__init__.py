"""Infrastructure layer - cross-cutting concerns."""

from sqlite_engine.infrastructure.config import Config, get_config
from sqlite_engine.infrastructure.logging import setup_logging, setup_logging_from, get_logger
from sqlite_engine.infrastructure.metrics import setup_metrics, get_metrics, MetricsRegistry
from sqlite_engine.infrastructure.tracing import (
    setup_tracing,
    setup_tracing_from,
    get_tracer,
    trace_span,
    statement_span,
)

__all__ = [
    "Config",
    "get_config",
    "setup_logging",
    "setup_logging_from",
    "get_logger",
    "setup_metrics",
    "get_metrics",
    "MetricsRegistry",
    "setup_tracing",
    "get_tracer",
    "setup_tracing_from",
    "trace_span",
    "statement_span",
]
