"""OpenTelemetry tracing for engine operations.

Every public Engine operation runs inside one span named
``engine.<operation>`` carrying the database semantic attributes
(``db.system``, ``db.name``, ``db.operation`` and, when there is one,
``db.statement``).
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Generator

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
    SpanExporter,
)

if TYPE_CHECKING:
    from sqlite_engine.infrastructure.config import ObservabilityConfig


_tracer: trace.Tracer | None = None


def setup_tracing(
    service_name: str = "sqlite_engine",
    otlp_endpoint: str | None = None,
    console_export: bool = False,
    exporter: SpanExporter | None = None,
    set_global: bool = True,
) -> trace.Tracer:
    """
    Set up OpenTelemetry tracing.

    Args:
        service_name: Name of the service for tracing
        otlp_endpoint: OTLP collector endpoint (e.g., "http://localhost:4317")
        console_export: Whether to also export to console (for debugging)
        exporter: Extra exporter fed synchronously, e.g. an in-memory one
        set_global: Whether to install the provider process-wide. The
            engine tracer is replaced either way.

    Returns:
        Configured tracer instance
    """
    global _tracer

    from sqlite_engine import __version__

    resource = Resource.create(
        {
            "service.name": service_name,
            "service.version": __version__,
        }
    )
    provider = TracerProvider(resource=resource)

    if otlp_endpoint:
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True))
        )

    if console_export:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    if exporter is not None:
        provider.add_span_processor(SimpleSpanProcessor(exporter))

    if set_global:
        trace.set_tracer_provider(provider)
    _tracer = provider.get_tracer(service_name)

    return _tracer


def setup_tracing_from(config: ObservabilityConfig) -> trace.Tracer:
    """Configure tracing from the observability section of the config."""
    return setup_tracing(
        service_name=config.otel_service_name,
        otlp_endpoint=config.otel_endpoint,
    )


def get_tracer() -> trace.Tracer:
    """Get the engine tracer, falling back to the global provider's."""
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer("sqlite_engine")
    return _tracer


@contextmanager
def trace_span(
    name: str,
    attributes: dict[str, Any] | None = None,
) -> Generator[trace.Span, None, None]:
    """
    Context manager for creating a trace span.

    Exceptions escaping the block are recorded on the span by the SDK.

    Args:
        name: Name of the span
        attributes: Optional attributes to add to the span

    Yields:
        The created span
    """
    tracer = get_tracer()
    with tracer.start_as_current_span(name, attributes=attributes) as span:
        yield span


@contextmanager
def statement_span(
    operation: str,
    db_path: str,
    sql: str | None = None,
) -> Generator[trace.Span, None, None]:
    """Span for one engine operation against ``db_path``."""
    attributes: dict[str, Any] = {
        "db.system": "sqlite",
        "db.name": db_path,
        "db.operation": operation,
    }
    if sql is not None:
        attributes["db.statement"] = sql
    with trace_span(f"engine.{operation}", attributes) as span:
        yield span
