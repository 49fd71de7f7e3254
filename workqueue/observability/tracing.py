"""
OpenTelemetry tracing setup.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.trace import Span, Tracer

from workqueue.config import Settings, get_settings

TRACER_NAME = "workqueue"


def setup_tracing(
    settings: Settings | None = None,
    enable_console_export: bool = False,
) -> TracerProvider:
    """
    Install an SDK tracer provider for the process.

    Producers trace through the OpenTelemetry API and emit nothing until an
    application installs a provider, either with this helper or its own.

    Args:
        settings: Settings to read service name and exporter endpoint from.
        enable_console_export: If True, also export spans to console.

    Returns:
        TracerProvider: The installed provider.
    """
    from workqueue import __version__

    settings = settings or get_settings()

    resource = Resource.create(
        {
            "service.name": settings.otel_service_name,
            "service.version": __version__,
        }
    )
    provider = TracerProvider(resource=resource)

    if settings.otel_exporter_otlp_endpoint:
        otlp_exporter = OTLPSpanExporter(
            endpoint=settings.otel_exporter_otlp_endpoint,
            insecure=True,
        )
        provider.add_span_processor(BatchSpanProcessor(otlp_exporter))

    if enable_console_export:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    return provider


def get_tracer() -> Tracer:
    """Get the library tracer from the current global provider."""
    return trace.get_tracer(TRACER_NAME)


@contextmanager
def start_span(name: str, attributes: dict[str, Any] | None = None) -> Iterator[Span]:
    """
    Run a block inside a new current span.

    Args:
        name: Span name.
        attributes: Span attributes; None values are skipped.

    Yields:
        The active span.
    """
    with get_tracer().start_as_current_span(name) as span:
        for key, value in (attributes or {}).items():
            if value is not None:
                span.set_attribute(key, str(value))
        yield span
