"""OpenTelemetry tracing setup.

Tracing is opt-in (``OTEL_ENABLED=true``). When disabled, ``get_tracer``
still returns a usable tracer backed by the default no-op provider, so the
service code never has to branch on whether tracing is configured.
"""

from collections.abc import Callable

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from users_api.config import Settings


def setup_tracing(settings: Settings, app: FastAPI | None = None) -> Callable[[], None]:
    """Bootstrap the OpenTelemetry pipeline.

    Args:
        settings: Application settings (endpoint, service name, enabled flag)
        app: FastAPI app to instrument, if any

    Returns:
        A shutdown callable that flushes and stops the tracer provider.
        It is a no-op when tracing is disabled.
    """
    if not settings.otel_enabled:
        return lambda: None

    resource = Resource.create({"service.name": settings.otel_service_name})
    tracer_provider = TracerProvider(resource=resource)

    exporter = OTLPSpanExporter(
        endpoint=settings.otel_endpoint,
        insecure=settings.otel_endpoint.startswith("http://"),
    )
    tracer_provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(tracer_provider)

    if app is not None:
        FastAPIInstrumentor.instrument_app(app, tracer_provider=tracer_provider)

    return tracer_provider.shutdown


def get_tracer(name: str) -> trace.Tracer:
    """Get a tracer from the currently installed provider."""
    return trace.get_tracer(name)
