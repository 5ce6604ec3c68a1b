"""OpenTelemetry tracing setup and utilities."""

import logging
from typing import TYPE_CHECKING

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Tracer

from library_api.core.config import get_settings

if TYPE_CHECKING:
    from fastapi import FastAPI
    from opentelemetry.sdk.trace.export import SpanExporter
    from sqlalchemy.ext.asyncio import AsyncEngine

    from library_api.core.config import Settings

logger = logging.getLogger(__name__)

SERVICE_VERSION = "0.1.0"

# Global tracer provider reference for shutdown
_tracer_provider: TracerProvider | None = None


def setup_tracing(app: "FastAPI") -> None:
    """Initialize OpenTelemetry tracing and instrument the FastAPI application.

    This function:
    1. Creates a TracerProvider tagged with service name, version and environment
    2. Attaches a batching OTLP exporter (gRPC or HTTP, per settings)
    3. Instruments FastAPI request handling

    The SQLite store's engine only exists once the store is opened, so it is
    instrumented separately through ``instrument_engine``.

    Args:
        app: The FastAPI application instance to instrument.
    """
    global _tracer_provider

    settings = get_settings()

    if not settings.otel_enabled:
        logger.info("OpenTelemetry tracing is disabled")
        return

    logger.info(f"Initializing OpenTelemetry tracing for service '{settings.otel_service_name}'")

    _tracer_provider = TracerProvider(resource=_build_resource(settings))
    # Spans are exported in batches
    _tracer_provider.add_span_processor(BatchSpanProcessor(_build_exporter(settings)))
    trace.set_tracer_provider(_tracer_provider)

    # Request spans; database spans are added once the store opens its engine
    from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

    FastAPIInstrumentor.instrument_app(app)

    logger.info(
        f"OpenTelemetry tracing initialized, exporting to {settings.otel_exporter_otlp_endpoint}"
    )


def _build_resource(settings: "Settings") -> Resource:
    return Resource.create(
        {
            "service.name": settings.otel_service_name,
            "service.version": SERVICE_VERSION,
            "deployment.environment": settings.environment,
        }
    )


def _build_exporter(settings: "Settings") -> "SpanExporter":
    """Pick the OTLP span exporter for the configured protocol."""
    if settings.otel_exporter_otlp_protocol == "grpc":
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
            OTLPSpanExporter,
        )
    else:
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
            OTLPSpanExporter,
        )

    return OTLPSpanExporter(endpoint=settings.otel_exporter_otlp_endpoint)


def instrument_engine(engine: "AsyncEngine") -> None:
    """Instrument a SQLAlchemy engine when tracing is enabled."""
    if _tracer_provider is None:
        return

    from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor

    SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine)


def shutdown_tracing() -> None:
    """Gracefully shutdown the tracer provider.

    This ensures all pending spans are flushed before the application exits.
    """
    global _tracer_provider

    if _tracer_provider is not None:
        logger.info("Shutting down OpenTelemetry tracing")
        _tracer_provider.shutdown()
        _tracer_provider = None


def get_tracer(name: str) -> Tracer:
    """Get a tracer instance for creating custom spans.

    Args:
        name: The name of the tracer, typically the module name.

    Returns:
        A Tracer instance for creating spans.
    """
    return trace.get_tracer(name)
