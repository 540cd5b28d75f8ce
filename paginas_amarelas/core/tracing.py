"""OpenTelemetry tracing for the API, the catalogue providers and the database."""

import logging
from typing import TYPE_CHECKING

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SpanExporter

from paginas_amarelas import __version__
from paginas_amarelas.core.config import Settings, get_settings

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = logging.getLogger(__name__)

_tracer_provider: TracerProvider | None = None


def build_resource(settings: Settings) -> Resource:
    """Resource attributes identifying this deployment."""
    return Resource.create(
        {
            "service.name": settings.otel_service_name,
            "service.version": __version__,
            "deployment.environment": settings.environment,
        }
    )


def build_span_exporter(settings: Settings) -> SpanExporter:
    """OTLP exporter for the configured protocol (``grpc`` or ``http/protobuf``)."""
    if settings.otel_exporter_otlp_protocol == "grpc":
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
    else:
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter

    return OTLPSpanExporter(endpoint=settings.otel_exporter_otlp_endpoint)


def _instrument(app: "FastAPI") -> None:
    from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
    from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
    from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor

    from paginas_amarelas.core.database import engine

    # Static cover/avatar files are not worth a span each
    FastAPIInstrumentor.instrument_app(app, excluded_urls="/uploads/.*")
    # Google Books and Open Library calls
    HTTPXClientInstrumentor().instrument()
    # Feed keyset queries and library reads
    SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine)


def setup_tracing(app: "FastAPI", settings: Settings | None = None) -> bool:
    """Install the tracer provider and instrument the app.

    Calling it again once tracing is active does nothing.

    Returns:
        True if tracing is active after the call.
    """
    global _tracer_provider

    settings = settings or get_settings()

    if not settings.otel_enabled:
        logger.info("Tracing disabled (set OTEL_ENABLED=true to export spans)")
        return False

    if _tracer_provider is not None:
        return True

    provider = TracerProvider(resource=build_resource(settings))
    provider.add_span_processor(BatchSpanProcessor(build_span_exporter(settings)))
    trace.set_tracer_provider(provider)
    _tracer_provider = provider

    _instrument(app)

    logger.info(
        f"Tracing '{settings.otel_service_name}' ({settings.environment}) "
        f"to {settings.otel_exporter_otlp_endpoint} over {settings.otel_exporter_otlp_protocol}"
    )
    return True


def shutdown_tracing() -> None:
    """Flush pending spans and shut the tracer provider down."""
    global _tracer_provider

    if _tracer_provider is not None:
        logger.info("Flushing spans before shutdown")
        _tracer_provider.shutdown()
        _tracer_provider = None
