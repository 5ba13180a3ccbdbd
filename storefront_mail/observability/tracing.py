"""
OpenTelemetry tracing setup.

The queue opens an ``execute_job`` span per job run and the orchestrator a
``deliver_attempt`` span per tier, so one trace shows every tier tried for a
message. Spans leave the process only when an OTLP endpoint is configured.
"""

import logging

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Tracer

from storefront_mail import __version__
from storefront_mail.config import Settings, get_settings

logger = logging.getLogger(__name__)

# Probe and scrape endpoints are not traced
EXCLUDED_URLS = "/metrics,/live,/ready"

_tracer: Tracer | None = None


def setup_tracing(settings: Settings | None = None) -> Tracer:
    """
    Install the tracer provider for the mail service.

    Args:
        settings: Settings providing ``otel_service_name`` and
            ``otel_exporter_otlp_endpoint``. Defaults to the cached settings.

    Returns:
        The service tracer.
    """
    global _tracer

    settings = settings or get_settings()

    provider = TracerProvider(
        resource=Resource.create(
            {
                "service.name": settings.otel_service_name,
                "service.version": __version__,
                "deployment.environment": settings.environment,
            }
        )
    )

    endpoint = settings.otel_exporter_otlp_endpoint
    if endpoint:
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, insecure=True))
        )
        logger.info("Exporting spans over OTLP", extra={"endpoint": endpoint})

    trace.set_tracer_provider(provider)
    _tracer = trace.get_tracer(settings.otel_service_name, __version__)
    return _tracer


def instrument_fastapi(app: FastAPI) -> None:
    """Trace status API requests."""
    FastAPIInstrumentor.instrument_app(app, excluded_urls=EXCLUDED_URLS)


def get_tracer() -> Tracer:
    """Get the service tracer, installing the provider on first use."""
    if _tracer is None:
        return setup_tracing()
    return _tracer
