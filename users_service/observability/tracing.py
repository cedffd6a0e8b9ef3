from __future__ import annotations

import logging

from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.trace import SpanContext

from users_service.config import SERVICE_VERSION as VERSION
from users_service.config import Settings

logger = logging.getLogger(__name__)


def init_tracer_provider(settings: Settings) -> TracerProvider:
    """Build a tracer provider for this app.

    The provider is handed to the app rather than installed globally, so
    several apps (tests) can live in one process with their own exporters.
    """

    resource = Resource.create({SERVICE_NAME: settings.service_name, SERVICE_VERSION: VERSION})
    provider = TracerProvider(resource=resource)

    if settings.trace_exporter == "otlp":
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.otlp_endpoint)))
    elif settings.trace_exporter == "console":
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    logger.info(
        "tracing.configured",
        extra={"exporter": settings.trace_exporter, "service_name": settings.service_name},
    )
    return provider


def trace_ids(context: SpanContext) -> dict[str, str]:
    return {
        "trace_id": format(context.trace_id, "032x"),
        "span_id": format(context.span_id, "016x"),
    }
