"""
OpenTelemetry tracing for the stock services.

``init_tracing`` installs a global tracer provider that batches spans to an
OTLP/HTTP collector (Jaeger in the compose setup).  ``db_span`` wraps a single
SQLite statement in an internal span carrying the usual ``db.*`` attributes.
"""

import logging
import os
from contextlib import contextmanager

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import SpanKind, Status, StatusCode

logger = logging.getLogger(__name__)

DEFAULT_OTLP_ENDPOINT = "http://localhost:4318"
_TRACES_PATH = "/v1/traces"


def _traces_url(endpoint: str) -> str:
    endpoint = endpoint.rstrip("/")
    if endpoint.endswith(_TRACES_PATH):
        return endpoint
    return endpoint + _TRACES_PATH


def init_tracing(service_name: str, version: str | None = None, endpoint: str | None = None) -> None:
    """
    Install a global ``TracerProvider`` exporting over OTLP/HTTP.

    Args:
        service_name: ``service.name`` resource attribute (e.g. ``"stock-api"``).
        version: Optional ``service.version`` resource attribute.
        endpoint: Collector base URL.  Defaults to
            ``$OTEL_EXPORTER_OTLP_ENDPOINT`` or ``http://localhost:4318``;
            ``/v1/traces`` is appended when missing.
    """
    url = _traces_url(endpoint or os.environ.get("OTEL_EXPORTER_OTLP_ENDPOINT", DEFAULT_OTLP_ENDPOINT))

    attributes = {"service.name": service_name}
    if version:
        attributes["service.version"] = version

    provider = TracerProvider(resource=Resource.create(attributes))
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=url)))
    trace.set_tracer_provider(provider)

    logger.info("Tracing initialized for %s, exporting to %s", service_name, url)


@contextmanager
def db_span(tracer_name: str, operation: str, table: str, **attributes):
    """
    Start an internal span for a SQLite operation.

    The span is named ``"db <operation> <table>"``.  Extra attribute names
    spell dots as double underscores (``db__records_count=10`` becomes
    ``db.records_count``).  An exception marks the span as errored and is
    re-raised.
    """
    span_attributes = {
        "db.system": "sqlite",
        "db.operation": operation,
        "db.sql.table": table,
    }
    for key, value in attributes.items():
        span_attributes[key.replace("__", ".")] = value

    tracer = trace.get_tracer(tracer_name)
    with tracer.start_as_current_span(
        f"db {operation.lower()} {table}",
        kind=SpanKind.INTERNAL,
        attributes=span_attributes,
    ) as span:
        try:
            yield span
        except Exception as exc:
            span.set_status(Status(StatusCode.ERROR, str(exc)))
            raise


def shutdown_tracing() -> None:
    """Flush pending spans and shut the provider down.

    A no-op when tracing was never initialised (the default no-op provider
    has no ``shutdown``).
    """
    provider = trace.get_tracer_provider()
    shutdown = getattr(provider, "shutdown", None)
    if shutdown is None:
        return
    try:
        shutdown()
    except Exception as exc:
        logger.warning("Tracer shutdown failed: %s", exc)
    else:
        logger.info("Tracer shutdown complete")
