"""
Helpers for tests that assert on spans or metrics.

    exporter = setup_test_tracing("stock-api")
    ...
    [span] = get_spans_by_name(exporter, "csv ingest")
"""

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import ReadableSpan, TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from prometheus_client import REGISTRY
from prometheus_client.metrics import MetricWrapperBase


def setup_test_tracing(service_name: str = "test-service") -> InMemorySpanExporter:
    """
    Install a fresh global provider that exports synchronously to memory.

    OpenTelemetry only lets the global provider be set once per process, so
    the guard is reset first; every call starts from an empty exporter.
    """
    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    exporter = InMemorySpanExporter()
    provider.add_span_processor(SimpleSpanProcessor(exporter))

    trace._TRACER_PROVIDER = None
    trace._TRACER_PROVIDER_SET_ONCE._done = False
    trace.set_tracer_provider(provider)
    return exporter


def get_spans_by_name(exporter: InMemorySpanExporter, name: str) -> list[ReadableSpan]:
    return [span for span in exporter.get_finished_spans() if span.name == name]


def reset_metrics() -> None:
    """Unregister every Counter, Gauge, Histogram, Summary and Info.

    Process, GC and platform collectors stay registered.
    """
    for collector in list(REGISTRY._collector_to_names):
        if isinstance(collector, MetricWrapperBase):
            REGISTRY.unregister(collector)
