"""
Prometheus helpers shared by the stock services.

Every ``create_*`` factory is idempotent: asking for a metric that is already
registered returns the existing collector instead of failing with
``Duplicated timeseries``.  That lets service modules define their metrics at
import time and still be re-imported by tests.
"""

import os
import time
from contextlib import contextmanager

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Histogram,
    Info,
    generate_latest,
)


def _get_or_create(metric_cls, name, documentation, **kwargs):
    try:
        return metric_cls(name, documentation, **kwargs)
    except ValueError:
        # Counters register under their name without the _total suffix
        existing = REGISTRY._names_to_collectors.get(name.removesuffix("_total"))
        if existing is None:
            raise
        return existing


def create_counter(name: str, documentation: str, labelnames: list[str] = None) -> Counter:
    return _get_or_create(Counter, name, documentation, labelnames=labelnames or ())


def create_histogram(name: str, documentation: str, buckets: list[float] = None, labelnames: list[str] = None) -> Histogram:
    """Create (or retrieve) a Histogram; ``buckets`` defaults to prometheus_client's."""
    kwargs = {"labelnames": labelnames or ()}
    if buckets:
        kwargs["buckets"] = buckets
    return _get_or_create(Histogram, name, documentation, **kwargs)


def create_info(name: str, documentation: str) -> Info:
    return _get_or_create(Info, name, documentation)


def create_service_info(service_name: str, version: str, environment: str | None = None) -> Info:
    """
    Publish ``version`` and ``environment`` labels under an Info metric.

    ``environment`` falls back to ``$ENVIRONMENT`` and then ``"development"``.
    """
    info = create_info(service_name, "Service metadata")
    info.info({
        "version": version,
        "environment": environment or os.environ.get("ENVIRONMENT", "development"),
    })
    return info


@contextmanager
def timed(histogram: Histogram | None):
    """Observe the wall-clock duration of the ``with`` block, even if it raises.

    ``histogram`` may be ``None`` so callers can pass an unwired placeholder.
    """
    start = time.monotonic()
    try:
        yield
    finally:
        if histogram is not None:
            histogram.observe(time.monotonic() - start)


def metrics_response() -> tuple[bytes, str]:
    """Render the default registry as ``(body, content_type)``."""
    return generate_latest(REGISTRY), CONTENT_TYPE_LATEST
