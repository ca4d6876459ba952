"""
Observability shared by the stock services: JSON logs, Prometheus metrics,
OpenTelemetry traces and HTTP request counting.

Services call ``init_observability`` once at import time and then use the
re-exported helpers.  Test helpers live in ``stock_common.observability.testing``
and are not re-exported here.
"""

import logging as _logging
import os as _os

from .logging import setup_logging, get_logger, JsonTraceFormatter
from .metrics import (
    create_counter,
    create_histogram,
    create_info,
    create_service_info,
    metrics_response,
    timed,
)
from .tracing import init_tracing, shutdown_tracing, db_span
from .middleware import MetricsMiddleware


def init_observability(
    service_name: str,
    version: str,
    *,
    log_level: int | str = _logging.INFO,
    environment: str | None = None,
) -> None:
    """
    Configure logging, tracing and the service-info metric for a process.

    Tracing is only set up when ``OTEL_EXPORTER_OTLP_ENDPOINT`` is present,
    and a failure to set it up is logged rather than raised.  The info metric
    is named after ``service_name`` with dashes turned into underscores.
    """
    setup_logging(log_level)
    logger = get_logger(service_name)

    if not _os.environ.get("OTEL_EXPORTER_OTLP_ENDPOINT"):
        logger.info("Tracing disabled: OTEL_EXPORTER_OTLP_ENDPOINT not set")
    else:
        try:
            init_tracing(service_name, version=version)
        except Exception as exc:
            logger.warning("Tracing init failed, continuing without it: %s", exc)

    create_service_info(service_name.replace("-", "_"), version, environment)
    logger.info("Observability initialised for %s %s", service_name, version)


__all__ = [
    "init_observability",
    "setup_logging",
    "get_logger",
    "JsonTraceFormatter",
    "create_counter",
    "create_histogram",
    "create_info",
    "create_service_info",
    "metrics_response",
    "timed",
    "init_tracing",
    "shutdown_tracing",
    "db_span",
    "MetricsMiddleware",
]
