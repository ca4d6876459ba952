"""
Service-specific telemetry for stock-api.

Domain metrics and FastAPI instrumentation that sit on top of the
shared ``stock_common.observability`` module.
"""

import logging

from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from stock_common.observability import (
    create_counter,
    create_histogram,
    MetricsMiddleware,
)

logger = logging.getLogger("telemetry")

# ── Metrics (Prometheus) ──────────────────────────────────────────

HTTP_REQUESTS = create_counter(
    "http_requests_total",
    "Total HTTP requests by method and path",
    ["method", "path", "status"],
)

UPLOADS_TOTAL = create_counter(
    "stock_uploads_total",
    "CSV uploads by outcome",
    ["outcome"],
)

ROWS_PROCESSED = create_counter(
    "stock_rows_processed_total",
    "CSV data rows processed, by validation result",
    ["result"],
)

INGEST_DURATION = create_histogram(
    "stock_ingest_duration_seconds",
    "Time spent parsing, validating and persisting one CSV upload",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

INSERT_DURATION = create_histogram(
    "db_insert_duration_seconds",
    "Time spent bulk-inserting stock records into SQLite",
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)


# ── Initialization ───────────────────────────────────────────────

def init(app):
    """Wire service-specific telemetry into the FastAPI app.

    * Adds the HTTP-metrics middleware.
    * Wires ingestion metric placeholders.
    * Instruments FastAPI with OpenTelemetry auto-instrumentation.
    """
    app.add_middleware(MetricsMiddleware, counter=HTTP_REQUESTS, ignored_paths={"/metrics"})

    from stock_api import ingestion
    ingestion.rows_processed_counter = ROWS_PROCESSED
    ingestion.uploads_counter = UPLOADS_TOTAL
    ingestion.ingest_duration_histogram = INGEST_DURATION
    ingestion.insert_duration_histogram = INSERT_DURATION

    try:
        FastAPIInstrumentor.instrument_app(app)
        logger.info("FastAPI instrumentation enabled")
    except Exception as e:
        logger.warning("FastAPI instrumentation failed: %s", e)

    logger.info("Service telemetry initialised")
