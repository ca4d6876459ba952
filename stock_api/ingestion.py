"""
CSV ingestion pipeline: parse → validate → normalize → accumulate → persist.

Rows are pulled one at a time from ``read_stock_csv``; invalid rows are
recorded in the ``IngestionReport`` and never normalized.  Valid records are
written in a single bulk insert once the stream is exhausted, so a stream
that fails part-way through persists nothing.
"""

import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import IO, Iterable

from opentelemetry import trace
from opentelemetry.trace import SpanKind

from stock_common.observability import timed

from stock_api.csv_reader import RawRow, check_header, read_stock_csv
from stock_api.models.records import StockRecord
from stock_api.repository import StockRepository
from stock_api.validation import VALIDATION_FAILED, normalize_row, validate_row

logger = logging.getLogger("ingestion")

# Metrics placeholders, wired by stock_api.telemetry
rows_processed_counter = None
uploads_counter = None
ingest_duration_histogram = None
insert_duration_histogram = None


@dataclass
class RowFailure:
    row: RawRow
    reason: str


@dataclass
class IngestionReport:
    """Outcome of one upload; ``total`` is always ``successful + failed``."""

    successful: int = 0
    failed: int = 0
    errors: list[RowFailure] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.successful + self.failed

    def to_response(self) -> dict:
        return {
            "total_records": self.total,
            "successful_records": self.successful,
            "failed_records": self.failed,
            "errors": [asdict(failure) for failure in self.errors],
        }


def count_upload(outcome: str) -> None:
    if uploads_counter:
        uploads_counter.labels(outcome=outcome).inc()


def accumulate(rows: Iterable[RawRow]) -> tuple[IngestionReport, list[StockRecord]]:
    """Route each row to the failure list or the pending-insert list."""
    report = IngestionReport()
    records: list[StockRecord] = []
    for row in rows:
        if validate_row(row):
            records.append(normalize_row(row))
            report.successful += 1
            result = "valid"
        else:
            report.failed += 1
            report.errors.append(RowFailure(row=row, reason=VALIDATION_FAILED))
            result = "invalid"
        if rows_processed_counter:
            rows_processed_counter.labels(result=result).inc()
    return report, records


class BulkPersister:
    """Writes a whole upload's valid records with one repository call."""

    def __init__(self, repository: StockRepository):
        self.repository = repository

    def insert_all(self, records: list[StockRecord]) -> None:
        """Raises ``PersistenceError`` if the store rejects the batch."""
        if not records:
            logger.info("No valid records to persist")
            return
        with timed(insert_duration_histogram):
            inserted = self.repository.insert_all(records)
        logger.info("Persisted %d stock records", inserted)


def ingest_stream(stream: IO, repository: StockRepository, chunk_rows: int | None = None) -> IngestionReport:
    """Run the full pipeline over an open CSV stream and return its report.

    Raises:
        MissingColumnsError: the header lacks required columns; no row is read.
        CsvFormatError: the content is not decodable/parseable CSV.
        PersistenceError: the bulk insert failed.
    """
    tracer = trace.get_tracer(__name__)
    with tracer.start_as_current_span("csv ingest", kind=SpanKind.INTERNAL) as span:
        with timed(ingest_duration_histogram):
            rows = read_stock_csv(stream, chunk_rows)
            check_header(rows.header)
            report, records = accumulate(rows)
            BulkPersister(repository).insert_all(records)

        span.set_attribute("csv.total_records", report.total)
        span.set_attribute("csv.successful_records", report.successful)
        span.set_attribute("csv.failed_records", report.failed)

    logger.info(
        "CSV ingested",
        extra={
            "total_records": report.total,
            "successful_records": report.successful,
            "failed_records": report.failed,
        },
    )
    return report


def ingest_file(path: str | Path, repository: StockRepository, chunk_rows: int | None = None) -> IngestionReport:
    """Ingest a CSV file from disk and delete it once its records are persisted.

    The file is left in place when ingestion raises.
    """
    path = Path(path)
    with path.open("rb") as stream:
        report = ingest_stream(stream, repository, chunk_rows)
    path.unlink(missing_ok=True)
    logger.debug("Removed ingested file %s", path)
    return report
