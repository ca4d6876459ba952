"""
Streaming reader for daily equity CSV exports.

``read_stock_csv`` consumes the header line eagerly so the caller can run
``check_header`` before a single data row is parsed, then hands the rest of
the stream to pandas in ``chunksize`` pieces.  Only one chunk is held in
memory at a time; rows come out as plain ``{column: raw string}`` dicts.
"""

import io
import logging
from typing import IO, Iterator

import pandas as pd

from stock_api import config

logger = logging.getLogger("csv_reader")

REQUIRED_COLUMNS = (
    "Date",
    "Symbol",
    "Series",
    "Prev Close",
    "Open",
    "High",
    "Low",
    "Last",
    "Close",
    "VWAP",
    "Volume",
    "Turnover",
    "Trades",
    "Deliverable Volume",
    "%Deliverable",
)

RawRow = dict[str, str]


class MissingColumnsError(ValueError):
    """The CSV header lacks one or more required columns."""

    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        super().__init__(f"Missing required columns: {', '.join(self.missing)}")


class CsvFormatError(ValueError):
    """The upload is not decodable or not parseable as CSV."""


def check_header(header: list[str]) -> None:
    """Raise ``MissingColumnsError`` unless every required column is present."""
    present = set(header)
    missing = [col for col in REQUIRED_COLUMNS if col not in present]
    if missing:
        raise MissingColumnsError(missing)


def _decode_line(line: bytes | str) -> str:
    if isinstance(line, bytes):
        try:
            return line.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise CsvFormatError(f"CSV header is not valid UTF-8: {exc}") from exc
    return line.lstrip("\ufeff")


def _parse_header(line: str) -> list[str]:
    if not line.strip():
        return []
    try:
        columns = pd.read_csv(io.StringIO(line), nrows=0, dtype=str).columns
    except pd.errors.ParserError as exc:
        raise CsvFormatError(f"Unparseable CSV header: {exc}") from exc

    header = []
    for name in columns:
        name = str(name).strip()
        # pandas only de-duplicates the raw names; stripping can collide them again
        candidate, n = name, 0
        while candidate in header:
            n += 1
            candidate = f"{name}.{n}"
        header.append(candidate)
    return header


class CsvRows:
    """Header plus a single-pass iterator of raw rows."""

    def __init__(self, stream: IO, header: list[str], chunk_rows: int):
        self.header = header
        self._stream = stream
        self._chunk_rows = chunk_rows
        self._consumed = False

    def __iter__(self) -> Iterator[RawRow]:
        if self._consumed:
            raise RuntimeError("CSV rows can only be iterated once")
        self._consumed = True
        if not self.header:
            return

        width = len(self.header)
        try:
            reader = pd.read_csv(
                self._stream,
                header=None,
                names=self.header,
                index_col=False,
                dtype=str,
                na_filter=False,
                skip_blank_lines=True,
                engine="python",
                # Extra trailing cells are dropped, like cells without a column name
                on_bad_lines=lambda fields: fields[:width],
                chunksize=self._chunk_rows,
                encoding="utf-8",
            )
            for chunk in reader:
                for values in chunk.itertuples(index=False, name=None):
                    # Short rows come back padded with NaN
                    yield {
                        column: value if isinstance(value, str) else ""
                        for column, value in zip(self.header, values)
                    }
        except pd.errors.EmptyDataError:
            return
        except (pd.errors.ParserError, UnicodeDecodeError) as exc:
            raise CsvFormatError(f"Malformed CSV content: {exc}") from exc


def read_stock_csv(stream: IO, chunk_rows: int | None = None) -> CsvRows:
    """Read the header line of *stream* and return a lazy ``CsvRows``.

    *stream* may be binary (decoded as UTF-8, BOM tolerated) or text.  The
    header is available on the result immediately; data rows are parsed only
    while the result is iterated.
    """
    header = _parse_header(_decode_line(stream.readline()))
    logger.debug("CSV header read: %s", header)
    return CsvRows(stream, header, chunk_rows or config.CSV_CHUNK_ROWS)
