"""
Persistence boundary for ``StockRecord``s.

``StockRepository`` is what the ingestion pipeline and the query service
depend on; ``SqliteStockRepository`` is the implementation backed by
``stock_api.database``.  FastAPI routes obtain it through ``get_repository``
so tests can swap in their own.
"""

import logging
import sqlite3
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Protocol

from stock_common.observability import db_span

from stock_api.database import STOCK_COLUMNS, get_connection
from stock_api.models.records import StockRecord

logger = logging.getLogger("repository")

AVERAGEABLE_FIELDS = ("close", "vwap")

# Highest volume first; ties resolve to the earliest trading day, then symbol
HIGHEST_VOLUME_ORDER = "volume DESC, date ASC, symbol ASC, id ASC"


class PersistenceError(RuntimeError):
    """The store rejected a read or write."""


@dataclass(frozen=True)
class StockFilter:
    """Inclusive ``[start_date, end_date]`` range with an optional exact symbol."""

    start_date: date
    end_date: date
    symbol: str | None = None

    def __post_init__(self):
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")

    def where_clause(self) -> tuple[str, list]:
        clause = "date >= ? AND date <= ?"
        params: list = [self.start_date.isoformat(), self.end_date.isoformat()]
        if self.symbol:
            clause += " AND symbol = ?"
            params.append(self.symbol)
        return clause, params


class StockRepository(Protocol):
    def insert_all(self, records: list[StockRecord]) -> int: ...

    def find_one(self, stock_filter: StockFilter, order_by: str) -> StockRecord | None: ...

    def aggregate_average(self, field: str, stock_filter: StockFilter) -> float | None: ...


def _to_row(record: StockRecord) -> tuple:
    values = record.model_dump()
    values["date"] = record.date.isoformat()
    return tuple(values[column] for column in STOCK_COLUMNS)


def _from_row(row: sqlite3.Row) -> StockRecord:
    return StockRecord(**{column: row[column] for column in STOCK_COLUMNS})


class SqliteStockRepository:
    """``StockRepository`` over the SQLite ``stocks`` table."""

    def insert_all(self, records: Iterable[StockRecord]) -> int:
        """Insert every record in one transaction; all or nothing."""
        rows = [_to_row(record) for record in records]
        if not rows:
            return 0

        placeholders = ", ".join("?" for _ in STOCK_COLUMNS)
        query = f"INSERT INTO stocks ({', '.join(STOCK_COLUMNS)}) VALUES ({placeholders})"
        with db_span(__name__, "INSERT", "stocks", db__records_count=len(rows)):
            try:
                with get_connection() as conn:
                    conn.executemany(query, rows)
            except sqlite3.Error as exc:
                logger.error("Bulk insert of %d stock records failed: %s", len(rows), exc)
                raise PersistenceError(str(exc)) from exc
        return len(rows)

    def find_one(self, stock_filter: StockFilter, order_by: str = HIGHEST_VOLUME_ORDER) -> StockRecord | None:
        where, params = stock_filter.where_clause()
        query = (
            f"SELECT {', '.join(STOCK_COLUMNS)} FROM stocks "
            f"WHERE {where} ORDER BY {order_by} LIMIT 1"
        )
        with db_span(__name__, "SELECT", "stocks", db__query__symbol=stock_filter.symbol or "*") as span:
            try:
                with get_connection() as conn:
                    row = conn.execute(query, params).fetchone()
            except sqlite3.Error as exc:
                raise PersistenceError(str(exc)) from exc
            span.set_attribute("db.result_count", 0 if row is None else 1)
        return _from_row(row) if row is not None else None

    def aggregate_average(self, field: str, stock_filter: StockFilter) -> float | None:
        if field not in AVERAGEABLE_FIELDS:
            raise ValueError(f"Cannot average field {field!r}")

        where, params = stock_filter.where_clause()
        query = f"SELECT AVG({field}) AS average, COUNT(*) AS matched FROM stocks WHERE {where}"
        with db_span(__name__, "SELECT", "stocks", db__query__aggregate=f"avg({field})") as span:
            try:
                with get_connection() as conn:
                    row = conn.execute(query, params).fetchone()
            except sqlite3.Error as exc:
                raise PersistenceError(str(exc)) from exc
            span.set_attribute("db.result_count", row["matched"])
        return row["average"]


def get_repository() -> StockRepository:
    """FastAPI dependency returning the configured repository."""
    return SqliteStockRepository()
