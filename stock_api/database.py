import os
import sqlite3
from pathlib import Path
from contextlib import contextmanager

from stock_api import config

DB_PATH = config.DATABASE_PATH

SCHEMA = """
CREATE TABLE IF NOT EXISTS stocks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    date TEXT NOT NULL,
    symbol TEXT NOT NULL,
    series TEXT,
    prev_close REAL NOT NULL,
    open REAL NOT NULL,
    high REAL NOT NULL,
    low REAL NOT NULL,
    last REAL NOT NULL,
    close REAL NOT NULL,
    vwap REAL NOT NULL,
    volume INTEGER NOT NULL,
    turnover REAL NOT NULL,
    trades INTEGER NOT NULL,
    deliverable_volume INTEGER,
    percent_deliverable REAL,
    ingested_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_stocks_date ON stocks(date);
CREATE INDEX IF NOT EXISTS idx_stocks_symbol_date ON stocks(symbol, date);
"""

# Column order used for inserts and for rebuilding records from rows
STOCK_COLUMNS = (
    "date",
    "symbol",
    "series",
    "prev_close",
    "open",
    "high",
    "low",
    "last",
    "close",
    "vwap",
    "volume",
    "turnover",
    "trades",
    "deliverable_volume",
    "percent_deliverable",
)


def _get_db_path() -> Path:
    return Path(DB_PATH)


def init_db():
    db_path = _get_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)

    should_reset = os.environ.get("DB_RESET_ON_START", str(config.DB_RESET_ON_START)).lower() == "true"

    with sqlite3.connect(str(db_path)) as conn:
        if should_reset:
            conn.execute("DROP TABLE IF EXISTS stocks")
        conn.executescript(SCHEMA)


@contextmanager
def get_connection():
    """Yield a connection that commits on success and rolls back on error."""
    conn = sqlite3.connect(str(_get_db_path()))
    conn.row_factory = sqlite3.Row
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def get_total_records() -> int:
    with get_connection() as conn:
        row = conn.execute("SELECT COUNT(*) AS cnt FROM stocks").fetchone()
    return row["cnt"]


def check_connection() -> bool:
    try:
        with get_connection() as conn:
            conn.execute("SELECT 1 FROM stocks LIMIT 1")
        return True
    except sqlite3.Error:
        return False
