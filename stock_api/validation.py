"""
Row validation and normalization for daily equity records.

``validate_row`` and ``normalize_row`` share the ``parse_*`` helpers below,
so any row the validator accepts converts without error.  Parse helpers
return ``None`` instead of raising on bad input.
"""

import math
import re
from datetime import date, datetime

from stock_api.csv_reader import RawRow
from stock_api.models.records import StockRecord

DATE_FORMATS = (
    "%Y-%m-%d",
    "%d-%b-%Y",   # NSE bhavcopy exports: 01-Jan-2015
    "%d-%m-%Y",
    "%d/%m/%Y",
)

# CSV column -> StockRecord field
FLOAT_FIELDS = {
    "Prev Close": "prev_close",
    "Open": "open",
    "High": "high",
    "Low": "low",
    "Last": "last",
    "Close": "close",
    "VWAP": "vwap",
    "Turnover": "turnover",
}

INT_FIELDS = {
    "Volume": "volume",
    "Trades": "trades",
}

VALIDATION_FAILED = "Validation failed"

# SQLite INTEGER is a signed 64-bit value
MAX_INT = 2**63 - 1


# Western 1,234,567.89 or Indian 12,34,567.89 digit grouping
GROUPED_NUMBER = re.compile(r"^\d{1,3}(,\d{3})+(\.\d+)?$|^\d{1,2}(,\d{2})*,\d{3}(\.\d+)?$")


def _clean(value: str | None) -> str | None:
    """Strip whitespace and grouping commas; ``None`` if the text can't be a plain number."""
    text = (value or "").strip()
    if not text.isascii() or "_" in text:
        return None
    if "," in text:
        if not GROUPED_NUMBER.match(text):
            return None
        text = text.replace(",", "")
    return text


def parse_date(value: str | None) -> date | None:
    text = (value or "").strip()
    if not text:
        return None
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def parse_float(value: str | None) -> float | None:
    """Parse a finite, non-negative float."""
    text = _clean(value)
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    if not math.isfinite(number) or number < 0:
        return None
    return number


def parse_int(value: str | None) -> int | None:
    """Parse a non-negative integer; integral float spellings like ``"500.0"`` count."""
    text = _clean(value)
    if not text:
        return None
    try:
        number = int(text)
    except ValueError:
        number = parse_float(text)
        if number is None or not number.is_integer():
            return None
        number = int(number)
    return number if 0 <= number <= MAX_INT else None


def validate_row(row: RawRow) -> bool:
    """Return True when every required field of *row* parses."""
    if parse_date(row.get("Date")) is None:
        return False
    if not (row.get("Symbol") or "").strip():
        return False
    if any(parse_float(row.get(column)) is None for column in FLOAT_FIELDS):
        return False
    if any(parse_int(row.get(column)) is None for column in INT_FIELDS):
        return False
    return True


def normalize_row(row: RawRow) -> StockRecord:
    """Convert a validated raw row into a ``StockRecord``.

    Optional columns (``Series``, ``Deliverable Volume``, ``%Deliverable``)
    become ``None`` when empty or unparseable.  ``Trades`` falls back to 0
    rather than failing.
    """
    fields = {name: parse_float(row.get(column)) for column, name in FLOAT_FIELDS.items()}
    trades = parse_int(row.get("Trades"))
    return StockRecord(
        date=parse_date(row.get("Date")),
        symbol=row["Symbol"].strip(),
        series=(row.get("Series") or "").strip() or None,
        volume=parse_int(row.get("Volume")),
        trades=trades if trades is not None else 0,
        deliverable_volume=parse_int(row.get("Deliverable Volume")),
        percent_deliverable=parse_float(row.get("%Deliverable")),
        **fields,
    )
