import pytest

import stock_api.database as db_module
from stock_api import config
from stock_api.csv_reader import REQUIRED_COLUMNS
from stock_api.database import init_db


TCS_ROW = {
    "Date": "2015-01-01",
    "Symbol": "TCS",
    "Series": "EQ",
    "Prev Close": "1300",
    "Open": "1310",
    "High": "1320",
    "Low": "1290",
    "Last": "1305",
    "Close": "1308",
    "VWAP": "1307.5",
    "Volume": "100000",
    "Turnover": "1.3e8",
    "Trades": "500",
    "Deliverable Volume": "",
    "%Deliverable": "",
}


def make_row(**overrides) -> dict[str, str]:
    """TCS_ROW with keyword overrides; spaces/% in column names use ``_``/``pct_``."""
    row = dict(TCS_ROW)
    for key, value in overrides.items():
        column = {
            "prev_close": "Prev Close",
            "deliverable_volume": "Deliverable Volume",
            "pct_deliverable": "%Deliverable",
        }.get(key, key)
        row[column] = value
    return row


def make_csv(rows: list[dict[str, str]], columns=REQUIRED_COLUMNS) -> str:
    lines = [",".join(columns)]
    for row in rows:
        lines.append(",".join(row.get(column, "") for column in columns))
    return "\n".join(lines) + "\n"


@pytest.fixture
def temp_db(tmp_path, monkeypatch):
    """A fresh temporary SQLite database for the test."""
    test_db = tmp_path / "test.db"
    monkeypatch.setattr(db_module, "DB_PATH", test_db)
    monkeypatch.setenv("DB_RESET_ON_START", "false")
    init_db()
    yield test_db


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    directory = tmp_path / "uploads"
    monkeypatch.setattr(config, "UPLOAD_DIR", directory)
    yield directory
