import sqlite3
from datetime import date

import pytest

from stock_api.database import get_total_records
from stock_api.models.records import StockRecord
from stock_api.queries import StockQueryService
from stock_api.repository import (
    HIGHEST_VOLUME_ORDER,
    PersistenceError,
    SqliteStockRepository,
    StockFilter,
)


def _record(day: int, symbol: str = "TCS", volume: int = 1000, close: float = 100.0, vwap: float = 99.0) -> StockRecord:
    return StockRecord(
        date=date(2015, 1, day),
        symbol=symbol,
        series="EQ",
        prev_close=close,
        open=close,
        high=close,
        low=close,
        last=close,
        close=close,
        vwap=vwap,
        volume=volume,
        turnover=volume * vwap,
        trades=10,
    )


JAN = StockFilter(start_date=date(2015, 1, 1), end_date=date(2015, 1, 31))


@pytest.fixture
def repo(temp_db):
    return SqliteStockRepository()


@pytest.fixture
def service(repo):
    return StockQueryService(repo)


# ── StockFilter ───────────────────────────────────────────────────

class TestStockFilter:
    def test_rejects_inverted_range(self):
        with pytest.raises(ValueError):
            StockFilter(start_date=date(2015, 2, 1), end_date=date(2015, 1, 1))

    def test_single_day_range_is_allowed(self):
        StockFilter(start_date=date(2015, 1, 1), end_date=date(2015, 1, 1))

    def test_where_clause_without_symbol(self):
        clause, params = JAN.where_clause()
        assert "symbol" not in clause
        assert params == ["2015-01-01", "2015-01-31"]

    def test_where_clause_with_symbol(self):
        clause, params = StockFilter(date(2015, 1, 1), date(2015, 1, 2), "TCS").where_clause()
        assert "symbol = ?" in clause
        assert params[-1] == "TCS"


# ── insert_all ────────────────────────────────────────────────────

class TestInsertAll:
    def test_inserts_and_round_trips(self, repo):
        record = _record(5)
        assert repo.insert_all([record]) == 1
        assert get_total_records() == 1
        assert repo.find_one(JAN) == record

    def test_empty_batch_is_noop(self, repo):
        assert repo.insert_all([]) == 0
        assert get_total_records() == 0

    def test_batch_is_all_or_nothing(self, repo, temp_db):
        with sqlite3.connect(temp_db) as conn:
            conn.execute(
                "CREATE TRIGGER reject_bad BEFORE INSERT ON stocks "
                "WHEN NEW.symbol = 'BAD' BEGIN SELECT RAISE(ABORT, 'rejected'); END;"
            )

        with pytest.raises(PersistenceError, match="rejected"):
            repo.insert_all([_record(1), _record(2), _record(3, symbol="BAD")])
        assert get_total_records() == 0

    def test_missing_table_is_persistence_error(self, repo, temp_db):
        with sqlite3.connect(temp_db) as conn:
            conn.execute("DROP TABLE stocks")
        with pytest.raises(PersistenceError):
            repo.insert_all([_record(1)])


# ── Queries ───────────────────────────────────────────────────────

class TestHighestVolume:
    def test_empty_store(self, service):
        assert service.highest_volume(JAN) is None

    def test_picks_maximum_volume(self, repo, service):
        repo.insert_all([_record(1, volume=10), _record(2, volume=30), _record(3, volume=20)])
        assert service.highest_volume(JAN).date == date(2015, 1, 2)

    def test_range_is_inclusive(self, repo, service):
        repo.insert_all([_record(1, volume=50), _record(10, volume=5), _record(20, volume=70)])
        result = service.highest_volume(StockFilter(date(2015, 1, 1), date(2015, 1, 10)))
        assert result.date == date(2015, 1, 1)
        result = service.highest_volume(StockFilter(date(2015, 1, 10), date(2015, 1, 20)))
        assert result.date == date(2015, 1, 20)

    def test_symbol_filter(self, repo, service):
        repo.insert_all([_record(1, "TCS", volume=10), _record(1, "INFY", volume=99)])
        result = service.highest_volume(StockFilter(date(2015, 1, 1), date(2015, 1, 31), "TCS"))
        assert result.symbol == "TCS"
        assert service.highest_volume(JAN).symbol == "INFY"

    def test_tie_breaks_on_earliest_date_then_symbol(self, repo, service):
        repo.insert_all([
            _record(9, "TCS", volume=500),
            _record(3, "WIPRO", volume=500),
            _record(3, "INFY", volume=500),
        ])
        result = service.highest_volume(JAN)
        assert (result.date, result.symbol) == (date(2015, 1, 3), "INFY")

    def test_no_match_outside_range(self, repo, service):
        repo.insert_all([_record(1)])
        assert service.highest_volume(StockFilter(date(2016, 1, 1), date(2016, 12, 31))) is None

    def test_default_order_is_highest_volume(self, repo):
        repo.insert_all([_record(1, volume=1), _record(2, volume=2)])
        assert repo.find_one(JAN) == repo.find_one(JAN, HIGHEST_VOLUME_ORDER)


class TestAverages:
    def test_average_close(self, repo, service):
        repo.insert_all([_record(1, close=100.0), _record(2, close=200.0), _record(3, close=300.0)])
        assert service.average_close(JAN) == pytest.approx(200.0)

    def test_average_vwap(self, repo, service):
        repo.insert_all([_record(1, vwap=10.0), _record(2, vwap=20.0)])
        assert service.average_vwap(JAN) == pytest.approx(15.0)

    def test_empty_match_is_none(self, service):
        assert service.average_close(JAN) is None
        assert service.average_vwap(JAN) is None

    def test_symbol_optional_for_both(self, repo, service):
        repo.insert_all([
            _record(1, "TCS", close=100.0, vwap=100.0),
            _record(1, "INFY", close=300.0, vwap=300.0),
        ])
        tcs = StockFilter(date(2015, 1, 1), date(2015, 1, 31), "TCS")
        assert service.average_close(tcs) == pytest.approx(100.0)
        assert service.average_vwap(tcs) == pytest.approx(100.0)
        assert service.average_close(JAN) == pytest.approx(200.0)
        assert service.average_vwap(JAN) == pytest.approx(200.0)

    def test_unknown_symbol_is_none(self, repo, service):
        repo.insert_all([_record(1)])
        assert service.average_close(StockFilter(date(2015, 1, 1), date(2015, 1, 31), "NOPE")) is None

    def test_queries_are_repeatable(self, repo, service):
        repo.insert_all([_record(1, close=10.0), _record(2, close=20.0)])
        assert service.average_close(JAN) == service.average_close(JAN)
        assert get_total_records() == 2

    def test_only_close_and_vwap_can_be_averaged(self, repo):
        with pytest.raises(ValueError):
            repo.aggregate_average("volume; DROP TABLE stocks", JAN)
