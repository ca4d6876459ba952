"""Read-only aggregate queries over persisted stock records."""

import logging

from stock_api.models.records import StockRecord
from stock_api.repository import HIGHEST_VOLUME_ORDER, StockFilter, StockRepository

logger = logging.getLogger("queries")


class StockQueryService:
    """Highest volume and average close/VWAP over a date range.

    Every operation treats ``symbol`` as optional and returns ``None`` when
    nothing matches the filter.
    """

    def __init__(self, repository: StockRepository):
        self.repository = repository

    def highest_volume(self, stock_filter: StockFilter) -> StockRecord | None:
        record = self.repository.find_one(stock_filter, HIGHEST_VOLUME_ORDER)
        logger.debug("highest_volume %s -> %s", stock_filter, record and record.symbol)
        return record

    def average_close(self, stock_filter: StockFilter) -> float | None:
        return self.repository.aggregate_average("close", stock_filter)

    def average_vwap(self, stock_filter: StockFilter) -> float | None:
        return self.repository.aggregate_average("vwap", stock_filter)
