"""Persisted trading-day record."""

import datetime

from pydantic import BaseModel, ConfigDict, Field


class StockRecord(BaseModel):
    """One trading day for one symbol, as stored in the ``stocks`` table."""

    model_config = ConfigDict(frozen=True)

    date: datetime.date
    symbol: str = Field(min_length=1)
    series: str | None = None
    prev_close: float = Field(ge=0)
    open: float = Field(ge=0)
    high: float = Field(ge=0)
    low: float = Field(ge=0)
    last: float = Field(ge=0)
    close: float = Field(ge=0)
    vwap: float = Field(ge=0)
    volume: int = Field(ge=0)
    turnover: float = Field(ge=0)
    trades: int = Field(ge=0)
    deliverable_volume: int | None = Field(default=None, ge=0)
    percent_deliverable: float | None = Field(default=None, ge=0)
