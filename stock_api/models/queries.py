from pydantic import BaseModel

from .records import StockRecord


class HighestVolumeResponse(BaseModel):
    highest_volume: StockRecord | None


class AverageCloseResponse(BaseModel):
    average_close: float | None


class AverageVwapResponse(BaseModel):
    average_vwap: float | None


class HealthResponse(BaseModel):
    status: str
    db_connected: bool
    total_records: int
