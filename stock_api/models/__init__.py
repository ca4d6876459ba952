from .records import StockRecord
from .uploads import RowError, UploadResponse, ErrorResponse
from .queries import HighestVolumeResponse, AverageCloseResponse, AverageVwapResponse, HealthResponse

__all__ = [
    "StockRecord",
    "RowError",
    "UploadResponse",
    "ErrorResponse",
    "HighestVolumeResponse",
    "AverageCloseResponse",
    "AverageVwapResponse",
    "HealthResponse",
]
