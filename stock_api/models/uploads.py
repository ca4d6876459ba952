from pydantic import BaseModel, Field


class RowError(BaseModel):
    row: dict[str, str]
    reason: str


class UploadResponse(BaseModel):
    total_records: int = Field(ge=0)
    successful_records: int = Field(ge=0)
    failed_records: int = Field(ge=0)
    errors: list[RowError]


class ErrorResponse(BaseModel):
    """Body of every 4xx/5xx the upload route produces."""

    error: str
    details: str | None = None
    missing_columns: list[str] | None = None
