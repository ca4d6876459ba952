"""
CSV upload route.

The multipart file is spooled into ``UPLOAD_DIR`` and ingested from there.
The spooled copy is removed once the request finishes, whatever the outcome.
"""

import logging
import shutil
import uuid
from pathlib import Path

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import JSONResponse

from stock_api import config
from stock_api.csv_reader import CsvFormatError, MissingColumnsError
from stock_api.ingestion import count_upload, ingest_file
from stock_api.models.uploads import ErrorResponse, UploadResponse
from stock_api.repository import PersistenceError, StockRepository, get_repository

logger = logging.getLogger("upload")

router = APIRouter(tags=["Ingestion"])

CSV_CONTENT_TYPE = "text/csv"


def _error(status_code: int, **body) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(**body).model_dump(exclude_none=True),
    )


def _spool(upload: UploadFile) -> Path:
    upload_dir = Path(config.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    path = upload_dir / f"{uuid.uuid4().hex}.csv"
    with path.open("wb") as out:
        shutil.copyfileobj(upload.file, out)
    return path


def _is_csv(upload: UploadFile | None) -> bool:
    if upload is None or not upload.content_type:
        return False
    return upload.content_type.split(";")[0].strip().lower() == CSV_CONTENT_TYPE


@router.post(
    "/upload",
    response_model=UploadResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def upload_csv(
    file: UploadFile | None = File(default=None),
    repository: StockRepository = Depends(get_repository),
):
    if not _is_csv(file):
        count_upload("rejected")
        return _error(400, error="Please upload a CSV file.")

    path = _spool(file)
    logger.info("Upload %s spooled to %s", file.filename, path)
    try:
        report = ingest_file(path, repository)
    except MissingColumnsError as exc:
        count_upload("missing_columns")
        logger.warning("Upload %s rejected: %s", file.filename, exc)
        return _error(400, error="Missing required columns", missing_columns=exc.missing)
    except CsvFormatError as exc:
        count_upload("malformed")
        logger.warning("Upload %s rejected: %s", file.filename, exc)
        return _error(400, error="Malformed CSV file", details=str(exc))
    except PersistenceError as exc:
        count_upload("persistence_error")
        logger.error("Upload %s not persisted: %s", file.filename, exc)
        return _error(500, error="Database insertion error", details=str(exc))
    finally:
        path.unlink(missing_ok=True)

    count_upload("success")
    return UploadResponse(**report.to_response())
