from fastapi import APIRouter, Response

from stock_common.observability import metrics_response

from stock_api.database import check_connection, get_total_records
from stock_api.models.queries import HealthResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse, responses={503: {"model": HealthResponse}})
def health(response: Response):
    """Liveness plus a row count; 503 when the stock table can't be read."""
    if not check_connection():
        response.status_code = 503
        return HealthResponse(status="unhealthy", db_connected=False, total_records=0)
    return HealthResponse(status="healthy", db_connected=True, total_records=get_total_records())


@router.get("/metrics", include_in_schema=False)
def metrics():
    body, content_type = metrics_response()
    return Response(content=body, media_type=content_type)
