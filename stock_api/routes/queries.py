from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query

from stock_api.models.queries import AverageCloseResponse, AverageVwapResponse, HighestVolumeResponse
from stock_api.queries import StockQueryService
from stock_api.repository import StockFilter, StockRepository, get_repository

router = APIRouter(tags=["Queries"])


def get_query_service(repository: StockRepository = Depends(get_repository)) -> StockQueryService:
    return StockQueryService(repository)


def get_stock_filter(
    start_date: date = Query(description="First trading day, inclusive (YYYY-MM-DD)"),
    end_date: date = Query(description="Last trading day, inclusive (YYYY-MM-DD)"),
    symbol: str | None = Query(default=None, description="Exact symbol; all symbols when omitted"),
) -> StockFilter:
    try:
        return StockFilter(start_date=start_date, end_date=end_date, symbol=(symbol or "").strip() or None)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.get("/highest_volume", response_model=HighestVolumeResponse)
def highest_volume(
    stock_filter: StockFilter = Depends(get_stock_filter),
    service: StockQueryService = Depends(get_query_service),
):
    return HighestVolumeResponse(highest_volume=service.highest_volume(stock_filter))


@router.get("/average_close", response_model=AverageCloseResponse)
def average_close(
    stock_filter: StockFilter = Depends(get_stock_filter),
    service: StockQueryService = Depends(get_query_service),
):
    return AverageCloseResponse(average_close=service.average_close(stock_filter))


@router.get("/average_vwap", response_model=AverageVwapResponse)
def average_vwap(
    stock_filter: StockFilter = Depends(get_stock_filter),
    service: StockQueryService = Depends(get_query_service),
):
    return AverageVwapResponse(average_vwap=service.average_vwap(stock_filter))
