"""Monthly report API endpoints"""

from fastapi import APIRouter, Depends, Query
import structlog

from app.api.deps import get_engine
from app.engine.context import EngineContext
from app.schemas.common import OperationResponse
from app.schemas.report import SubscriberReportResponse, TimeReportResponse

logger = structlog.get_logger()

router = APIRouter()


@router.get("/time", response_model=TimeReportResponse)
async def time_report(
    year: int = Query(..., ge=2000),
    month: int = Query(..., ge=1, le=12),
    engine: EngineContext = Depends(get_engine),
):
    """Arrival and departure times of completed visits"""
    rows = await engine.reports.get_time_report(year, month)
    return TimeReportResponse(year=year, month=month, rows=rows)


@router.get("/subscribers", response_model=SubscriberReportResponse)
async def subscriber_report(
    year: int = Query(..., ge=2000),
    month: int = Query(..., ge=1, le=12),
    engine: EngineContext = Depends(get_engine),
):
    """Reservation activity per subscriber"""
    rows = await engine.reports.get_subscriber_report(year, month)
    return SubscriberReportResponse(year=year, month=month, rows=rows)


@router.post("/generate", response_model=OperationResponse)
async def generate_reports(
    year: int = Query(..., ge=2000),
    month: int = Query(..., ge=1, le=12),
    engine: EngineContext = Depends(get_engine),
):
    """Build and store both reports for a month, replacing any stored copy"""
    counts = await engine.reports.generate_and_store_monthly_reports(year, month)
    logger.info("Reports generated on request", year=year, month=month)
    return OperationResponse(success=True, message="Reports generated.", data=counts)
