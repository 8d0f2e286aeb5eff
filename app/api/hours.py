"""Opening hours and date override API endpoints"""

from typing import List

from fastapi import APIRouter, Depends

from app.api.deps import get_engine, operation_response
from app.engine.context import EngineContext
from app.schemas.common import OperationResponse
from app.schemas.hours import (
    DateOverrideCreate,
    DateOverrideResponse,
    OpeningHoursResponse,
    OpeningHoursUpdate,
)

router = APIRouter()


@router.get("/weekly", response_model=List[OpeningHoursResponse])
async def list_opening_hours(engine: EngineContext = Depends(get_engine)):
    """Configured weekdays; days without an entry use the default hours"""
    return await engine.management.list_opening_hours()


@router.put("/weekly/{day_of_week}", response_model=OperationResponse)
async def update_opening_hours(
    day_of_week: int,
    request: OpeningHoursUpdate,
    engine: EngineContext = Depends(get_engine),
):
    """
    Set hours for a weekday (0 = Monday).

    Reservations on that weekday falling outside the new hours are canceled
    and their customers notified.
    """
    result = await engine.management.update_opening_hours(
        day_of_week,
        request.open_time,
        request.close_time,
        request.closed,
    )
    return operation_response(result, hours=OpeningHoursResponse)


@router.get("/overrides", response_model=List[DateOverrideResponse])
async def list_date_overrides(engine: EngineContext = Depends(get_engine)):
    return await engine.management.list_date_overrides()


@router.post("/overrides", response_model=OperationResponse)
async def add_date_override(
    request: DateOverrideCreate,
    engine: EngineContext = Depends(get_engine),
):
    result = await engine.management.add_date_override(
        request.date,
        request.open_time,
        request.close_time,
        request.closed,
        reason=request.reason,
    )
    return operation_response(result, override=DateOverrideResponse)


@router.put("/overrides/{override_id}", response_model=OperationResponse)
async def update_date_override(
    override_id: int,
    request: DateOverrideCreate,
    engine: EngineContext = Depends(get_engine),
):
    result = await engine.management.update_date_override(
        override_id,
        request.date,
        request.open_time,
        request.close_time,
        request.closed,
        reason=request.reason,
    )
    return operation_response(result, override=DateOverrideResponse)


@router.delete("/overrides/{override_id}", response_model=OperationResponse)
async def delete_date_override(override_id: int, engine: EngineContext = Depends(get_engine)):
    result = await engine.management.delete_date_override(override_id)
    return operation_response(result)
