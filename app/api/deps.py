"""Shared API dependencies"""

from datetime import datetime
from typing import Callable

from fastapi import Depends, HTTPException
from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.engine.context import EngineContext
from app.engine.results import OPERATION_FAILED, OperationResult
from app.notifications import NotificationGateway, get_notification_gateway
from app.schemas.common import OperationResponse


def get_gateway() -> NotificationGateway:
    return get_notification_gateway()


def get_clock() -> Callable[[], datetime]:
    return datetime.now


async def get_engine(
    db: AsyncSession = Depends(get_db),
    gateway: NotificationGateway = Depends(get_gateway),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> EngineContext:
    """Engine bound to the request's session"""
    return EngineContext(db, gateway=gateway, clock=clock)


def operation_response(result: OperationResult, **schemas: type) -> OperationResponse:
    """
    Map an engine result to the response body.

    Data-access failures become a 500. Payload values named in `schemas` are
    validated through that response model first, so ORM objects serialize.
    """
    if not result.success and result.message == OPERATION_FAILED:
        raise HTTPException(status_code=500, detail=OPERATION_FAILED)

    data = {}
    for key, value in result.data.items():
        schema = schemas.get(key)
        if schema is not None and value is not None:
            value = schema.model_validate(value)
        data[key] = value

    return OperationResponse(
        success=result.success,
        message=result.message,
        data=jsonable_encoder(data),
    )
