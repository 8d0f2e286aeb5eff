"""Restaurant table management API endpoints"""

from typing import List

from fastapi import APIRouter, Depends

from app.api.deps import get_engine, operation_response
from app.engine.context import EngineContext
from app.schemas.common import OperationResponse
from app.schemas.table import TableCreate, TableResponse, TableUpdate

router = APIRouter()


@router.get("", response_model=List[TableResponse])
async def list_tables(engine: EngineContext = Depends(get_engine)):
    return await engine.management.list_tables()


@router.post("", response_model=OperationResponse)
async def add_table(request: TableCreate, engine: EngineContext = Depends(get_engine)):
    """Add a table; waiting parties that now fit are notified"""
    result = await engine.management.add_table(request.capacity)
    return operation_response(result, table=TableResponse)


@router.put("/{table_id}", response_model=OperationResponse)
async def update_table(
    table_id: int,
    request: TableUpdate,
    engine: EngineContext = Depends(get_engine),
):
    """
    Change a table's capacity.

    Shrinking a table that a seated or notified party holds is refused.
    Reservations that no longer fit are moved back to the waitlist.
    """
    result = await engine.management.update_table(table_id, request.capacity)
    return operation_response(result, table=TableResponse)


@router.delete("/{table_id}", response_model=OperationResponse)
async def delete_table(table_id: int, engine: EngineContext = Depends(get_engine)):
    result = await engine.management.delete_table(table_id)
    return operation_response(result)
