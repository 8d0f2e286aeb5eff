"""Reservation, waitlist and payment API endpoints"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.deps import get_engine, operation_response
from app.engine.context import EngineContext
from app.schemas.bill import BillResponse
from app.schemas.common import OperationResponse
from app.schemas.reservation import (
    ConfirmationCodeRequest,
    ContactLookup,
    GuestReservationCreate,
    GuestWaitlistJoin,
    ReservationCreate,
    ReservationResponse,
    ReservationUpdate,
    WaitlistJoin,
)

router = APIRouter()


# ----------------------------------------------------------------------
# Listings
# ----------------------------------------------------------------------

@router.get("", response_model=List[ReservationResponse])
async def list_active_reservations(engine: EngineContext = Depends(get_engine)):
    """Upcoming ACTIVE reservations in start order"""
    return await engine.reservations.list_active()


@router.get("/waitlist", response_model=List[ReservationResponse])
async def list_waitlist(engine: EngineContext = Depends(get_engine)):
    """WAITING entries in arrival order"""
    return await engine.reservations.list_waitlist()


@router.get("/history/{customer_id}", response_model=List[ReservationResponse])
async def customer_history(customer_id: int, engine: EngineContext = Depends(get_engine)):
    return await engine.reservations.customer_history(customer_id)


@router.get("/cancellable", response_model=List[ReservationResponse])
async def list_cancellable(
    customer_id: Optional[int] = None,
    confirmation_code: Optional[int] = Query(None, alias="code"),
    engine: EngineContext = Depends(get_engine),
):
    return await engine.reservations.cancellable(customer_id, confirmation_code)


@router.get("/receivable", response_model=List[ReservationResponse])
async def list_receivable(
    customer_id: Optional[int] = None,
    confirmation_code: Optional[int] = Query(None, alias="code"),
    engine: EngineContext = Depends(get_engine),
):
    return await engine.reservations.receivable(customer_id, confirmation_code)


@router.get("/payable", response_model=List[ReservationResponse])
async def list_payable(
    customer_id: Optional[int] = None,
    confirmation_code: Optional[int] = Query(None, alias="code"),
    engine: EngineContext = Depends(get_engine),
):
    return await engine.reservations.payable(customer_id, confirmation_code)


# ----------------------------------------------------------------------
# Creation
# ----------------------------------------------------------------------

@router.post("", response_model=OperationResponse)
async def create_reservation(
    request: ReservationCreate,
    engine: EngineContext = Depends(get_engine),
):
    """Book a table for a registered customer"""
    result = await engine.reservations.create(
        request.customer_id,
        request.start_time,
        request.party_size,
    )
    return operation_response(result)


@router.post("/guest", response_model=OperationResponse)
async def create_guest_reservation(
    request: GuestReservationCreate,
    engine: EngineContext = Depends(get_engine),
):
    """Book a table for a guest identified by phone or email"""
    result = await engine.reservations.create_for_guest(
        request.start_time,
        request.party_size,
        full_name=request.full_name,
        phone=request.phone,
        email=request.email,
    )
    return operation_response(result)


@router.post("/waitlist", response_model=OperationResponse)
async def join_waitlist(
    request: WaitlistJoin,
    engine: EngineContext = Depends(get_engine),
):
    """Seat a walk-in party now if a table is free, otherwise queue it"""
    result = await engine.reservations.join_waitlist(request.customer_id, request.party_size)
    return operation_response(result)


@router.post("/waitlist/guest", response_model=OperationResponse)
async def join_waitlist_as_guest(
    request: GuestWaitlistJoin,
    engine: EngineContext = Depends(get_engine),
):
    result = await engine.reservations.join_waitlist_as_guest(
        request.party_size,
        full_name=request.full_name,
        phone=request.phone,
        email=request.email,
    )
    return operation_response(result)


@router.post("/resend-confirmation", response_model=OperationResponse)
async def resend_confirmation(
    request: ContactLookup,
    engine: EngineContext = Depends(get_engine),
):
    """Send the confirmation codes of open reservations to their owner"""
    result = await engine.reservations.resend_confirmation(request.phone, request.email)
    return operation_response(result)


# ----------------------------------------------------------------------
# Cancellation
# ----------------------------------------------------------------------

async def _promote_after_cancel(engine: EngineContext, result) -> None:
    if result.success and result.get("frees_capacity"):
        await engine.promoter.promote_all()


@router.post("/cancel-by-code", response_model=OperationResponse)
async def cancel_by_code(
    request: ConfirmationCodeRequest,
    engine: EngineContext = Depends(get_engine),
):
    result = await engine.reservations.cancel_by_code(request.confirmation_code)
    await _promote_after_cancel(engine, result)
    return operation_response(result)


@router.post("/receive-by-code", response_model=OperationResponse)
async def receive_table_by_code(
    request: ConfirmationCodeRequest,
    engine: EngineContext = Depends(get_engine),
):
    result = await engine.reservations.receive_table_by_code(request.confirmation_code)
    return operation_response(result)


@router.post("/bills/{bill_id}/pay", response_model=OperationResponse)
async def pay_bill(bill_id: int, engine: EngineContext = Depends(get_engine)):
    """Pay a bill and complete its reservation, freeing the table"""
    result = await engine.reservations.pay_and_complete(bill_id)
    if result.success and result.get("freed_capacity"):
        await engine.promoter.promote_all(capacity_hint=result.get("freed_capacity"))
    return operation_response(result)


@router.get("/{reservation_id}", response_model=ReservationResponse)
async def get_reservation(reservation_id: int, engine: EngineContext = Depends(get_engine)):
    reservation = await engine.reservations.get(reservation_id)
    if not reservation:
        raise HTTPException(status_code=404, detail="Reservation not found")
    return reservation


@router.put("/{reservation_id}", response_model=OperationResponse)
async def update_reservation(
    reservation_id: int,
    request: ReservationUpdate,
    engine: EngineContext = Depends(get_engine),
):
    """Move an active reservation or change its party size"""
    result = await engine.reservations.update_reservation(
        reservation_id,
        request.start_time,
        request.party_size,
    )
    if result.success:
        # The old slot may now fit someone else
        await engine.promoter.promote_all()
    return operation_response(result)


@router.post("/{reservation_id}/cancel", response_model=OperationResponse)
async def cancel_reservation(reservation_id: int, engine: EngineContext = Depends(get_engine)):
    result = await engine.reservations.cancel(reservation_id)
    await _promote_after_cancel(engine, result)
    return operation_response(result)


# ----------------------------------------------------------------------
# Seating and billing
# ----------------------------------------------------------------------

@router.post("/{reservation_id}/receive", response_model=OperationResponse)
async def receive_table(reservation_id: int, engine: EngineContext = Depends(get_engine)):
    """Check the party in and seat it"""
    result = await engine.reservations.receive_table(reservation_id)
    return operation_response(result)


@router.post("/{reservation_id}/bill", response_model=OperationResponse)
async def get_bill_for_paying(reservation_id: int, engine: EngineContext = Depends(get_engine)):
    """Existing bill for the visit, or a new one"""
    result = await engine.reservations.get_or_create_bill_for_paying(reservation_id)
    return operation_response(result, bill=BillResponse)
