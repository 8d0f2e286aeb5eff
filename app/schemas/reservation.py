"""Reservation schemas"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from app.models.reservation import ReservationKind, ReservationStatus


class ReservationCreate(BaseModel):
    """Create reservation request for a registered customer"""
    customer_id: Optional[int] = None
    start_time: Optional[datetime] = None
    party_size: Optional[int] = None


class GuestContact(BaseModel):
    full_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class GuestReservationCreate(GuestContact):
    """Create reservation request for a guest identified by phone or email"""
    start_time: Optional[datetime] = None
    party_size: Optional[int] = None


class WaitlistJoin(BaseModel):
    customer_id: Optional[int] = None
    party_size: Optional[int] = None


class GuestWaitlistJoin(GuestContact):
    party_size: Optional[int] = None


class ReservationUpdate(BaseModel):
    """Change time or party size of an active reservation"""
    start_time: Optional[datetime] = None
    party_size: Optional[int] = None


class ConfirmationCodeRequest(BaseModel):
    confirmation_code: Optional[int] = None


class ContactLookup(BaseModel):
    phone: Optional[str] = None
    email: Optional[str] = None


class ReservationResponse(BaseModel):
    """Reservation response"""
    id: int
    customer_id: int
    table_id: Optional[int]
    start_time: Optional[datetime]
    party_size: int
    confirmation_code: int
    status: ReservationStatus
    kind: ReservationKind
    reminder_sent: bool
    checked_in_at: Optional[datetime]
    checked_out_at: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True
