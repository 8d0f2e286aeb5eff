"""Pydantic schemas for request/response validation"""

from app.schemas.common import OperationResponse
from app.schemas.reservation import (
    ReservationCreate,
    GuestReservationCreate,
    WaitlistJoin,
    GuestWaitlistJoin,
    ReservationUpdate,
    ConfirmationCodeRequest,
    ContactLookup,
    ReservationResponse,
)
from app.schemas.table import (
    TableCreate,
    TableUpdate,
    TableResponse,
)
from app.schemas.hours import (
    OpeningHoursUpdate,
    OpeningHoursResponse,
    DateOverrideCreate,
    DateOverrideResponse,
)
from app.schemas.bill import BillResponse
from app.schemas.report import (
    TimeReportRow,
    SubscriberReportRow,
    TimeReportResponse,
    SubscriberReportResponse,
)

__all__ = [
    "OperationResponse",
    "ReservationCreate",
    "GuestReservationCreate",
    "WaitlistJoin",
    "GuestWaitlistJoin",
    "ReservationUpdate",
    "ConfirmationCodeRequest",
    "ContactLookup",
    "ReservationResponse",
    "TableCreate",
    "TableUpdate",
    "TableResponse",
    "OpeningHoursUpdate",
    "OpeningHoursResponse",
    "DateOverrideCreate",
    "DateOverrideResponse",
    "BillResponse",
    "TimeReportRow",
    "SubscriberReportRow",
    "TimeReportResponse",
    "SubscriberReportResponse",
]
