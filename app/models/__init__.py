"""Database models"""

from app.models.customer import Customer
from app.models.table import RestaurantTable
from app.models.hours import OpeningHours, DateOverride
from app.models.reservation import (
    Reservation,
    ReservationStatus,
    ReservationKind,
    ALLOWED_TRANSITIONS,
    PINNED_STATUSES,
)
from app.models.bill import Bill
from app.models.report import TimeReportEntry, SubscriberReportEntry, MonthlyReportRun

__all__ = [
    "Customer",
    "RestaurantTable",
    "OpeningHours",
    "DateOverride",
    "Reservation",
    "ReservationStatus",
    "ReservationKind",
    "ALLOWED_TRANSITIONS",
    "PINNED_STATUSES",
    "Bill",
    "TimeReportEntry",
    "SubscriberReportEntry",
    "MonthlyReportRun",
]
