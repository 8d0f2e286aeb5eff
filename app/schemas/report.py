"""Monthly report schemas"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel


class TimeReportRow(BaseModel):
    """One completed visit"""
    reservation_id: int
    scheduled_at: Optional[datetime]
    checked_in_at: Optional[datetime]
    checked_out_at: Optional[datetime]
    party_size: int
    customer_name: Optional[str]
    is_subscriber: bool
    stay_minutes: Optional[int]


class SubscriberReportRow(BaseModel):
    customer_id: int
    customer_name: Optional[str]
    subscription_code: Optional[str]
    total_reservations: int
    completed: int
    canceled: int
    waitlist_entries: int


class TimeReportResponse(BaseModel):
    year: int
    month: int
    rows: List[TimeReportRow]


class SubscriberReportResponse(BaseModel):
    year: int
    month: int
    rows: List[SubscriberReportRow]
