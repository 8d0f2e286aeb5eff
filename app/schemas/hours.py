"""Opening hours and date override schemas"""

import datetime
from typing import Optional
from pydantic import BaseModel


class OpeningHoursUpdate(BaseModel):
    """Weekly hours for one weekday; close before open runs past midnight"""
    open_time: Optional[datetime.time] = None
    close_time: Optional[datetime.time] = None
    closed: bool = False


class OpeningHoursResponse(BaseModel):
    day_of_week: int
    open_time: Optional[datetime.time]
    close_time: Optional[datetime.time]
    closed: bool

    class Config:
        from_attributes = True


class DateOverrideCreate(BaseModel):
    """Special hours, or a closure, for one calendar date"""
    date: datetime.date
    open_time: Optional[datetime.time] = None
    close_time: Optional[datetime.time] = None
    closed: bool = False
    reason: Optional[str] = None


class DateOverrideResponse(BaseModel):
    id: int
    date: datetime.date
    open_time: Optional[datetime.time]
    close_time: Optional[datetime.time]
    closed: bool
    reason: Optional[str]

    class Config:
        from_attributes = True
