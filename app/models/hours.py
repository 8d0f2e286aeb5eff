"""Opening hours and date-specific overrides"""

from datetime import datetime
from sqlalchemy import Column, String, Integer, Boolean, Date, DateTime, Time

from app.database import Base


class OpeningHours(Base):
    """Weekly opening hours, one row per weekday (0 = Monday)"""
    __tablename__ = "opening_hours"

    id = Column(Integer, primary_key=True, autoincrement=True)
    day_of_week = Column(Integer, unique=True, nullable=False)
    open_time = Column(Time)
    close_time = Column(Time)  # earlier than open_time means past midnight
    closed = Column(Boolean, nullable=False, default=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)


class DateOverride(Base):
    """Special schedule for one calendar date, wins over OpeningHours"""
    __tablename__ = "date_overrides"

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(Date, unique=True, nullable=False)
    open_time = Column(Time)
    close_time = Column(Time)
    closed = Column(Boolean, nullable=False, default=False)
    reason = Column(String(255))
    created_at = Column(DateTime, default=datetime.now)
