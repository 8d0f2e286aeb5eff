"""Time and slot validation against opening hours"""

import calendar
from datetime import datetime, time, timedelta
from typing import Callable, Optional

from app.config import Settings
from app.engine.repository import ReservationRepository
from app.engine.timeutil import add_months


def _fmt(value: time) -> str:
    return value.strftime("%H:%M")


def check_window(
    start: datetime,
    end: datetime,
    open_time: Optional[time],
    close_time: Optional[time],
) -> Optional[str]:
    """
    Check that [start, end] fits inside the opening window of start's date.

    A close time earlier than the open time means the window runs past
    midnight. Such a day is open from its open time until the close time the
    next morning, and also from its own midnight until the close time, so a
    party may start shortly after midnight as long as it leaves by closing.
    """
    if open_time is None or close_time is None:
        return "Restaurant hours not configured."

    closed_message = (
        f"Restaurant is closed at that time (open {_fmt(open_time)} - {_fmt(close_time)})."
    )
    day = start.date()

    if close_time < open_time:
        evening_open = datetime.combine(day, open_time)
        evening_close = datetime.combine(day + timedelta(days=1), close_time)
        if evening_open <= start and end <= evening_close:
            return None
        if end <= datetime.combine(day, close_time):
            return None
        return closed_message

    if end.date() != day:
        return closed_message
    if start.time() < open_time or end.time() > close_time:
        return closed_message
    return None


class SlotValidator:
    """Decides whether a start time is a legal reservation slot"""

    def __init__(
        self,
        repo: ReservationRepository,
        config: Settings,
        clock: Callable[[], datetime],
    ):
        self.repo = repo
        self.config = config
        self.clock = clock

    @property
    def duration(self) -> timedelta:
        return timedelta(minutes=self.config.reservation_duration_minutes)

    def is_on_grid(self, start: datetime) -> bool:
        return (
            start.second == 0
            and start.microsecond == 0
            and start.minute % self.config.slot_interval_minutes == 0
        )

    async def validate_opening_hours(self, start: datetime) -> Optional[str]:
        """
        Check the reservation window against, in order: a date override, the
        weekly hours for that weekday, then the default hours.
        """
        end = start + self.duration
        day = start.date()

        override = await self.repo.date_override_for(day)
        if override is not None:
            reason = (override.reason or "").strip()
            suffix = f" Reason: {reason}." if reason else ""
            if override.closed:
                return f"Restaurant is closed on {day.isoformat()}.{suffix}"
            error = check_window(start, end, override.open_time, override.close_time)
            return error + suffix if error else None

        hours = await self.repo.opening_hours_for_day(day.weekday())
        if hours is not None:
            if hours.closed:
                return f"Restaurant is closed on {calendar.day_name[day.weekday()]}s."
            return check_window(start, end, hours.open_time, hours.close_time)

        return check_window(
            start,
            end,
            self.config.default_open_time,
            self.config.default_close_time,
        )

    async def validate_slot(self, start: Optional[datetime]) -> Optional[str]:
        """Return None for a legal slot, otherwise the reason it is not"""
        if start is None:
            return "Missing date/time."

        now = self.clock()
        if start < now + timedelta(minutes=self.config.min_lead_minutes):
            return "Reservation must be at least 1 hour from now."
        if start > add_months(now, self.config.max_months_ahead):
            return "Reservation cannot be more than 1 month ahead."
        if not self.is_on_grid(start):
            return "Time must be in 30-minute intervals."

        return await self.validate_opening_hours(start)

    async def is_candidate(self, start: datetime) -> bool:
        return await self.validate_slot(start) is None
