"""Calendar helpers"""

import calendar
from datetime import date, datetime, timedelta
from typing import Tuple


def add_months(moment: datetime, months: int) -> datetime:
    """Shift by whole calendar months, clamping the day to the target month's end"""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def month_bounds(year: int, month: int) -> Tuple[datetime, datetime]:
    """Half-open [first day, first day of next month) range"""
    start = datetime(year, month, 1)
    return start, add_months(start, 1)


def previous_month(today: date) -> Tuple[int, int]:
    first = today.replace(day=1) - timedelta(days=1)
    return first.year, first.month
