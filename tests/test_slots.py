"""Tests for slot validation and opening hours"""

from datetime import date, datetime, time, timedelta

import pytest

from app.engine.slots import check_window
from app.engine.timeutil import add_months, previous_month


MONDAY = datetime(2026, 3, 2)
TUESDAY = MONDAY + timedelta(days=1)
WEDNESDAY = MONDAY + timedelta(days=2)


def at(day: datetime, hour: int, minute: int = 0) -> datetime:
    return day.replace(hour=hour, minute=minute)


def test_same_day_window():
    """Test reservations inside a same-day window are accepted"""
    assert check_window(at(MONDAY, 12), at(MONDAY, 14), time(12, 0), time(22, 0)) is None
    assert check_window(at(MONDAY, 20), at(MONDAY, 22), time(12, 0), time(22, 0)) is None


def test_same_day_window_rejects_overrun():
    """Test a reservation ending after closing is rejected"""
    error = check_window(at(MONDAY, 21), at(MONDAY, 23), time(12, 0), time(22, 0))
    assert error == "Restaurant is closed at that time (open 12:00 - 22:00)."


def test_same_day_window_rejects_crossing_midnight():
    """Test a same-day window never runs into the next date"""
    error = check_window(at(MONDAY, 23), at(TUESDAY, 1), time(10, 0), time(23, 59))
    assert error is not None


def test_overnight_window_evening_start():
    """Test 22:00 - 02:00 accepts evening starts that end by 02:00"""
    assert check_window(at(MONDAY, 23, 30), at(TUESDAY, 1, 30), time(22, 0), time(2, 0)) is None
    assert check_window(at(MONDAY, 22), at(TUESDAY, 0), time(22, 0), time(2, 0)) is None


def test_overnight_window_after_midnight_start():
    """Test a start after midnight is accepted when the party leaves by closing"""
    assert check_window(at(MONDAY, 0), at(MONDAY, 2), time(22, 0), time(2, 0)) is None
    assert check_window(at(MONDAY, 0), at(MONDAY, 2), time(10, 0), time(2, 0)) is None


def test_overnight_window_rejects_early_morning_overrun():
    """Test a start after midnight ending past closing is rejected"""
    error = check_window(at(MONDAY, 1), at(MONDAY, 3), time(22, 0), time(2, 0))
    assert error == "Restaurant is closed at that time (open 22:00 - 02:00)."


def test_overnight_window_rejects_gap_before_opening():
    """Test the hours between closing and opening stay closed"""
    error = check_window(at(MONDAY, 18), at(MONDAY, 20), time(22, 0), time(2, 0))
    assert error == "Restaurant is closed at that time (open 22:00 - 02:00)."


def test_overnight_window_rejects_overrun():
    """Test an evening start ending past the next morning's closing is rejected"""
    error = check_window(at(MONDAY, 23, 30), at(TUESDAY, 2, 30), time(22, 0), time(2, 0))
    assert error is not None


def test_window_without_times():
    """Test a non-closed entry without times is reported as unconfigured"""
    assert check_window(at(MONDAY, 12), at(MONDAY, 14), None, time(22, 0)) == (
        "Restaurant hours not configured."
    )


@pytest.mark.asyncio
async def test_valid_slot_with_default_hours(engine):
    """Test an afternoon slot passes under the default hours"""
    assert await engine.slots.validate_slot(at(MONDAY, 14)) is None


@pytest.mark.asyncio
async def test_missing_start(engine):
    """Test a missing start time is rejected first"""
    assert await engine.slots.validate_slot(None) == "Missing date/time."


@pytest.mark.asyncio
async def test_lead_time(engine):
    """Test reservations need an hour of notice"""
    assert await engine.slots.validate_slot(at(MONDAY, 12, 30)) == (
        "Reservation must be at least 1 hour from now."
    )
    assert await engine.slots.validate_slot(at(MONDAY, 13)) is None


@pytest.mark.asyncio
async def test_horizon(engine):
    """Test reservations are limited to one calendar month ahead"""
    assert await engine.slots.validate_slot(datetime(2026, 4, 2, 12, 0)) is None
    assert await engine.slots.validate_slot(datetime(2026, 4, 2, 12, 30)) == (
        "Reservation cannot be more than 1 month ahead."
    )


@pytest.mark.asyncio
async def test_grid(engine):
    """Test starts must fall on the half-hour grid"""
    assert await engine.slots.validate_slot(at(MONDAY, 14, 15)) == (
        "Time must be in 30-minute intervals."
    )
    assert await engine.slots.validate_slot(at(MONDAY, 14).replace(second=30)) == (
        "Time must be in 30-minute intervals."
    )


@pytest.mark.asyncio
async def test_default_hours_after_midnight(engine):
    """Test 00:00 is bookable under 10:00 - 02:00 while 00:30 and 01:00 end too late"""
    assert await engine.slots.validate_slot(at(WEDNESDAY, 0)) is None

    closed = "Restaurant is closed at that time (open 10:00 - 02:00)."
    assert await engine.slots.validate_slot(at(WEDNESDAY, 0, 30)) == closed
    assert await engine.slots.validate_slot(at(TUESDAY, 1)) == closed


@pytest.mark.asyncio
async def test_overnight_weekly_hours(engine):
    """Test weekly 22:00 - 02:00 hours accept 23:30 and 00:00 but not 01:00"""
    for day_of_week in range(7):
        await engine.repo.save_opening_hours(day_of_week, time(22, 0), time(2, 0), False)

    assert await engine.slots.validate_slot(at(TUESDAY, 23, 30)) is None
    assert await engine.slots.validate_slot(at(WEDNESDAY, 0)) is None

    error = await engine.slots.validate_slot(at(WEDNESDAY, 1))
    assert error == "Restaurant is closed at that time (open 22:00 - 02:00)."
    assert await engine.slots.validate_slot(at(TUESDAY, 19)) is not None


@pytest.mark.asyncio
async def test_after_midnight_start_is_offered_as_suggestion(engine, customer, add_tables):
    """Test suggestion search reaches past midnight under the default hours"""
    await add_tables(2)
    first = await engine.reservations.create(customer.id, at(TUESDAY, 22), 2)
    assert first.success

    second = await engine.reservations.create(customer.id, at(TUESDAY, 22), 2)

    assert not second.success
    # 00:00 starts as the 22:00 booking ends; 00:30 would run past 02:00
    assert second.get("suggestions") == [at(TUESDAY, 19, 30), at(TUESDAY, 20), at(WEDNESDAY, 0)]


@pytest.mark.asyncio
async def test_weekly_closed_day(engine):
    """Test a closed weekday is reported by name"""
    await engine.repo.save_opening_hours(1, None, None, True)

    error = await engine.slots.validate_slot(at(TUESDAY, 19))
    assert error == "Restaurant is closed on Tuesdays."


@pytest.mark.asyncio
async def test_weekly_hours_not_configured(engine):
    """Test a weekday entry without times"""
    await engine.repo.save_opening_hours(1, None, None, False)

    error = await engine.slots.validate_slot(at(TUESDAY, 19))
    assert error == "Restaurant hours not configured."


@pytest.mark.asyncio
async def test_closed_override_with_reason(engine):
    """Test a closed date carries its reason"""
    await engine.repo.add_date_override(
        date=TUESDAY.date(), closed=True, reason="Private event"
    )

    error = await engine.slots.validate_slot(at(TUESDAY, 19))
    assert error == "Restaurant is closed on 2026-03-03. Reason: Private event."


@pytest.mark.asyncio
async def test_override_wins_over_weekly_hours(engine):
    """Test a date override replaces the weekday's hours"""
    await engine.repo.save_opening_hours(1, None, None, True)
    await engine.repo.add_date_override(
        date=TUESDAY.date(), open_time=time(12, 0), close_time=time(22, 0), closed=False
    )

    assert await engine.slots.validate_slot(at(TUESDAY, 19)) is None
    error = await engine.slots.validate_slot(at(TUESDAY, 21))
    assert error == "Restaurant is closed at that time (open 12:00 - 22:00)."


def test_add_months_clamps_to_month_end():
    """Test adding a month clamps to the last day of a shorter month"""
    assert add_months(datetime(2026, 1, 31, 18, 0), 1) == datetime(2026, 2, 28, 18, 0)
    assert add_months(datetime(2026, 12, 15), 1) == datetime(2027, 1, 15)


def test_previous_month():
    """Test the previous month wraps across the year"""
    assert previous_month(date(2026, 4, 1)) == (2026, 3)
    assert previous_month(date(2026, 1, 1)) == (2025, 12)
