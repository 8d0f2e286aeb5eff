"""Tests for waitlist promotion"""

import pytest

from app.models import ReservationStatus
from app.notifications import NotificationType


async def join(engine, customer, guests):
    result = await engine.reservations.join_waitlist(customer.id, guests)
    assert result.success
    return result


@pytest.mark.asyncio
async def test_cancel_then_promote_in_arrival_order(engine, gateway, customer, subscriber, add_tables):
    """Test the oldest waiting party gets the freed table and the next keeps waiting"""
    (table_id,) = await add_tables(4)
    seated = await join(engine, customer, 4)
    first = await join(engine, subscriber, 2)
    second = await join(engine, customer, 2)
    assert first.message == second.message == "WAITLIST_JOINED"

    canceled = await engine.reservations.cancel(seated.get("reservation_id"))
    assert canceled.get("frees_capacity")

    promoted = await engine.promoter.promote_all()

    assert promoted == [first.get("reservation_id")]
    first_row = await engine.repo.get_reservation(first.get("reservation_id"))
    second_row = await engine.repo.get_reservation(second.get("reservation_id"))
    assert first_row.status == ReservationStatus.NOTIFIED
    assert first_row.table_id == table_id
    assert first_row.start_time == engine.now()
    assert second_row.status == ReservationStatus.WAITING
    assert second_row.start_time is None
    assert first.get("reservation_id") in gateway.sent(NotificationType.TABLE_AVAILABLE)


@pytest.mark.asyncio
async def test_promotion_skips_parties_that_do_not_fit(engine, customer, add_tables):
    """Test a large party at the head does not block a smaller one behind it"""
    (table_id,) = await add_tables(2)
    seated = await join(engine, customer, 2)
    large = await join(engine, customer, 6)
    small = await join(engine, customer, 2)

    await engine.reservations.cancel(seated.get("reservation_id"))
    promoted = await engine.promoter.promote_next()

    assert promoted == small.get("reservation_id")
    large_row = await engine.repo.get_reservation(large.get("reservation_id"))
    assert large_row.status == ReservationStatus.WAITING


@pytest.mark.asyncio
async def test_promotion_respects_capacity_hint(engine, customer, add_tables):
    """Test a capacity hint limits which parties are considered"""
    await add_tables(2, 6)
    await join(engine, customer, 2)
    await join(engine, customer, 6)
    waiting_large = await join(engine, customer, 5)
    waiting_small = await join(engine, customer, 2)
    assert waiting_large.message == waiting_small.message == "WAITLIST_JOINED"

    await engine.repo.add_table(2)
    promoted = await engine.promoter.promote_all(capacity_hint=2)

    assert promoted == [waiting_small.get("reservation_id")]


@pytest.mark.asyncio
async def test_nothing_to_promote(engine, customer, add_tables):
    """Test promotion is a no-op without free tables or waiting parties"""
    await add_tables(2)
    assert await engine.promoter.promote_next() is None

    await join(engine, customer, 2)
    await join(engine, customer, 2)
    assert await engine.promoter.promote_all() == []


@pytest.mark.asyncio
async def test_conditional_transition_loses_to_earlier_writer(engine, customer, add_tables):
    """Test a transition from a status the row no longer has is not applied"""
    await add_tables(2)
    seated = await join(engine, customer, 2)
    waiting = await join(engine, customer, 2)
    waiting_id = waiting.get("reservation_id")

    assert await engine.repo.transition(waiting_id, ReservationStatus.CANCELED, (ReservationStatus.WAITING,))
    assert not await engine.repo.transition(
        waiting_id, ReservationStatus.NOTIFIED, (ReservationStatus.WAITING,)
    )

    await engine.reservations.cancel(seated.get("reservation_id"))
    assert await engine.promoter.promote_all() == []


@pytest.mark.asyncio
async def test_pin_table_refuses_a_held_table(engine, customer, subscriber, add_tables):
    """Test a table held by an overlapping party cannot be pinned again"""
    (table_id,) = await add_tables(4)
    seated = await join(engine, customer, 2)
    waiting = await join(engine, subscriber, 2)
    waiting_id = waiting.get("reservation_id")
    assert waiting.message == "WAITLIST_JOINED"

    pinned = await engine.repo.pin_table(
        waiting_id, table_id, engine.now(), (ReservationStatus.WAITING,)
    )

    assert not pinned
    reservation = await engine.repo.get_reservation(waiting_id)
    assert reservation.status == ReservationStatus.WAITING
    assert reservation.table_id is None

    await engine.reservations.cancel(seated.get("reservation_id"))
    assert await engine.promoter.promote_all() == [waiting_id]
    reservation = await engine.repo.get_reservation(waiting_id)
    assert reservation.status == ReservationStatus.NOTIFIED
    assert reservation.table_id == table_id


@pytest.mark.asyncio
async def test_pin_table_unknown_table(engine, customer):
    """Test pinning a table that does not exist is refused"""
    waiting = await join(engine, customer, 2)

    assert not await engine.repo.pin_table(
        waiting.get("reservation_id"), 9999, engine.now(), (ReservationStatus.WAITING,)
    )
