"""Tests for the reservation lifecycle"""

from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from app.engine.repository import ReservationRepository
from app.engine.results import OPERATION_FAILED
from app.models import ReservationKind, ReservationStatus
from app.notifications import NotificationType


def evening(hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 3, 2, hour, minute)


async def seat_walk_in(engine, customer, guests=2):
    """Walk-in seated straight away, returns the reservation id"""
    joined = await engine.reservations.join_waitlist(customer.id, guests)
    assert joined.message == "RECEIVE_TABLE_NOW"
    reservation_id = joined.get("reservation_id")
    received = await engine.reservations.receive_table(reservation_id)
    assert received.success
    return reservation_id


@pytest.mark.asyncio
async def test_create_reservation(engine, gateway, customer, add_tables):
    """Test creating an ACTIVE advance reservation"""
    await add_tables(4)

    result = await engine.reservations.create(customer.id, evening(19), 3)

    assert result.success
    assert result.message == "Reservation created."
    assert 100000 <= result.get("confirmation_code") <= 999999

    reservation = await engine.repo.get_reservation(result.get("reservation_id"))
    assert reservation.status == ReservationStatus.ACTIVE
    assert reservation.kind == ReservationKind.ADVANCE
    assert reservation.table_id is None
    assert reservation.start_time == evening(19)
    assert gateway.sent(NotificationType.RESERVATION_CONFIRMATION) == [reservation.id]


@pytest.mark.asyncio
async def test_create_rejects_bad_input(engine, customer, add_tables):
    """Test validation failures come back as messages"""
    await add_tables(4)

    result = await engine.reservations.create(9999, evening(19), 2)
    assert result.message == "Invalid customer id."

    result = await engine.reservations.create(customer.id, evening(19), 0)
    assert result.message == "Guests must be positive."

    result = await engine.reservations.create(customer.id, None, 2)
    assert result.message == "Missing date/time."

    result = await engine.reservations.create(customer.id, evening(19, 45), 2)
    assert result.message == "Time must be in 30-minute intervals."


@pytest.mark.asyncio
async def test_create_for_guest_reuses_customer(engine, customer, add_tables):
    """Test guest bookings find the customer by phone or email"""
    await add_tables(4, 4)

    result = await engine.reservations.create_for_guest(evening(19), 2)
    assert result.message == "Phone or Email is required."

    result = await engine.reservations.create_for_guest(evening(19), 2, email="TEST@example.com")
    assert result.success
    reservation = await engine.repo.get_reservation(result.get("reservation_id"))
    assert reservation.customer_id == customer.id

    result = await engine.reservations.create_for_guest(
        evening(19), 2, full_name="New Guest", phone="+15550000000"
    )
    assert result.success
    reservation = await engine.repo.get_reservation(result.get("reservation_id"))
    new_customer = await engine.repo.get_customer(reservation.customer_id)
    assert new_customer.full_name == "New Guest"
    assert new_customer.id != customer.id


@pytest.mark.asyncio
async def test_join_waitlist_seats_when_table_free(engine, gateway, customer, add_tables):
    """Test a walk-in is notified with a table when one is free"""
    (table_id,) = await add_tables(4)

    result = await engine.reservations.join_waitlist(customer.id, 3)

    assert result.success
    assert result.message == "RECEIVE_TABLE_NOW"
    reservation = await engine.repo.get_reservation(result.get("reservation_id"))
    assert reservation.status == ReservationStatus.NOTIFIED
    assert reservation.kind == ReservationKind.WALK_IN
    assert reservation.table_id == table_id
    assert reservation.start_time == engine.now()
    assert gateway.sent(NotificationType.TABLE_AVAILABLE) == [reservation.id]


@pytest.mark.asyncio
async def test_join_waitlist_queues_when_full(engine, customer, add_tables):
    """Test a walk-in waits without start time or table when nothing fits"""
    await add_tables(2)

    result = await engine.reservations.join_waitlist(customer.id, 4)

    assert result.success
    assert result.message == "WAITLIST_JOINED"
    reservation = await engine.repo.get_reservation(result.get("reservation_id"))
    assert reservation.status == ReservationStatus.WAITING
    assert reservation.start_time is None
    assert reservation.table_id is None

    result = await engine.reservations.join_waitlist(customer.id, 0)
    assert result.message == "Invalid number of guests."


@pytest.mark.asyncio
async def test_concurrent_walk_ins_do_not_share_a_table(
    engine, gateway, customer, subscriber, add_tables, monkeypatch
):
    """Test a walk-in that saw a table as free waits once another walk-in holds it"""
    (table_id,) = await add_tables(4)
    first = await engine.reservations.join_waitlist(customer.id, 2)
    assert first.message == "RECEIVE_TABLE_NOW"

    # The second request read availability before the first one's pin landed
    async def stale_is_feasible(start, party_size, exclude_reservation_id=None):
        return True

    async def stale_find_table(start, party_size):
        return table_id

    monkeypatch.setattr(engine.availability, "is_feasible", stale_is_feasible)
    monkeypatch.setattr(engine.availability, "find_table", stale_find_table)

    second = await engine.reservations.join_waitlist(subscriber.id, 2)

    assert second.success
    assert second.message == "WAITLIST_JOINED"
    waiting = await engine.repo.get_reservation(second.get("reservation_id"))
    assert waiting.status == ReservationStatus.WAITING
    assert waiting.table_id is None
    assert waiting.start_time is None

    holders = await engine.repo.list_by_status((ReservationStatus.NOTIFIED,))
    assert [r.id for r in holders] == [first.get("reservation_id")]
    assert gateway.sent(NotificationType.TABLE_AVAILABLE) == [first.get("reservation_id")]


@pytest.mark.asyncio
async def test_cancel_is_idempotent(engine, gateway, customer, add_tables):
    """Test a second cancel reports the reservation is already canceled"""
    await add_tables(4)
    created = await engine.reservations.create(customer.id, evening(19), 2)
    reservation_id = created.get("reservation_id")

    first = await engine.reservations.cancel(reservation_id)
    second = await engine.reservations.cancel(reservation_id)

    assert first.success
    assert first.message == "Reservation canceled."
    assert first.get("previous_status") == "ACTIVE"
    assert first.get("frees_capacity") is True
    assert not second.success
    assert second.message == "Reservation already canceled."
    assert gateway.sent(NotificationType.RESERVATION_CANCELED) == [reservation_id]

    reservation = await engine.repo.get_reservation(reservation_id)
    assert reservation.status == ReservationStatus.CANCELED
    assert reservation.table_id is None


@pytest.mark.asyncio
async def test_cancel_waiting_entry_keeps_a_start_time(engine, customer):
    """Test canceled waitlist entries are stamped with the cancel time"""
    joined = await engine.reservations.join_waitlist(customer.id, 2)
    assert joined.message == "WAITLIST_JOINED"

    result = await engine.reservations.cancel_by_code(joined.get("confirmation_code"))

    assert result.success
    assert result.get("frees_capacity") is False
    reservation = await engine.repo.get_reservation(joined.get("reservation_id"))
    assert reservation.status == ReservationStatus.CANCELED
    assert reservation.start_time == engine.now()


@pytest.mark.asyncio
async def test_cancel_rules(engine, customer, add_tables):
    """Test unknown, in-progress and completed reservations cannot be canceled"""
    await add_tables(4)

    assert (await engine.reservations.cancel(12345)).message == "Reservation not found."
    assert (await engine.reservations.cancel_by_code(111111)).message == "Invalid confirmation code."

    reservation_id = await seat_walk_in(engine, customer)
    result = await engine.reservations.cancel(reservation_id)
    assert result.message == "Cannot cancel in progress reservation."

    bill = (await engine.reservations.get_or_create_bill_for_paying(reservation_id)).get("bill")
    await engine.reservations.pay_and_complete(bill.id)
    result = await engine.reservations.cancel(reservation_id)
    assert result.message == "Cannot cancel a completed reservation."


@pytest.mark.asyncio
async def test_receive_table_for_active_reservation(engine, gateway, customer, add_tables, clock):
    """Test seating an advance reservation picks the smallest table that fits"""
    small, large = await add_tables(2, 6)
    created = await engine.reservations.create(customer.id, evening(14), 2)
    reservation_id = created.get("reservation_id")

    clock.set(evening(14, 5))
    result = await engine.reservations.receive_table(reservation_id)

    assert result.success
    assert result.get("table_id") == small
    reservation = await engine.repo.get_reservation(reservation_id)
    assert reservation.status == ReservationStatus.IN_PROGRESS
    assert reservation.table_id == small
    assert reservation.start_time == evening(14, 5)
    assert reservation.checked_in_at == evening(14, 5)
    assert gateway.sent(NotificationType.TABLE_RECEIVED) == [reservation_id]

    again = await engine.reservations.receive_table(reservation_id)
    assert again.message == "Reservation status does not allow table receiving."


@pytest.mark.asyncio
async def test_receive_table_without_free_table(engine, customer, subscriber, add_tables, clock):
    """Test an ACTIVE reservation cannot be seated when every table is held"""
    await add_tables(2)
    created = await engine.reservations.create(customer.id, evening(14), 2)

    # Seated at noon, so it holds the table until 14:00
    await seat_walk_in(engine, subscriber)

    clock.set(evening(13, 50))
    result = await engine.reservations.receive_table(created.get("reservation_id"))
    assert result.message == "No available table right now."


@pytest.mark.asyncio
async def test_receive_table_for_notified_reuses_pinned_table(engine, customer, add_tables):
    """Test a notified walk-in is seated at the table held for it"""
    _, large = await add_tables(2, 6)
    joined = await engine.reservations.join_waitlist(customer.id, 5)
    assert joined.get("table_id") == large

    result = await engine.reservations.receive_table_by_code(joined.get("confirmation_code"))

    assert result.success
    assert result.get("table_id") == large


@pytest.mark.asyncio
async def test_bill_and_payment(engine, gateway, customer, add_tables):
    """Test the bill is reused and payment completes the visit"""
    await add_tables(4)
    reservation_id = await seat_walk_in(engine, customer, guests=3)

    first = await engine.reservations.get_or_create_bill_for_paying(reservation_id)
    second = await engine.reservations.get_or_create_bill_for_paying(reservation_id)
    bill = first.get("bill")

    assert second.get("bill").id == bill.id
    assert Decimal("240") <= bill.amount_before_discount <= Decimal("447")
    assert bill.final_amount == bill.amount_before_discount

    result = await engine.reservations.pay_and_complete(bill.id)
    assert result.success
    assert result.get("freed_capacity") == 4
    assert result.get("final_amount") == bill.final_amount

    reservation = await engine.repo.get_reservation(reservation_id)
    assert reservation.status == ReservationStatus.COMPLETED
    assert reservation.table_id is None
    assert reservation.checked_out_at == engine.now()
    assert gateway.sent(NotificationType.PAYMENT_SUCCESS) == [reservation_id]

    again = await engine.reservations.pay_and_complete(bill.id)
    assert again.message == "Bill already paid."


@pytest.mark.asyncio
async def test_subscriber_discount(engine, subscriber, add_tables):
    """Test subscribers pay ten percent less"""
    await add_tables(4)
    reservation_id = await seat_walk_in(engine, subscriber, guests=2)

    bill = (await engine.reservations.get_or_create_bill_for_paying(reservation_id)).get("bill")

    expected = (bill.amount_before_discount * Decimal("0.9")).quantize(Decimal("0.01"))
    assert bill.final_amount == expected


@pytest.mark.asyncio
async def test_bill_and_payment_rules(engine, customer, add_tables):
    """Test billing and payment refuse reservations that are not seated"""
    await add_tables(4)
    created = await engine.reservations.create(customer.id, evening(19), 2)

    result = await engine.reservations.get_or_create_bill_for_paying(created.get("reservation_id"))
    assert result.message == "Reservation is not in progress."

    assert (await engine.reservations.pay_and_complete(None)).message == "Invalid bill id."
    assert (await engine.reservations.pay_and_complete(777)).message == "Bill not found."


@pytest.mark.asyncio
async def test_update_reservation_excludes_itself(engine, customer, add_tables):
    """Test growing a party on the only table is allowed"""
    await add_tables(4)
    created = await engine.reservations.create(customer.id, evening(19), 2)
    reservation_id = created.get("reservation_id")

    result = await engine.reservations.update_reservation(reservation_id, evening(19, 30), 4)

    assert result.success
    reservation = await engine.repo.get_reservation(reservation_id)
    assert reservation.start_time == evening(19, 30)
    assert reservation.party_size == 4

    result = await engine.reservations.update_reservation(reservation_id, evening(19, 30), 5)
    assert result.message == "No space at requested time."


@pytest.mark.asyncio
async def test_listings(engine, customer, subscriber, add_tables, clock):
    """Test the cancellable, receivable and payable lists"""
    await add_tables(4, 4)
    later = await engine.reservations.create(customer.id, evening(19), 2)
    soon = await engine.reservations.create(customer.id, evening(14), 2)
    clock.set(evening(14))
    seated = await seat_walk_in(engine, subscriber)

    cancellable = await engine.reservations.cancellable(customer_id=customer.id)
    assert {r.id for r in cancellable} == {later.get("reservation_id"), soon.get("reservation_id")}

    receivable = await engine.reservations.receivable(customer_id=customer.id)
    assert [r.id for r in receivable] == [soon.get("reservation_id")]

    by_code = await engine.reservations.receivable(confirmation_code=later.get("confirmation_code"))
    assert by_code == []

    payable = await engine.reservations.payable(customer_id=subscriber.id)
    assert [r.id for r in payable] == [seated]

    active = await engine.reservations.list_active()
    assert [r.id for r in active] == [soon.get("reservation_id"), later.get("reservation_id")]


@pytest.mark.asyncio
async def test_resend_confirmation(engine, gateway, customer, add_tables):
    """Test confirmation codes are resent for open reservations"""
    await add_tables(4)
    created = await engine.reservations.create(customer.id, evening(19), 2)

    result = await engine.reservations.resend_confirmation(phone=customer.phone)

    assert result.success
    assert result.get("reservation_ids") == [created.get("reservation_id")]
    assert gateway.sent(NotificationType.RESEND_CONFIRMATION) == [created.get("reservation_id")]

    result = await engine.reservations.resend_confirmation(email="nobody@example.com")
    assert not result.success


@pytest.mark.asyncio
async def test_data_access_failure_is_reported(engine, customer, monkeypatch):
    """Test a database error becomes a generic failure result"""

    async def broken(self, customer_id):
        raise OperationalError("SELECT", {}, Exception("database is down"))

    monkeypatch.setattr(ReservationRepository, "get_customer", broken)

    result = await engine.reservations.create(customer.id, evening(19), 2)

    assert not result.success
    assert result.message == OPERATION_FAILED
