"""Persistence repository for the reservation engine"""

import random
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Set

from sqlalchemy import and_, case, delete, desc, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased
import structlog

from app.config import Settings
from app.models import (
    Bill,
    Customer,
    DateOverride,
    MonthlyReportRun,
    OpeningHours,
    Reservation,
    ReservationKind,
    ReservationStatus,
    RestaurantTable,
    SubscriberReportEntry,
    TimeReportEntry,
    PINNED_STATUSES,
)

logger = structlog.get_logger()

CODE_MIN = 100000
CODE_MAX = 999999


@dataclass
class ContactInfo:
    """Everything a notification needs about a reservation's customer"""
    customer_id: int
    full_name: str
    phone: Optional[str]
    email: Optional[str]
    reservation_id: Optional[int] = None
    start_time: Optional[datetime] = None
    party_size: Optional[int] = None
    confirmation_code: Optional[int] = None


@dataclass
class SubscriberActivity:
    customer_id: int
    full_name: str
    subscription_code: Optional[str]
    total_reservations: int
    completed: int
    canceled: int
    waitlist_entries: int


class ReservationRepository:
    """
    All reads and writes the engine performs.

    Every mutating method is a single, narrow command that commits on its own.
    Status changes are conditional on the current status so that a concurrent
    writer that got there first makes the call report False instead of
    applying the transition twice.
    """

    def __init__(self, session: AsyncSession, config: Settings):
        self.session = session
        self.config = config

    @property
    def duration(self) -> timedelta:
        return timedelta(minutes=self.config.reservation_duration_minutes)

    async def rollback(self) -> None:
        await self.session.rollback()

    async def _all(self, stmt) -> list:
        result = await self.session.execute(stmt.execution_options(populate_existing=True))
        return list(result.scalars().all())

    async def _first(self, stmt):
        result = await self.session.execute(stmt.execution_options(populate_existing=True))
        return result.scalars().first()

    async def _commit_rowcount(self, stmt) -> int:
        result = await self.session.execute(stmt.execution_options(synchronize_session=False))
        await self.session.commit()
        return result.rowcount

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    async def list_tables(self) -> List[RestaurantTable]:
        return await self._all(select(RestaurantTable).order_by(RestaurantTable.id))

    async def get_table(self, table_id: int) -> Optional[RestaurantTable]:
        return await self._first(select(RestaurantTable).where(RestaurantTable.id == table_id))

    async def table_capacities(self) -> Dict[int, int]:
        result = await self.session.execute(select(RestaurantTable.id, RestaurantTable.capacity))
        return {table_id: capacity for table_id, capacity in result.all()}

    async def add_table(self, capacity: int) -> RestaurantTable:
        table = RestaurantTable(capacity=capacity)
        self.session.add(table)
        await self.session.commit()
        await self.session.refresh(table)
        return table

    async def update_table_capacity(self, table_id: int, capacity: int) -> bool:
        stmt = (
            update(RestaurantTable)
            .where(RestaurantTable.id == table_id)
            .values(capacity=capacity)
        )
        return await self._commit_rowcount(stmt) == 1

    async def delete_table(self, table_id: int) -> bool:
        # Detach historical references first
        await self.session.execute(
            update(Reservation)
            .where(Reservation.table_id == table_id)
            .values(table_id=None)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(
            delete(RestaurantTable).where(RestaurantTable.id == table_id)
        )
        await self.session.commit()
        return result.rowcount == 1

    async def table_in_use(self, table_id: int) -> bool:
        """True when a NOTIFIED or IN_PROGRESS reservation holds the table"""
        result = await self.session.execute(
            select(func.count(Reservation.id)).where(
                Reservation.table_id == table_id,
                Reservation.status.in_(PINNED_STATUSES),
            )
        )
        return result.scalar() > 0

    # ------------------------------------------------------------------
    # Overlap queries used by the availability engine
    # ------------------------------------------------------------------

    def _overlaps(self, start: datetime):
        # existing_start < start + duration AND existing_start + duration > start
        return and_(
            Reservation.start_time.is_not(None),
            Reservation.start_time < start + self.duration,
            Reservation.start_time > start - self.duration,
        )

    async def pinned_table_ids(self, start: datetime) -> Set[int]:
        result = await self.session.execute(
            select(Reservation.table_id).distinct().where(
                Reservation.status.in_(PINNED_STATUSES),
                Reservation.table_id.is_not(None),
                self._overlaps(start),
            )
        )
        return set(result.scalars().all())

    async def overlapping_active_party_sizes(
        self,
        start: datetime,
        exclude_reservation_id: Optional[int] = None,
    ) -> List[int]:
        stmt = select(Reservation.party_size).where(
            Reservation.status == ReservationStatus.ACTIVE,
            self._overlaps(start),
        )
        if exclude_reservation_id is not None:
            stmt = stmt.where(Reservation.id != exclude_reservation_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_available_table(self, start: datetime, party_size: int) -> Optional[int]:
        """Smallest table that fits the party and is not pinned during the window"""
        pinned = (
            select(Reservation.id)
            .where(
                Reservation.table_id == RestaurantTable.id,
                Reservation.status.in_(PINNED_STATUSES),
                self._overlaps(start),
            )
            .exists()
        )
        result = await self.session.execute(
            select(RestaurantTable.id)
            .where(RestaurantTable.capacity >= party_size, ~pinned)
            .order_by(RestaurantTable.capacity, RestaurantTable.id)
            .limit(1)
        )
        return result.scalar_one_or_none()

    # ------------------------------------------------------------------
    # Reservations: creation
    # ------------------------------------------------------------------

    async def confirmation_code_taken(self, code: int) -> bool:
        result = await self.session.execute(
            select(func.count(Reservation.id)).where(Reservation.confirmation_code == code)
        )
        return result.scalar() > 0

    async def insert_reservation(self, **values) -> Optional[Reservation]:
        """
        Insert a reservation with a freshly drawn confirmation code.

        Retries on a code collision up to `confirmation_code_attempts` times and
        returns None past the cap.
        """
        for attempt in range(1, self.config.confirmation_code_attempts + 1):
            code = random.randint(CODE_MIN, CODE_MAX)
            if await self.confirmation_code_taken(code):
                logger.info("Confirmation code collision", attempt=attempt)
                continue

            reservation = Reservation(confirmation_code=code, **values)
            self.session.add(reservation)
            try:
                await self.session.commit()
            except IntegrityError:
                await self.session.rollback()
                logger.info("Confirmation code collision on insert", attempt=attempt)
                continue

            await self.session.refresh(reservation)
            return reservation

        logger.warning(
            "Confirmation code retries exhausted",
            attempts=self.config.confirmation_code_attempts,
        )
        return None

    # ------------------------------------------------------------------
    # Reservations: transitions
    # ------------------------------------------------------------------

    async def transition(
        self,
        reservation_id: int,
        target: ReservationStatus,
        sources: Iterable[ReservationStatus],
        **values,
    ) -> bool:
        """Move to `target` only if the current status is one of `sources`"""
        stmt = (
            update(Reservation)
            .where(
                Reservation.id == reservation_id,
                Reservation.status.in_(tuple(sources)),
            )
            .values(status=target, **values)
        )
        return await self._commit_rowcount(stmt) == 1

    async def pin_table(
        self,
        reservation_id: int,
        table_id: int,
        start: datetime,
        sources: Iterable[ReservationStatus],
    ) -> bool:
        """
        Move a reservation to NOTIFIED on `table_id`, starting at `start`.

        The table row is locked first, and the update only applies while no
        other pinned reservation overlaps that window on the same table. Two
        parties racing for one free table therefore get one pin between them.
        """
        locked = await self.session.execute(
            select(RestaurantTable.id).where(RestaurantTable.id == table_id).with_for_update()
        )
        if locked.scalar_one_or_none() is None:
            await self.session.commit()
            return False

        other = aliased(Reservation)
        clash = (
            select(other.id)
            .where(
                other.table_id == table_id,
                other.id != reservation_id,
                other.status.in_(PINNED_STATUSES),
                other.start_time.is_not(None),
                other.start_time < start + self.duration,
                other.start_time > start - self.duration,
            )
            .exists()
        )
        stmt = (
            update(Reservation)
            .where(
                Reservation.id == reservation_id,
                Reservation.status.in_(tuple(sources)),
                ~clash,
            )
            .values(status=ReservationStatus.NOTIFIED, table_id=table_id, start_time=start)
        )
        return await self._commit_rowcount(stmt) == 1

    async def update_reservation_fields(
        self,
        reservation_id: int,
        start_time: datetime,
        party_size: int,
    ) -> bool:
        stmt = (
            update(Reservation)
            .where(
                Reservation.id == reservation_id,
                Reservation.status == ReservationStatus.ACTIVE,
            )
            .values(start_time=start_time, party_size=party_size, reminder_sent=False)
        )
        return await self._commit_rowcount(stmt) == 1

    async def mark_reminder_sent(self, reservation_id: int) -> bool:
        """Claim the reminder; False if another sweep already claimed it"""
        stmt = (
            update(Reservation)
            .where(
                Reservation.id == reservation_id,
                Reservation.reminder_sent.is_(False),
            )
            .values(reminder_sent=True)
        )
        return await self._commit_rowcount(stmt) == 1

    # ------------------------------------------------------------------
    # Reservations: lookups
    # ------------------------------------------------------------------

    async def get_reservation(self, reservation_id: int) -> Optional[Reservation]:
        return await self._first(select(Reservation).where(Reservation.id == reservation_id))

    async def find_by_confirmation_code(
        self,
        code: int,
        statuses: Optional[Sequence[ReservationStatus]] = None,
    ) -> Optional[Reservation]:
        stmt = select(Reservation).where(Reservation.confirmation_code == code)
        if statuses:
            stmt = stmt.where(Reservation.status.in_(statuses))
        return await self._first(stmt)

    async def list_by_status(
        self,
        statuses: Sequence[ReservationStatus],
        customer_id: Optional[int] = None,
        started_before: Optional[datetime] = None,
    ) -> List[Reservation]:
        stmt = select(Reservation).where(Reservation.status.in_(statuses))
        if customer_id is not None:
            stmt = stmt.where(Reservation.customer_id == customer_id)
        if started_before is not None:
            stmt = stmt.where(Reservation.start_time <= started_before)
        return await self._all(stmt.order_by(desc(Reservation.start_time), Reservation.id))

    async def active_reservations(self) -> List[Reservation]:
        return await self._all(
            select(Reservation)
            .where(Reservation.status == ReservationStatus.ACTIVE)
            .order_by(Reservation.start_time, Reservation.id)
        )

    async def waitlist(self, max_party_size: Optional[int] = None) -> List[Reservation]:
        """WAITING entries in arrival order"""
        stmt = select(Reservation).where(Reservation.status == ReservationStatus.WAITING)
        if max_party_size is not None:
            stmt = stmt.where(Reservation.party_size <= max_party_size)
        return await self._all(stmt.order_by(Reservation.created_at, Reservation.id))

    async def customer_history(self, customer_id: int) -> List[Reservation]:
        return await self._all(
            select(Reservation)
            .where(Reservation.customer_id == customer_id)
            .order_by(desc(Reservation.created_at), desc(Reservation.id))
        )

    async def find_by_contact(self, phone: Optional[str], email: Optional[str]) -> List[Reservation]:
        conditions = []
        if phone:
            conditions.append(Customer.phone == phone.strip())
        if email:
            conditions.append(func.lower(Customer.email) == email.strip().lower())
        if not conditions:
            return []
        return await self._all(
            select(Reservation)
            .join(Customer, Customer.id == Reservation.customer_id)
            .where(
                or_(*conditions),
                Reservation.status.in_(
                    (ReservationStatus.ACTIVE, ReservationStatus.NOTIFIED, ReservationStatus.WAITING)
                ),
            )
            .order_by(Reservation.created_at)
        )

    async def future_active(self, start: datetime, end: datetime) -> List[Reservation]:
        return await self._all(
            select(Reservation)
            .where(
                Reservation.status == ReservationStatus.ACTIVE,
                Reservation.start_time >= start,
                Reservation.start_time <= end,
            )
            .order_by(Reservation.start_time, Reservation.id)
        )

    async def scheduled_commitments(self, since: datetime) -> List[Reservation]:
        """ACTIVE and NOTIFIED reservations starting at or after `since`"""
        return await self._all(
            select(Reservation)
            .where(
                Reservation.status.in_((ReservationStatus.ACTIVE, ReservationStatus.NOTIFIED)),
                Reservation.start_time >= since,
            )
            .order_by(Reservation.start_time, Reservation.id)
        )

    # ------------------------------------------------------------------
    # Sweep candidates
    # ------------------------------------------------------------------

    async def no_show_candidates(self, cutoff: datetime) -> List[int]:
        result = await self.session.execute(
            select(Reservation.id)
            .where(
                Reservation.status.in_((ReservationStatus.ACTIVE, ReservationStatus.NOTIFIED)),
                Reservation.start_time <= cutoff,
            )
            .order_by(Reservation.start_time, Reservation.id)
        )
        return list(result.scalars().all())

    async def reminder_candidates(self, window_start: datetime, window_end: datetime) -> List[int]:
        result = await self.session.execute(
            select(Reservation.id)
            .where(
                Reservation.status == ReservationStatus.ACTIVE,
                Reservation.reminder_sent.is_(False),
                Reservation.start_time >= window_start,
                Reservation.start_time <= window_end,
            )
            .order_by(Reservation.start_time, Reservation.id)
        )
        return list(result.scalars().all())

    async def billing_candidates(self, cutoff: datetime) -> List[Reservation]:
        has_bill = select(Bill.id).where(Bill.reservation_id == Reservation.id).exists()
        return await self._all(
            select(Reservation)
            .where(
                Reservation.status == ReservationStatus.IN_PROGRESS,
                Reservation.start_time <= cutoff,
                ~has_bill,
            )
            .order_by(Reservation.start_time, Reservation.id)
        )

    # ------------------------------------------------------------------
    # Opening hours and date overrides
    # ------------------------------------------------------------------

    async def list_opening_hours(self) -> List[OpeningHours]:
        return await self._all(select(OpeningHours).order_by(OpeningHours.day_of_week))

    async def opening_hours_for_day(self, day_of_week: int) -> Optional[OpeningHours]:
        return await self._first(
            select(OpeningHours).where(OpeningHours.day_of_week == day_of_week)
        )

    async def save_opening_hours(
        self,
        day_of_week: int,
        open_time: Optional[time],
        close_time: Optional[time],
        closed: bool,
    ) -> OpeningHours:
        hours = await self.opening_hours_for_day(day_of_week)
        if hours is None:
            hours = OpeningHours(day_of_week=day_of_week)
            self.session.add(hours)
        hours.open_time = open_time
        hours.close_time = close_time
        hours.closed = closed
        await self.session.commit()
        await self.session.refresh(hours)
        return hours

    async def list_date_overrides(self) -> List[DateOverride]:
        return await self._all(select(DateOverride).order_by(DateOverride.date))

    async def date_override_for(self, day: date) -> Optional[DateOverride]:
        return await self._first(select(DateOverride).where(DateOverride.date == day))

    async def get_date_override(self, override_id: int) -> Optional[DateOverride]:
        return await self._first(select(DateOverride).where(DateOverride.id == override_id))

    async def add_date_override(self, **values) -> Optional[DateOverride]:
        """Returns None when an override for that date already exists"""
        override = DateOverride(**values)
        self.session.add(override)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            return None
        await self.session.refresh(override)
        return override

    async def update_date_override(self, override_id: int, **values) -> Optional[DateOverride]:
        override = await self.get_date_override(override_id)
        if override is None:
            return None
        for field, value in values.items():
            setattr(override, field, value)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            return None
        await self.session.refresh(override)
        return override

    async def delete_date_override(self, override_id: int) -> bool:
        result = await self.session.execute(
            delete(DateOverride).where(DateOverride.id == override_id)
        )
        await self.session.commit()
        return result.rowcount == 1

    # ------------------------------------------------------------------
    # Bills
    # ------------------------------------------------------------------

    async def get_bill(self, bill_id: int) -> Optional[Bill]:
        return await self._first(select(Bill).where(Bill.id == bill_id))

    async def bill_for_reservation(self, reservation_id: int) -> Optional[Bill]:
        return await self._first(select(Bill).where(Bill.reservation_id == reservation_id))

    async def insert_bill(
        self,
        reservation_id: int,
        amount_before_discount: Decimal,
        final_amount: Decimal,
    ) -> Bill:
        """Insert a bill; if one appeared concurrently, return that one instead"""
        bill = Bill(
            reservation_id=reservation_id,
            amount_before_discount=amount_before_discount,
            final_amount=final_amount,
        )
        self.session.add(bill)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            return await self.bill_for_reservation(reservation_id)
        await self.session.refresh(bill)
        return bill

    async def mark_bill_paid(self, bill_id: int, paid_at: datetime) -> bool:
        stmt = (
            update(Bill)
            .where(Bill.id == bill_id, Bill.paid.is_(False))
            .values(paid=True, paid_at=paid_at)
        )
        return await self._commit_rowcount(stmt) == 1

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------

    async def get_customer(self, customer_id: int) -> Optional[Customer]:
        return await self._first(select(Customer).where(Customer.id == customer_id))

    async def find_customer_by_contact(
        self,
        phone: Optional[str],
        email: Optional[str],
    ) -> Optional[Customer]:
        conditions = []
        if phone:
            conditions.append(Customer.phone == phone)
        if email:
            conditions.append(func.lower(Customer.email) == email)
        if not conditions:
            return None
        return await self._first(select(Customer).where(or_(*conditions)).order_by(Customer.id))

    async def create_customer(
        self,
        full_name: str,
        phone: Optional[str],
        email: Optional[str],
    ) -> Customer:
        customer = Customer(full_name=full_name, phone=phone, email=email)
        self.session.add(customer)
        await self.session.commit()
        await self.session.refresh(customer)
        return customer

    async def contact_for_reservation(self, reservation_id: int) -> Optional[ContactInfo]:
        result = await self.session.execute(
            select(Reservation, Customer)
            .join(Customer, Customer.id == Reservation.customer_id)
            .where(Reservation.id == reservation_id)
            .execution_options(populate_existing=True)
        )
        row = result.first()
        if row is None:
            return None
        reservation, customer = row
        return ContactInfo(
            customer_id=customer.id,
            full_name=customer.full_name,
            phone=customer.phone,
            email=customer.email,
            reservation_id=reservation.id,
            start_time=reservation.start_time,
            party_size=reservation.party_size,
            confirmation_code=reservation.confirmation_code,
        )

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    async def completed_visits(self, start: datetime, end: datetime) -> List[tuple]:
        """(reservation, customer) pairs checked in within [start, end)"""
        result = await self.session.execute(
            select(Reservation, Customer)
            .join(Customer, Customer.id == Reservation.customer_id)
            .where(
                Reservation.status == ReservationStatus.COMPLETED,
                Reservation.checked_in_at.is_not(None),
                Reservation.checked_in_at >= start,
                Reservation.checked_in_at < end,
            )
            .order_by(Reservation.checked_in_at, Reservation.id)
            .execution_options(populate_existing=True)
        )
        return [tuple(row) for row in result.all()]

    async def subscriber_activity(self, start: datetime, end: datetime) -> List[SubscriberActivity]:
        def count_where(condition):
            return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)

        total = func.count(Reservation.id).label("total_reservations")
        result = await self.session.execute(
            select(
                Customer.id,
                Customer.full_name,
                Customer.subscription_code,
                total,
                count_where(Reservation.status == ReservationStatus.COMPLETED).label("completed"),
                count_where(Reservation.status == ReservationStatus.CANCELED).label("canceled"),
                count_where(Reservation.kind == ReservationKind.WALK_IN).label("waitlist_entries"),
            )
            .outerjoin(
                Reservation,
                and_(
                    Reservation.customer_id == Customer.id,
                    Reservation.created_at >= start,
                    Reservation.created_at < end,
                ),
            )
            .where(Customer.is_subscribed.is_(True))
            .group_by(Customer.id, Customer.full_name, Customer.subscription_code)
            .order_by(desc(total), Customer.id)
        )
        return [SubscriberActivity(*row) for row in result.all()]

    async def has_report_run(self, year: int, month: int) -> bool:
        run = await self._first(
            select(MonthlyReportRun).where(
                MonthlyReportRun.report_year == year,
                MonthlyReportRun.report_month == month,
            )
        )
        return run is not None

    async def record_report_run(self, year: int, month: int, generated_at: datetime) -> bool:
        """Mark the month as generated; False when another run already marked it"""
        self.session.add(
            MonthlyReportRun(report_year=year, report_month=month, generated_at=generated_at)
        )
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            return False
        return True

    async def replace_time_report(self, year: int, month: int, entries: List[TimeReportEntry]) -> None:
        await self.session.execute(
            delete(TimeReportEntry).where(
                TimeReportEntry.report_year == year,
                TimeReportEntry.report_month == month,
            )
        )
        self.session.add_all(entries)
        await self.session.commit()

    async def replace_subscriber_report(
        self,
        year: int,
        month: int,
        entries: List[SubscriberReportEntry],
    ) -> None:
        await self.session.execute(
            delete(SubscriberReportEntry).where(
                SubscriberReportEntry.report_year == year,
                SubscriberReportEntry.report_month == month,
            )
        )
        self.session.add_all(entries)
        await self.session.commit()

    async def stored_time_report(self, year: int, month: int) -> List[TimeReportEntry]:
        return await self._all(
            select(TimeReportEntry)
            .where(TimeReportEntry.report_year == year, TimeReportEntry.report_month == month)
            .order_by(TimeReportEntry.checked_in_at, TimeReportEntry.id)
        )

    async def stored_subscriber_report(self, year: int, month: int) -> List[SubscriberReportEntry]:
        return await self._all(
            select(SubscriberReportEntry)
            .where(
                SubscriberReportEntry.report_year == year,
                SubscriberReportEntry.report_month == month,
            )
            .order_by(desc(SubscriberReportEntry.total_reservations), SubscriberReportEntry.id)
        )
