"""
Reservation lifecycle: creation, waitlist entry, cancellation, seating,
billing and payment.

Every status change goes through ReservationRepository.transition, which only
applies when the current status is still one of the legal sources. Seating a
walk-in goes through ReservationRepository.pin_table, which also refuses a
table another party holds.
"""

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional, Tuple

import structlog

from app.engine.results import OperationResult, guarded
from app.models import (
    ALLOWED_TRANSITIONS,
    Customer,
    Reservation,
    ReservationKind,
    ReservationStatus,
)
from app.notifications import NotificationType

if TYPE_CHECKING:
    from app.engine.context import EngineContext

logger = structlog.get_logger()

CANCELLABLE = (ReservationStatus.ACTIVE, ReservationStatus.NOTIFIED, ReservationStatus.WAITING)
RECEIVABLE = (ReservationStatus.ACTIVE, ReservationStatus.NOTIFIED)
PAYABLE = (ReservationStatus.IN_PROGRESS,)
SEAT_ATTEMPTS = 3


class ReservationService:
    """Customer-facing reservation operations"""

    def __init__(self, ctx: "EngineContext"):
        self.ctx = ctx
        self.repo = ctx.repo

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------

    async def _validate_request(self, start: Optional[datetime], guests: Optional[int]) -> Optional[str]:
        if start is None:
            return "Missing date/time."
        if guests is None:
            return "Invalid number of guests."
        if guests <= 0:
            return "Guests must be positive."
        return await self.ctx.slots.validate_slot(start)

    async def _customer(self, customer_id: Optional[int]) -> Optional[Customer]:
        if customer_id is None or customer_id <= 0:
            return None
        return await self.repo.get_customer(customer_id)

    async def _guest_customer(
        self,
        full_name: Optional[str],
        phone: Optional[str],
        email: Optional[str],
    ) -> Tuple[Optional[Customer], Optional[str]]:
        """Reuse a customer with the same phone or email, or register a guest"""
        phone = (phone or "").strip() or None
        email = (email or "").strip().lower() or None
        if not phone and not email:
            return None, "Phone or Email is required."

        customer = await self.repo.find_customer_by_contact(phone, email)
        if customer is None:
            name = (full_name or "").strip() or "Guest"
            customer = await self.repo.create_customer(name, phone, email)
            logger.info("Guest customer created", customer_id=customer.id)
        return customer, None

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    @guarded
    async def create(self, customer_id: Optional[int], start: Optional[datetime], guests: Optional[int]) -> OperationResult:
        customer = await self._customer(customer_id)
        if customer is None:
            return OperationResult.fail("Invalid customer id.")
        return await self._create_for(customer, start, guests)

    @guarded
    async def create_for_guest(
        self,
        start: Optional[datetime],
        guests: Optional[int],
        full_name: Optional[str] = None,
        phone: Optional[str] = None,
        email: Optional[str] = None,
    ) -> OperationResult:
        error = await self._validate_request(start, guests)
        if error:
            return OperationResult.fail(error)
        customer, error = await self._guest_customer(full_name, phone, email)
        if error:
            return OperationResult.fail(error)
        return await self._create_for(customer, start, guests)

    async def _create_for(self, customer: Customer, start: Optional[datetime], guests: Optional[int]) -> OperationResult:
        error = await self._validate_request(start, guests)
        if error:
            return OperationResult.fail(error)

        availability = self.ctx.availability
        if not await availability.is_feasible(start, guests):
            suggestions = await availability.suggest_alternatives(start, guests)
            logger.info(
                "Reservation rejected: no space",
                customer_id=customer.id,
                start=start.isoformat(),
                party_size=guests,
                suggestions=len(suggestions),
            )
            return OperationResult.fail("No space at requested time.", suggestions=suggestions)

        reservation = await self.repo.insert_reservation(
            customer_id=customer.id,
            start_time=start,
            party_size=guests,
            status=ReservationStatus.ACTIVE,
            kind=ReservationKind.ADVANCE,
            created_at=self.ctx.now(),
        )
        if reservation is None:
            return OperationResult.fail("Could not allocate a confirmation code.")

        logger.info(
            "Reservation created",
            reservation_id=reservation.id,
            customer_id=customer.id,
            start=start.isoformat(),
            party_size=guests,
        )
        await self.ctx.notify(NotificationType.RESERVATION_CONFIRMATION, reservation.id)
        return OperationResult.ok(
            "Reservation created.",
            reservation_id=reservation.id,
            confirmation_code=reservation.confirmation_code,
            start_time=reservation.start_time,
        )

    # ------------------------------------------------------------------
    # Waitlist entry
    # ------------------------------------------------------------------

    @guarded
    async def join_waitlist(self, customer_id: Optional[int], guests: Optional[int]) -> OperationResult:
        customer = await self._customer(customer_id)
        if customer is None:
            return OperationResult.fail("Invalid customer id.")
        return await self._join_for(customer, guests)

    @guarded
    async def join_waitlist_as_guest(
        self,
        guests: Optional[int],
        full_name: Optional[str] = None,
        phone: Optional[str] = None,
        email: Optional[str] = None,
    ) -> OperationResult:
        if guests is None or guests <= 0:
            return OperationResult.fail("Invalid number of guests.")
        customer, error = await self._guest_customer(full_name, phone, email)
        if error:
            return OperationResult.fail(error)
        return await self._join_for(customer, guests)

    async def _join_for(self, customer: Customer, guests: Optional[int]) -> OperationResult:
        if guests is None or guests <= 0:
            return OperationResult.fail("Invalid number of guests.")

        now = self.ctx.now()
        reservation = await self.repo.insert_reservation(
            customer_id=customer.id,
            start_time=None,
            party_size=guests,
            status=ReservationStatus.WAITING,
            kind=ReservationKind.WALK_IN,
            created_at=now,
        )
        if reservation is None:
            return OperationResult.fail("Could not allocate a confirmation code.")

        table_id = await self._seat_walk_in(reservation.id, now, guests)
        if table_id is not None:
            logger.info(
                "Walk-in seated immediately",
                reservation_id=reservation.id,
                table_id=table_id,
                party_size=guests,
            )
            await self.ctx.notify(NotificationType.TABLE_AVAILABLE, reservation.id)
            return OperationResult.ok(
                "RECEIVE_TABLE_NOW",
                reservation_id=reservation.id,
                confirmation_code=reservation.confirmation_code,
                table_id=table_id,
            )

        current = await self.repo.get_reservation(reservation.id)
        if current is not None and current.status == ReservationStatus.NOTIFIED:
            # A concurrent promotion seated and notified the party already
            return OperationResult.ok(
                "RECEIVE_TABLE_NOW",
                reservation_id=reservation.id,
                confirmation_code=reservation.confirmation_code,
                table_id=current.table_id,
            )

        logger.info("Waitlist joined", reservation_id=reservation.id, party_size=guests)
        return OperationResult.ok(
            "WAITLIST_JOINED",
            reservation_id=reservation.id,
            confirmation_code=reservation.confirmation_code,
        )

    async def _seat_walk_in(self, reservation_id: int, now: datetime, guests: int) -> Optional[int]:
        """Pin a free table to a fresh WAITING walk-in, or None to leave it waiting"""
        availability = self.ctx.availability
        for _ in range(SEAT_ATTEMPTS):
            if not await availability.is_feasible(now, guests):
                return None
            table_id = await availability.find_table(now, guests)
            if table_id is None:
                return None
            if await self.repo.pin_table(reservation_id, table_id, now, (ReservationStatus.WAITING,)):
                return table_id
            logger.info("Table taken before seating", reservation_id=reservation_id, table_id=table_id)
        return None

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    @guarded
    async def cancel(self, reservation_id: Optional[int]) -> OperationResult:
        reservation = None
        if reservation_id is not None:
            reservation = await self.repo.get_reservation(reservation_id)
        if reservation is None:
            return OperationResult.fail("Reservation not found.")
        return await self._cancel(reservation)

    @guarded
    async def cancel_by_code(self, confirmation_code: Optional[int]) -> OperationResult:
        reservation = None
        if confirmation_code is not None:
            reservation = await self.repo.find_by_confirmation_code(confirmation_code)
        if reservation is None:
            return OperationResult.fail("Invalid confirmation code.")
        return await self._cancel(reservation)

    async def _cancel(self, reservation: Reservation) -> OperationResult:
        status = reservation.status
        if status == ReservationStatus.CANCELED:
            return OperationResult.fail("Reservation already canceled.")
        if status == ReservationStatus.COMPLETED:
            return OperationResult.fail("Cannot cancel a completed reservation.")
        if status == ReservationStatus.IN_PROGRESS:
            return OperationResult.fail("Cannot cancel in progress reservation.")

        values = {"table_id": None}
        if status == ReservationStatus.WAITING:
            # Canceled entries always carry a time
            values["start_time"] = self.ctx.now()

        canceled = await self.repo.transition(
            reservation.id,
            ReservationStatus.CANCELED,
            (status,),
            **values,
        )
        if not canceled:
            # Status moved under us; report on what it is now
            current = await self.repo.get_reservation(reservation.id)
            if current is not None and current.status in ALLOWED_TRANSITIONS[ReservationStatus.CANCELED]:
                return await self._cancel(current)
            if current is not None and current.status == ReservationStatus.CANCELED:
                return OperationResult.fail("Reservation already canceled.")
            return OperationResult.fail("Reservation status does not allow cancellation.")

        frees_capacity = status in (ReservationStatus.ACTIVE, ReservationStatus.NOTIFIED)
        logger.info(
            "Reservation canceled",
            reservation_id=reservation.id,
            previous_status=status.value,
            frees_capacity=frees_capacity,
        )
        await self.ctx.notify(NotificationType.RESERVATION_CANCELED, reservation.id)
        return OperationResult.ok(
            "Reservation canceled.",
            reservation_id=reservation.id,
            previous_status=status.value,
            frees_capacity=frees_capacity,
        )

    # ------------------------------------------------------------------
    # Seating
    # ------------------------------------------------------------------

    @guarded
    async def receive_table(self, reservation_id: Optional[int]) -> OperationResult:
        reservation = None
        if reservation_id is not None:
            reservation = await self.repo.get_reservation(reservation_id)
        if reservation is None:
            return OperationResult.fail("Reservation not found.")
        return await self._receive(reservation)

    @guarded
    async def receive_table_by_code(self, confirmation_code: Optional[int]) -> OperationResult:
        reservation = None
        if confirmation_code is not None:
            reservation = await self.repo.find_by_confirmation_code(confirmation_code)
        if reservation is None:
            return OperationResult.fail("Invalid confirmation code.")
        return await self._receive(reservation)

    async def _receive(self, reservation: Reservation) -> OperationResult:
        status = reservation.status
        if status not in RECEIVABLE:
            return OperationResult.fail("Reservation status does not allow table receiving.")

        now = self.ctx.now()
        if status == ReservationStatus.NOTIFIED:
            table_id = reservation.table_id
            if table_id is None:
                return OperationResult.fail("No table assigned for this notified reservation.")
        else:
            table_id = await self.ctx.availability.find_table(now, reservation.party_size)
            if table_id is None:
                return OperationResult.fail("No available table right now.")

        seated = await self.repo.transition(
            reservation.id,
            ReservationStatus.IN_PROGRESS,
            (status,),
            table_id=table_id,
            start_time=now,
            checked_in_at=now,
        )
        if not seated:
            return OperationResult.fail("Reservation status does not allow table receiving.")

        logger.info(
            "Table received",
            reservation_id=reservation.id,
            table_id=table_id,
            previous_status=status.value,
        )
        await self.ctx.notify(NotificationType.TABLE_RECEIVED, reservation.id)
        return OperationResult.ok("Table received.", reservation_id=reservation.id, table_id=table_id)

    # ------------------------------------------------------------------
    # Billing and payment
    # ------------------------------------------------------------------

    @guarded
    async def get_or_create_bill_for_paying(self, reservation_id: Optional[int]) -> OperationResult:
        if reservation_id is None:
            return OperationResult.fail("Reservation not found.")

        bill = await self.repo.bill_for_reservation(reservation_id)
        if bill is None:
            reservation = await self.repo.get_reservation(reservation_id)
            if reservation is None:
                return OperationResult.fail("Reservation not found.")
            if reservation.status != ReservationStatus.IN_PROGRESS:
                return OperationResult.fail("Reservation is not in progress.")
            bill = await self.ctx.billing.compute_bill(reservation)

        return OperationResult.ok("Bill ready.", bill=bill)

    @guarded
    async def pay_and_complete(self, bill_id: Optional[int]) -> OperationResult:
        if bill_id is None or bill_id <= 0:
            return OperationResult.fail("Invalid bill id.")

        bill = await self.repo.get_bill(bill_id)
        if bill is None:
            return OperationResult.fail("Bill not found.")
        if bill.paid:
            return OperationResult.fail("Bill already paid.")

        reservation = await self.repo.get_reservation(bill.reservation_id)
        if reservation is None:
            return OperationResult.fail("Reservation not found for this bill.")
        if reservation.status != ReservationStatus.IN_PROGRESS:
            return OperationResult.fail("Reservation is not in progress.")

        freed_capacity = 0
        if reservation.table_id is not None:
            table = await self.repo.get_table(reservation.table_id)
            freed_capacity = table.capacity if table else 0

        now = self.ctx.now()
        if not await self.repo.mark_bill_paid(bill.id, now):
            return OperationResult.fail("Bill already paid.")

        completed = await self.repo.transition(
            reservation.id,
            ReservationStatus.COMPLETED,
            ALLOWED_TRANSITIONS[ReservationStatus.COMPLETED],
            table_id=None,
            checked_out_at=now,
        )
        if not completed:
            logger.error(
                "Bill paid but reservation left in progress",
                bill_id=bill.id,
                reservation_id=reservation.id,
            )
            return OperationResult.fail("Reservation is not in progress.")

        logger.info(
            "Payment completed",
            bill_id=bill.id,
            reservation_id=reservation.id,
            final_amount=str(bill.final_amount),
            freed_capacity=freed_capacity,
        )
        await self.ctx.notify(NotificationType.PAYMENT_SUCCESS, reservation.id, bill=bill)
        return OperationResult.ok(
            "Payment completed.",
            reservation_id=reservation.id,
            final_amount=bill.final_amount,
            freed_capacity=freed_capacity,
        )

    # ------------------------------------------------------------------
    # Changes
    # ------------------------------------------------------------------

    @guarded
    async def update_reservation(
        self,
        reservation_id: Optional[int],
        start: Optional[datetime],
        guests: Optional[int],
    ) -> OperationResult:
        reservation = None
        if reservation_id is not None:
            reservation = await self.repo.get_reservation(reservation_id)
        if reservation is None:
            return OperationResult.fail("Reservation not found.")
        if reservation.status != ReservationStatus.ACTIVE:
            return OperationResult.fail("Only active reservations can be updated.")

        error = await self._validate_request(start, guests)
        if error:
            return OperationResult.fail(error)

        availability = self.ctx.availability
        if not await availability.is_feasible(start, guests, exclude_reservation_id=reservation.id):
            suggestions = await availability.suggest_alternatives(start, guests)
            return OperationResult.fail("No space at requested time.", suggestions=suggestions)

        if not await self.repo.update_reservation_fields(reservation.id, start, guests):
            return OperationResult.fail("Only active reservations can be updated.")

        logger.info(
            "Reservation updated",
            reservation_id=reservation.id,
            start=start.isoformat(),
            party_size=guests,
        )
        await self.ctx.notify(NotificationType.RESERVATION_CONFIRMATION, reservation.id)
        return OperationResult.ok(
            "Reservation updated.",
            reservation_id=reservation.id,
            confirmation_code=reservation.confirmation_code,
            start_time=start,
        )

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    async def get(self, reservation_id: int) -> Optional[Reservation]:
        return await self.repo.get_reservation(reservation_id)

    async def list_active(self) -> List[Reservation]:
        return await self.repo.active_reservations()

    async def list_waitlist(self) -> List[Reservation]:
        return await self.repo.waitlist()

    async def customer_history(self, customer_id: int) -> List[Reservation]:
        return await self.repo.customer_history(customer_id)

    async def _by_customer_or_code(
        self,
        statuses,
        customer_id: Optional[int] = None,
        confirmation_code: Optional[int] = None,
        started_before: Optional[datetime] = None,
    ) -> List[Reservation]:
        if confirmation_code is not None:
            reservation = await self.repo.find_by_confirmation_code(confirmation_code, statuses)
            if reservation is None:
                return []
            if started_before is not None and reservation.start_time > started_before:
                return []
            return [reservation]
        return await self.repo.list_by_status(
            statuses,
            customer_id=customer_id,
            started_before=started_before,
        )

    async def cancellable(
        self,
        customer_id: Optional[int] = None,
        confirmation_code: Optional[int] = None,
    ) -> List[Reservation]:
        return await self._by_customer_or_code(CANCELLABLE, customer_id, confirmation_code)

    async def receivable(
        self,
        customer_id: Optional[int] = None,
        confirmation_code: Optional[int] = None,
    ) -> List[Reservation]:
        """ACTIVE or NOTIFIED reservations whose time has come"""
        return await self._by_customer_or_code(
            RECEIVABLE,
            customer_id,
            confirmation_code,
            started_before=self.ctx.now(),
        )

    async def payable(
        self,
        customer_id: Optional[int] = None,
        confirmation_code: Optional[int] = None,
    ) -> List[Reservation]:
        return await self._by_customer_or_code(PAYABLE, customer_id, confirmation_code)

    @guarded
    async def resend_confirmation(self, phone: Optional[str] = None, email: Optional[str] = None) -> OperationResult:
        """Send the confirmation code of every open reservation for a phone or email"""
        if not (phone or "").strip() and not (email or "").strip():
            return OperationResult.fail("Phone or Email is required.")

        reservations = await self.repo.find_by_contact(phone, email)
        if not reservations:
            return OperationResult.fail("No reservations found for this contact.")

        for reservation in reservations:
            await self.ctx.notify(NotificationType.RESEND_CONFIRMATION, reservation.id)
        logger.info("Confirmation codes resent", count=len(reservations))
        return OperationResult.ok(
            "Confirmation codes sent.",
            reservation_ids=[r.id for r in reservations],
        )
