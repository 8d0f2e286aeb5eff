"""Bill computation"""

import random
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

import structlog

from app.config import Settings
from app.engine.repository import ReservationRepository
from app.models import Bill, Reservation

logger = structlog.get_logger()

CENT = Decimal("0.01")


class BillingService:
    """Creates bills: a per-guest amount, discounted for subscribers"""

    def __init__(
        self,
        repo: ReservationRepository,
        config: Settings,
        rng: Optional[random.Random] = None,
    ):
        self.repo = repo
        self.config = config
        self.rng = rng or random.Random()

    def amount_for(self, party_size: int) -> Decimal:
        """Sum of one random amount in [min, max) per guest"""
        total = sum(
            self.rng.randrange(self.config.bill_per_guest_min, self.config.bill_per_guest_max)
            for _ in range(party_size)
        )
        return Decimal(total).quantize(CENT)

    def apply_discount(self, amount: Decimal, subscribed: bool) -> Decimal:
        if not subscribed:
            return amount
        factor = Decimal(1) - Decimal(str(self.config.subscriber_discount))
        return (amount * factor).quantize(CENT, rounding=ROUND_HALF_UP)

    async def compute_bill(self, reservation: Reservation) -> Bill:
        customer = await self.repo.get_customer(reservation.customer_id)
        subscribed = bool(customer and customer.is_subscribed)

        before = self.amount_for(reservation.party_size)
        final = self.apply_discount(before, subscribed)

        bill = await self.repo.insert_bill(reservation.id, before, final)
        logger.info(
            "Bill created",
            reservation_id=reservation.id,
            bill_id=bill.id,
            amount_before_discount=str(bill.amount_before_discount),
            final_amount=str(bill.final_amount),
            subscriber=subscribed,
        )
        return bill

    async def get_or_create(self, reservation: Reservation) -> Bill:
        bill = await self.repo.bill_for_reservation(reservation.id)
        if bill is None:
            bill = await self.compute_bill(reservation)
        return bill
