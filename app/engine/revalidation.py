"""Re-check committed reservations after tables or opening hours change"""

from datetime import date, datetime, time
from typing import TYPE_CHECKING, List, Optional, Tuple

import structlog

from app.engine.timeutil import add_months
from app.models import ReservationStatus

if TYPE_CHECKING:
    from app.engine.context import EngineContext

logger = structlog.get_logger()

TABLE_IN_USE_MESSAGES = {
    "delete": "Cannot delete table: there are reservations currently in progress or notified.",
    "reduce": (
        "Cannot reduce capacity: there are reservations currently in progress "
        "or notified on this table."
    ),
}

# (reservation id, start time it had before the change)
Affected = Tuple[int, datetime]


class RevalidationEngine:
    def __init__(self, ctx: "EngineContext"):
        self.ctx = ctx
        self.repo = ctx.repo

    async def check_table_change_allowed(self, table_id: int, action: str) -> Optional[str]:
        """Refuse to delete or shrink a table a seated or notified party holds"""
        if await self.repo.table_in_use(table_id):
            return TABLE_IN_USE_MESSAGES[action]
        return None

    async def revalidate_future_active(self) -> List[Affected]:
        """
        Demote ACTIVE reservations in the next month that no longer fit.

        Each one is checked against the other committed reservations, in
        start order. Demoted reservations lose their start time and return to
        the waitlist.
        """
        now = self.ctx.now()
        horizon = add_months(now, self.ctx.config.revalidation_horizon_months)
        moved: List[Affected] = []

        for reservation in await self.repo.future_active(now, horizon):
            fits = await self.ctx.availability.is_feasible(
                reservation.start_time,
                reservation.party_size,
                exclude_reservation_id=reservation.id,
            )
            if fits:
                continue

            demoted = await self.repo.transition(
                reservation.id,
                ReservationStatus.WAITING,
                (ReservationStatus.ACTIVE,),
                table_id=None,
                start_time=None,
            )
            if demoted:
                moved.append((reservation.id, reservation.start_time))
                logger.info(
                    "Reservation moved to waitlist",
                    reservation_id=reservation.id,
                    scheduled_for=reservation.start_time.isoformat(),
                    party_size=reservation.party_size,
                )

        return moved

    async def cancel_outside_hours_for_day(self, day_of_week: int) -> List[Affected]:
        return await self._cancel_outside_hours(lambda start: start.weekday() == day_of_week)

    async def cancel_outside_hours_on_date(self, day: date) -> List[Affected]:
        return await self._cancel_outside_hours(lambda start: start.date() == day)

    async def _cancel_outside_hours(self, matches) -> List[Affected]:
        """
        Cancel ACTIVE and NOTIFIED reservations on the matching days that the
        current hours no longer allow. A date override still wins over the
        weekly hours, so dates that have one are left alone by weekday changes.
        """
        since = datetime.combine(self.ctx.now().date(), time.min)
        canceled: List[Affected] = []

        for reservation in await self.repo.scheduled_commitments(since):
            if not matches(reservation.start_time):
                continue
            reason = await self.ctx.slots.validate_opening_hours(reservation.start_time)
            if reason is None:
                continue

            done = await self.repo.transition(
                reservation.id,
                ReservationStatus.CANCELED,
                (ReservationStatus.ACTIVE, ReservationStatus.NOTIFIED),
                table_id=None,
            )
            if done:
                canceled.append((reservation.id, reservation.start_time))
                logger.info(
                    "Reservation canceled after hours change",
                    reservation_id=reservation.id,
                    start=reservation.start_time.isoformat(),
                    reason=reason,
                )

        return canceled
