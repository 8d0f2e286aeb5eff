"""Waitlist promotion: hand freed tables to waiting parties in arrival order"""

from typing import TYPE_CHECKING, List, Optional

from sqlalchemy.exc import SQLAlchemyError
import structlog

from app.models import ReservationStatus
from app.notifications import NotificationType

if TYPE_CHECKING:
    from app.engine.context import EngineContext

logger = structlog.get_logger()


class WaitlistPromoter:
    def __init__(self, ctx: "EngineContext"):
        self.ctx = ctx
        self.repo = ctx.repo

    async def promote_next(self, capacity_hint: Optional[int] = None) -> Optional[int]:
        """
        Promote the oldest WAITING entry that fits right now.

        Entries are scanned by created_at, id. Earlier entries that do not fit
        are skipped; the first one that does is moved to NOTIFIED with a table
        pinned and start set to now. When `capacity_hint` is given only parties
        no larger than it are considered.

        Returns the promoted reservation id, or None.
        """
        now = self.ctx.now()
        availability = self.ctx.availability

        for candidate in await self.repo.waitlist(max_party_size=capacity_hint):
            if not await availability.is_feasible(now, candidate.party_size):
                continue
            table_id = await availability.find_table(now, candidate.party_size)
            if table_id is None:
                continue

            promoted = await self.repo.pin_table(
                candidate.id,
                table_id,
                now,
                (ReservationStatus.WAITING,),
            )
            if not promoted:
                logger.info(
                    "Waitlist entry or table already taken",
                    reservation_id=candidate.id,
                    table_id=table_id,
                )
                continue

            logger.info(
                "Waitlist entry promoted",
                reservation_id=candidate.id,
                table_id=table_id,
                party_size=candidate.party_size,
            )
            return candidate.id

        return None

    async def promote_all(self, capacity_hint: Optional[int] = None) -> List[int]:
        """
        Promote until nothing else fits, notifying each promoted party.

        Runs as a side effect of other operations, so a data-access failure is
        logged and ends the run with whatever was promoted so far.
        """
        promoted: List[int] = []
        try:
            while True:
                reservation_id = await self.promote_next(capacity_hint)
                if reservation_id is None:
                    break
                promoted.append(reservation_id)
                await self.ctx.notify(NotificationType.TABLE_AVAILABLE, reservation_id)
        except SQLAlchemyError as e:
            logger.error("Waitlist promotion failed", promoted=len(promoted), error=str(e))
            await self.repo.rollback()
        return promoted
