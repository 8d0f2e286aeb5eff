"""Restaurant setup: tables, weekly opening hours and date overrides"""

from datetime import date, time
from typing import TYPE_CHECKING, List, Optional

import structlog

from app.engine.results import OperationResult, guarded
from app.models import DateOverride, OpeningHours, RestaurantTable
from app.notifications import NotificationType

if TYPE_CHECKING:
    from app.engine.context import EngineContext

logger = structlog.get_logger()


class RestaurantManagementService:
    """
    Staff operations on tables and hours.

    Any change that can remove capacity or shorten hours re-checks the
    reservations already committed, notifies the affected customers and then
    gives the waitlist a chance at what was freed.
    """

    def __init__(self, ctx: "EngineContext"):
        self.ctx = ctx
        self.repo = ctx.repo

    async def _after_capacity_change(self) -> dict:
        moved = await self.ctx.revalidation.revalidate_future_active()
        for reservation_id, scheduled_for in moved:
            await self.ctx.notify(
                NotificationType.MOVED_TO_WAITING,
                reservation_id,
                scheduled_for=scheduled_for,
            )
        promoted = await self.ctx.promoter.promote_all()
        return {
            "moved_to_waiting": [reservation_id for reservation_id, _ in moved],
            "promoted": promoted,
        }

    async def _after_hours_change(self, canceled, event: NotificationType) -> dict:
        for reservation_id, _ in canceled:
            await self.ctx.notify(event, reservation_id)
        promoted = await self.ctx.promoter.promote_all() if canceled else []
        return {
            "canceled": [reservation_id for reservation_id, _ in canceled],
            "promoted": promoted,
        }

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    async def list_tables(self) -> List[RestaurantTable]:
        return await self.repo.list_tables()

    @guarded
    async def add_table(self, capacity: Optional[int]) -> OperationResult:
        if capacity is None or capacity <= 0:
            return OperationResult.fail("Seats must be a positive number.")

        table = await self.repo.add_table(capacity)
        logger.info("Table added", table_id=table.id, capacity=capacity)
        promoted = await self.ctx.promoter.promote_all()
        return OperationResult.ok("Table added.", table=table, promoted=promoted)

    @guarded
    async def update_table(self, table_id: int, capacity: Optional[int]) -> OperationResult:
        if capacity is None or capacity <= 0:
            return OperationResult.fail("Seats must be a positive number.")

        table = await self.repo.get_table(table_id)
        if table is None:
            return OperationResult.fail("Table not found.")

        previous = table.capacity
        if capacity < previous:
            refused = await self.ctx.revalidation.check_table_change_allowed(table_id, "reduce")
            if refused:
                return OperationResult.fail(refused)

        await self.repo.update_table_capacity(table_id, capacity)
        logger.info("Table capacity changed", table_id=table_id, previous=previous, capacity=capacity)

        if capacity < previous:
            outcome = await self._after_capacity_change()
        else:
            outcome = {"moved_to_waiting": [], "promoted": await self.ctx.promoter.promote_all()}
        table = await self.repo.get_table(table_id)
        return OperationResult.ok("Table updated.", table=table, **outcome)

    @guarded
    async def delete_table(self, table_id: int) -> OperationResult:
        if await self.repo.get_table(table_id) is None:
            return OperationResult.fail("Table not found.")

        refused = await self.ctx.revalidation.check_table_change_allowed(table_id, "delete")
        if refused:
            return OperationResult.fail(refused)

        await self.repo.delete_table(table_id)
        logger.info("Table deleted", table_id=table_id)
        outcome = await self._after_capacity_change()
        return OperationResult.ok("Table deleted.", **outcome)

    # ------------------------------------------------------------------
    # Weekly opening hours
    # ------------------------------------------------------------------

    async def list_opening_hours(self) -> List[OpeningHours]:
        return await self.repo.list_opening_hours()

    @guarded
    async def update_opening_hours(
        self,
        day_of_week: int,
        open_time: Optional[time],
        close_time: Optional[time],
        closed: bool,
    ) -> OperationResult:
        if day_of_week < 0 or day_of_week > 6:
            return OperationResult.fail("Invalid day of week.")
        if not closed and (open_time is None or close_time is None):
            return OperationResult.fail("Open and close times are required for non-closed days.")
        if closed:
            open_time = close_time = None

        hours = await self.repo.save_opening_hours(day_of_week, open_time, close_time, closed)
        logger.info(
            "Opening hours updated",
            day_of_week=day_of_week,
            open_time=str(open_time),
            close_time=str(close_time),
            closed=closed,
        )

        canceled = await self.ctx.revalidation.cancel_outside_hours_for_day(day_of_week)
        outcome = await self._after_hours_change(canceled, NotificationType.CANCELED_HOURS_CHANGE)
        return OperationResult.ok("Opening hours updated.", hours=hours, **outcome)

    # ------------------------------------------------------------------
    # Date overrides
    # ------------------------------------------------------------------

    async def list_date_overrides(self) -> List[DateOverride]:
        return await self.repo.list_date_overrides()

    @staticmethod
    def _check_override(closed: bool, open_time: Optional[time], close_time: Optional[time]) -> Optional[str]:
        if not closed and (open_time is None or close_time is None):
            return "Open and close times are required for non-closed dates."
        return None

    @guarded
    async def add_date_override(
        self,
        day: date,
        open_time: Optional[time],
        close_time: Optional[time],
        closed: bool,
        reason: Optional[str] = None,
    ) -> OperationResult:
        error = self._check_override(closed, open_time, close_time)
        if error:
            return OperationResult.fail(error)
        if closed:
            open_time = close_time = None

        override = await self.repo.add_date_override(
            date=day,
            open_time=open_time,
            close_time=close_time,
            closed=closed,
            reason=(reason or "").strip() or None,
        )
        if override is None:
            return OperationResult.fail("Failed to add override. Date may already exist.")
        logger.info("Date override added", override_id=override.id, date=day.isoformat(), closed=closed)

        canceled = await self.ctx.revalidation.cancel_outside_hours_on_date(day)
        outcome = await self._after_hours_change(canceled, NotificationType.CANCELED_DATE_OVERRIDE)
        return OperationResult.ok("Override added.", override=override, **outcome)

    @guarded
    async def update_date_override(
        self,
        override_id: int,
        day: date,
        open_time: Optional[time],
        close_time: Optional[time],
        closed: bool,
        reason: Optional[str] = None,
    ) -> OperationResult:
        error = self._check_override(closed, open_time, close_time)
        if error:
            return OperationResult.fail(error)
        if closed:
            open_time = close_time = None

        existing = await self.repo.get_date_override(override_id)
        if existing is None:
            return OperationResult.fail("Override not found.")
        previous_day = existing.date

        override = await self.repo.update_date_override(
            override_id,
            date=day,
            open_time=open_time,
            close_time=close_time,
            closed=closed,
            reason=(reason or "").strip() or None,
        )
        if override is None:
            return OperationResult.fail("Failed to update override. Date may already exist.")
        logger.info("Date override updated", override_id=override_id, date=day.isoformat(), closed=closed)

        canceled = await self.ctx.revalidation.cancel_outside_hours_on_date(day)
        if previous_day != day:
            # The old date falls back to its weekly hours
            canceled += await self.ctx.revalidation.cancel_outside_hours_on_date(previous_day)
        outcome = await self._after_hours_change(canceled, NotificationType.CANCELED_DATE_OVERRIDE)
        return OperationResult.ok("Override updated.", override=override, **outcome)

    @guarded
    async def delete_date_override(self, override_id: int) -> OperationResult:
        existing = await self.repo.get_date_override(override_id)
        if existing is None:
            return OperationResult.fail("Override not found.")
        day = existing.date

        await self.repo.delete_date_override(override_id)
        logger.info("Date override deleted", override_id=override_id, date=day.isoformat())

        canceled = await self.ctx.revalidation.cancel_outside_hours_on_date(day)
        outcome = await self._after_hours_change(canceled, NotificationType.CANCELED_HOURS_CHANGE)
        return OperationResult.ok("Override deleted.", **outcome)
