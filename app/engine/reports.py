"""Monthly reports: visit times and subscriber activity"""

from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog

from app.engine.timeutil import month_bounds, previous_month
from app.models import SubscriberReportEntry, TimeReportEntry

if TYPE_CHECKING:
    from app.engine.context import EngineContext

logger = structlog.get_logger()


def stay_minutes(checked_in_at: Optional[datetime], checked_out_at: Optional[datetime]) -> Optional[int]:
    if checked_in_at is None or checked_out_at is None:
        return None
    return int((checked_out_at - checked_in_at).total_seconds() // 60)


def time_entry_to_dict(entry: TimeReportEntry) -> Dict[str, Any]:
    return {
        "reservation_id": entry.reservation_id,
        "scheduled_at": entry.scheduled_at,
        "checked_in_at": entry.checked_in_at,
        "checked_out_at": entry.checked_out_at,
        "party_size": entry.party_size,
        "customer_name": entry.customer_name,
        "is_subscriber": entry.is_subscriber,
        "stay_minutes": stay_minutes(entry.checked_in_at, entry.checked_out_at),
    }


def subscriber_entry_to_dict(entry: SubscriberReportEntry) -> Dict[str, Any]:
    return {
        "customer_id": entry.customer_id,
        "customer_name": entry.customer_name,
        "subscription_code": entry.subscription_code,
        "total_reservations": entry.total_reservations,
        "completed": entry.completed,
        "canceled": entry.canceled,
        "waitlist_entries": entry.waitlist_entries,
    }


class ReportService:
    def __init__(self, ctx: "EngineContext"):
        self.ctx = ctx
        self.repo = ctx.repo

    async def build_time_report(self, year: int, month: int) -> List[TimeReportEntry]:
        """Completed visits checked in during the month, unsaved"""
        start, end = month_bounds(year, month)
        return [
            TimeReportEntry(
                report_year=year,
                report_month=month,
                reservation_id=reservation.id,
                scheduled_at=reservation.start_time,
                checked_in_at=reservation.checked_in_at,
                checked_out_at=reservation.checked_out_at,
                party_size=reservation.party_size,
                customer_name=customer.full_name,
                is_subscriber=bool(customer.is_subscribed),
            )
            for reservation, customer in await self.repo.completed_visits(start, end)
        ]

    async def build_subscriber_report(self, year: int, month: int) -> List[SubscriberReportEntry]:
        """Per-subscriber counts for reservations created during the month, unsaved"""
        start, end = month_bounds(year, month)
        return [
            SubscriberReportEntry(
                report_year=year,
                report_month=month,
                customer_id=row.customer_id,
                customer_name=row.full_name,
                subscription_code=row.subscription_code,
                total_reservations=int(row.total_reservations),
                completed=int(row.completed),
                canceled=int(row.canceled),
                waitlist_entries=int(row.waitlist_entries),
            )
            for row in await self.repo.subscriber_activity(start, end)
        ]

    async def generate_and_store_monthly_reports(self, year: int, month: int) -> Dict[str, int]:
        time_entries = await self.build_time_report(year, month)
        subscriber_entries = await self.build_subscriber_report(year, month)
        await self.repo.replace_time_report(year, month, time_entries)
        await self.repo.replace_subscriber_report(year, month, subscriber_entries)
        await self.repo.record_report_run(year, month, self.ctx.now())
        logger.info(
            "Monthly reports stored",
            year=year,
            month=month,
            visits=len(time_entries),
            subscribers=len(subscriber_entries),
        )
        return {"visits": len(time_entries), "subscribers": len(subscriber_entries)}

    async def run_monthly_check(self, today: Optional[date] = None) -> bool:
        """
        On the first day of a month, store last month's reports unless they
        were already generated. A month with no visits stores no rows, so the
        generation itself is recorded. Returns True when reports were generated.
        """
        today = today or self.ctx.now().date()
        if today.day != 1:
            return False

        year, month = previous_month(today)
        if await self.repo.has_report_run(year, month):
            logger.debug("Monthly reports already stored", year=year, month=month)
            return False

        await self.generate_and_store_monthly_reports(year, month)
        return True

    async def get_time_report(self, year: int, month: int) -> List[Dict[str, Any]]:
        """Stored report when present, otherwise computed on the fly"""
        entries = await self.repo.stored_time_report(year, month)
        if not entries:
            entries = await self.build_time_report(year, month)
        return [time_entry_to_dict(entry) for entry in entries]

    async def get_subscriber_report(self, year: int, month: int) -> List[Dict[str, Any]]:
        entries = await self.repo.stored_subscriber_report(year, month)
        if not entries:
            entries = await self.build_subscriber_report(year, month)
        return [subscriber_entry_to_dict(entry) for entry in entries]
