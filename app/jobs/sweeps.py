"""
Periodic sweeps over reservation state.

Each sweep takes an EngineContext so it can run from the in-process
scheduler, a Celery worker or a test with a fixed clock. Sweeps are safe to
run twice or concurrently: every change is a conditional update, so a
reservation already handled by another run is skipped.
"""

from datetime import timedelta
from typing import Dict, List

from sqlalchemy.exc import SQLAlchemyError
import structlog

from app.engine.context import EngineContext
from app.models import ReservationStatus
from app.notifications import NotificationType

logger = structlog.get_logger()


async def run_no_show_sweep(ctx: EngineContext) -> List[int]:
    """Cancel ACTIVE and NOTIFIED reservations past the grace period"""
    now = ctx.now()
    cutoff = now - timedelta(minutes=ctx.config.no_show_grace_minutes)
    canceled: List[int] = []

    for reservation_id in await ctx.repo.no_show_candidates(cutoff):
        try:
            done = await ctx.repo.transition(
                reservation_id,
                ReservationStatus.CANCELED,
                (ReservationStatus.ACTIVE, ReservationStatus.NOTIFIED),
                table_id=None,
            )
            if not done:
                continue
            canceled.append(reservation_id)
            logger.info("Reservation canceled as no-show", reservation_id=reservation_id)
            await ctx.notify(NotificationType.CANCELED_NO_SHOW, reservation_id)
        except SQLAlchemyError as e:
            await ctx.repo.rollback()
            logger.error("No-show cancel failed", reservation_id=reservation_id, error=str(e))

    if canceled:
        await ctx.promoter.promote_all()
    return canceled


async def run_reminder_sweep(ctx: EngineContext) -> List[int]:
    """Send one reminder to ACTIVE reservations starting about two hours from now"""
    now = ctx.now()
    target = now + timedelta(minutes=ctx.config.reminder_lead_minutes)
    window = timedelta(minutes=ctx.config.reminder_window_minutes)
    reminded: List[int] = []

    for reservation_id in await ctx.repo.reminder_candidates(target - window, target + window):
        try:
            # Claim first so a concurrent run cannot send it again
            if not await ctx.repo.mark_reminder_sent(reservation_id):
                continue
            reminded.append(reservation_id)
            await ctx.notify(NotificationType.RESERVATION_REMINDER, reservation_id)
            logger.info("Sent reservation reminder", reservation_id=reservation_id)
        except SQLAlchemyError as e:
            await ctx.repo.rollback()
            logger.error("Failed to send reservation reminder", reservation_id=reservation_id, error=str(e))

    return reminded


async def run_billing_sweep(ctx: EngineContext) -> List[int]:
    """Bill parties seated for the full reservation duration"""
    now = ctx.now()
    cutoff = now - timedelta(minutes=ctx.config.billing_after_minutes)
    billed: List[int] = []

    for reservation in await ctx.repo.billing_candidates(cutoff):
        reservation_id = reservation.id
        try:
            bill = await ctx.billing.compute_bill(reservation)
            billed.append(reservation_id)
            await ctx.notify(NotificationType.BILL_SENT, reservation_id, bill=bill)
        except SQLAlchemyError as e:
            await ctx.repo.rollback()
            logger.error("Automatic billing failed", reservation_id=reservation_id, error=str(e))

    return billed


async def run_monthly_report_sweep(ctx: EngineContext) -> bool:
    return await ctx.reports.run_monthly_check()


async def run_all_sweeps(ctx: EngineContext) -> Dict[str, object]:
    return {
        "no_show": await run_no_show_sweep(ctx),
        "reminders": await run_reminder_sweep(ctx),
        "billing": await run_billing_sweep(ctx),
        "monthly_reports": await run_monthly_report_sweep(ctx),
    }
