"""Background job tasks"""

import asyncio
import structlog

from app.jobs.celery_app import celery_app

logger = structlog.get_logger()


def run_async(coro):
    """Helper to run async functions in sync context"""
    return asyncio.run(coro)


def _run_sweep(name: str, sweep):
    """Run one sweep against a fresh session"""

    async def _run():
        from app.database import SessionLocal, engine
        from app.engine.context import EngineContext

        try:
            async with SessionLocal() as db:
                return await sweep(EngineContext(db))
        finally:
            # Pooled connections are tied to this task's event loop
            await engine.dispose()

    logger.info("Running sweep", sweep=name)
    return run_async(_run())


@celery_app.task(name="cancel_no_shows")
def cancel_no_shows():
    """Cancel reservations whose party did not arrive within the grace period"""
    from app.jobs.sweeps import run_no_show_sweep

    canceled = _run_sweep("no_show", run_no_show_sweep)
    return {"canceled": canceled}


@celery_app.task(name="send_reservation_reminders")
def send_reservation_reminders():
    """Send reminders for reservations starting in about two hours"""
    from app.jobs.sweeps import run_reminder_sweep

    reminded = _run_sweep("reminders", run_reminder_sweep)
    return {"reminded": reminded}


@celery_app.task(name="bill_finished_visits")
def bill_finished_visits():
    """Create and send bills for parties seated the full duration"""
    from app.jobs.sweeps import run_billing_sweep

    billed = _run_sweep("billing", run_billing_sweep)
    return {"billed": billed}


@celery_app.task(name="store_monthly_reports")
def store_monthly_reports():
    """Store last month's reports on the first day of the month"""
    from app.jobs.sweeps import run_monthly_report_sweep

    generated = _run_sweep("monthly_reports", run_monthly_report_sweep)
    return {"generated": generated}
