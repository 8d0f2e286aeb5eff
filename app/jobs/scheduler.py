"""In-process scheduler running the sweeps on asyncio tasks"""

import asyncio
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional

import structlog

from app.config import Settings, settings
from app.engine.context import EngineContext
from app.jobs.sweeps import (
    run_billing_sweep,
    run_monthly_report_sweep,
    run_no_show_sweep,
    run_reminder_sweep,
)
from app.notifications import NotificationGateway

logger = structlog.get_logger()

Sweep = Callable[[EngineContext], Awaitable[object]]


class SweepScheduler:
    """
    Runs each sweep on its own fixed interval.

    Every run opens a fresh session from `session_factory`; a failing run is
    logged and the loop carries on at the next interval.
    """

    def __init__(
        self,
        session_factory,
        gateway: Optional[NotificationGateway] = None,
        clock: Optional[Callable[[], datetime]] = None,
        config: Optional[Settings] = None,
    ):
        self.session_factory = session_factory
        self.gateway = gateway
        self.clock = clock
        self.config = config or settings
        self._tasks: List[asyncio.Task] = []

    @property
    def schedule(self) -> Dict[str, tuple]:
        return {
            "no_show": (run_no_show_sweep, self.config.no_show_interval_seconds),
            "reminders": (run_reminder_sweep, self.config.reminder_interval_seconds),
            "billing": (run_billing_sweep, self.config.billing_interval_seconds),
            "monthly_reports": (run_monthly_report_sweep, self.config.report_interval_seconds),
        }

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    async def run_once(self, name: str, sweep: Sweep):
        try:
            async with self.session_factory() as session:
                ctx = EngineContext(session, gateway=self.gateway, clock=self.clock, config=self.config)
                result = await sweep(ctx)
        except Exception as e:
            logger.exception("Sweep failed", sweep=name, error=str(e))
            return None
        logger.debug("Sweep finished", sweep=name, result=result)
        return result

    async def _loop(self, name: str, sweep: Sweep, interval: float) -> None:
        while True:
            await self.run_once(name, sweep)
            await asyncio.sleep(interval)

    def start(self) -> None:
        if self.running:
            return
        self._tasks = [
            asyncio.create_task(self._loop(name, sweep, interval), name=f"sweep-{name}")
            for name, (sweep, interval) in self.schedule.items()
        ]
        logger.info("Sweep scheduler started", sweeps=list(self.schedule))

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        logger.info("Sweep scheduler stopped")
