"""Table availability: bin-packing feasibility and alternative times"""

from bisect import bisect_left
from datetime import datetime, timedelta
from typing import Callable, Iterable, List, Optional

import structlog

from app.config import Settings
from app.engine.repository import ReservationRepository
from app.engine.slots import SlotValidator

logger = structlog.get_logger()


def feasible(capacities: Iterable[int], demands: Iterable[int]) -> bool:
    """
    First-fit-decreasing assignment of party sizes to table capacities.

    Largest party first, each takes the smallest free table that seats it.
    Greedy, so some demand sets an exact matching could seat are rejected.
    """
    pool = sorted(capacities)
    for demand in sorted(demands, reverse=True):
        index = bisect_left(pool, demand)
        if index == len(pool):
            return False
        pool.pop(index)
    return True


class AvailabilityEngine:
    """Answers whether a party fits at a time given current commitments"""

    def __init__(
        self,
        repo: ReservationRepository,
        slots: SlotValidator,
        config: Settings,
        clock: Callable[[], datetime],
    ):
        self.repo = repo
        self.slots = slots
        self.config = config
        self.clock = clock

    async def free_capacities(self, start: datetime) -> List[int]:
        """Capacities of tables not pinned by a reservation overlapping the window"""
        capacities = await self.repo.table_capacities()
        pinned = await self.repo.pinned_table_ids(start)
        return [
            capacity
            for table_id, capacity in capacities.items()
            if table_id not in pinned
        ]

    async def is_feasible(
        self,
        start: datetime,
        party_size: int,
        exclude_reservation_id: Optional[int] = None,
    ) -> bool:
        capacities = await self.free_capacities(start)
        demands = await self.repo.overlapping_active_party_sizes(
            start,
            exclude_reservation_id=exclude_reservation_id,
        )
        demands.append(party_size)
        return feasible(capacities, demands)

    async def is_feasible_now(self, party_size: int) -> bool:
        return await self.is_feasible(self.clock(), party_size)

    async def find_table(self, start: datetime, party_size: int) -> Optional[int]:
        return await self.repo.find_available_table(start, party_size)

    async def suggest_alternatives(self, start: datetime, party_size: int) -> List[datetime]:
        """
        Probe start +/- 30 minutes * i for i = 1..12, later side first, and
        return up to three slot-valid, feasible times in ascending order.
        """
        step = timedelta(minutes=self.config.slot_interval_minutes)
        suggestions: List[datetime] = []

        for i in range(1, self.config.suggestion_steps + 1):
            for candidate in (start + step * i, start - step * i):
                if candidate in suggestions:
                    continue
                if not await self.slots.is_candidate(candidate):
                    continue
                if not await self.is_feasible(candidate, party_size):
                    continue
                suggestions.append(candidate)
                if len(suggestions) >= self.config.max_suggestions:
                    return sorted(suggestions)

        logger.debug(
            "Suggestion search exhausted",
            start=start.isoformat(),
            party_size=party_size,
            found=len(suggestions),
        )
        return sorted(suggestions)
