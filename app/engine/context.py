"""Wiring of the engine components around one database session"""

from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, settings
from app.engine.availability import AvailabilityEngine
from app.engine.billing import BillingService
from app.engine.repository import ReservationRepository
from app.engine.slots import SlotValidator
from app.notifications import NotificationGateway, NotificationType, get_notification_gateway


class EngineContext:
    """
    Holds the repository, clock, configuration and notification gateway for
    one unit of work (a request or a sweep run), and the services built on them.
    """

    def __init__(
        self,
        session: AsyncSession,
        gateway: Optional[NotificationGateway] = None,
        clock: Optional[Callable[[], datetime]] = None,
        config: Optional[Settings] = None,
    ):
        # Imported here: the services import EngineContext for typing
        from app.engine.lifecycle import ReservationService
        from app.engine.management import RestaurantManagementService
        from app.engine.reports import ReportService
        from app.engine.revalidation import RevalidationEngine
        from app.engine.waitlist import WaitlistPromoter

        self.config = config or settings
        self.clock = clock or datetime.now
        self.gateway = gateway or get_notification_gateway()

        self.repo = ReservationRepository(session, self.config)
        self.slots = SlotValidator(self.repo, self.config, self.clock)
        self.availability = AvailabilityEngine(self.repo, self.slots, self.config, self.clock)
        self.billing = BillingService(self.repo, self.config)

        self.reservations = ReservationService(self)
        self.promoter = WaitlistPromoter(self)
        self.revalidation = RevalidationEngine(self)
        self.management = RestaurantManagementService(self)
        self.reports = ReportService(self)

    def now(self) -> datetime:
        return self.clock()

    async def notify(self, event: NotificationType, reservation_id: int, **kwargs) -> None:
        await self.gateway.notify_reservation(self.repo, event, reservation_id, **kwargs)
