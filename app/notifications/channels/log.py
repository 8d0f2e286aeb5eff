"""Structured-log channel used when no real delivery is configured"""

import structlog

from app.engine.repository import ContactInfo
from app.notifications.channels.base import BaseNotificationChannel

logger = structlog.get_logger()


class LogChannel(BaseNotificationChannel):
    """Records the message in the application log instead of delivering it"""

    name = "log"

    async def send(self, contact: ContactInfo, message: str) -> bool:
        logger.info(
            "Notification simulated",
            customer_id=contact.customer_id,
            reservation_id=contact.reservation_id,
            email=contact.email,
            phone=contact.phone[-4:] if contact.phone else None,
            message=message,
        )
        return True
