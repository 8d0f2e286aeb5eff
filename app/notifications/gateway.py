"""Notification gateway: one call per customer-facing lifecycle event"""

from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from typing import List, Optional

import structlog

from app.config import settings
from app.engine.repository import ContactInfo, ReservationRepository
from app.models import Bill
from app.notifications.channels import BaseNotificationChannel, LogChannel, TwilioSMSChannel
from app.notifications.messages import NotificationType, build_message

logger = structlog.get_logger()


@dataclass
class NotificationResult:
    sent: bool
    channel: Optional[str] = None
    detail: str = ""


class NotificationGateway:
    """
    Routes each event to the first channel that can reach the customer.
    Falls through to the next channel when one fails.
    """

    def __init__(self, channels: List[BaseNotificationChannel]):
        self.channels = channels

    async def send(
        self,
        event: NotificationType,
        contact: ContactInfo,
        bill: Optional[Bill] = None,
    ) -> NotificationResult:
        if not (contact.phone or contact.email):
            logger.warning(
                "Notification not sent: no contact info",
                notification=event.value,
                customer_id=contact.customer_id,
            )
            return NotificationResult(sent=False, detail="No contact info.")

        message = build_message(
            event,
            contact,
            amount_before=bill.amount_before_discount if bill else None,
            final_amount=bill.final_amount if bill else None,
        )

        for channel in self.channels:
            if not channel.can_deliver(contact):
                continue
            try:
                await channel.send(contact, message)
                return NotificationResult(sent=True, channel=channel.name, detail=message)
            except Exception as e:
                logger.warning(
                    "Notification channel failed, attempting fallback",
                    channel=channel.name,
                    notification=event.value,
                    customer_id=contact.customer_id,
                    error=str(e),
                )

        logger.error(
            "Notification not delivered",
            notification=event.value,
            customer_id=contact.customer_id,
        )
        return NotificationResult(sent=False, detail="No channel delivered the message.")

    async def notify_reservation(
        self,
        repo: ReservationRepository,
        event: NotificationType,
        reservation_id: int,
        scheduled_for: Optional[datetime] = None,
        bill: Optional[Bill] = None,
    ) -> NotificationResult:
        """
        Resolve the reservation's contact and send. Never raises: a failed
        notification must not fail the operation that triggered it.
        """
        try:
            contact = await repo.contact_for_reservation(reservation_id)
            if contact is None:
                logger.warning(
                    "Notification not sent: reservation not found",
                    notification=event.value,
                    reservation_id=reservation_id,
                )
                return NotificationResult(sent=False, detail="Reservation not found.")
            if scheduled_for is not None:
                contact.start_time = scheduled_for
            return await self.send(event, contact, bill=bill)
        except Exception as e:
            logger.error(
                "Failed to send notification",
                notification=event.value,
                reservation_id=reservation_id,
                error=str(e),
            )
            return NotificationResult(sent=False, detail=str(e))


@lru_cache()
def get_notification_gateway() -> NotificationGateway:
    """Gateway built from settings: Twilio SMS when configured, log channel otherwise"""
    channels: List[BaseNotificationChannel] = []
    if settings.twilio_configured:
        channels.append(TwilioSMSChannel())
    channels.append(LogChannel())
    return NotificationGateway(channels)
