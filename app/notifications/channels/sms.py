"""Twilio SMS channel"""

import asyncio
from typing import Optional

from twilio.rest import Client as TwilioClient
import structlog

from app.config import settings
from app.engine.repository import ContactInfo
from app.notifications.channels.base import BaseNotificationChannel

logger = structlog.get_logger()


class TwilioSMSChannel(BaseNotificationChannel):
    """Sends notifications as SMS through Twilio"""

    name = "sms"

    def __init__(
        self,
        account_sid: Optional[str] = None,
        auth_token: Optional[str] = None,
        from_number: Optional[str] = None,
    ):
        self.account_sid = account_sid or settings.twilio_account_sid
        self.auth_token = auth_token or settings.twilio_auth_token
        self.from_number = from_number or settings.twilio_phone_number
        self._client = None

    @property
    def client(self) -> TwilioClient:
        if self._client is None:
            self._client = TwilioClient(self.account_sid, self.auth_token)
        return self._client

    def can_deliver(self, contact: ContactInfo) -> bool:
        return bool(contact.phone)

    async def send(self, contact: ContactInfo, message: str) -> bool:
        # The Twilio REST client is blocking
        sent = await asyncio.to_thread(
            self.client.messages.create,
            body=message,
            from_=self.from_number,
            to=contact.phone,
        )
        logger.info(
            "SMS sent",
            customer_id=contact.customer_id,
            to=contact.phone[-4:],  # Log last 4 digits only
            message_sid=sent.sid,
        )
        return True
