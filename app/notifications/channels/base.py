"""Base notification channel interface"""

from abc import ABC, abstractmethod

from app.engine.repository import ContactInfo


class BaseNotificationChannel(ABC):
    """Abstract base class for delivery channels"""

    name = "base"

    @abstractmethod
    async def send(self, contact: ContactInfo, message: str) -> bool:
        """Deliver a message; return True when the channel accepted it"""
        pass

    def can_deliver(self, contact: ContactInfo) -> bool:
        """Whether this channel has an address for the contact (override in subclass)"""
        return bool(contact.phone or contact.email)
