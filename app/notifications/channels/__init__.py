"""Notification delivery channels"""

from app.notifications.channels.base import BaseNotificationChannel
from app.notifications.channels.log import LogChannel
from app.notifications.channels.sms import TwilioSMSChannel

__all__ = [
    "BaseNotificationChannel",
    "LogChannel",
    "TwilioSMSChannel",
]
