"""Customer notifications"""

from app.notifications.gateway import (
    NotificationGateway,
    NotificationResult,
    get_notification_gateway,
)
from app.notifications.messages import NotificationType, build_message

__all__ = [
    "NotificationGateway",
    "NotificationResult",
    "NotificationType",
    "build_message",
    "get_notification_gateway",
]
