"""Customer-facing message templates"""

import enum
from datetime import datetime
from decimal import Decimal
from typing import Optional

from app.config import settings
from app.engine.repository import ContactInfo


class NotificationType(str, enum.Enum):
    RESERVATION_CONFIRMATION = "reservation_confirmation"
    RESEND_CONFIRMATION = "resend_confirmation"
    RESERVATION_REMINDER = "reservation_reminder"
    TABLE_AVAILABLE = "table_available"
    TABLE_RECEIVED = "table_received"
    BILL_SENT = "bill_sent"
    PAYMENT_SUCCESS = "payment_success"
    RESERVATION_CANCELED = "reservation_canceled"
    CANCELED_NO_SHOW = "canceled_no_show"
    CANCELED_HOURS_CHANGE = "canceled_hours_change"
    CANCELED_DATE_OVERRIDE = "canceled_date_override"
    MOVED_TO_WAITING = "moved_to_waiting"


def _when(value: Optional[datetime]) -> str:
    return value.strftime("%d/%m/%Y %H:%M") if value else "N/A"


def build_message(
    event: NotificationType,
    contact: ContactInfo,
    amount_before: Optional[Decimal] = None,
    final_amount: Optional[Decimal] = None,
) -> str:
    """Render the message body for one event"""
    name = (contact.full_name or "").strip() or "Customer"
    when = _when(contact.start_time)
    guests = contact.party_size
    code = contact.confirmation_code

    if event == NotificationType.RESERVATION_CONFIRMATION:
        body = (
            "Your reservation has been successfully created. "
            f"{when}, {guests} guests. Confirmation code: {code}. Please keep this code safe."
        )
    elif event == NotificationType.RESEND_CONFIRMATION:
        body = f"Your reservation on {when} for {guests} guests. Confirmation code: {code}."
    elif event == NotificationType.RESERVATION_REMINDER:
        body = f"Reminder: your reservation is in 2 hours, {when} for {guests} guests. See you soon!"
    elif event == NotificationType.TABLE_AVAILABLE:
        body = (
            "A table is now available for you. Please arrive as soon as possible "
            f"and present your confirmation code: {code}."
        )
    elif event == NotificationType.TABLE_RECEIVED:
        body = "Your table has been received. Enjoy your meal!"
    elif event == NotificationType.BILL_SENT:
        body = (
            f"Your bill is ready. Amount before discount: {amount_before:.2f}. "
            f"Final amount to pay: {final_amount:.2f}. Pay with your confirmation code {code}."
        )
    elif event == NotificationType.PAYMENT_SUCCESS:
        body = "Your payment has been completed. Thank you for visiting us!"
    elif event == NotificationType.RESERVATION_CANCELED:
        body = "Your reservation has been canceled. You are welcome to book again at any time."
    elif event == NotificationType.CANCELED_NO_SHOW:
        body = (
            "Your reservation was canceled automatically because you did not arrive "
            "within the grace period."
        )
    elif event == NotificationType.CANCELED_HOURS_CHANGE:
        body = (
            "Due to a change in our opening hours your reservation has been canceled. "
            "Please book again within the updated hours."
        )
    elif event == NotificationType.CANCELED_DATE_OVERRIDE:
        body = (
            f"Due to a special schedule change on {when} your reservation has been canceled. "
            "We hope to see you on another date."
        )
    elif event == NotificationType.MOVED_TO_WAITING:
        body = (
            "Due to a change in seating capacity your reservation "
            f"({when}, {guests} guests, code {code}) has moved to the waiting list. "
            "We will notify you as soon as a table is available."
        )
    else:
        raise ValueError(f"Unknown notification type: {event}")

    return f"Hello {name}, {body} - {settings.restaurant_name}"
