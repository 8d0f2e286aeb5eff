"""Celery application configuration"""

from celery import Celery
from app.config import settings

# Create Celery app
celery_app = Celery(
    "bistro_reservations",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "app.jobs.tasks",
    ],
)

# Configure Celery
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=300,  # 5 minutes
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,

    # Beat schedule for the reservation sweeps
    beat_schedule={
        "cancel-no-shows": {
            "task": "cancel_no_shows",
            "schedule": settings.no_show_interval_seconds,
        },
        "send-reservation-reminders": {
            "task": "send_reservation_reminders",
            "schedule": settings.reminder_interval_seconds,
        },
        "bill-finished-visits": {
            "task": "bill_finished_visits",
            "schedule": settings.billing_interval_seconds,
        },
        "store-monthly-reports": {
            "task": "store_monthly_reports",
            "schedule": settings.report_interval_seconds,
        },
    },
)
