"""Celery application for ticket email delivery and hold expiry."""

import os

from celery import Celery
from celery.schedules import crontab

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.development")

app = Celery("tickets")

# Settings prefixed with CELERY_ configure the app.
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()

app.conf.beat_schedule = {
    "cancel-expired-tickets": {
        "task": "tickets.tasks.cancel_expired_tickets",
        "schedule": crontab(minute="*/5"),
        "options": {"queue": "maintenance"},
    },
}

app.conf.task_routes = {
    "tickets.tasks.send_ticket_email": {"queue": "emails"},
    "tickets.tasks.cancel_expired_tickets": {"queue": "maintenance"},
}
