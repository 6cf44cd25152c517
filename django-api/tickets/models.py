"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/.
"""

import uuid

from django.conf import settings
from django.db import models
from django.db.models import Q


class Ticket(models.Model):
    """Persistence model for event registrations."""

    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        CONFIRMED = "CONFIRMED", "Confirmed"
        CANCELLED = "CANCELLED", "Cancelled"

    class CheckinStatus(models.TextChoices):
        NOT_CHECKED_IN = "NOT_CHECKED_IN", "Not checked in"
        CHECKED_IN = "CHECKED_IN", "Checked in"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey(
        "events.Event", on_delete=models.PROTECT, related_name="tickets"
    )
    full_name = models.CharField(max_length=255)
    email = models.CharField(max_length=254)
    whatsapp = models.CharField(max_length=50, null=True, blank=True)
    school_or_campus = models.CharField(max_length=255, null=True, blank=True)
    class_or_semester = models.CharField(max_length=100, null=True, blank=True)
    domicile = models.CharField(max_length=255, null=True, blank=True)
    ticket_code = models.CharField(max_length=32, unique=True)
    qr_url = models.URLField(max_length=500)
    status = models.CharField(max_length=16, choices=Status.choices)
    checkin_status = models.CharField(
        max_length=16,
        choices=CheckinStatus.choices,
        default=CheckinStatus.NOT_CHECKED_IN,
    )
    checked_in_at = models.DateTimeField(null=True, blank=True)
    total_price = models.PositiveIntegerField(default=0)
    payment_method = models.CharField(max_length=100, null=True, blank=True)
    payment_reference = models.CharField(max_length=255, null=True, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    expires_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    deleted_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["event", "status"], name="tickets_tic_event_i_5b8c21_idx"),
            models.Index(fields=["event", "email"], name="tickets_tic_event_i_a37f02_idx"),
            models.Index(fields=["-created_at"], name="tickets_tic_created_0d4e6f_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["event", "email"],
                condition=Q(status__in=["PENDING", "CONFIRMED"], deleted_at__isnull=True),
                name="uniq_active_ticket_per_event_email",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.ticket_code} - {self.full_name}"


class TicketCheckinLog(models.Model):
    """Audit row written when a ticket is scanned in at the door."""

    ticket = models.ForeignKey(
        Ticket, on_delete=models.CASCADE, related_name="checkin_logs"
    )
    admin = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.ticket_id} @ {self.created_at}"
