"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/models.py.
Events are authored by the content-management screens; ticket registration
only reads them.
"""

import uuid

from django.db import models


class Event(models.Model):
    """Persistence model for events."""

    class PricingType(models.TextChoices):
        FREE = "FREE", "Free"
        PAID = "PAID", "Paid"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=255)
    location = models.CharField(max_length=255, blank=True, default="")
    start_at = models.DateTimeField(null=True, blank=True)
    end_at = models.DateTimeField(null=True, blank=True)
    is_published = models.BooleanField(default=False)
    capacity = models.PositiveIntegerField(null=True, blank=True)
    pricing_type = models.CharField(
        max_length=8, choices=PricingType.choices, default=PricingType.FREE
    )
    ticket_price = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    deleted_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["-created_at"], name="events_even_created_9e5a1b_idx"),
            models.Index(
                fields=["is_published", "deleted_at"],
                name="events_even_is_publ_4c2d7e_idx",
            ),
        ]

    def __str__(self) -> str:
        return self.title


class EventTranslation(models.Model):
    """Localized title of an event."""

    event = models.ForeignKey(
        Event, on_delete=models.CASCADE, related_name="translations"
    )
    locale = models.CharField(max_length=10)
    title = models.CharField(max_length=255)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["event", "locale"], name="uniq_event_translation_locale"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.title} ({self.locale})"
