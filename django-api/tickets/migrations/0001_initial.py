import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("events", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Ticket",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("full_name", models.CharField(max_length=255)),
                ("email", models.CharField(max_length=254)),
                ("whatsapp", models.CharField(blank=True, max_length=50, null=True)),
                (
                    "school_or_campus",
                    models.CharField(blank=True, max_length=255, null=True),
                ),
                (
                    "class_or_semester",
                    models.CharField(blank=True, max_length=100, null=True),
                ),
                ("domicile", models.CharField(blank=True, max_length=255, null=True)),
                ("ticket_code", models.CharField(max_length=32, unique=True)),
                ("qr_url", models.URLField(max_length=500)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("PENDING", "Pending"),
                            ("CONFIRMED", "Confirmed"),
                            ("CANCELLED", "Cancelled"),
                        ],
                        max_length=16,
                    ),
                ),
                (
                    "checkin_status",
                    models.CharField(
                        choices=[
                            ("NOT_CHECKED_IN", "Not checked in"),
                            ("CHECKED_IN", "Checked in"),
                        ],
                        default="NOT_CHECKED_IN",
                        max_length=16,
                    ),
                ),
                ("checked_in_at", models.DateTimeField(blank=True, null=True)),
                ("total_price", models.PositiveIntegerField(default=0)),
                (
                    "payment_method",
                    models.CharField(blank=True, max_length=100, null=True),
                ),
                (
                    "payment_reference",
                    models.CharField(blank=True, max_length=255, null=True),
                ),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("expires_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("deleted_at", models.DateTimeField(blank=True, null=True)),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="tickets",
                        to="events.event",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["event", "status"], name="tickets_tic_event_i_5b8c21_idx"
                    ),
                    models.Index(
                        fields=["event", "email"], name="tickets_tic_event_i_a37f02_idx"
                    ),
                    models.Index(
                        fields=["-created_at"], name="tickets_tic_created_0d4e6f_idx"
                    ),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(
                            ("status__in", ["PENDING", "CONFIRMED"]),
                            ("deleted_at__isnull", True),
                        ),
                        fields=("event", "email"),
                        name="uniq_active_ticket_per_event_email",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="TicketCheckinLog",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "admin",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "ticket",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="checkin_logs",
                        to="tickets.ticket",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
    ]
