import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

import events.models.ticket


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("accounts", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Event",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True, db_index=True)),
                ("title", models.CharField(db_index=True, max_length=255)),
                ("description", models.TextField(blank=True, default="")),
                ("venue", models.CharField(blank=True, default="", max_length=255)),
                ("start", models.DateTimeField(db_index=True)),
                ("end", models.DateTimeField(db_index=True)),
                ("capacity", models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ("tickets_sold", models.PositiveIntegerField(default=0)),
                ("is_free", models.BooleanField(default=False)),
                ("price", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ("currency", models.CharField(default="INR", max_length=3)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("published", "Published"),
                            ("cancelled", "Cancelled"),
                            ("completed", "Completed"),
                        ],
                        db_index=True,
                        default="draft",
                        max_length=20,
                    ),
                ),
                (
                    "check_in_starts_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When check-in opens. Defaults to a lead time before the start.",
                        null=True,
                    ),
                ),
                (
                    "check_in_ends_at",
                    models.DateTimeField(
                        blank=True, help_text="When check-in closes. Defaults to the end of the event.", null=True
                    ),
                ),
                (
                    "host",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="hosted_events",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "assigned_staff",
                    models.ManyToManyField(blank=True, related_name="staffed_events", to=settings.AUTH_USER_MODEL),
                ),
            ],
            options={
                "ordering": ["start"],
                "indexes": [models.Index(fields=["status", "start"], name="ix_event_status_start")],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("end__gt", models.F("start"))), name="event_end_after_start"),
                    models.CheckConstraint(
                        condition=models.Q(("tickets_sold__lte", models.F("capacity"))),
                        name="event_tickets_sold_within_capacity",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Ticket",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True, db_index=True)),
                (
                    "ticket_number",
                    models.CharField(
                        default=events.models.ticket.generate_ticket_number, editable=False, max_length=32, unique=True
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[("active", "Active"), ("cancelled", "Cancelled")],
                        db_index=True,
                        default="active",
                        max_length=20,
                    ),
                ),
                ("price_paid", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=10)),
                ("payment_reference", models.CharField(blank=True, default="", max_length=64)),
                ("is_checked_in", models.BooleanField(db_index=True, default=False)),
                ("checked_in_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("cancellation_reason", models.CharField(blank=True, default="", max_length=255)),
                (
                    "attendee",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="tickets",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "checked_in_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="checked_in_tickets",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="tickets", to="events.event"
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["event", "status", "is_checked_in"], name="ix_ticket_event_checkin"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status", "active")),
                        fields=("event", "attendee"),
                        name="unique_active_ticket_per_attendee",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("is_checked_in", False), ("checked_in_at__isnull", False), _connector="OR"),
                        name="ticket_checked_in_has_timestamp",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ScanAttempt",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True, db_index=True)),
                ("actor_role", models.CharField(max_length=20)),
                ("ticket_number", models.CharField(blank=True, max_length=128)),
                (
                    "outcome",
                    models.CharField(
                        choices=[
                            ("accepted", "Accepted"),
                            ("rejected_already_used", "Rejected: already used"),
                            ("rejected_wrong_event", "Rejected: wrong event"),
                            ("rejected_not_found", "Rejected: not found"),
                            ("rejected_cancelled", "Rejected: cancelled"),
                            ("rejected_unauthorized", "Rejected: unauthorized"),
                            ("rejected_check_in_closed", "Rejected: check-in closed"),
                        ],
                        db_index=True,
                        max_length=32,
                    ),
                ),
                ("message", models.CharField(blank=True, max_length=255)),
                (
                    "actor",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="scan_attempts",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "event",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="scan_attempts",
                        to="events.event",
                    ),
                ),
                (
                    "ticket",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="scan_attempts",
                        to="events.ticket",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["event", "outcome"], name="ix_scan_event_outcome"),
                    models.Index(fields=["actor", "created_at"], name="ix_scan_actor_created"),
                ],
            },
        ),
    ]
