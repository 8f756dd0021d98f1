import typing as t
from datetime import datetime, timedelta
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone

from common.models import TimeStampedModel

if t.TYPE_CHECKING:
    from accounts.models import DoorlistUser


class EventQuerySet(models.QuerySet["Event"]):
    def with_people(self) -> t.Self:
        """Select the host and prefetch the assigned staff."""
        return self.select_related("host").prefetch_related("assigned_staff")

    def published(self) -> t.Self:
        """Events open for booking and scanning."""
        return self.filter(status=Event.EventStatus.PUBLISHED)

    def hosted_by(self, user: "DoorlistUser") -> t.Self:
        """Events owned by the given host."""
        return self.filter(host=user)

    def staffed_by(self, user: "DoorlistUser") -> t.Self:
        """Events the given user is assigned to as door staff."""
        return self.filter(assigned_staff=user)

    def past_due(self, now: datetime | None = None) -> t.Self:
        """Published events whose end time has passed."""
        return self.published().filter(end__lt=now or timezone.now())


class EventManager(models.Manager["Event"]):
    def get_queryset(self) -> EventQuerySet:
        """Get base queryset for events."""
        return EventQuerySet(self.model, using=self._db)

    def with_people(self) -> EventQuerySet:
        """Select the host and prefetch the assigned staff."""
        return self.get_queryset().with_people()

    def published(self) -> EventQuerySet:
        """Events open for booking and scanning."""
        return self.get_queryset().published()

    def hosted_by(self, user: "DoorlistUser") -> EventQuerySet:
        """Events owned by the given host."""
        return self.get_queryset().hosted_by(user)

    def staffed_by(self, user: "DoorlistUser") -> EventQuerySet:
        """Events the given user is assigned to as door staff."""
        return self.get_queryset().staffed_by(user)

    def past_due(self, now: datetime | None = None) -> EventQuerySet:
        """Published events whose end time has passed."""
        return self.get_queryset().past_due(now)


class Event(TimeStampedModel):
    class EventStatus(models.TextChoices):
        DRAFT = "draft", "Draft"
        PUBLISHED = "published", "Published"
        CANCELLED = "cancelled", "Cancelled"
        COMPLETED = "completed", "Completed"

    title = models.CharField(max_length=255, db_index=True)
    description = models.TextField(blank=True, default="")
    venue = models.CharField(max_length=255, blank=True, default="")
    start = models.DateTimeField(db_index=True)
    end = models.DateTimeField(db_index=True)
    capacity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    tickets_sold = models.PositiveIntegerField(default=0)
    is_free = models.BooleanField(default=False)
    price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    currency = models.CharField(max_length=3, default=settings.DEFAULT_CURRENCY)
    host = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="hosted_events")
    assigned_staff = models.ManyToManyField(settings.AUTH_USER_MODEL, related_name="staffed_events", blank=True)
    status = models.CharField(
        max_length=20, choices=EventStatus.choices, default=EventStatus.DRAFT, db_index=True
    )
    check_in_starts_at = models.DateTimeField(
        null=True, blank=True, help_text="When check-in opens. Defaults to a lead time before the start."
    )
    check_in_ends_at = models.DateTimeField(
        null=True, blank=True, help_text="When check-in closes. Defaults to the end of the event."
    )

    objects = EventManager()

    class Meta:
        ordering = ["start"]
        constraints = [
            models.CheckConstraint(condition=Q(end__gt=models.F("start")), name="event_end_after_start"),
            models.CheckConstraint(
                condition=Q(tickets_sold__lte=models.F("capacity")), name="event_tickets_sold_within_capacity"
            ),
        ]
        indexes = [
            models.Index(fields=["status", "start"], name="ix_event_status_start"),
        ]

    def __str__(self) -> str:
        return self.title

    def clean(self) -> None:
        """Validate schedule, pricing and check-in window."""
        errors: dict[str, str] = {}
        if self.start and self.end and self.end <= self.start:
            errors["end"] = "End time must be after start time."
        if self.is_free:
            self.price = None
        elif self.price is None or self.price <= Decimal("0"):
            errors["price"] = "Paid events need a positive price."
        if self.check_in_starts_at and self.check_in_ends_at and self.check_in_ends_at <= self.check_in_starts_at:
            errors["check_in_ends_at"] = "Check-in end time must be after check-in start time."
        if errors:
            raise DjangoValidationError(errors)

    @property
    def available_tickets(self) -> int:
        """Seats left to book."""
        return max(0, self.capacity - self.tickets_sold)

    @property
    def is_sold_out(self) -> bool:
        """Whether all seats are taken."""
        return self.tickets_sold >= self.capacity

    def has_ended(self, now: datetime | None = None) -> bool:
        """Whether the event end time has passed."""
        return self.end < (now or timezone.now())

    def check_in_window(self) -> tuple[datetime, datetime]:
        """Return the (opens, closes) pair, falling back to the configured lead time and the event end."""
        opens = self.check_in_starts_at or self.start - timedelta(minutes=settings.CHECK_IN_LEAD_TIME_MINUTES)
        closes = self.check_in_ends_at or self.end
        return opens, closes

    def is_check_in_open(self, now: datetime | None = None) -> bool:
        """Check if check-in is currently open for this event."""
        if self.status != self.EventStatus.PUBLISHED:
            return False
        opens, closes = self.check_in_window()
        return opens <= (now or timezone.now()) <= closes
