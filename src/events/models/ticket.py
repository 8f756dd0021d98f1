import secrets
import string
import typing as t
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import models
from django.db.models import Q

from common.models import TimeStampedModel

TICKET_NUMBER_ALPHABET = string.ascii_uppercase + string.digits
TICKET_NUMBER_RANDOM_LENGTH = 10
TICKET_NUMBER_MAX_LENGTH = 32


def generate_ticket_number() -> str:
    """Generate an opaque ticket number, e.g. TCK-7Q2M0ZK4HD."""
    suffix = "".join(secrets.choice(TICKET_NUMBER_ALPHABET) for _ in range(TICKET_NUMBER_RANDOM_LENGTH))
    return f"{settings.TICKET_NUMBER_PREFIX}-{suffix}"


class TicketQuerySet(models.QuerySet["Ticket"]):
    def with_people(self) -> t.Self:
        """Select the attendee and the scanner."""
        return self.select_related("attendee", "checked_in_by")

    def active(self) -> t.Self:
        """Tickets that have not been cancelled."""
        return self.filter(status=Ticket.TicketStatus.ACTIVE)

    def checked_in(self) -> t.Self:
        """Active tickets that were scanned at the door."""
        return self.active().filter(is_checked_in=True)


class TicketManager(models.Manager["Ticket"]):
    def get_queryset(self) -> TicketQuerySet:
        """Get base queryset for tickets."""
        return TicketQuerySet(self.model, using=self._db)

    def with_people(self) -> TicketQuerySet:
        """Select the attendee and the scanner."""
        return self.get_queryset().with_people()

    def active(self) -> TicketQuerySet:
        """Tickets that have not been cancelled."""
        return self.get_queryset().active()


class Ticket(TimeStampedModel):
    """An admission to one event for one attendee.

    Check-in is a one-way switch: ``is_checked_in`` goes from False to True once,
    through ``events.service.check_in_service``, and is never reset.
    """

    class TicketStatus(models.TextChoices):
        ACTIVE = "active", "Active"
        CANCELLED = "cancelled", "Cancelled"

    ticket_number = models.CharField(
        max_length=TICKET_NUMBER_MAX_LENGTH, unique=True, editable=False, default=generate_ticket_number
    )
    event = models.ForeignKey("events.Event", on_delete=models.CASCADE, related_name="tickets")
    attendee = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="tickets")
    status = models.CharField(
        max_length=20, choices=TicketStatus.choices, default=TicketStatus.ACTIVE, db_index=True
    )
    price_paid = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))
    payment_reference = models.CharField(max_length=64, blank=True, default="")
    is_checked_in = models.BooleanField(default=False, db_index=True)
    checked_in_at = models.DateTimeField(null=True, blank=True)
    checked_in_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="checked_in_tickets",
    )
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.CharField(max_length=255, blank=True, default="")

    objects = TicketManager()

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["event", "attendee"],
                condition=Q(status="active"),
                name="unique_active_ticket_per_attendee",
            ),
            models.CheckConstraint(
                condition=Q(is_checked_in=False) | Q(checked_in_at__isnull=False),
                name="ticket_checked_in_has_timestamp",
            ),
        ]
        indexes = [
            models.Index(fields=["event", "status", "is_checked_in"], name="ix_ticket_event_checkin"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return self.ticket_number

    def clean(self) -> None:
        """Ticket numbers never change once issued."""
        if self._state.adding:
            return
        stored = Ticket.objects.filter(pk=self.pk).values_list("ticket_number", flat=True).first()
        if stored is not None and stored != self.ticket_number:
            raise DjangoValidationError({"ticket_number": "Ticket numbers cannot be changed."})

    @property
    def check_in_state(self) -> str:
        """The state-machine view of the ticket: issued, checked_in or cancelled."""
        if self.status == self.TicketStatus.CANCELLED:
            return "cancelled"
        return "checked_in" if self.is_checked_in else "issued"
