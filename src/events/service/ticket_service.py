import uuid
from datetime import timedelta
from decimal import Decimal

import structlog
from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from accounts.models import DoorlistUser
from events.exceptions import (
    AlreadyBookedError,
    BookingNotAllowedError,
    SoldOutError,
    TicketNotCancellableError,
)
from events.models import Event, Ticket

logger = structlog.get_logger(__name__)


def _reserve_seat(event: Event) -> bool:
    """Take one seat if any is left, in a single conditional UPDATE."""
    reserved = Event.objects.filter(
        pk=event.pk,
        status=Event.EventStatus.PUBLISHED,
        tickets_sold__lt=F("capacity"),
    ).update(tickets_sold=F("tickets_sold") + 1, updated_at=timezone.now())
    return reserved == 1


def _release_seat(event_id: uuid.UUID) -> None:
    """Give one seat back, never going below zero."""
    Event.objects.filter(pk=event_id, tickets_sold__gt=0).update(
        tickets_sold=F("tickets_sold") - 1, updated_at=timezone.now()
    )


def _demo_payment(event: Event) -> tuple[Decimal, str]:
    """Settle the booking without a payment provider."""
    if event.is_free:
        return Decimal("0"), ""
    return event.price or Decimal("0"), f"demo_{uuid.uuid4().hex}"


def book_ticket(event: Event, attendee: DoorlistUser) -> Ticket:
    """Issue a ticket to an attendee for a published event.

    Raises:
        BookingNotAllowedError: the user is not an attendee, or the event is not bookable.
        AlreadyBookedError: the attendee already holds an active ticket for the event.
        SoldOutError: no seat is left.
    """
    if attendee.role != DoorlistUser.Role.ATTENDEE:
        raise BookingNotAllowedError(str(_("Only attendees can book tickets.")))
    if event.status != Event.EventStatus.PUBLISHED or event.has_ended():
        raise BookingNotAllowedError()
    if Ticket.objects.active().filter(event=event, attendee=attendee).exists():
        raise AlreadyBookedError()

    price_paid, payment_reference = _demo_payment(event)
    try:
        with transaction.atomic():
            if not _reserve_seat(event):
                raise SoldOutError()
            ticket = Ticket.objects.create(
                event=event,
                attendee=attendee,
                price_paid=price_paid,
                payment_reference=payment_reference,
            )
    except IntegrityError as exc:
        raise AlreadyBookedError() from exc
    except DjangoValidationError as exc:
        # A concurrent booking committed between the pre-check and the insert.
        if Ticket.objects.active().filter(event=event, attendee=attendee).exists():
            raise AlreadyBookedError() from exc
        raise

    event.refresh_from_db(fields=["tickets_sold", "updated_at"])
    logger.info(
        "ticket_booked",
        ticket_id=str(ticket.pk),
        event_id=str(event.pk),
        attendee_id=str(attendee.pk),
        tickets_sold=event.tickets_sold,
    )
    return ticket


def cancel_ticket(ticket: Ticket, reason: str = "") -> Ticket:
    """Cancel an active, not yet used ticket and release its seat.

    Tickets cannot be cancelled once the cutoff before the event start has passed.
    """
    cutoff = ticket.event.start - timedelta(hours=settings.CANCELLATION_CUTOFF_HOURS)
    if timezone.now() > cutoff:
        raise TicketNotCancellableError(
            str(_("Tickets cannot be cancelled less than {hours} hours before the event.")).format(
                hours=settings.CANCELLATION_CUTOFF_HOURS
            )
        )

    now = timezone.now()
    with transaction.atomic():
        updated = Ticket.objects.filter(
            pk=ticket.pk,
            status=Ticket.TicketStatus.ACTIVE,
            is_checked_in=False,
        ).update(
            status=Ticket.TicketStatus.CANCELLED,
            cancelled_at=now,
            cancellation_reason=(reason or str(_("Cancelled by attendee")))[:255],
            updated_at=now,
        )
        if not updated:
            raise TicketNotCancellableError()
        _release_seat(ticket.event_id)

    ticket.refresh_from_db()
    logger.info("ticket_cancelled", ticket_id=str(ticket.pk), event_id=str(ticket.event_id))
    return ticket
