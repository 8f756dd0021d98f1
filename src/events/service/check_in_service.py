"""Ticket lookup and the issued -> checked-in transition.

A scan goes through the role gate, the check-in window, the lookup and finally a single
conditional UPDATE. Every attempt, accepted or not, ends up in the scan log.
"""

from uuid import UUID

import structlog
from django.db import transaction
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from accounts.models import DoorlistUser
from events.exceptions import (
    AlreadyCheckedInError,
    CheckInClosedError,
    ScanRejectedError,
    TicketCancelledError,
    TicketNotFoundError,
    WrongEventError,
)
from events.models import Event, ScanAttempt, Ticket
from events.models.ticket import TICKET_NUMBER_MAX_LENGTH
from events.service import role_gate
from events.service.scan_log import record_scan_attempt

logger = structlog.get_logger(__name__)


def normalize_ticket_number(raw: str | None) -> str:
    """Strip the presented value and reject anything that cannot be a ticket number."""
    number = (raw or "").strip()
    if not number or len(number) > TICKET_NUMBER_MAX_LENGTH:
        raise TicketNotFoundError()
    return number


def lookup_ticket(event: Event, raw_ticket_number: str | None) -> Ticket:
    """Resolve a presented ticket number within the event.

    Raises:
        TicketNotFoundError: no ticket carries this number.
        WrongEventError: the ticket exists but belongs to another event. Nothing about
            that ticket is attached to the error.
    """
    number = normalize_ticket_number(raw_ticket_number)
    ticket = Ticket.objects.with_people().filter(ticket_number=number).first()
    if ticket is None:
        raise TicketNotFoundError()
    if ticket.event_id != event.pk:
        raise WrongEventError()
    return ticket


def _apply_check_in(ticket: Ticket, actor: DoorlistUser) -> bool:
    """Flip the ticket to checked in if and only if it is still active and unscanned."""
    now = timezone.now()
    updated = Ticket.objects.filter(
        pk=ticket.pk,
        status=Ticket.TicketStatus.ACTIVE,
        is_checked_in=False,
    ).update(is_checked_in=True, checked_in_at=now, checked_in_by=actor, updated_at=now)
    return updated == 1


def check_in(ticket: Ticket, actor: DoorlistUser) -> Ticket:
    """Move a ticket from issued to checked in.

    The state read on ``ticket`` may be stale. The conditional update is the source of
    truth, and when it matches no row the ticket is re-read to report why.
    """
    if ticket.status == Ticket.TicketStatus.CANCELLED:
        raise TicketCancelledError(ticket=ticket)
    if ticket.is_checked_in:
        raise AlreadyCheckedInError(ticket=ticket)

    if not _apply_check_in(ticket, actor):
        ticket.refresh_from_db()
        if ticket.status == Ticket.TicketStatus.CANCELLED:
            raise TicketCancelledError(ticket=ticket)
        raise AlreadyCheckedInError(ticket=ticket)

    ticket.refresh_from_db()
    return ticket


def scan_ticket(event_id: UUID, ticket_number: str | None, actor: DoorlistUser) -> Ticket:
    """Handle one scan at the door of an event.

    Returns the checked-in ticket. Any rejection is logged to the scan log and re-raised
    as a ScanRejectedError subclass.
    """
    presented = ticket_number or ""
    event = Event.objects.filter(pk=event_id).first()
    structlog.contextvars.bind_contextvars(scan_event_id=str(event_id))
    try:
        if event is None:
            raise TicketNotFoundError(str(_("Event not found.")))
        with transaction.atomic():
            role_gate.ensure_can_scan(actor, event)
            if not event.is_check_in_open():
                raise CheckInClosedError()
            ticket = lookup_ticket(event, presented)
            ticket = check_in(ticket, actor)
            record_scan_attempt(
                actor=actor,
                event=event,
                ticket=ticket,
                ticket_number=presented,
                outcome=ScanAttempt.Outcome.ACCEPTED,
                message=str(_("Checked in.")),
            )
    except ScanRejectedError as exc:
        record_scan_attempt(
            actor=actor,
            event=event,
            ticket=exc.ticket,
            ticket_number=presented,
            outcome=exc.outcome,
            message=exc.message,
        )
        logger.info("scan_rejected", code=exc.code, actor_id=str(actor.pk))
        raise

    logger.info("ticket_checked_in", ticket_id=str(ticket.pk), actor_id=str(actor.pk))
    return ticket
