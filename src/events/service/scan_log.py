import typing as t
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

import structlog
from django.db.models import Count, Q
from django.utils import timezone

from accounts.models import DoorlistUser
from events.models import Event, ScanAttempt, Ticket
from events.models.scan import PRESENTED_NUMBER_MAX_LENGTH

logger = structlog.get_logger(__name__)

UPCOMING_DAYS = 7
RECENT_SCANS = 10


def record_scan_attempt(
    *,
    actor: DoorlistUser,
    event: Event | None,
    ticket_number: str,
    outcome: str,
    message: str = "",
    ticket: Ticket | None = None,
) -> ScanAttempt:
    """Append one entry to the scan log.

    The presented number is stored as received, cut to the column length. A ticket is only
    linked when it belongs to the scanned event.
    """
    if ticket is not None and (event is None or ticket.event_id != event.pk):
        ticket = None
    attempt = ScanAttempt.objects.create(
        actor=actor,
        actor_role=actor.role,
        event=event,
        ticket=ticket,
        ticket_number=(ticket_number or "")[:PRESENTED_NUMBER_MAX_LENGTH],
        outcome=outcome,
        message=message[:255],
    )
    logger.debug("scan_attempt_recorded", scan_attempt_id=str(attempt.pk), outcome=outcome)
    return attempt


def check_in_stats(event: Event) -> dict[str, t.Any]:
    """Aggregate the door figures of an event.

    Returns the active ticket count, how many of them are checked in and pending,
    the check-in percentage and the number of scan attempts per outcome.
    """
    tickets = Ticket.objects.filter(event=event).aggregate(
        total=Count("pk", filter=Q(status=Ticket.TicketStatus.ACTIVE)),
        checked_in=Count("pk", filter=Q(status=Ticket.TicketStatus.ACTIVE, is_checked_in=True)),
    )
    total = tickets["total"]
    checked_in = tickets["checked_in"]
    percentage = Decimal("0.00")
    if total:
        percentage = (Decimal(checked_in) * 100 / Decimal(total)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    attempts = {outcome: 0 for outcome in ScanAttempt.Outcome.values}
    for row in ScanAttempt.objects.for_event(event.pk).order_by().values("outcome").annotate(count=Count("pk")):
        attempts[row["outcome"]] = row["count"]

    return {
        "event_id": event.pk,
        "total_tickets": total,
        "checked_in": checked_in,
        "pending": total - checked_in,
        "check_in_percentage": percentage,
        "attempts": attempts,
    }


def staff_dashboard(staff: DoorlistUser, now: datetime | None = None) -> dict[str, t.Any]:
    """Summarise the door work of a staff member.

    Event counts only include assigned events that are not cancelled. Scan counts include
    rejected attempts. Check-ins only count accepted ones.
    """
    now = now or timezone.now()
    today = timezone.localdate(now)
    events = Event.objects.staffed_by(staff).exclude(status=Event.EventStatus.CANCELLED)
    event_counts = events.aggregate(
        assigned=Count("pk"),
        today=Count("pk", filter=Q(start__date=today)),
        upcoming=Count("pk", filter=Q(start__gte=now, start__lte=now + timedelta(days=UPCOMING_DAYS))),
    )
    scans = ScanAttempt.objects.by_actor(staff.pk)
    accepted = Q(outcome=ScanAttempt.Outcome.ACCEPTED)
    scan_counts = scans.order_by().aggregate(
        total=Count("pk"),
        accepted=Count("pk", filter=accepted),
        today=Count("pk", filter=Q(created_at__date=today)),
        check_ins_today=Count("pk", filter=accepted & Q(created_at__date=today)),
    )
    return {
        "assigned_events": event_counts["assigned"],
        "todays_events": event_counts["today"],
        "upcoming_events": event_counts["upcoming"],
        "total_scans": scan_counts["total"],
        "accepted_scans": scan_counts["accepted"],
        "scans_today": scan_counts["today"],
        "check_ins_today": scan_counts["check_ins_today"],
        "recent_scans": list(scans.with_related()[:RECENT_SCANS]),
    }
