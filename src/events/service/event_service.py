from datetime import datetime

import structlog
from django.db import transaction
from django.utils import timezone
from django.utils.translation import gettext_lazy as _
from pydantic import BaseModel

from accounts.models import DoorlistUser
from events.exceptions import EventStateError, InvalidStaffError
from events.models import Event
from events.service import update_db_instance

logger = structlog.get_logger(__name__)

EDITABLE_STATUSES = (Event.EventStatus.DRAFT, Event.EventStatus.PUBLISHED)


def create_event(host: DoorlistUser, payload: BaseModel) -> Event:
    """Create a draft event owned by the host."""
    event = Event.objects.create(host=host, **payload.model_dump())
    logger.info("event_created", event_id=str(event.pk), host_id=str(host.pk))
    return event


def update_event(event: Event, payload: BaseModel) -> Event:
    """Apply a partial update to a draft or published event."""
    if event.status not in EDITABLE_STATUSES:
        raise EventStateError(f"A {event.status} event cannot be edited.")
    return update_db_instance(event, payload)


def publish_event(event: Event) -> Event:
    """Open a draft event for booking and scanning."""
    if event.status != Event.EventStatus.DRAFT:
        raise EventStateError(str(_("Only draft events can be published.")))
    event = update_db_instance(event, status=Event.EventStatus.PUBLISHED)
    logger.info("event_published", event_id=str(event.pk))
    return event


def cancel_event(event: Event) -> Event:
    """Cancel a draft or published event. Its tickets can no longer be scanned."""
    if event.status not in EDITABLE_STATUSES:
        raise EventStateError(f"A {event.status} event cannot be cancelled.")
    event = update_db_instance(event, status=Event.EventStatus.CANCELLED)
    logger.info("event_cancelled", event_id=str(event.pk))
    return event


def delete_event(event: Event) -> None:
    """Delete an event that never had a ticket or a scan. Anything else has to be cancelled."""
    if event.tickets.exists() or event.scan_attempts.exists():
        raise EventStateError(str(_("Events with tickets cannot be deleted. Cancel the event instead.")))
    event_id = str(event.pk)
    event.delete()
    logger.info("event_deleted", event_id=event_id)


def assign_staff(event: Event, user: DoorlistUser) -> Event:
    """Add a staff user to the door team of the event."""
    if user.role != DoorlistUser.Role.STAFF or not user.is_active:
        raise InvalidStaffError(str(_("Only active users with the staff role can be assigned.")))
    event.assigned_staff.add(user)
    logger.info("staff_assigned", event_id=str(event.pk), staff_id=str(user.pk))
    return event


def unassign_staff(event: Event, user: DoorlistUser) -> Event:
    """Remove a user from the door team of the event. Past scans stay in the log."""
    event.assigned_staff.remove(user)
    logger.info("staff_unassigned", event_id=str(event.pk), staff_id=str(user.pk))
    return event


@transaction.atomic
def complete_past_events(now: datetime | None = None) -> int:
    """Mark every published event whose end has passed as completed."""
    now = now or timezone.now()
    count = Event.objects.past_due(now).update(status=Event.EventStatus.COMPLETED, updated_at=now)
    if count:
        logger.info("events_completed", count=count)
    return count
