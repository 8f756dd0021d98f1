"""Decide who may operate the door of an event.

Every role maps to exactly one capability object. The scan endpoint, the scan log and the
check-in statistics all ask the same question through :func:`can_scan`.
"""

import abc

import structlog

from accounts.models import DoorlistUser
from events.exceptions import NotAuthorizedToScanError
from events.models import Event

logger = structlog.get_logger(__name__)


class ScanCapability(abc.ABC):
    @abc.abstractmethod
    def can_scan(self, user: DoorlistUser, event: Event) -> bool:
        """Whether the user may check in tickets for the event."""


class HostCapability(ScanCapability):
    def can_scan(self, user: DoorlistUser, event: Event) -> bool:
        """Hosts may scan their own events only."""
        return event.host_id == user.pk


class StaffCapability(ScanCapability):
    def can_scan(self, user: DoorlistUser, event: Event) -> bool:
        """Staff may scan the events they are assigned to."""
        return event.assigned_staff.filter(pk=user.pk).exists()


class AttendeeCapability(ScanCapability):
    def can_scan(self, user: DoorlistUser, event: Event) -> bool:
        """Attendees never scan."""
        return False


CAPABILITIES: dict[str, ScanCapability] = {
    DoorlistUser.Role.HOST: HostCapability(),
    DoorlistUser.Role.STAFF: StaffCapability(),
    DoorlistUser.Role.ATTENDEE: AttendeeCapability(),
}


def capability_for(user: DoorlistUser) -> ScanCapability:
    """Resolve the capability of the user's role. Unknown roles get no rights."""
    return CAPABILITIES.get(user.role, CAPABILITIES[DoorlistUser.Role.ATTENDEE])


def can_scan(user: DoorlistUser, event: Event) -> bool:
    """Whether the user may scan tickets, read the scan log and the stats of the event."""
    if not user.is_authenticated or not user.is_active:
        return False
    return capability_for(user).can_scan(user, event)


def ensure_can_scan(user: DoorlistUser, event: Event) -> None:
    """Raise NotAuthorizedToScanError unless the user may scan for the event."""
    if not can_scan(user, event):
        logger.info("scan_not_authorized", event_id=str(event.pk), actor_id=str(user.pk), actor_role=user.role)
        raise NotAuthorizedToScanError()
