import typing as t

from django.utils.functional import Promise
from django.utils.translation import gettext_lazy as _

if t.TYPE_CHECKING:
    from events.models import Ticket


class ScanRejectedError(Exception):
    """Base class for every reason a scan does not check a ticket in.

    Each subclass carries the machine code returned to the scanner, the HTTP status
    and the outcome recorded in the scan log.
    """

    code: t.ClassVar[str] = "SCAN_REJECTED"
    status_code: t.ClassVar[int] = 400
    outcome: t.ClassVar[str] = ""
    default_message: t.ClassVar[str | Promise] = _("The ticket could not be checked in.")

    def __init__(self, message: str | None = None, ticket: "Ticket | None" = None) -> None:
        self.message = str(message or self.default_message)
        self.ticket = ticket
        super().__init__(self.message)


class TicketNotFoundError(ScanRejectedError):
    code = "NOT_FOUND"
    status_code = 404
    outcome = "rejected_not_found"
    default_message = _("Ticket not found.")


class WrongEventError(ScanRejectedError):
    code = "WRONG_EVENT"
    status_code = 409
    outcome = "rejected_wrong_event"
    default_message = _("This ticket is not valid for this event.")


class AlreadyCheckedInError(ScanRejectedError):
    code = "ALREADY_CHECKED_IN"
    status_code = 409
    outcome = "rejected_already_used"
    default_message = _("This ticket has already been checked in.")


class TicketCancelledError(ScanRejectedError):
    code = "CANCELLED"
    status_code = 410
    outcome = "rejected_cancelled"
    default_message = _("This ticket has been cancelled.")


class NotAuthorizedToScanError(ScanRejectedError):
    code = "UNAUTHORIZED"
    status_code = 403
    outcome = "rejected_unauthorized"
    default_message = _("You are not allowed to check in attendees for this event.")


class CheckInClosedError(ScanRejectedError):
    code = "CHECK_IN_CLOSED"
    status_code = 400
    outcome = "rejected_check_in_closed"
    default_message = _("Check-in is not currently open for this event.")


class BookingError(Exception):
    """Base class for booking failures."""

    default_message: t.ClassVar[str | Promise] = _("The ticket could not be booked.")

    def __init__(self, message: str | None = None) -> None:
        self.message = str(message or self.default_message)
        super().__init__(self.message)


class SoldOutError(BookingError):
    default_message = _("This event is sold out.")


class AlreadyBookedError(BookingError):
    default_message = _("You already have a ticket for this event.")


class BookingNotAllowedError(BookingError):
    default_message = _("This event is not open for booking.")


class TicketNotCancellableError(BookingError):
    default_message = _("This ticket can no longer be cancelled.")


class EventStateError(Exception):
    """Raised when an event lifecycle transition is not allowed from its current status."""


class InvalidStaffError(Exception):
    """Raised when a user without the staff role is assigned to an event."""
