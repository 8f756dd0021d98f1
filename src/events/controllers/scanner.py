import typing as t
from uuid import UUID

from django.db.models import QuerySet
from django.utils.translation import gettext_lazy as _
from ninja_extra import api_controller, route
from ninja_extra.pagination import PageNumberPaginationExtra, PaginatedResponseSchema, paginate
from ninja_jwt.authentication import JWTAuth

from common.controllers import UserAwareController
from common.throttling import ScanThrottle
from events import models, schema
from events.controllers.permissions import CanScanEventPermission
from events.service import check_in_service, scan_log


@api_controller(
    "/scanner/events/{event_id}",
    auth=JWTAuth(),
    permissions=[CanScanEventPermission()],
    tags=["Scanner"],
)
class ScannerController(UserAwareController):
    """The door of an event: scanning, the scan log and live figures."""

    def get_one(self, event_id: UUID) -> models.Event:
        """Fetch the event and run the object permission."""
        return t.cast(models.Event, self.get_object_or_exception(models.Event.objects.all(), pk=event_id))

    @route.post(
        "/scan",
        url_name="scan_ticket",
        response={
            200: schema.ScanResultSchema,
            400: schema.ScanResultSchema,
            403: schema.ScanResultSchema,
            404: schema.ScanResultSchema,
            409: schema.ScanResultSchema,
            410: schema.ScanResultSchema,
        },
        throttle=ScanThrottle(),
    )
    def scan_ticket(self, event_id: UUID, payload: schema.ScanRequestSchema) -> schema.ScanResultSchema:
        """Check a ticket in from a QR code or a typed ticket number.

        Rejections come back with ``success`` false and a code: NOT_FOUND, WRONG_EVENT,
        ALREADY_CHECKED_IN, CANCELLED, UNAUTHORIZED or CHECK_IN_CLOSED.
        """
        ticket = check_in_service.scan_ticket(event_id, payload.ticket_number, self.user())
        return schema.build_scan_result(True, "CHECKED_IN", str(_("Checked in.")), ticket)

    @route.get(
        "/scans",
        url_name="event_scans",
        response=PaginatedResponseSchema[schema.ScanAttemptSchema],
    )
    @paginate(PageNumberPaginationExtra, page_size=50)
    def list_scans(
        self, event_id: UUID, outcome: models.ScanAttempt.Outcome | None = None
    ) -> QuerySet[models.ScanAttempt]:
        """The scan log of the event, newest first."""
        event = self.get_one(event_id)
        qs = models.ScanAttempt.objects.for_event(event.pk).with_related()
        if outcome:
            qs = qs.filter(outcome=outcome)
        return qs

    @route.get("/attendees", url_name="event_attendees", response=list[schema.AttendeeTicketSchema])
    def list_attendees(self, event_id: UUID, checked_in: bool | None = None) -> QuerySet[models.Ticket]:
        """Active tickets of the event with their check-in state."""
        event = self.get_one(event_id)
        qs = models.Ticket.objects.active().filter(event=event).with_people().order_by("attendee__username")
        if checked_in is not None:
            qs = qs.filter(is_checked_in=checked_in)
        return qs

    @route.get("/stats", url_name="event_check_in_stats", response=schema.CheckInStatsSchema)
    def get_stats(self, event_id: UUID) -> dict[str, t.Any]:
        """Check-in progress and scan outcome counts."""
        return scan_log.check_in_stats(self.get_one(event_id))
