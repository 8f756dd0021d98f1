import typing as t

from django.db.models import QuerySet
from ninja_extra import api_controller, route
from ninja_extra.pagination import PageNumberPaginationExtra, PaginatedResponseSchema, paginate
from ninja_jwt.authentication import JWTAuth

from common.controllers import UserAwareController
from events import models, schema
from events.controllers.permissions import IsStaff
from events.service import scan_log


@api_controller("/staff", auth=JWTAuth(), permissions=[IsStaff()], tags=["Staff"])
class StaffController(UserAwareController):
    """Door staff views."""

    @route.get("/events", url_name="staff_events", response=list[schema.EventSchema])
    def list_assigned_events(self) -> QuerySet[models.Event]:
        """Events I am assigned to, cancelled ones excluded."""
        return (
            models.Event.objects.staffed_by(self.user())
            .exclude(status=models.Event.EventStatus.CANCELLED)
            .select_related("host")
        )

    @route.get("/dashboard", url_name="staff_dashboard", response=schema.StaffDashboardSchema)
    def dashboard(self) -> dict[str, t.Any]:
        """Assigned events and my scanning figures at a glance."""
        return scan_log.staff_dashboard(self.user())

    @route.get("/scans", url_name="staff_scans", response=PaginatedResponseSchema[schema.ScanAttemptSchema])
    @paginate(PageNumberPaginationExtra, page_size=50)
    def list_my_scans(self) -> QuerySet[models.ScanAttempt]:
        """Every scan I made, newest first."""
        return models.ScanAttempt.objects.by_actor(self.user().pk).with_related()
