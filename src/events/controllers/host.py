import typing as t
from uuid import UUID

from django.db.models import QuerySet
from django.shortcuts import get_object_or_404
from ninja_extra import api_controller, route
from ninja_jwt.authentication import JWTAuth

from accounts.models import DoorlistUser
from accounts.schema import MinimalUserSchema
from common.controllers import UserAwareController
from common.schema import ValidationErrorResponse
from common.throttling import WriteThrottle
from events import models, schema
from events.controllers.permissions import IsHost
from events.service import event_service


@api_controller(
    "/host/events",
    auth=JWTAuth(),
    permissions=[IsHost()],
    tags=["Host"],
    throttle=WriteThrottle(),
)
class HostEventController(UserAwareController):
    """Event management for hosts. Hosts only ever see their own events."""

    def get_queryset(self) -> QuerySet[models.Event]:
        """Events owned by the current host."""
        return models.Event.objects.hosted_by(self.user()).with_people()

    def get_one(self, event_id: UUID) -> models.Event:
        """Wrapper helper."""
        return t.cast(models.Event, self.get_object_or_exception(self.get_queryset(), pk=event_id))

    @route.get("/", url_name="host_list_events", response=list[schema.EventSchema])
    def list_events(self) -> QuerySet[models.Event]:
        """List the events of the current host, soonest first."""
        return self.get_queryset()

    @route.post(
        "/",
        url_name="host_create_event",
        response={201: schema.EventDetailSchema, 400: ValidationErrorResponse},
    )
    def create_event(self, payload: schema.EventCreateSchema) -> tuple[int, models.Event]:
        """Create a draft event."""
        return 201, event_service.create_event(self.user(), payload)

    @route.get("/available-staff", url_name="host_available_staff", response=list[MinimalUserSchema])
    def list_available_staff(self) -> QuerySet[DoorlistUser]:
        """Users that can be put on the door team of an event."""
        return DoorlistUser.objects.staff_members()

    @route.get("/{event_id}", url_name="host_get_event", response=schema.EventDetailSchema)
    def get_event(self, event_id: UUID) -> models.Event:
        """Get one of the host's events."""
        return self.get_one(event_id)

    @route.patch(
        "/{event_id}",
        url_name="host_update_event",
        response={200: schema.EventDetailSchema, 400: ValidationErrorResponse},
    )
    def update_event(self, event_id: UUID, payload: schema.EventUpdateSchema) -> models.Event:
        """Update a draft or published event."""
        return event_service.update_event(self.get_one(event_id), payload)

    @route.delete("/{event_id}", url_name="host_delete_event", response={204: None})
    def delete_event(self, event_id: UUID) -> tuple[int, None]:
        """Delete an event without tickets."""
        event_service.delete_event(self.get_one(event_id))
        return 204, None

    @route.post("/{event_id}/publish", url_name="host_publish_event", response=schema.EventDetailSchema)
    def publish_event(self, event_id: UUID) -> models.Event:
        """Publish a draft event."""
        return event_service.publish_event(self.get_one(event_id))

    @route.post("/{event_id}/cancel", url_name="host_cancel_event", response=schema.EventDetailSchema)
    def cancel_event(self, event_id: UUID) -> models.Event:
        """Cancel an event."""
        return event_service.cancel_event(self.get_one(event_id))

    @route.post("/{event_id}/staff", url_name="host_assign_staff", response=schema.EventDetailSchema)
    def assign_staff(self, event_id: UUID, payload: schema.StaffAssignmentSchema) -> models.Event:
        """Put a staff user on the door team."""
        event = self.get_one(event_id)
        staff = get_object_or_404(DoorlistUser, pk=payload.user_id)
        return event_service.assign_staff(event, staff)

    @route.delete("/{event_id}/staff/{user_id}", url_name="host_unassign_staff", response=schema.EventDetailSchema)
    def unassign_staff(self, event_id: UUID, user_id: UUID) -> models.Event:
        """Take a user off the door team."""
        event = self.get_one(event_id)
        staff = get_object_or_404(event.assigned_staff.all(), pk=user_id)
        return event_service.unassign_staff(event, staff)
