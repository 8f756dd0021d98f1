from uuid import UUID

from django.db.models import QuerySet
from django.shortcuts import get_object_or_404
from django.utils import timezone
from ninja_extra import ControllerBase, api_controller, route
from ninja_extra.pagination import PageNumberPaginationExtra, PaginatedResponseSchema, paginate

from events import models, schema


@api_controller("/events", tags=["Events"])
class EventController(ControllerBase):
    """Public catalogue of published events."""

    def get_queryset(self) -> QuerySet[models.Event]:
        """Published events that have not ended yet."""
        return models.Event.objects.published().filter(end__gte=timezone.now()).select_related("host")

    @route.get("/", url_name="list_events", response=PaginatedResponseSchema[schema.EventSchema])
    @paginate(PageNumberPaginationExtra, page_size=20)
    def list_events(self) -> QuerySet[models.Event]:
        """Browse upcoming events."""
        return self.get_queryset()

    @route.get("/{event_id}", url_name="get_event", response=schema.EventSchema)
    def get_event(self, event_id: UUID) -> models.Event:
        """Get an upcoming event."""
        return get_object_or_404(self.get_queryset(), pk=event_id)
