from uuid import UUID

from django.db.models import QuerySet
from django.shortcuts import get_object_or_404
from ninja import Body
from ninja_extra import api_controller, route
from ninja_jwt.authentication import JWTAuth

from common.controllers import UserAwareController
from common.schema import ResponseMessage
from common.throttling import BookingThrottle, UserDefaultThrottle
from events import models, schema
from events.service import ticket_service


@api_controller("/tickets", auth=JWTAuth(), tags=["Tickets"], throttle=UserDefaultThrottle())
class TicketController(UserAwareController):
    """Booking and managing the tickets of the current attendee."""

    def get_queryset(self) -> QuerySet[models.Ticket]:
        """Tickets held by the current user."""
        return models.Ticket.objects.filter(attendee=self.user()).select_related("event")

    @route.get("/", url_name="my_tickets", response=list[schema.TicketSchema])
    def list_tickets(self) -> QuerySet[models.Ticket]:
        """List my tickets, newest first."""
        return self.get_queryset()

    @route.post(
        "/events/{event_id}/book",
        url_name="book_ticket",
        response={201: schema.TicketSchema, 400: ResponseMessage},
        throttle=BookingThrottle(),
    )
    def book_ticket(self, event_id: UUID) -> tuple[int, models.Ticket]:
        """Book a ticket. Paid events are settled with a demo payment."""
        event = get_object_or_404(models.Event, pk=event_id)
        return 201, ticket_service.book_ticket(event, self.user())

    @route.get("/{ticket_id}", url_name="my_ticket", response=schema.TicketSchema)
    def get_ticket(self, ticket_id: UUID) -> models.Ticket:
        """Get one of my tickets."""
        return get_object_or_404(self.get_queryset(), pk=ticket_id)

    @route.post(
        "/{ticket_id}/cancel",
        url_name="cancel_ticket",
        response={200: schema.TicketSchema, 400: ResponseMessage},
    )
    def cancel_ticket(
        self,
        ticket_id: UUID,
        payload: schema.TicketCancelSchema | None = Body(None),  # type: ignore[type-arg]
    ) -> models.Ticket:
        """Cancel one of my tickets and free its seat."""
        ticket = get_object_or_404(self.get_queryset(), pk=ticket_id)
        return ticket_service.cancel_ticket(ticket, reason=payload.reason if payload else "")
