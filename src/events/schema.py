import typing as t
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from ninja import ModelSchema, Schema
from pydantic import AwareDatetime, Field, StringConstraints, model_validator

from accounts.schema import MinimalUserSchema
from common.schema import OneToTwoFiftyFiveString, StrippedString
from events.models import Event, ScanAttempt, Ticket

CurrencyCode = t.Annotated[str, StringConstraints(min_length=3, max_length=3, to_upper=True, strip_whitespace=True)]

# ---- Events ----


class EventCreateSchema(Schema):
    title: OneToTwoFiftyFiveString
    description: StrippedString = ""
    venue: StrippedString = ""
    start: AwareDatetime
    end: AwareDatetime
    capacity: int = Field(..., ge=1)
    is_free: bool = False
    price: Decimal | None = Field(None, gt=0, max_digits=10, decimal_places=2)
    currency: CurrencyCode = "INR"
    check_in_starts_at: AwareDatetime | None = None
    check_in_ends_at: AwareDatetime | None = None

    @model_validator(mode="after")
    def validate_schedule(self) -> t.Self:
        """End must come after start, and paid events need a price."""
        if self.end <= self.start:
            raise ValueError("End time must be after start time.")
        if not self.is_free and self.price is None:
            raise ValueError("Paid events need a price.")
        return self


class EventUpdateSchema(Schema):
    title: OneToTwoFiftyFiveString | None = None
    description: StrippedString | None = None
    venue: StrippedString | None = None
    start: AwareDatetime | None = None
    end: AwareDatetime | None = None
    capacity: int | None = Field(None, ge=1)
    is_free: bool | None = None
    price: Decimal | None = Field(None, gt=0, max_digits=10, decimal_places=2)
    currency: CurrencyCode | None = None
    check_in_starts_at: AwareDatetime | None = None
    check_in_ends_at: AwareDatetime | None = None


class EventSchema(ModelSchema):
    id: UUID
    host: MinimalUserSchema
    status: Event.EventStatus
    available_tickets: int
    is_sold_out: bool

    class Meta:
        model = Event
        fields = [
            "title",
            "description",
            "venue",
            "start",
            "end",
            "capacity",
            "tickets_sold",
            "is_free",
            "price",
            "currency",
            "check_in_starts_at",
            "check_in_ends_at",
        ]


class EventDetailSchema(EventSchema):
    assigned_staff: list[MinimalUserSchema]

    @staticmethod
    def resolve_assigned_staff(obj: Event) -> list[t.Any]:
        return list(obj.assigned_staff.all())


class MinimalEventSchema(Schema):
    id: UUID
    title: str
    venue: str
    start: datetime
    end: datetime
    status: Event.EventStatus


class StaffAssignmentSchema(Schema):
    user_id: UUID


# ---- Tickets ----


class TicketSchema(ModelSchema):
    id: UUID
    event: MinimalEventSchema
    status: Ticket.TicketStatus
    check_in_state: str

    class Meta:
        model = Ticket
        fields = [
            "ticket_number",
            "price_paid",
            "payment_reference",
            "is_checked_in",
            "checked_in_at",
            "cancelled_at",
            "created_at",
        ]


class AttendeeTicketSchema(ModelSchema):
    """A ticket as seen from the door, with its holder."""

    id: UUID
    attendee: MinimalUserSchema
    status: Ticket.TicketStatus
    checked_in_by: MinimalUserSchema | None = None

    class Meta:
        model = Ticket
        fields = ["ticket_number", "is_checked_in", "checked_in_at", "created_at"]


class TicketCancelSchema(Schema):
    reason: StrippedString = Field("", max_length=255)


# ---- Scanning ----


class ScanRequestSchema(Schema):
    """What the scanner sends. QR payloads and manual entry look the same.

    Extra keys such as ``scanned_by`` are ignored; the actor is always the authenticated user.
    """

    ticket_number: str = Field(..., max_length=512)


class ScannedTicketSchema(Schema):
    id: UUID
    ticket_number: str
    status: Ticket.TicketStatus
    is_checked_in: bool
    checked_in_at: datetime | None = None
    checked_in_by_id: UUID | None = None


class ScanAttendeeSchema(Schema):
    id: UUID
    display_name: str
    email: str


class ScanResultSchema(Schema):
    success: bool
    code: str
    message: str
    ticket: ScannedTicketSchema | None = None
    attendee: ScanAttendeeSchema | None = None


class ScanAttemptSchema(ModelSchema):
    id: UUID
    actor: MinimalUserSchema
    event_id: UUID | None = None
    ticket_id: UUID | None = None
    outcome: ScanAttempt.Outcome

    class Meta:
        model = ScanAttempt
        fields = ["actor_role", "ticket_number", "message", "created_at"]


class CheckInStatsSchema(Schema):
    event_id: UUID
    total_tickets: int
    checked_in: int
    pending: int
    check_in_percentage: Decimal
    attempts: dict[str, int]


class StaffDashboardSchema(Schema):
    assigned_events: int
    todays_events: int
    upcoming_events: int
    total_scans: int
    accepted_scans: int
    scans_today: int
    check_ins_today: int
    recent_scans: list[ScanAttemptSchema]


def build_scan_result(success: bool, code: str, message: str, ticket: Ticket | None = None) -> ScanResultSchema:
    """Shape a scan outcome for the scanner, with the ticket and its holder when known."""
    if ticket is None:
        return ScanResultSchema(success=success, code=code, message=message)
    attendee = ticket.attendee
    return ScanResultSchema(
        success=success,
        code=code,
        message=message,
        ticket=ScannedTicketSchema(
            id=ticket.pk,
            ticket_number=ticket.ticket_number,
            status=ticket.status,
            is_checked_in=ticket.is_checked_in,
            checked_in_at=ticket.checked_in_at,
            checked_in_by_id=ticket.checked_in_by_id,
        ),
        attendee=ScanAttendeeSchema(id=attendee.pk, display_name=attendee.display_name, email=attendee.email),
    )
