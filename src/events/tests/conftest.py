import typing as t
from datetime import timedelta

import pytest
from django.test.client import Client
from django.utils import timezone
from ninja_jwt.tokens import RefreshToken

from accounts.models import DoorlistUser
from conftest import DoorlistUserFactory
from events.models import Event, Ticket


def _client_for(user: DoorlistUser) -> Client:
    refresh = RefreshToken.for_user(user)
    return Client(HTTP_AUTHORIZATION=f"Bearer {str(refresh.access_token)}")  # type: ignore[attr-defined]


@pytest.fixture
def host_user(doorlist_user_factory: DoorlistUserFactory) -> DoorlistUser:
    return doorlist_user_factory(username="host", role=DoorlistUser.Role.HOST)


@pytest.fixture
def other_host_user(doorlist_user_factory: DoorlistUserFactory) -> DoorlistUser:
    return doorlist_user_factory(username="other_host", role=DoorlistUser.Role.HOST)


@pytest.fixture
def staff_user(doorlist_user_factory: DoorlistUserFactory) -> DoorlistUser:
    """S1, assigned to the event."""
    return doorlist_user_factory(username="staff_one", role=DoorlistUser.Role.STAFF)


@pytest.fixture
def unassigned_staff_user(doorlist_user_factory: DoorlistUserFactory) -> DoorlistUser:
    """S2, not assigned to the event."""
    return doorlist_user_factory(username="staff_two", role=DoorlistUser.Role.STAFF)


@pytest.fixture
def attendee_user(doorlist_user_factory: DoorlistUserFactory) -> DoorlistUser:
    return doorlist_user_factory(username="attendee", role=DoorlistUser.Role.ATTENDEE)


@pytest.fixture
def other_attendee_user(doorlist_user_factory: DoorlistUserFactory) -> DoorlistUser:
    return doorlist_user_factory(username="other_attendee", role=DoorlistUser.Role.ATTENDEE)


@pytest.fixture
def event(host_user: DoorlistUser, staff_user: DoorlistUser) -> Event:
    """Event E: capacity 100, published, running now, door staff [S1]."""
    now = timezone.now()
    event = Event.objects.create(
        title="Launch Night",
        venue="Main Hall",
        host=host_user,
        start=now + timedelta(minutes=30),
        end=now + timedelta(hours=4),
        capacity=100,
        is_free=True,
        status=Event.EventStatus.PUBLISHED,
    )
    event.assigned_staff.add(staff_user)
    return event


@pytest.fixture
def other_event(other_host_user: DoorlistUser) -> Event:
    now = timezone.now()
    return Event.objects.create(
        title="Other Night",
        host=other_host_user,
        start=now + timedelta(minutes=30),
        end=now + timedelta(hours=4),
        capacity=50,
        is_free=True,
        status=Event.EventStatus.PUBLISHED,
    )


@pytest.fixture
def future_event(host_user: DoorlistUser) -> Event:
    """A paid event next week, open for booking, check-in not yet open."""
    now = timezone.now()
    return Event.objects.create(
        title="Next Week",
        host=host_user,
        start=now + timedelta(days=7),
        end=now + timedelta(days=7, hours=3),
        capacity=2,
        price="499.00",
        status=Event.EventStatus.PUBLISHED,
    )


@pytest.fixture
def draft_event(host_user: DoorlistUser) -> Event:
    now = timezone.now()
    return Event.objects.create(
        title="Draft",
        host=host_user,
        start=now + timedelta(days=3),
        end=now + timedelta(days=3, hours=2),
        capacity=10,
        is_free=True,
    )


@pytest.fixture
def ticket(event: Event, attendee_user: DoorlistUser) -> Ticket:
    """Ticket TCK-001 of event E."""
    Event.objects.filter(pk=event.pk).update(tickets_sold=1)
    event.refresh_from_db()
    return Ticket.objects.create(ticket_number="TCK-001", event=event, attendee=attendee_user)


@pytest.fixture
def other_ticket(other_event: Event, other_attendee_user: DoorlistUser) -> Ticket:
    return Ticket.objects.create(ticket_number="TCK-999", event=other_event, attendee=other_attendee_user)


@pytest.fixture
def host_client(host_user: DoorlistUser) -> Client:
    return _client_for(host_user)


@pytest.fixture
def other_host_client(other_host_user: DoorlistUser) -> Client:
    return _client_for(other_host_user)


@pytest.fixture
def staff_client(staff_user: DoorlistUser) -> Client:
    return _client_for(staff_user)


@pytest.fixture
def unassigned_staff_client(unassigned_staff_user: DoorlistUser) -> Client:
    return _client_for(unassigned_staff_user)


@pytest.fixture
def attendee_client(attendee_user: DoorlistUser) -> Client:
    return _client_for(attendee_user)


@pytest.fixture
def other_attendee_client(other_attendee_user: DoorlistUser) -> Client:
    return _client_for(other_attendee_user)


@pytest.fixture
def client_for() -> t.Callable[[DoorlistUser], Client]:
    return _client_for
