import threading
from datetime import timedelta
from decimal import Decimal

import pytest
from django.db import connection
from django.utils import timezone
from freezegun import freeze_time

from accounts.models import DoorlistUser
from conftest import DoorlistUserFactory
from events.exceptions import (
    AlreadyBookedError,
    BookingNotAllowedError,
    SoldOutError,
    TicketNotCancellableError,
)
from events.models import Event, Ticket
from events.service import ticket_service

pytestmark = pytest.mark.django_db


def test_book_free_ticket(event: Event, other_attendee_user: DoorlistUser) -> None:
    ticket = ticket_service.book_ticket(event, other_attendee_user)

    assert ticket.ticket_number.startswith("TCK-")
    assert ticket.price_paid == Decimal("0")
    assert ticket.payment_reference == ""
    assert ticket.check_in_state == "issued"
    event.refresh_from_db()
    assert event.tickets_sold == 1


def test_book_paid_ticket_records_demo_payment(future_event: Event, attendee_user: DoorlistUser) -> None:
    ticket = ticket_service.book_ticket(future_event, attendee_user)

    assert ticket.price_paid == Decimal("499.00")
    assert ticket.payment_reference.startswith("demo_")


def test_ticket_numbers_are_unique(future_event: Event, doorlist_user_factory: DoorlistUserFactory) -> None:
    first = ticket_service.book_ticket(future_event, doorlist_user_factory())
    second = ticket_service.book_ticket(future_event, doorlist_user_factory())

    assert first.ticket_number != second.ticket_number


def test_booking_never_oversells(future_event: Event, doorlist_user_factory: DoorlistUserFactory) -> None:
    ticket_service.book_ticket(future_event, doorlist_user_factory())
    ticket_service.book_ticket(future_event, doorlist_user_factory())

    with pytest.raises(SoldOutError):
        ticket_service.book_ticket(future_event, doorlist_user_factory())

    future_event.refresh_from_db()
    assert future_event.tickets_sold == future_event.capacity == 2
    assert Ticket.objects.filter(event=future_event).count() == 2


def test_duplicate_booking_is_rejected(future_event: Event, attendee_user: DoorlistUser) -> None:
    ticket_service.book_ticket(future_event, attendee_user)

    with pytest.raises(AlreadyBookedError):
        ticket_service.book_ticket(future_event, attendee_user)

    future_event.refresh_from_db()
    assert future_event.tickets_sold == 1


def test_duplicate_committed_after_precheck_is_already_booked(
    future_event: Event, attendee_user: DoorlistUser, monkeypatch: pytest.MonkeyPatch
) -> None:
    demo_payment = ticket_service._demo_payment

    def book_elsewhere_first(event: Event) -> tuple[Decimal, str]:
        Ticket.objects.create(event=event, attendee=attendee_user)
        return demo_payment(event)

    monkeypatch.setattr(ticket_service, "_demo_payment", book_elsewhere_first)

    with pytest.raises(AlreadyBookedError):
        ticket_service.book_ticket(future_event, attendee_user)

    assert Ticket.objects.filter(event=future_event, attendee=attendee_user).count() == 1
    future_event.refresh_from_db()
    assert future_event.tickets_sold == 0


@pytest.mark.django_db(transaction=True)
def test_concurrent_bookings_never_oversell(future_event: Event, doorlist_user_factory: DoorlistUserFactory) -> None:
    attendees = [doorlist_user_factory() for _ in range(6)]
    results: list[str] = []
    barrier = threading.Barrier(len(attendees))

    def book(attendee: DoorlistUser) -> None:
        barrier.wait()
        try:
            ticket_service.book_ticket(future_event, attendee)
            results.append("booked")
        except SoldOutError:
            results.append("sold_out")
        finally:
            connection.close()

    threads = [threading.Thread(target=book, args=(attendee,)) for attendee in attendees]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert results.count("booked") == future_event.capacity == 2
    assert results.count("sold_out") == len(attendees) - 2
    future_event.refresh_from_db()
    assert future_event.tickets_sold == 2
    assert Ticket.objects.filter(event=future_event).count() == 2


@pytest.mark.parametrize("role", [DoorlistUser.Role.HOST, DoorlistUser.Role.STAFF])
def test_only_attendees_can_book(future_event: Event, doorlist_user_factory: DoorlistUserFactory, role: str) -> None:
    with pytest.raises(BookingNotAllowedError):
        ticket_service.book_ticket(future_event, doorlist_user_factory(role=role))


def test_cannot_book_draft_event(draft_event: Event, attendee_user: DoorlistUser) -> None:
    with pytest.raises(BookingNotAllowedError):
        ticket_service.book_ticket(draft_event, attendee_user)


def test_cannot_book_ended_event(event: Event, attendee_user: DoorlistUser) -> None:
    with freeze_time(event.end + timedelta(minutes=1)):
        with pytest.raises(BookingNotAllowedError):
            ticket_service.book_ticket(event, attendee_user)


def test_cancel_ticket_releases_seat(future_event: Event, attendee_user: DoorlistUser) -> None:
    ticket = ticket_service.book_ticket(future_event, attendee_user)

    cancelled = ticket_service.cancel_ticket(ticket, reason="Cannot make it")

    assert cancelled.status == Ticket.TicketStatus.CANCELLED
    assert cancelled.cancelled_at is not None
    assert cancelled.cancellation_reason == "Cannot make it"
    assert cancelled.check_in_state == "cancelled"
    future_event.refresh_from_db()
    assert future_event.tickets_sold == 0


def test_rebook_after_cancel(future_event: Event, attendee_user: DoorlistUser) -> None:
    ticket = ticket_service.book_ticket(future_event, attendee_user)
    ticket_service.cancel_ticket(ticket)

    again = ticket_service.book_ticket(future_event, attendee_user)

    assert again.pk != ticket.pk
    future_event.refresh_from_db()
    assert future_event.tickets_sold == 1


def test_cancel_twice_is_rejected(future_event: Event, attendee_user: DoorlistUser) -> None:
    ticket = ticket_service.book_ticket(future_event, attendee_user)
    ticket_service.cancel_ticket(ticket)

    with pytest.raises(TicketNotCancellableError):
        ticket_service.cancel_ticket(ticket)

    future_event.refresh_from_db()
    assert future_event.tickets_sold == 0


def test_checked_in_ticket_cannot_be_cancelled(future_event: Event, attendee_user: DoorlistUser) -> None:
    ticket = ticket_service.book_ticket(future_event, attendee_user)
    Ticket.objects.filter(pk=ticket.pk).update(is_checked_in=True, checked_in_at=timezone.now())

    with pytest.raises(TicketNotCancellableError):
        ticket_service.cancel_ticket(ticket)


def test_cancel_inside_cutoff_is_rejected(event: Event, ticket: Ticket) -> None:
    with pytest.raises(TicketNotCancellableError, match="24 hours"):
        ticket_service.cancel_ticket(ticket)

    ticket.refresh_from_db()
    assert ticket.status == Ticket.TicketStatus.ACTIVE


def test_seat_counter_never_goes_negative(future_event: Event, attendee_user: DoorlistUser) -> None:
    ticket = Ticket.objects.create(event=future_event, attendee=attendee_user)

    ticket_service.cancel_ticket(ticket)

    future_event.refresh_from_db()
    assert future_event.tickets_sold == 0
