import threading
import uuid
from datetime import timedelta

import pytest
from django.db import connection
from django.utils import timezone

from accounts.models import DoorlistUser
from events.exceptions import (
    AlreadyCheckedInError,
    CheckInClosedError,
    NotAuthorizedToScanError,
    TicketCancelledError,
    TicketNotFoundError,
    WrongEventError,
)
from events.models import Event, ScanAttempt, Ticket
from events.service import check_in_service

pytestmark = pytest.mark.django_db


def test_scan_checks_in_issued_ticket(event: Event, ticket: Ticket, staff_user: DoorlistUser) -> None:
    result = check_in_service.scan_ticket(event.pk, "TCK-001", staff_user)

    assert result.pk == ticket.pk
    ticket.refresh_from_db()
    assert ticket.is_checked_in is True
    assert ticket.checked_in_at is not None
    assert ticket.checked_in_by == staff_user
    assert ticket.check_in_state == "checked_in"


def test_example_door_scenario(
    event: Event, ticket: Ticket, staff_user: DoorlistUser, unassigned_staff_user: DoorlistUser
) -> None:
    """S1 scans, S1 scans again, S2 scans."""
    check_in_service.scan_ticket(event.pk, "TCK-001", staff_user)
    ticket.refresh_from_db()
    assert ticket.is_checked_in is True

    with pytest.raises(AlreadyCheckedInError):
        check_in_service.scan_ticket(event.pk, "TCK-001", staff_user)

    with pytest.raises(NotAuthorizedToScanError):
        check_in_service.scan_ticket(event.pk, "TCK-001", unassigned_staff_user)

    outcomes = list(ScanAttempt.objects.for_event(event.pk).order_by("created_at").values_list("outcome", flat=True))
    assert outcomes == [
        ScanAttempt.Outcome.ACCEPTED,
        ScanAttempt.Outcome.ALREADY_CHECKED_IN,
        ScanAttempt.Outcome.UNAUTHORIZED,
    ]


def test_duplicate_scan_keeps_original_check_in(
    event: Event, ticket: Ticket, staff_user: DoorlistUser, host_user: DoorlistUser
) -> None:
    check_in_service.scan_ticket(event.pk, "TCK-001", staff_user)
    ticket.refresh_from_db()
    first_checked_in_at = ticket.checked_in_at

    with pytest.raises(AlreadyCheckedInError) as exc_info:
        check_in_service.scan_ticket(event.pk, "TCK-001", host_user)

    assert exc_info.value.ticket is not None
    ticket.refresh_from_db()
    assert ticket.checked_in_at == first_checked_in_at
    assert ticket.checked_in_by == staff_user


def test_host_can_scan_own_event(event: Event, ticket: Ticket, host_user: DoorlistUser) -> None:
    check_in_service.scan_ticket(event.pk, "TCK-001", host_user)

    ticket.refresh_from_db()
    assert ticket.checked_in_by == host_user


def test_other_host_is_not_authorized(event: Event, ticket: Ticket, other_host_user: DoorlistUser) -> None:
    with pytest.raises(NotAuthorizedToScanError):
        check_in_service.scan_ticket(event.pk, "TCK-001", other_host_user)

    ticket.refresh_from_db()
    assert ticket.is_checked_in is False


@pytest.mark.parametrize("ticket_number", ["TCK-001", "does-not-exist", ""])
def test_attendee_is_never_authorized(
    event: Event, ticket: Ticket, attendee_user: DoorlistUser, ticket_number: str
) -> None:
    with pytest.raises(NotAuthorizedToScanError):
        check_in_service.scan_ticket(event.pk, ticket_number, attendee_user)

    ticket.refresh_from_db()
    assert ticket.is_checked_in is False


def test_ticket_of_other_event_is_wrong_event(
    event: Event, other_ticket: Ticket, staff_user: DoorlistUser
) -> None:
    with pytest.raises(WrongEventError) as exc_info:
        check_in_service.scan_ticket(event.pk, "TCK-999", staff_user)

    assert exc_info.value.ticket is None
    attempt = ScanAttempt.objects.get()
    assert attempt.outcome == ScanAttempt.Outcome.WRONG_EVENT
    assert attempt.event == event
    assert attempt.ticket is None
    other_ticket.refresh_from_db()
    assert other_ticket.is_checked_in is False


def test_unknown_ticket_is_not_found(event: Event, ticket: Ticket, staff_user: DoorlistUser) -> None:
    with pytest.raises(TicketNotFoundError):
        check_in_service.scan_ticket(event.pk, "TCK-404", staff_user)

    assert ScanAttempt.objects.get().outcome == ScanAttempt.Outcome.NOT_FOUND


def test_unknown_event_is_not_found_and_logged(staff_user: DoorlistUser) -> None:
    with pytest.raises(TicketNotFoundError):
        check_in_service.scan_ticket(uuid.uuid4(), "TCK-001", staff_user)

    attempt = ScanAttempt.objects.get()
    assert attempt.event is None
    assert attempt.outcome == ScanAttempt.Outcome.NOT_FOUND


def test_presented_number_is_stripped(event: Event, ticket: Ticket, staff_user: DoorlistUser) -> None:
    check_in_service.scan_ticket(event.pk, "  TCK-001\n", staff_user)

    ticket.refresh_from_db()
    assert ticket.is_checked_in is True


def test_oversized_number_is_not_found_and_stored_truncated(event: Event, staff_user: DoorlistUser) -> None:
    with pytest.raises(TicketNotFoundError):
        check_in_service.scan_ticket(event.pk, "X" * 500, staff_user)

    assert len(ScanAttempt.objects.get().ticket_number) == 128


def test_cancelled_ticket_is_rejected(event: Event, ticket: Ticket, staff_user: DoorlistUser) -> None:
    Ticket.objects.filter(pk=ticket.pk).update(status=Ticket.TicketStatus.CANCELLED)

    with pytest.raises(TicketCancelledError):
        check_in_service.scan_ticket(event.pk, "TCK-001", staff_user)

    ticket.refresh_from_db()
    assert ticket.is_checked_in is False
    attempt = ScanAttempt.objects.get()
    assert attempt.outcome == ScanAttempt.Outcome.CANCELLED
    assert attempt.ticket == ticket


def test_check_in_closed_before_window(event: Event, ticket: Ticket, staff_user: DoorlistUser) -> None:
    now = timezone.now()
    Event.objects.filter(pk=event.pk).update(
        check_in_starts_at=now + timedelta(minutes=10), check_in_ends_at=now + timedelta(hours=1)
    )

    with pytest.raises(CheckInClosedError):
        check_in_service.scan_ticket(event.pk, "TCK-001", staff_user)

    ticket.refresh_from_db()
    assert ticket.is_checked_in is False


def test_check_in_closed_for_cancelled_event(event: Event, ticket: Ticket, host_user: DoorlistUser) -> None:
    Event.objects.filter(pk=event.pk).update(status=Event.EventStatus.CANCELLED)

    with pytest.raises(CheckInClosedError):
        check_in_service.scan_ticket(event.pk, "TCK-001", host_user)

    assert ScanAttempt.objects.get().outcome == ScanAttempt.Outcome.CHECK_IN_CLOSED


def test_lookup_is_read_only(event: Event, ticket: Ticket) -> None:
    found = check_in_service.lookup_ticket(event, "TCK-001")

    assert found == ticket
    assert ScanAttempt.objects.count() == 0
    ticket.refresh_from_db()
    assert ticket.is_checked_in is False


def test_stale_read_loses_the_race(
    event: Event, ticket: Ticket, staff_user: DoorlistUser, host_user: DoorlistUser
) -> None:
    """Two scanners read the ticket as issued; only the first conditional update wins."""
    first_read = Ticket.objects.get(pk=ticket.pk)
    second_read = Ticket.objects.get(pk=ticket.pk)

    check_in_service.check_in(first_read, staff_user)

    with pytest.raises(AlreadyCheckedInError):
        check_in_service.check_in(second_read, host_user)

    ticket.refresh_from_db()
    assert ticket.checked_in_by == staff_user


def test_stale_read_sees_cancellation(event: Event, ticket: Ticket, staff_user: DoorlistUser) -> None:
    stale = Ticket.objects.get(pk=ticket.pk)
    Ticket.objects.filter(pk=ticket.pk).update(status=Ticket.TicketStatus.CANCELLED)

    with pytest.raises(TicketCancelledError):
        check_in_service.check_in(stale, staff_user)


@pytest.mark.django_db(transaction=True)
def test_concurrent_scans_yield_exactly_one_success(
    event: Event, ticket: Ticket, staff_user: DoorlistUser, host_user: DoorlistUser
) -> None:
    scanners = [staff_user, host_user] * 4
    results: list[str] = []
    barrier = threading.Barrier(len(scanners))

    def scan(actor: DoorlistUser) -> None:
        barrier.wait()
        try:
            check_in_service.scan_ticket(event.pk, "TCK-001", actor)
            results.append("accepted")
        except AlreadyCheckedInError:
            results.append("duplicate")
        finally:
            connection.close()

    threads = [threading.Thread(target=scan, args=(actor,)) for actor in scanners]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert results.count("accepted") == 1
    assert results.count("duplicate") == len(scanners) - 1
    assert ScanAttempt.objects.filter(outcome=ScanAttempt.Outcome.ACCEPTED).count() == 1
