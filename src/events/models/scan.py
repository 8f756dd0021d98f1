import typing as t

from django.conf import settings
from django.db import models

from common.models import AppendOnlyModel, AppendOnlyQuerySet

PRESENTED_NUMBER_MAX_LENGTH = 128


class ScanAttemptQuerySet(AppendOnlyQuerySet):
    def for_event(self, event_id: t.Any) -> t.Self:
        """Attempts made against a given event."""
        return self.filter(event_id=event_id)

    def by_actor(self, actor_id: t.Any) -> t.Self:
        """Attempts made by a given scanner."""
        return self.filter(actor_id=actor_id)

    def with_related(self) -> t.Self:
        """Select actor, event and ticket for serialization."""
        return self.select_related("actor", "event", "ticket", "ticket__attendee")


class ScanAttempt(AppendOnlyModel):
    """One presented ticket number at one door, with its outcome.

    Rejected attempts are recorded too. The ticket is only linked when it belongs
    to the scanned event, so the log of one event never references another event's tickets.
    """

    class Outcome(models.TextChoices):
        ACCEPTED = "accepted", "Accepted"
        ALREADY_CHECKED_IN = "rejected_already_used", "Rejected: already used"
        WRONG_EVENT = "rejected_wrong_event", "Rejected: wrong event"
        NOT_FOUND = "rejected_not_found", "Rejected: not found"
        CANCELLED = "rejected_cancelled", "Rejected: cancelled"
        UNAUTHORIZED = "rejected_unauthorized", "Rejected: unauthorized"
        CHECK_IN_CLOSED = "rejected_check_in_closed", "Rejected: check-in closed"

    actor = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="scan_attempts")
    actor_role = models.CharField(max_length=20)
    event = models.ForeignKey(
        "events.Event", on_delete=models.PROTECT, null=True, blank=True, related_name="scan_attempts"
    )
    ticket = models.ForeignKey(
        "events.Ticket", on_delete=models.PROTECT, null=True, blank=True, related_name="scan_attempts"
    )
    ticket_number = models.CharField(max_length=PRESENTED_NUMBER_MAX_LENGTH, blank=True)
    outcome = models.CharField(max_length=32, choices=Outcome.choices, db_index=True)
    message = models.CharField(max_length=255, blank=True)

    objects = ScanAttemptQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["event", "outcome"], name="ix_scan_event_outcome"),
            models.Index(fields=["actor", "created_at"], name="ix_scan_actor_created"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.ticket_number} -> {self.outcome}"

    @property
    def accepted(self) -> bool:
        """Whether the attempt checked the ticket in."""
        return self.outcome == self.Outcome.ACCEPTED
