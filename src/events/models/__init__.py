from .event import Event, EventManager, EventQuerySet
from .scan import ScanAttempt, ScanAttemptQuerySet
from .ticket import Ticket, TicketManager, TicketQuerySet, generate_ticket_number

__all__ = [
    "Event",
    "EventManager",
    "EventQuerySet",
    "ScanAttempt",
    "ScanAttemptQuerySet",
    "Ticket",
    "TicketManager",
    "TicketQuerySet",
    "generate_ticket_number",
]
