"""Celery tasks for event management."""

import structlog
from celery import shared_task

from events.service import event_service

logger = structlog.get_logger(__name__)


@shared_task
def complete_past_events() -> int:
    """Mark published events that have ended as completed."""
    count = event_service.complete_past_events()
    logger.info("complete_past_events_finished", completed=count)
    return count
