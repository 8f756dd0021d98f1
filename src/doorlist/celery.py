"""Celery setup for Doorlist."""

import os
import typing as t

import structlog
from celery import Celery
from celery.signals import task_postrun, task_prerun
from opentelemetry import trace

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "doorlist.settings")

app = Celery("doorlist")

# All celery-related configuration keys carry a `CELERY_` prefix in Django settings.
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()


@task_prerun.connect
def celery_task_prerun(task_id: str, task: t.Any, *args: t.Any, **kwargs: t.Any) -> None:
    """Bind Celery task context to structlog before task execution."""
    from django.conf import settings

    if not settings.ENABLE_OBSERVABILITY:
        return

    structlog.contextvars.clear_contextvars()

    context = {
        "task_id": task_id,
        "task_name": task.name,
        "retries": getattr(task.request, "retries", 0),
    }

    span = trace.get_current_span()
    if span and span.get_span_context().is_valid:
        context["trace_id"] = format(span.get_span_context().trace_id, "032x")

    structlog.contextvars.bind_contextvars(**context)


@task_postrun.connect
def celery_task_postrun(*args: t.Any, **kwargs: t.Any) -> None:
    """Clear structlog context after task execution."""
    from django.conf import settings

    if not settings.ENABLE_OBSERVABILITY:
        return

    structlog.contextvars.clear_contextvars()


# run:
# celery -A doorlist worker -l INFO
# celery -A doorlist beat -l INFO
