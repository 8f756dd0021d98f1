"""Exception handlers for the API."""

import traceback
import typing as t
from copy import deepcopy

import orjson
import structlog
from django.conf import settings
from django.core.exceptions import ValidationError
from django.http import HttpRequest
from ninja.responses import Response

from events.exceptions import BookingError, EventStateError, InvalidStaffError, ScanRejectedError
from events.schema import build_scan_result

logger = structlog.get_logger(__name__)


def handle_general_exception(request: HttpRequest, exc: Exception | t.Type[Exception]) -> Response:
    """Handle a general exception.

    Args:
        request: The incoming HTTP request.
        exc: The exception.

    Returns:
        The response.
    """
    json_payload = None
    if request.method in ("POST", "PUT", "PATCH") and request.headers.get("Content-Type") == "application/json":
        try:
            json_payload = obfuscate(orjson.loads(request.body))
        except orjson.JSONDecodeError:  # pragma: no cover
            json_payload = None
    logger.exception(
        "INTERNAL_SERVER_ERROR",
        method=request.method,
        path=request.path,
        headers=obfuscate(dict(request.headers)),
        query=obfuscate(request.GET.dict()),
        json_payload=json_payload,
        user=str(request.user) if getattr(request, "user", None) else None,
    )
    data = {"detail": "Internal Server Error."}
    is_staff = getattr(request, "user", None) and request.user.is_staff
    if settings.DEBUG or is_staff:  # pragma: no cover
        data["traceback"] = traceback.format_exc()
    return Response(status=500, data=data)


def handle_django_validation_error(request: HttpRequest, exc: ValidationError | t.Type[ValidationError]) -> Response:
    """Handle a validation error.

    Args:
        request: The incoming HTTP request.
        exc: The exception.
    """
    logger.warning("VALIDATION_ERROR", path=request.path)
    if hasattr(exc, "error_dict"):
        error_dict = {k: [ee for e in v for ee in e] for k, v in exc.error_dict.items()}
    else:
        error_dict = {"__all__": list(exc.messages)}  # type: ignore[union-attr]
    return Response(status=400, data={"errors": error_dict})


def handle_scan_rejected_error(
    request: HttpRequest, exc: ScanRejectedError | t.Type[ScanRejectedError]
) -> Response:
    """Turn a rejected scan into the scanner payload, with its own status code."""
    assert isinstance(exc, ScanRejectedError)
    result = build_scan_result(False, exc.code, exc.message, exc.ticket)
    return Response(status=exc.status_code, data=result.model_dump(mode="json"))


def handle_booking_error(request: HttpRequest, exc: BookingError | t.Type[BookingError]) -> Response:
    """Handle a booking or ticket cancellation error."""
    return Response(status=400, data={"message": str(exc)})


def handle_event_state_error(request: HttpRequest, exc: EventStateError | t.Type[EventStateError]) -> Response:
    """Handle a disallowed event lifecycle transition."""
    return Response(status=400, data={"detail": str(exc)})


def handle_invalid_staff_error(request: HttpRequest, exc: InvalidStaffError | t.Type[InvalidStaffError]) -> Response:
    """Handle an attempt to put a non-staff user on a door team."""
    return Response(status=400, data={"detail": str(exc)})


SENSITIVE_KEYS = {"password", "token", "refresh", "access", "x-api-key", "authorization", "authentication"}


def obfuscate(data: dict[str, t.Any]) -> dict[str, t.Any]:
    """Obfuscate sensitive data in payloads and headers."""
    new_data = deepcopy(data)
    for key in data.keys():
        if key.lower() in SENSITIVE_KEYS:
            new_data[key] = "********"
    return new_data
