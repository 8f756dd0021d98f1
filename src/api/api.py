from django.conf import settings
from django.core.exceptions import ValidationError
from django.http import HttpRequest
from ninja_extra import NinjaExtraAPI

from accounts.controllers.auth import AccountController, AuthController
from common.schema import ResponseOk, VersionResponse
from common.throttling import AnonDefaultThrottle, UserDefaultThrottle
from events.controllers.events import EventController
from events.controllers.host import HostEventController
from events.controllers.scanner import ScannerController
from events.controllers.staff import StaffController
from events.controllers.tickets import TicketController
from events.exceptions import BookingError, EventStateError, InvalidStaffError, ScanRejectedError

from .exception_handlers import (
    handle_booking_error,
    handle_django_validation_error,
    handle_event_state_error,
    handle_general_exception,
    handle_invalid_staff_error,
    handle_scan_rejected_error,
)

api = NinjaExtraAPI(
    title="Doorlist API",
    docs_url="/docs",
    version=settings.VERSION,
    description=f"Doorlist API {settings.VERSION}",
    app_name=f"doorlist-api-{settings.VERSION}",
    urls_namespace="api",
    servers=[
        {"url": settings.SERVICE_URL, "description": settings.SERVICE_DESCRIPTION},
    ],
    throttle=[AnonDefaultThrottle(), UserDefaultThrottle()],
)


@api.get("/version", tags=["Version"], response={200: VersionResponse})
def version(request: HttpRequest) -> tuple[int, VersionResponse]:
    """Get the API version.

    Args:
        request: The incoming HTTP request.

    Returns:
        The response status code and message.
    """
    return 200, VersionResponse(version=settings.VERSION, demo=settings.DEMO_MODE)


@api.get("/healthcheck", tags=["Healthcheck"], response={200: ResponseOk})
def healthcheck(request: HttpRequest) -> tuple[int, ResponseOk]:
    """Check the health of the API.

    Args:
        request: The incoming HTTP request.

    Returns:
        The response status code and message.
    """
    return 200, ResponseOk()


api.register_controllers(
    # Auth/Account controllers
    AuthController,
    AccountController,
    # Event controllers
    EventController,
    HostEventController,
    TicketController,
    StaffController,
    ScannerController,
)

EXCEPTION_HANDLERS = {
    Exception: handle_general_exception,
    ValidationError: handle_django_validation_error,
    ScanRejectedError: handle_scan_rejected_error,
    BookingError: handle_booking_error,
    EventStateError: handle_event_state_error,
    InvalidStaffError: handle_invalid_staff_error,
}

for exc, handler in EXCEPTION_HANDLERS.items():
    api.add_exception_handler(exc, handler)
