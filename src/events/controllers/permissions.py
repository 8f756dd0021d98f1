from django.http import HttpRequest
from ninja_extra import ControllerBase
from ninja_extra.permissions import BasePermission

from accounts.models import DoorlistUser
from events import models
from events.service import role_gate


class RootPermission(BasePermission):
    def has_permission(self, request: HttpRequest, controller: ControllerBase) -> bool:
        """Must implement abstract method. This is due to an error in Ninja Extra.

        This Method will be ignored, only has_object_permission will be called.
        """
        return True


class HasRole(BasePermission):
    """Allow the request only when the authenticated user acts in the given role."""

    def __init__(self, role: str) -> None:
        """Store the role."""
        self.role = role

    def has_permission(self, request: HttpRequest, controller: ControllerBase) -> bool:
        """Compare the role of the user."""
        return getattr(request.user, "role", None) == self.role


class IsHost(HasRole):
    def __init__(self) -> None:
        """Hosts only."""
        super().__init__(DoorlistUser.Role.HOST)


class IsStaff(HasRole):
    def __init__(self) -> None:
        """Staff only."""
        super().__init__(DoorlistUser.Role.STAFF)


class CanScanEventPermission(RootPermission):
    def has_object_permission(
        self,
        request: HttpRequest,
        controller: ControllerBase,
        obj: models.Event,
    ) -> bool:
        """The event host and its assigned staff may see the door data of the event."""
        return role_gate.can_scan(request.user, obj)  # type: ignore[arg-type]
