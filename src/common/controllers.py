import typing as t

import structlog
from ninja_extra import ControllerBase

from accounts.models import DoorlistUser


class UserAwareController(ControllerBase):
    def user(self) -> DoorlistUser:
        """Get the authenticated user for this request and bind it to the log context."""
        user = t.cast(DoorlistUser, self.context.request.user)  # type: ignore[union-attr]
        structlog.contextvars.bind_contextvars(user_id=str(user.pk), user_role=user.role)
        return user
