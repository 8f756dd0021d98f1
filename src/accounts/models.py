import re
import uuid

from django.contrib.auth.models import AbstractUser, UserManager
from django.db import models


class DoorlistUserQueryset(models.QuerySet["DoorlistUser"]):
    def staff_members(self) -> "DoorlistUserQueryset":
        """Users that can be assigned to events as door staff."""
        return self.filter(role=DoorlistUser.Role.STAFF, is_active=True)


class DoorlistUserManager(UserManager["DoorlistUser"]):
    def get_queryset(self) -> DoorlistUserQueryset:
        """Get queryset for DoorlistUser."""
        return DoorlistUserQueryset(self.model, using=self._db)

    def staff_members(self) -> DoorlistUserQueryset:
        """Users that can be assigned to events as door staff."""
        return self.get_queryset().staff_members()


class DoorlistUser(AbstractUser):
    class Role(models.TextChoices):
        HOST = "host", "Event Host"
        STAFF = "staff", "Event Staff"
        ATTENDEE = "attendee", "Attendee"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    role = models.CharField(
        max_length=20,
        choices=Role.choices,
        default=Role.ATTENDEE,
        db_index=True,
        help_text="The role the user acts in on the platform.",
    )
    phone_number = models.CharField(max_length=20, blank=True, help_text="Phone number")

    objects = DoorlistUserManager()  # type: ignore[misc]

    class Meta:
        ordering = ["username"]

    @property
    def display_name(self) -> str:
        """Display name."""
        return self.get_display_name()

    def get_display_name(self) -> str:
        """Returns the user's full name, or a prettified username as a fallback."""
        return self.get_full_name() or re.sub(r"(\W|_)+", " ", self.username.split("@")[0]).title()
