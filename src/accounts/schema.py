"""Schema for accounts module."""

from ninja import ModelSchema
from pydantic import UUID4

from .models import DoorlistUser


class DoorlistUserSchema(ModelSchema):
    id: UUID4
    display_name: str

    class Meta:
        model = DoorlistUser
        fields = ["username", "email", "first_name", "last_name", "role"]


class MinimalUserSchema(ModelSchema):
    id: UUID4
    display_name: str

    class Meta:
        model = DoorlistUser
        fields = ["email", "first_name", "last_name"]
