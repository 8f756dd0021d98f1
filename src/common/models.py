import typing as t
import uuid

from django.db import models


class TimeStampedModel(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True, db_index=True)

    class Meta:
        abstract = True

    def save(self, *args: t.Any, **kwargs: t.Any) -> None:
        """Override the save method to call full_clean before saving."""
        self.full_clean()
        super().save(*args, **kwargs)


class AppendOnlyError(Exception):
    """Raised when code tries to modify or remove an append-only record."""


class AppendOnlyQuerySet(models.QuerySet[t.Any]):
    def update(self, **kwargs: t.Any) -> int:
        """Refuse bulk updates."""
        raise AppendOnlyError(f"{self.model.__name__} records cannot be updated.")

    def delete(self) -> tuple[int, dict[str, int]]:
        """Refuse bulk deletes."""
        raise AppendOnlyError(f"{self.model.__name__} records cannot be deleted.")


class AppendOnlyModel(TimeStampedModel):
    """A record that is written once and never mutated or deleted through the ORM."""

    objects = AppendOnlyQuerySet.as_manager()

    class Meta:
        abstract = True

    def save(self, *args: t.Any, **kwargs: t.Any) -> None:
        """Only allow the initial insert."""
        if not self._state.adding:
            raise AppendOnlyError(f"{self.__class__.__name__} records cannot be updated.")
        super().save(*args, **kwargs)

    def delete(self, *args: t.Any, **kwargs: t.Any) -> tuple[int, dict[str, int]]:
        """Refuse deletion."""
        raise AppendOnlyError(f"{self.__class__.__name__} records cannot be deleted.")
