import secrets
import string
import typing as t
from datetime import datetime, time, timedelta

import faker
import pytest
from django.core.cache import cache
from django.utils import timezone
from pytest import MonkeyPatch

from accounts.models import DoorlistUser


@pytest.fixture(autouse=True)
def increase_rate_limit(monkeypatch: MonkeyPatch) -> None:
    """Increase the rate limits to allow testing."""
    monkeypatch.setattr("common.throttling.AuthThrottle.rate", "1000/min")
    monkeypatch.setattr("common.throttling.BookingThrottle.rate", "1000/min")


@pytest.fixture(autouse=True)
def enable_celery_eager_mode(settings: t.Any) -> None:
    """Enable Celery eager mode for tests so tasks execute synchronously."""
    settings.CELERY_TASK_ALWAYS_EAGER = True
    settings.CELERY_TASK_EAGER_PROPAGATES = True


@pytest.fixture(autouse=True)
def clear_cache() -> None:
    """Clear the cache before each test, throttling state lives there."""
    cache.clear()


class DoorlistUserFactory:
    """Factory for creating DoorlistUser instances for testing."""

    fake = faker.Faker()

    def create_user(self, **kwargs: t.Any) -> DoorlistUser:
        username = kwargs.pop(
            "username", "".join(secrets.choice(string.ascii_lowercase) for _ in range(8)) + "@user.test"
        )
        email = kwargs.pop("email", username + ("@test.com" if "@" not in username else ""))
        password = kwargs.pop("password", "password")
        first_name = kwargs.pop("first_name", self.fake.first_name())
        last_name = kwargs.pop("last_name", self.fake.last_name())
        return DoorlistUser.objects.create_user(
            username=username,
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            **kwargs,
        )

    def __call__(self, **kwargs: t.Any) -> DoorlistUser:
        return self.create_user(**kwargs)


@pytest.fixture
def doorlist_user_factory() -> DoorlistUserFactory:
    return DoorlistUserFactory()


@pytest.fixture
def user(doorlist_user_factory: DoorlistUserFactory) -> DoorlistUser:
    """A plain attendee."""
    return doorlist_user_factory(role=DoorlistUser.Role.ATTENDEE)


@pytest.fixture
def superuser(doorlist_user_factory: DoorlistUserFactory) -> DoorlistUser:
    """A superuser."""
    return doorlist_user_factory(is_superuser=True, is_staff=True)


@pytest.fixture
def next_week() -> datetime:
    today = timezone.now()
    same_time_next_week = today + timedelta(days=7)
    noon = time(hour=12, minute=0)
    return timezone.make_aware(
        datetime.combine(same_time_next_week.date(), noon),
        timezone.get_current_timezone(),
    )
