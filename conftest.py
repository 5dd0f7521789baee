"""Shared pytest fixtures."""

from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model

from apps.bookings.clock import FrozenClock

# 2025-08-20 09:00 UTC; the test settings run in UTC so "today" is 2025-08-20.
FROZEN_NOW = datetime(2025, 8, 20, 9, 0, tzinfo=dt_timezone.utc)


@pytest.fixture
def clock():
    return FrozenClock(FROZEN_NOW)


@pytest.fixture
def owner(db):
    return get_user_model().objects.create_user(username="owner", password="pass")


@pytest.fixture
def renter(db):
    return get_user_model().objects.create_user(username="renter_a", password="pass")


@pytest.fixture
def other_renter(db):
    return get_user_model().objects.create_user(username="renter_b", password="pass")


@pytest.fixture
def make_equipment(owner):
    from apps.equipment.models import Equipment

    def _make(quantity=1, **kwargs):
        kwargs.setdefault("name", "John Deere 5050D")
        kwargs.setdefault("price_per_day", Decimal("1500.00"))
        return Equipment.objects.create(owner=owner, total_quantity=quantity, **kwargs)

    return _make


@pytest.fixture
def tractor(make_equipment):
    return make_equipment(quantity=1)


@pytest.fixture
def service(clock):
    from apps.bookings.services import BookingService

    return BookingService(clock=clock)
