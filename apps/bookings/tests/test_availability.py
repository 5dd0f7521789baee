"""Unit tests for the availability calculator."""

from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal

import pytest

from shared.domain.value_objects import DateSet, Money
from apps.bookings.domain.availability import AvailabilityCalculator
from apps.bookings.domain.entities import Reservation, ReservationStatus, Unit
from apps.bookings.domain.exceptions import NoDatesProvided

NOW = datetime(2025, 8, 20, 9, 0, tzinfo=dt_timezone.utc)
UNIT = Unit(id=1, total_quantity=2, owner_id=10)


def _reservation(pk, dates, status=ReservationStatus.PENDING, expiry=None):
    return Reservation(
        id=pk,
        equipment_id=UNIT.id,
        renter_id=20 + pk,
        owner_id=UNIT.owner_id,
        dates=DateSet.of(dates),
        total_amount=Money(Decimal("100.00")),
        status=status,
        payment_hold_expiry=expiry,
    )


def test_counts_each_requested_day():
    reservations = [
        _reservation(1, ["2025-08-21", "2025-08-22"], ReservationStatus.CONFIRMED),
        _reservation(2, ["2025-08-22"]),
    ]
    report = AvailabilityCalculator.report(
        UNIT, DateSet.of(["2025-08-21", "2025-08-22", "2025-08-23"]), reservations, NOW,
    )

    assert report.available_per_date == {
        DateSet.of(["2025-08-21"]).start: 1,
        DateSet.of(["2025-08-22"]).start: 0,
        DateSet.of(["2025-08-23"]).start: 2,
    }
    assert not report.available
    assert [day.isoformat() for day in report.unavailable_dates] == ["2025-08-22"]
    assert report.min_available == 0
    assert report.message == "Some dates are not available"


def test_min_available_is_the_per_day_minimum():
    reservations = [
        _reservation(1, ["2025-08-21"]),
        _reservation(2, ["2025-08-22"]),
    ]
    report = AvailabilityCalculator.report(
        UNIT, DateSet.of(["2025-08-21", "2025-08-22"]), reservations, NOW,
    )
    assert report.available
    assert report.min_available == 1
    assert report.message == "1 units available for all selected dates"


def test_live_hold_counts_but_expired_hold_does_not():
    reservations = [
        _reservation(1, ["2025-08-21"], ReservationStatus.PAYMENT_HOLD, NOW + timedelta(minutes=5)),
        _reservation(2, ["2025-08-21"], ReservationStatus.PAYMENT_HOLD, NOW - timedelta(seconds=1)),
    ]
    report = AvailabilityCalculator.report(UNIT, DateSet.of(["2025-08-21"]), reservations, NOW)
    assert report.per_date[DateSet.of(["2025-08-21"]).start].bookings_count == 1


@pytest.mark.parametrize(
    "status",
    [
        ReservationStatus.COMPLETED,
        ReservationStatus.REJECTED,
        ReservationStatus.CANCELLED,
        ReservationStatus.PAYMENT_FAILED,
    ],
)
def test_terminal_reservations_do_not_count(status):
    reservations = [_reservation(1, ["2025-08-21"], status)] * 2
    report = AvailabilityCalculator.report(UNIT, DateSet.of(["2025-08-21"]), reservations, NOW)
    assert report.min_available == 2


def test_excluded_reservation_does_not_count_against_itself():
    reservations = [
        _reservation(1, ["2025-08-21"]),
        _reservation(2, ["2025-08-21"]),
    ]
    report = AvailabilityCalculator.report(
        UNIT, DateSet.of(["2025-08-21"]), reservations, NOW, exclude_reservation_id=1,
    )
    assert report.available
    assert report.min_available == 1


def test_committed_only_view_ignores_pending_requests():
    reservations = [
        _reservation(1, ["2025-08-21"]),
        _reservation(2, ["2025-08-21"], ReservationStatus.CONFIRMED),
    ]
    report = AvailabilityCalculator.report(
        UNIT, DateSet.of(["2025-08-21"]), reservations, NOW, include_pending=False,
    )
    assert report.min_available == 1


def test_zero_requested_dates_is_an_error():
    with pytest.raises(NoDatesProvided):
        AvailabilityCalculator.report(UNIT, DateSet(), [], NOW)


def test_report_serialises_per_day_details():
    report = AvailabilityCalculator.report(
        UNIT, DateSet.of(["2025-08-21"]), [_reservation(1, ["2025-08-21"])], NOW,
    )
    data = report.to_dict()
    assert data["date_availability"]["2025-08-21"] == {
        "available_units": 1,
        "total_units": 2,
        "bookings_count": 1,
        "available": True,
    }
    assert data["requested_dates"] == ["2025-08-21"]
    assert data["unavailable_dates"] == []
