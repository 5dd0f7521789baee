"""Unit tests for the Reservation aggregate and booking window."""

from datetime import date, datetime, timedelta, timezone as dt_timezone
from decimal import Decimal

import pytest

from shared.domain.value_objects import DateSet, Money
from apps.bookings.domain import events
from apps.bookings.domain.entities import (
    PaymentStatus,
    Reservation,
    ReservationStatus,
    Unit,
)
from apps.bookings.domain.exceptions import (
    AccessDenied,
    DateNotInBooking,
    InvalidDateWindow,
    InvalidStatus,
    NoDatesProvided,
)
from apps.bookings.domain.policies import BookingWindow

NOW = datetime(2025, 8, 20, 9, 0, tzinfo=dt_timezone.utc)
TODAY = date(2025, 8, 20)
UNIT = Unit(id=7, total_quantity=1, owner_id=100, name="Rotavator")


def _pending(dates=("2025-08-21", "2025-08-22", "2025-08-23"), amount="4500.00"):
    return Reservation.request(UNIT, renter_id=200, dates=DateSet.of(dates), amount=Money(Decimal(amount)), now=NOW)


def _hold():
    return Reservation.hold(
        UNIT,
        renter_id=200,
        dates=DateSet.of(["2025-08-22"]),
        amount=Money(Decimal("1500.00")),
        now=NOW,
        hold_for=timedelta(minutes=10),
    )


class TestCreation:

    def test_direct_booking_is_pending_and_copies_owner(self):
        reservation = _pending()
        assert reservation.status == ReservationStatus.PENDING
        assert reservation.owner_id == UNIT.owner_id
        assert not reservation.is_payment_hold
        assert isinstance(reservation.events[0], events.ReservationCreated)

    def test_hold_expires_ten_minutes_later(self):
        reservation = _hold()
        assert reservation.status == ReservationStatus.PAYMENT_HOLD
        assert reservation.is_payment_hold
        assert reservation.payment_hold_expiry == NOW + timedelta(minutes=10)
        assert not reservation.hold_expired(NOW + timedelta(minutes=9))
        assert reservation.hold_expired(NOW + timedelta(minutes=11))

    def test_range_is_derived_from_dates(self):
        reservation = _pending(dates=("2025-08-25", "2025-08-21"))
        assert reservation.start_date == date(2025, 8, 21)
        assert reservation.end_date == date(2025, 8, 25)


class TestPaymentTransitions:

    def test_confirm_payment_waits_for_owner(self):
        reservation = _hold()
        reservation.confirm_payment("upi", "txn-1", NOW)

        assert reservation.status == ReservationStatus.PENDING
        assert reservation.payment_status == PaymentStatus.COMPLETED
        assert reservation.payment_hold_expiry is None
        assert not reservation.is_payment_hold
        assert reservation.transaction_id == "txn-1"

    def test_confirm_payment_outside_hold_is_rejected(self):
        with pytest.raises(InvalidStatus):
            _pending().confirm_payment("upi", "txn-1", NOW)

    def test_fail_payment(self):
        reservation = _hold()
        reservation.fail_payment(NOW)
        assert reservation.status == ReservationStatus.PAYMENT_FAILED
        assert reservation.payment_status == PaymentStatus.FAILED
        assert reservation.payment_hold_expiry is None

    def test_cancel_payment(self):
        reservation = _hold()
        reservation.cancel_payment(NOW)
        assert reservation.status == ReservationStatus.CANCELLED
        assert reservation.payment_status == PaymentStatus.CANCELLED

    def test_expire_hold(self):
        reservation = _hold()
        reservation.expire_hold(NOW + timedelta(minutes=11))
        assert reservation.status == ReservationStatus.CANCELLED
        assert reservation.payment_status == PaymentStatus.FAILED
        assert isinstance(reservation.events[-1], events.PaymentHoldExpired)

    def test_expired_hold_no_longer_consumes_capacity(self):
        reservation = _hold()
        assert reservation.consumes_capacity(NOW)
        assert not reservation.consumes_capacity(NOW + timedelta(minutes=10))


class TestOwnerTransitions:

    def test_accept_requires_owner(self):
        with pytest.raises(AccessDenied):
            _pending().accept(owner_id=999, now=NOW)

    def test_owner_check_compares_identities_as_text(self):
        reservation = _pending()
        reservation.accept(owner_id="100", now=NOW)
        assert reservation.status == ReservationStatus.CONFIRMED

    def test_accept_only_pending(self):
        reservation = _hold()
        with pytest.raises(InvalidStatus):
            reservation.accept(owner_id=100, now=NOW)

    def test_reject(self):
        reservation = _pending()
        reservation.reject(owner_id=100, now=NOW)
        assert reservation.status == ReservationStatus.REJECTED
        assert not reservation.consumes_capacity(NOW)

    def test_complete_only_confirmed(self):
        reservation = _pending()
        with pytest.raises(InvalidStatus):
            reservation.complete(owner_id=100, now=NOW)
        reservation.accept(owner_id=100, now=NOW)
        reservation.complete(owner_id=100, now=NOW)
        assert reservation.status == ReservationStatus.COMPLETED


class TestCancelDates:

    def test_partial_cancellation_prorates_amount(self):
        reservation = _pending()
        remaining = reservation.cancel_dates(200, DateSet.of(["2025-08-22"]), NOW)

        assert remaining.iso() == ["2025-08-21", "2025-08-23"]
        assert reservation.total_amount.amount == Decimal("3000.00")
        assert reservation.status == ReservationStatus.PENDING
        assert reservation.start_date == date(2025, 8, 21)
        assert reservation.end_date == date(2025, 8, 23)

    def test_cancelling_every_date_cancels_reservation(self):
        reservation = _pending()
        reservation.cancel_dates(200, DateSet.of(["2025-08-21", "2025-08-22", "2025-08-23"]), NOW)

        assert reservation.status == ReservationStatus.CANCELLED
        assert not reservation.dates
        assert reservation.start_date is None

    def test_foreign_dates_are_listed(self):
        reservation = _pending()
        with pytest.raises(DateNotInBooking) as excinfo:
            reservation.cancel_dates(200, DateSet.of(["2025-08-22", "2025-08-30"]), NOW)
        assert excinfo.value.dates == ["2025-08-30"]
        assert len(reservation.dates) == 3

    def test_only_renter_may_cancel_dates(self):
        with pytest.raises(AccessDenied):
            _pending().cancel_dates(201, DateSet.of(["2025-08-22"]), NOW)

    def test_payment_hold_dates_cannot_be_cancelled(self):
        with pytest.raises(InvalidStatus):
            _hold().cancel_dates(200, DateSet.of(["2025-08-22"]), NOW)

    def test_empty_cancellation(self):
        with pytest.raises(NoDatesProvided):
            _pending().cancel_dates(200, DateSet(), NOW)


class TestBookingWindow:

    window = BookingWindow(horizon_days=15, max_dates=15)

    @pytest.mark.parametrize("offset", [0, 15])
    def test_boundaries_are_inclusive(self, offset):
        self.window.validate(DateSet.of([TODAY + timedelta(days=offset)]), TODAY)

    @pytest.mark.parametrize("offset", [-1, 16])
    def test_outside_window_names_the_date(self, offset):
        day = TODAY + timedelta(days=offset)
        with pytest.raises(InvalidDateWindow) as excinfo:
            self.window.validate(DateSet.of([TODAY, day]), TODAY)
        assert excinfo.value.day == day
        assert excinfo.value.to_dict()["date"] == day.isoformat()

    def test_too_many_dates(self):
        sixteen_days = DateSet.between(TODAY, TODAY + timedelta(days=15))
        assert len(sixteen_days) == 16
        with pytest.raises(InvalidDateWindow):
            self.window.validate(sixteen_days, TODAY)
