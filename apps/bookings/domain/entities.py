"""
Booking Domain Entities

- ReservationStatus: FSM states for the reservation lifecycle
- PaymentStatus: payment side-channel tracking
- Unit: read-only snapshot of a rentable equipment item
- Reservation: aggregate root for one renter occupying one unit on a set of days
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable, Optional

from shared.domain.base import Aggregate
from shared.domain.value_objects import DateSet, Money

from apps.bookings.domain import events
from apps.bookings.domain.exceptions import (
    AccessDenied,
    DateNotInBooking,
    InvalidStatus,
    NoDatesProvided,
)


class ReservationStatus(Enum):
    """
    Reservation Status Finite State Machine

    State transitions:
    - PAYMENT_HOLD -> PENDING (payment confirmed, awaiting owner)
    - PAYMENT_HOLD -> CANCELLED (expired, payment cancelled, or capacity lost)
    - PAYMENT_HOLD -> PAYMENT_FAILED (payment failed)
    - PENDING -> CONFIRMED (owner accepted)
    - PENDING -> REJECTED (owner rejected)
    - CONFIRMED -> COMPLETED (owner marked the rental returned)
    - PENDING/CONFIRMED -> CANCELLED (renter cancelled every date)
    """
    PENDING = 'pending'
    PAYMENT_HOLD = 'payment_hold'
    CONFIRMED = 'confirmed'
    COMPLETED = 'completed'
    REJECTED = 'rejected'
    CANCELLED = 'cancelled'
    PAYMENT_FAILED = 'payment_failed'


class PaymentStatus(Enum):
    PENDING = 'pending'
    PROCESSING = 'processing'
    COMPLETED = 'completed'
    FAILED = 'failed'
    CANCELLED = 'cancelled'


# Statuses that always consume capacity. Live payment holds consume it too.
CAPACITY_STATUSES = (ReservationStatus.PENDING, ReservationStatus.CONFIRMED)
TERMINAL_STATUSES = (
    ReservationStatus.COMPLETED,
    ReservationStatus.REJECTED,
    ReservationStatus.CANCELLED,
    ReservationStatus.PAYMENT_FAILED,
)
DATE_CANCELLABLE_STATUSES = (ReservationStatus.PENDING, ReservationStatus.CONFIRMED)


@dataclass(frozen=True)
class Unit:
    """What the booking engine needs to know about a piece of equipment."""
    id: int
    total_quantity: int
    owner_id: int
    name: str = ''


@dataclass(eq=False, kw_only=True)
class Reservation(Aggregate):
    """
    Reservation Aggregate Root

    Key invariants:
    - ``dates`` is the source of truth; ``start_date``/``end_date`` are derived
    - ``dates`` is non-empty unless the reservation was cancelled date by date
    - ``payment_hold_expiry`` is set only while in PAYMENT_HOLD
    - ``owner_id`` is copied from the unit at creation and never re-synced
    """

    equipment_id: int
    renter_id: int
    owner_id: int
    dates: DateSet
    total_amount: Money

    status: ReservationStatus = ReservationStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_hold_expiry: Optional[datetime] = None
    payment_method: str = ''
    transaction_id: str = ''

    @classmethod
    def request(cls, unit: Unit, renter_id: int, dates: DateSet, amount: Money,
                now: datetime) -> 'Reservation':
        """Direct booking: capacity is claimed immediately, owner decides later."""
        reservation = cls(
            equipment_id=unit.id,
            renter_id=renter_id,
            owner_id=unit.owner_id,
            dates=dates,
            total_amount=amount,
            created_at=now,
            updated_at=now,
        )
        reservation.add_event(events.ReservationCreated(
            equipment_id=unit.id,
            renter_id=renter_id,
            dates=dates.iso(),
            total_amount=str(amount.amount),
        ))
        return reservation

    @classmethod
    def hold(cls, unit: Unit, renter_id: int, dates: DateSet, amount: Money,
             now: datetime, hold_for: timedelta) -> 'Reservation':
        """Payment hold: capacity is held until ``now + hold_for``."""
        expiry = now + hold_for
        reservation = cls(
            equipment_id=unit.id,
            renter_id=renter_id,
            owner_id=unit.owner_id,
            dates=dates,
            total_amount=amount,
            status=ReservationStatus.PAYMENT_HOLD,
            payment_hold_expiry=expiry,
            created_at=now,
            updated_at=now,
        )
        reservation.add_event(events.PaymentHoldPlaced(
            equipment_id=unit.id,
            renter_id=renter_id,
            dates=dates.iso(),
            expires_at=expiry,
        ))
        return reservation

    # ----- derived state -----

    @property
    def is_payment_hold(self) -> bool:
        """Mirrors ``status == PAYMENT_HOLD``; kept for the call sites that test it."""
        return self.status == ReservationStatus.PAYMENT_HOLD

    @property
    def start_date(self):
        return self.dates.start

    @property
    def end_date(self):
        return self.dates.end

    def hold_expired(self, now: datetime) -> bool:
        if not self.is_payment_hold or self.payment_hold_expiry is None:
            return False
        return now >= self.payment_hold_expiry

    def consumes_capacity(self, now: datetime) -> bool:
        if self.status in CAPACITY_STATUSES:
            return True
        return (
            self.status == ReservationStatus.PAYMENT_HOLD
            and self.payment_hold_expiry is not None
            and self.payment_hold_expiry > now
        )

    def ensure_owner(self, owner_id) -> None:
        if str(self.owner_id) != str(owner_id):
            raise AccessDenied("Access denied: You can only manage bookings for your equipment")

    def ensure_renter(self, renter_id) -> None:
        if str(self.renter_id) != str(renter_id):
            raise AccessDenied("Access denied: This booking belongs to another renter")

    def _require(self, *allowed: ReservationStatus, message: str) -> None:
        if self.status not in allowed:
            raise InvalidStatus(message)

    def _clear_hold(self) -> None:
        self.payment_hold_expiry = None

    # ----- payment transitions -----

    def ensure_payment_hold(self) -> None:
        if self.status != ReservationStatus.PAYMENT_HOLD or not self.is_payment_hold:
            raise InvalidStatus("Booking is not in payment hold state")

    def confirm_payment(self, payment_method: str, transaction_id: str, now: datetime) -> None:
        """PAYMENT_HOLD -> PENDING; the owner still has to accept."""
        self.ensure_payment_hold()
        self.status = ReservationStatus.PENDING
        self.payment_status = PaymentStatus.COMPLETED
        self.payment_method = payment_method or ''
        self.transaction_id = transaction_id or ''
        self._clear_hold()
        self.updated_at = now
        self.add_event(events.PaymentConfirmed(
            payment_method=self.payment_method,
            transaction_id=self.transaction_id,
        ))

    def expire_hold(self, now: datetime) -> None:
        """PAYMENT_HOLD -> CANCELLED because the hold ran out."""
        self.ensure_payment_hold()
        self.status = ReservationStatus.CANCELLED
        self.payment_status = PaymentStatus.FAILED
        self._clear_hold()
        self.updated_at = now
        self.add_event(events.PaymentHoldExpired(equipment_id=self.equipment_id))

    def release_unavailable_hold(self, now: datetime) -> None:
        """PAYMENT_HOLD -> CANCELLED because capacity was taken meanwhile."""
        self.ensure_payment_hold()
        self.status = ReservationStatus.CANCELLED
        self.payment_status = PaymentStatus.FAILED
        self._clear_hold()
        self.updated_at = now
        self.add_event(events.PaymentFailed(reason='unavailable'))

    def fail_payment(self, now: datetime) -> None:
        self._require(ReservationStatus.PAYMENT_HOLD, message="Booking is not in payment hold state")
        self.status = ReservationStatus.PAYMENT_FAILED
        self.payment_status = PaymentStatus.FAILED
        self._clear_hold()
        self.updated_at = now
        self.add_event(events.PaymentFailed(reason='declined'))

    def cancel_payment(self, now: datetime) -> None:
        self._require(ReservationStatus.PAYMENT_HOLD, message="Booking is not in payment hold state")
        self.status = ReservationStatus.CANCELLED
        self.payment_status = PaymentStatus.CANCELLED
        self._clear_hold()
        self.updated_at = now
        self.add_event(events.PaymentCancelled())

    # ----- owner transitions -----

    def accept(self, owner_id, now: datetime) -> None:
        self.ensure_owner(owner_id)
        self._require(ReservationStatus.PENDING, message="Only pending bookings can be accepted")
        self.status = ReservationStatus.CONFIRMED
        self.updated_at = now
        self.add_event(events.ReservationAccepted(owner_id=self.owner_id))

    def reject(self, owner_id, now: datetime) -> None:
        self.ensure_owner(owner_id)
        self._require(ReservationStatus.PENDING, message="Only pending bookings can be rejected")
        self.status = ReservationStatus.REJECTED
        self.updated_at = now
        self.add_event(events.ReservationRejected(owner_id=self.owner_id, dates=self.dates.iso()))

    def complete(self, owner_id, now: datetime) -> None:
        self.ensure_owner(owner_id)
        self._require(ReservationStatus.CONFIRMED, message="Only confirmed bookings can be marked as completed")
        self.status = ReservationStatus.COMPLETED
        self.updated_at = now
        self.add_event(events.ReservationCompleted(owner_id=self.owner_id))

    # ----- edits -----

    def reschedule(self, dates: DateSet, now: datetime) -> None:
        if not dates:
            raise NoDatesProvided()
        previous = self.dates
        self.dates = dates
        self.updated_at = now
        self.add_event(events.ReservationUpdated(
            previous_dates=previous.iso(),
            dates=dates.iso(),
            status=self.status.value,
        ))

    def change_status(self, status: ReservationStatus, now: datetime) -> None:
        previous = self.status
        self.status = status
        if status != ReservationStatus.PAYMENT_HOLD:
            self._clear_hold()
        self.updated_at = now
        self.add_event(events.ReservationUpdated(
            previous_status=previous.value,
            status=status.value,
            dates=self.dates.iso(),
        ))

    def cancel_dates(self, renter_id, to_cancel: DateSet, now: datetime) -> DateSet:
        """
        Drop ``to_cancel`` from the booking and return the remaining days.

        The amount is scaled by remaining/original day count. Cancelling the
        last day cancels the whole reservation and leaves an empty date set.
        """
        self.ensure_renter(renter_id)
        self._require(
            *DATE_CANCELLABLE_STATUSES,
            message="Can only cancel dates from pending or confirmed bookings",
        )
        if not to_cancel:
            raise NoDatesProvided("datesToCancel must contain at least one date")

        invalid = to_cancel.missing_from(self.dates)
        if invalid:
            raise DateNotInBooking(invalid)

        original_count = len(self.dates)
        remaining = self.dates.difference(to_cancel)

        if remaining:
            self.total_amount = self.total_amount.prorate(len(remaining), original_count)
        else:
            self.status = ReservationStatus.CANCELLED
        self.dates = remaining
        self.updated_at = now

        self.add_event(events.ReservationDatesCancelled(
            cancelled_dates=to_cancel.iso(),
            remaining_dates=remaining.iso(),
            total_amount=str(self.total_amount.amount),
        ))
        return remaining

    def covers(self, days: Iterable) -> bool:
        return any(day in self.dates for day in days)

    def __str__(self):
        return f"Reservation {self.id} ({self.status.value})"

    def __repr__(self):
        return (
            f"Reservation(id={self.id}, equipment_id={self.equipment_id}, "
            f"status={self.status.value}, dates={self.dates})"
        )
