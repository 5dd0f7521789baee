"""
Booking Command Handlers

These are the use cases for the booking domain.
They orchestrate domain operations within transactions.

Commands:
- CreateBookingCommand: Direct booking awaiting owner approval
- CreatePaymentHoldCommand: Hold capacity while the renter pays
- ConfirmPaymentCommand / FailPaymentCommand / CancelPaymentCommand: payment outcomes
- AcceptBookingCommand / RejectBookingCommand / CompleteBookingCommand: owner decisions
- UpdateBookingCommand: generic status and/or date change
- CancelDatesCommand: drop some days from a booking
- SweepExpiredHoldsCommand: expire stale payment holds
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Optional, Union
import logging

from django.conf import settings
from django.db import transaction

from shared.application.uow import DjangoUnitOfWork
from shared.domain.value_objects import (
    DateRangeTooLong,
    DateSet,
    EmptyDateSet,
    InvalidDate,
    Money,
    to_day,
)
from apps.bookings.clock import Clock, SystemClock, local_today
from apps.bookings.domain.availability import AvailabilityCalculator, AvailabilityReport
from apps.bookings.domain.entities import (
    CAPACITY_STATUSES,
    Reservation,
    ReservationStatus,
    Unit,
)
from apps.bookings.domain.exceptions import (
    AvailabilityChanged,
    HoldExpired,
    InvalidAmount,
    InvalidDateWindow,
    InvalidStatus,
    NoDatesProvided,
)
from apps.bookings.domain.policies import BookingWindow

logger = logging.getLogger(__name__)

DayInput = Union[date, str]


def parse_dates(
    dates: Optional[Iterable[DayInput]] = None,
    start_date: Optional[DayInput] = None,
    end_date: Optional[DayInput] = None,
    max_days: Optional[int] = None,
) -> DateSet:
    """
    Build a DateSet from caller input, reporting problems as booking errors.

    ``max_days`` caps the request before a range is expanded; the error
    names the end of the range.
    """
    try:
        return DateSet.of(dates, start_date, end_date, max_days)
    except EmptyDateSet as exc:
        raise NoDatesProvided(str(exc)) from None
    except DateRangeTooLong as exc:
        raise InvalidDateWindow(str(exc), exc.day) from None
    except InvalidDate as exc:
        raise InvalidDateWindow(str(exc)) from None


def parse_amount(value) -> Money:
    """Money from caller input; anything negative or non-numeric is an InvalidAmount."""
    try:
        amount = Money(value)
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidAmount(f"Invalid total amount: {value}") from None
    if not amount.amount.is_finite():
        raise InvalidAmount(f"Invalid total amount: {value}")
    return amount


def hold_duration() -> timedelta:
    options = getattr(settings, 'RENTAL_BOOKING', {})
    return timedelta(minutes=options.get('HOLD_MINUTES', 10))


# ===== Commands =====

@dataclass
class CreateBookingCommand:
    """
    Command to create a direct booking

    Either ``dates`` or ``start_date``/``end_date`` describe the days.
    """
    equipment_id: int
    renter_id: int
    total_amount: Decimal
    dates: Optional[List[DayInput]] = None
    start_date: Optional[DayInput] = None
    end_date: Optional[DayInput] = None


@dataclass
class CreatePaymentHoldCommand(CreateBookingCommand):
    """Same inputs as a direct booking; the result waits for payment."""


@dataclass
class ConfirmPaymentCommand:
    reservation_id: int
    payment_method: str = ''
    transaction_id: str = ''
    renter_id: Optional[int] = None


@dataclass
class FailPaymentCommand:
    reservation_id: int
    renter_id: Optional[int] = None


@dataclass
class CancelPaymentCommand:
    reservation_id: int
    renter_id: Optional[int] = None


@dataclass
class AcceptBookingCommand:
    reservation_id: int
    owner_id: int


@dataclass
class RejectBookingCommand:
    reservation_id: int
    owner_id: int


@dataclass
class CompleteBookingCommand:
    reservation_id: int
    owner_id: int


@dataclass
class UpdateBookingCommand:
    """
    Generic edit

    ``caller_id`` must be the owner when ``status`` is given. New dates are
    given as an inclusive ``start_date``/``end_date`` range.
    """
    reservation_id: int
    caller_id: Optional[int] = None
    status: Optional[str] = None
    start_date: Optional[DayInput] = None
    end_date: Optional[DayInput] = None


@dataclass
class CancelDatesCommand:
    reservation_id: int
    renter_id: int
    dates: List[DayInput] = field(default_factory=list)


@dataclass
class SweepExpiredHoldsCommand:
    """Command to expire every payment hold past its expiry"""


@dataclass
class CancelDatesResult:
    reservation: Reservation
    availability: AvailabilityReport


# ===== Command Handlers =====

class BookingHandler:
    """
    Shared plumbing for the booking use cases

    Every capacity-sensitive handler follows the same shape:
    1. Start a unit of work (atomic)
    2. Lock the equipment row (SELECT FOR UPDATE where supported)
    3. Compute availability from live reservations
    4. Apply the transition to the aggregate
    5. Compare-and-set the row on its previous status
    6. Commit, then publish events
    """

    def __init__(self, reservation_repo, equipment_repo, clock: Optional[Clock] = None,
                 window: Optional[BookingWindow] = None):
        self.reservation_repo = reservation_repo
        self.equipment_repo = equipment_repo
        self.clock = clock or SystemClock()
        self.window = window or BookingWindow.from_settings()

    def _availability(self, unit: Unit, dates: DateSet, now: datetime,
                      exclude_reservation_id=None, include_pending: bool = True) -> AvailabilityReport:
        reservations = self.reservation_repo.find_for_availability(
            unit.id, dates, now, exclude_reservation_id=exclude_reservation_id,
        )
        return AvailabilityCalculator.report(
            unit,
            dates,
            reservations,
            now,
            exclude_reservation_id=exclude_reservation_id,
            include_pending=include_pending,
        )

    @staticmethod
    def _require_available(report: AvailabilityReport, message: str) -> None:
        if not report.available:
            raise AvailabilityChanged(message, report.unavailable_dates)

    def _save_or_fail(self, reservation: Reservation, expected: ReservationStatus,
                      error: Exception, hold_live_at: Optional[datetime] = None) -> None:
        if not self.reservation_repo.save(reservation, expected, hold_live_at=hold_live_at):
            raise error


class CreateBookingHandler(BookingHandler):
    """
    Handler for CreateBooking command

    Capacity is checked and claimed under the equipment row lock, so two
    renters racing for the last unit cannot both get it.
    """

    kind = "direct booking"

    def _build(self, unit: Unit, command: CreateBookingCommand, dates: DateSet,
               amount: Money, now: datetime) -> Reservation:
        return Reservation.request(unit, command.renter_id, dates, amount, now)

    def handle(self, command: CreateBookingCommand) -> Reservation:
        amount = parse_amount(command.total_amount)
        dates = parse_dates(
            command.dates, command.start_date, command.end_date, max_days=self.window.max_dates,
        )
        now = self.clock.now()
        self.window.validate(dates, local_today(now))

        logger.info(
            f"Creating {self.kind} for equipment {command.equipment_id}, "
            f"renter {command.renter_id}, dates {dates}"
        )

        with DjangoUnitOfWork() as uow:
            unit = self.equipment_repo.get(command.equipment_id, lock=True)
            report = self._availability(unit, dates, now)
            if not report.available:
                logger.warning(
                    f"Equipment {unit.id} unavailable on {report.unavailable_dates} "
                    f"for renter {command.renter_id}"
                )
            self._require_available(report, "Equipment is not available for the selected dates")

            reservation = self._build(unit, command, dates, amount, now)
            self.reservation_repo.insert(reservation)
            uow.collect_events(reservation)

        logger.info(f"Reservation {reservation.id} created with status {reservation.status.value}")
        return reservation


class CreatePaymentHoldHandler(CreateBookingHandler):
    """Handler for CreatePaymentHold command"""

    kind = "payment hold"

    def _build(self, unit: Unit, command: CreateBookingCommand, dates: DateSet,
               amount: Money, now: datetime) -> Reservation:
        return Reservation.hold(unit, command.renter_id, dates, amount, now, hold_duration())


class ConfirmPaymentHandler(BookingHandler):
    """
    Handler for ConfirmPayment command

    Outcomes:
    - hold live and capacity still there: PENDING, waiting for the owner
    - hold expired: CANCELLED, then HoldExpired is raised
    - capacity gone: CANCELLED, then AvailabilityChanged is raised

    The failing outcomes are committed before the error is raised so the
    capacity is released either way.
    """

    def handle(self, command: ConfirmPaymentCommand) -> Reservation:
        now = self.clock.now()
        outcome: Optional[Exception] = None

        with DjangoUnitOfWork() as uow:
            reservation = self.reservation_repo.get(command.reservation_id)
            if command.renter_id is not None:
                reservation.ensure_renter(command.renter_id)
            reservation.ensure_payment_hold()

            if reservation.hold_expired(now):
                reservation.expire_hold(now)
                if self.reservation_repo.save(reservation, ReservationStatus.PAYMENT_HOLD):
                    uow.collect_events(reservation)
                outcome = HoldExpired("Payment hold has expired. Please try booking again.")
            else:
                unit = self.equipment_repo.get(reservation.equipment_id, lock=True)
                report = self._availability(unit, reservation.dates, now, exclude_reservation_id=reservation.id)
                if not report.available:
                    reservation.release_unavailable_hold(now)
                    if self.reservation_repo.save(reservation, ReservationStatus.PAYMENT_HOLD):
                        uow.collect_events(reservation)
                    outcome = AvailabilityChanged(
                        "Equipment is no longer available for selected dates",
                        report.unavailable_dates,
                    )
                else:
                    reservation.confirm_payment(command.payment_method, command.transaction_id, now)
                    self._save_or_fail(
                        reservation,
                        ReservationStatus.PAYMENT_HOLD,
                        AvailabilityChanged("Booking changed while confirming payment", reservation.dates),
                        hold_live_at=now,
                    )
                    uow.collect_events(reservation)

        if outcome is not None:
            logger.warning(f"Payment confirmation for reservation {reservation.id} failed: {outcome}")
            raise outcome

        logger.info(f"Payment confirmed for reservation {reservation.id}, awaiting owner approval")
        return reservation


class _SimpleTransitionHandler(BookingHandler):
    """Transitions that never claim capacity: load, apply, compare-and-set."""

    def _apply(self, reservation: Reservation, command, now: datetime) -> None:
        raise NotImplementedError

    def handle(self, command) -> Reservation:
        now = self.clock.now()
        with DjangoUnitOfWork() as uow:
            reservation = self.reservation_repo.get(command.reservation_id)
            expected = reservation.status
            self._apply(reservation, command, now)
            self._save_or_fail(
                reservation,
                expected,
                InvalidStatus("Booking status changed while processing, please retry"),
            )
            uow.collect_events(reservation)

        logger.info(
            f"Reservation {reservation.id} moved {expected.value} -> {reservation.status.value}"
        )
        return reservation


class FailPaymentHandler(_SimpleTransitionHandler):

    def _apply(self, reservation, command: FailPaymentCommand, now):
        if command.renter_id is not None:
            reservation.ensure_renter(command.renter_id)
        reservation.fail_payment(now)


class CancelPaymentHandler(_SimpleTransitionHandler):

    def _apply(self, reservation, command: CancelPaymentCommand, now):
        if command.renter_id is not None:
            reservation.ensure_renter(command.renter_id)
        reservation.cancel_payment(now)


class RejectBookingHandler(_SimpleTransitionHandler):
    """Rejecting frees the dates; there is no counter to give back."""

    def _apply(self, reservation, command: RejectBookingCommand, now):
        reservation.reject(command.owner_id, now)


class CompleteBookingHandler(_SimpleTransitionHandler):

    def _apply(self, reservation, command: CompleteBookingCommand, now):
        reservation.complete(command.owner_id, now)


class AcceptBookingHandler(BookingHandler):
    """
    Handler for AcceptBooking command

    The re-check counts confirmed reservations and live holds only. Other
    pending requests on the same days are competing for the same unit, so of
    two overlapping pending requests on the last unit only the first accept
    goes through.
    """

    def handle(self, command: AcceptBookingCommand) -> Reservation:
        now = self.clock.now()
        with DjangoUnitOfWork() as uow:
            reservation = self.reservation_repo.get(command.reservation_id)
            reservation.accept(command.owner_id, now)

            unit = self.equipment_repo.get(reservation.equipment_id, lock=True)
            report = self._availability(
                unit,
                reservation.dates,
                now,
                exclude_reservation_id=reservation.id,
                include_pending=False,
            )
            if not report.available:
                logger.warning(
                    f"Accept of reservation {reservation.id} refused, "
                    f"no capacity on {report.unavailable_dates}"
                )
            self._require_available(report, "Equipment is no longer available for these dates")

            self._save_or_fail(
                reservation,
                ReservationStatus.PENDING,
                AvailabilityChanged("Booking changed while accepting", reservation.dates),
            )
            uow.collect_events(reservation)

        logger.info(f"Reservation {reservation.id} accepted by owner {command.owner_id}")
        return reservation


class UpdateBookingHandler(BookingHandler):
    """
    Handler for UpdateBooking command

    Date changes are validated against the booking window and re-checked
    for capacity excluding the reservation itself. A status change that
    starts consuming capacity is re-checked the same way.
    """

    def _new_dates(self, command: UpdateBookingCommand, today: date) -> Optional[DateSet]:
        if command.start_date is None and command.end_date is None:
            return None
        if command.start_date is None or command.end_date is None:
            raise NoDatesProvided("Both start_date and end_date are required to change dates")
        try:
            start, end = to_day(command.start_date), to_day(command.end_date)
        except InvalidDate as exc:
            raise InvalidDateWindow(str(exc)) from None
        if start < today:
            raise InvalidDateWindow("Start date cannot be in the past", start)
        if end <= start:
            raise InvalidDateWindow("End date must be after start date", end)
        try:
            dates = DateSet.between(start, end, max_days=self.window.max_dates)
        except DateRangeTooLong as exc:
            raise InvalidDateWindow(str(exc), exc.day) from None
        self.window.validate(dates, today)
        return dates

    @staticmethod
    def _new_status(value: Optional[str]) -> Optional[ReservationStatus]:
        if value is None:
            return None
        try:
            status = ReservationStatus(value)
        except ValueError:
            raise InvalidStatus(f"Invalid status: {value}") from None
        if status == ReservationStatus.PAYMENT_HOLD:
            raise InvalidStatus("Payment holds can only be created through the payment flow")
        return status

    def handle(self, command: UpdateBookingCommand) -> Reservation:
        now = self.clock.now()
        new_status = self._new_status(command.status)
        new_dates = self._new_dates(command, local_today(now))

        with DjangoUnitOfWork() as uow:
            reservation = self.reservation_repo.get(command.reservation_id)
            expected = reservation.status
            if new_status is not None or command.caller_id is not None:
                if new_status is not None or str(command.caller_id) != str(reservation.renter_id):
                    reservation.ensure_owner(command.caller_id)

            was_consuming = reservation.consumes_capacity(now)
            if new_dates is not None:
                reservation.reschedule(new_dates, now)
            if new_status is not None and new_status != reservation.status:
                reservation.change_status(new_status, now)

            starts_consuming = reservation.status in CAPACITY_STATUSES and not was_consuming
            if new_dates is not None or starts_consuming:
                unit = self.equipment_repo.get(reservation.equipment_id, lock=True)
                report = self._availability(
                    unit, reservation.dates, now, exclude_reservation_id=reservation.id,
                )
                self._require_available(report, "Equipment is not available for the new dates")

            self._save_or_fail(
                reservation,
                expected,
                AvailabilityChanged("Booking changed while updating", reservation.dates),
            )
            uow.collect_events(reservation)

        logger.info(
            f"Reservation {reservation.id} updated: status {reservation.status.value}, "
            f"dates {reservation.dates}"
        )
        return reservation


class CancelDatesHandler(BookingHandler):
    """
    Handler for CancelDates command

    Returns the updated reservation with a fresh availability report for
    the days that were given back.
    """

    def handle(self, command: CancelDatesCommand) -> CancelDatesResult:
        try:
            to_cancel = DateSet.of(command.dates)
        except EmptyDateSet:
            raise NoDatesProvided("datesToCancel must contain at least one date") from None
        except InvalidDate as exc:
            raise InvalidDateWindow(str(exc)) from None

        now = self.clock.now()
        with DjangoUnitOfWork() as uow:
            reservation = self.reservation_repo.get(command.reservation_id)
            expected = reservation.status
            remaining = reservation.cancel_dates(command.renter_id, to_cancel, now)
            self._save_or_fail(
                reservation,
                expected,
                InvalidStatus("Booking status changed while processing, please retry"),
            )
            uow.collect_events(reservation)

        if remaining:
            logger.info(f"Cancelled {to_cancel} from reservation {reservation.id}, remaining {remaining}")
        else:
            logger.info(f"Reservation {reservation.id} cancelled completely")

        unit = self.equipment_repo.get(reservation.equipment_id)
        report = self._availability(unit, to_cancel, now)
        return CancelDatesResult(reservation=reservation, availability=report)


class SweepExpiredHoldsHandler:
    """
    Handler for SweepExpiredHolds command

    One conditional bulk update; safe to run any number of times and
    concurrently with payment confirmations.
    """

    def __init__(self, reservation_repo, clock: Optional[Clock] = None):
        self.reservation_repo = reservation_repo
        self.clock = clock or SystemClock()

    def handle(self, command: Optional[SweepExpiredHoldsCommand] = None) -> dict:
        now = self.clock.now()
        with transaction.atomic():
            expired_count, candidate_ids = self.reservation_repo.expire_holds(now)

        if expired_count:
            logger.info(f"Expired {expired_count} payment holds: {candidate_ids}")
        else:
            logger.debug("No expired payment holds")
        return {'expired_count': expired_count}
