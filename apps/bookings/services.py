"""Entry point for booking workflows.

``BookingService`` wires repositories, the clock and the booking window into
the command handlers and queries. Views, tasks and tests call it instead of
the handlers directly.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, List, Optional

from apps.bookings.application import command_handlers as commands
from apps.bookings.application.queries import AvailabilityQuery, CalendarQuery, ReservationListQuery
from apps.bookings.clock import Clock, SystemClock
from apps.bookings.domain.availability import AvailabilityReport
from apps.bookings.domain.entities import Reservation
from apps.bookings.domain.policies import BookingWindow
from apps.bookings.repositories import EquipmentRepository, ReservationRepository


class BookingService:
    """Facade over the booking use cases."""

    def __init__(
        self,
        reservation_repo: Optional[ReservationRepository] = None,
        equipment_repo: Optional[EquipmentRepository] = None,
        clock: Optional[Clock] = None,
        window: Optional[BookingWindow] = None,
    ):
        self.reservation_repo = reservation_repo or ReservationRepository()
        self.equipment_repo = equipment_repo or EquipmentRepository()
        self.clock = clock or SystemClock()
        self.window = window or BookingWindow.from_settings()

    def _handler(self, handler_class):
        return handler_class(self.reservation_repo, self.equipment_repo, self.clock, self.window)

    # ----- creation -----

    def create_booking(self, equipment_id, renter_id, total_amount: Decimal,
                       dates: Optional[Iterable] = None, start_date=None, end_date=None) -> Reservation:
        command = commands.CreateBookingCommand(
            equipment_id=equipment_id,
            renter_id=renter_id,
            total_amount=total_amount,
            dates=list(dates) if dates is not None else None,
            start_date=start_date,
            end_date=end_date,
        )
        return self._handler(commands.CreateBookingHandler).handle(command)

    def create_payment_hold(self, equipment_id, renter_id, total_amount: Decimal,
                            dates: Optional[Iterable] = None, start_date=None, end_date=None) -> Reservation:
        command = commands.CreatePaymentHoldCommand(
            equipment_id=equipment_id,
            renter_id=renter_id,
            total_amount=total_amount,
            dates=list(dates) if dates is not None else None,
            start_date=start_date,
            end_date=end_date,
        )
        return self._handler(commands.CreatePaymentHoldHandler).handle(command)

    # ----- payment -----

    def confirm_payment(self, reservation_id, payment_method: str = '', transaction_id: str = '',
                        renter_id=None) -> Reservation:
        command = commands.ConfirmPaymentCommand(
            reservation_id=reservation_id,
            payment_method=payment_method,
            transaction_id=transaction_id,
            renter_id=renter_id,
        )
        return self._handler(commands.ConfirmPaymentHandler).handle(command)

    def fail_payment(self, reservation_id, renter_id=None) -> Reservation:
        command = commands.FailPaymentCommand(reservation_id=reservation_id, renter_id=renter_id)
        return self._handler(commands.FailPaymentHandler).handle(command)

    def cancel_payment(self, reservation_id, renter_id=None) -> Reservation:
        command = commands.CancelPaymentCommand(reservation_id=reservation_id, renter_id=renter_id)
        return self._handler(commands.CancelPaymentHandler).handle(command)

    # ----- owner decisions -----

    def accept_booking(self, reservation_id, owner_id) -> Reservation:
        command = commands.AcceptBookingCommand(reservation_id=reservation_id, owner_id=owner_id)
        return self._handler(commands.AcceptBookingHandler).handle(command)

    def reject_booking(self, reservation_id, owner_id) -> Reservation:
        command = commands.RejectBookingCommand(reservation_id=reservation_id, owner_id=owner_id)
        return self._handler(commands.RejectBookingHandler).handle(command)

    def complete_booking(self, reservation_id, owner_id) -> Reservation:
        command = commands.CompleteBookingCommand(reservation_id=reservation_id, owner_id=owner_id)
        return self._handler(commands.CompleteBookingHandler).handle(command)

    # ----- edits -----

    def update_booking(self, reservation_id, patch: dict, caller_id=None) -> Reservation:
        command = commands.UpdateBookingCommand(
            reservation_id=reservation_id,
            caller_id=caller_id,
            status=patch.get('status'),
            start_date=patch.get('start_date'),
            end_date=patch.get('end_date'),
        )
        return self._handler(commands.UpdateBookingHandler).handle(command)

    def cancel_dates(self, reservation_id, dates: Iterable, renter_id) -> commands.CancelDatesResult:
        command = commands.CancelDatesCommand(
            reservation_id=reservation_id,
            renter_id=renter_id,
            dates=list(dates or []),
        )
        return self._handler(commands.CancelDatesHandler).handle(command)

    # ----- reads -----

    def check_availability(self, equipment_id, dates: Optional[Iterable] = None, start_date=None,
                           end_date=None, exclude_reservation_id=None) -> AvailabilityReport:
        query = AvailabilityQuery(self.reservation_repo, self.equipment_repo, self.clock)
        return query.execute(
            equipment_id,
            dates=dates,
            start_date=start_date,
            end_date=end_date,
            exclude_reservation_id=exclude_reservation_id,
        )

    def get_calendar(self, equipment_id, month: Optional[int] = None, year: Optional[int] = None) -> dict:
        return CalendarQuery(self.reservation_repo, self.equipment_repo, self.clock).execute(
            equipment_id, month=month, year=year,
        )

    def get_reservation(self, reservation_id) -> Reservation:
        return self.reservation_repo.get(reservation_id)

    def list_reservations(self, **filters) -> List:
        return ReservationListQuery(self.reservation_repo).execute(**filters)

    # ----- maintenance -----

    def sweep_expired_holds(self) -> dict:
        handler = commands.SweepExpiredHoldsHandler(self.reservation_repo, self.clock)
        return handler.handle(commands.SweepExpiredHoldsCommand())
