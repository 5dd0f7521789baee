"""
Booking Queries

Read-side use cases. Nothing here writes; every figure is computed from
the reservations stored right now.
"""

from calendar import monthrange
from datetime import date
from typing import Iterable, List, Optional
import logging

from django.conf import settings

from shared.domain.value_objects import DateSet
from apps.bookings.application.command_handlers import DayInput, parse_dates
from apps.bookings.clock import Clock, SystemClock, local_today
from apps.bookings.domain.availability import (
    AvailabilityCalculator,
    AvailabilityReport,
    counts_towards_capacity,
)
from apps.bookings.domain.exceptions import InvalidDateWindow, InvalidStatus
from apps.bookings.filters import ReservationFilterSet

logger = logging.getLogger(__name__)


def max_query_days() -> int:
    options = getattr(settings, 'RENTAL_BOOKING', {})
    return options.get('MAX_QUERY_DAYS', 93)


class AvailabilityQuery:
    """
    Per-day remaining capacity for one unit.

    A single check covers at most ``MAX_QUERY_DAYS`` days.
    """

    def __init__(self, reservation_repo, equipment_repo, clock: Optional[Clock] = None):
        self.reservation_repo = reservation_repo
        self.equipment_repo = equipment_repo
        self.clock = clock or SystemClock()

    def execute(
        self,
        equipment_id,
        dates: Optional[Iterable[DayInput]] = None,
        start_date: Optional[DayInput] = None,
        end_date: Optional[DayInput] = None,
        exclude_reservation_id=None,
    ) -> AvailabilityReport:
        unit = self.equipment_repo.get(equipment_id)
        requested = parse_dates(dates, start_date, end_date, max_days=max_query_days())
        now = self.clock.now()
        reservations = self.reservation_repo.find_for_availability(
            unit.id, requested, now, exclude_reservation_id=exclude_reservation_id,
        )
        return AvailabilityCalculator.report(
            unit, requested, reservations, now, exclude_reservation_id=exclude_reservation_id,
        )


class CalendarQuery:
    """
    Month view of a unit

    Uses the same counting rule as availability checks: confirmed, pending
    and unexpired payment holds occupy a unit.
    """

    def __init__(self, reservation_repo, equipment_repo, clock: Optional[Clock] = None):
        self.reservation_repo = reservation_repo
        self.equipment_repo = equipment_repo
        self.clock = clock or SystemClock()

    def execute(self, equipment_id, month: Optional[int] = None, year: Optional[int] = None) -> dict:
        unit = self.equipment_repo.get(equipment_id)
        now = self.clock.now()
        today = local_today(now)
        year = int(year) if year else today.year
        month = int(month) if month else today.month
        if not 1 <= month <= 12:
            raise InvalidDateWindow(f"Invalid month: {month}")

        first = date(year, month, 1)
        last = date(year, month, monthrange(year, month)[1])
        days = DateSet.between(first, last)
        reservations = [
            reservation
            for reservation in self.reservation_repo.find_for_availability(unit.id, days, now)
            if counts_towards_capacity(reservation, now)
        ]

        calendar = {}
        for day in days:
            day_bookings = [reservation for reservation in reservations if day in reservation.dates]
            calendar[day.isoformat()] = {
                'available_units': unit.total_quantity - len(day_bookings),
                'total_units': unit.total_quantity,
                'available': unit.total_quantity - len(day_bookings) > 0,
                'bookings': [
                    {
                        'id': reservation.id,
                        'renter_id': reservation.renter_id,
                        'status': reservation.status.value,
                        'start_date': reservation.start_date.isoformat(),
                        'end_date': reservation.end_date.isoformat(),
                    }
                    for reservation in day_bookings
                ],
            }

        return {
            'equipment_id': unit.id,
            'equipment_name': unit.name,
            'total_units': unit.total_quantity,
            'month': month,
            'year': year,
            'calendar': calendar,
        }


class ReservationListQuery:
    """
    Filtered reservation listing

    Supported filters: ``renter``, ``owner``, ``equipment``, ``status`` and
    ``start_date``/``end_date`` which keep reservations overlapping that range.
    """

    def __init__(self, reservation_repo):
        self.reservation_repo = reservation_repo

    def execute(self, **filters) -> List:
        data = {key: value for key, value in filters.items() if value is not None}
        filterset = ReservationFilterSet(data=data, queryset=self.reservation_repo.query())
        if not filterset.is_valid():
            if "status" in filterset.errors:
                raise InvalidStatus(f"Invalid status: {filters['status']}")
            raise InvalidDateWindow(f"Invalid filters: {dict(filterset.errors)}")
        return list(filterset.qs)
