"""
Availability Calculator

Derives per-day remaining capacity for one unit from the reservations that
overlap the requested days. Nothing here is cached; every report is computed
from the reservations handed in.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

from shared.domain.value_objects import DateSet

from apps.bookings.domain.entities import Reservation, ReservationStatus, Unit
from apps.bookings.domain.exceptions import NoDatesProvided


@dataclass(frozen=True)
class DayAvailability:
    available_units: int
    total_units: int
    bookings_count: int

    @property
    def available(self) -> bool:
        return self.available_units > 0

    def to_dict(self) -> dict:
        return {
            'available_units': self.available_units,
            'total_units': self.total_units,
            'bookings_count': self.bookings_count,
            'available': self.available,
        }


@dataclass(frozen=True)
class AvailabilityReport:
    """
    Result of an availability check

    ``min_available`` is the smallest per-day figure. It says how many units
    are free on the busiest requested day, not that the same physical units
    are free across every day.
    """
    equipment_id: int
    total_units: int
    requested_dates: DateSet
    per_date: Dict[date, DayAvailability] = field(default_factory=dict)

    @property
    def available_per_date(self) -> Dict[date, int]:
        return {day: info.available_units for day, info in self.per_date.items()}

    @property
    def min_available(self) -> int:
        return min(
            (info.available_units for info in self.per_date.values()),
            default=self.total_units,
        )

    @property
    def available(self) -> bool:
        return all(info.available for info in self.per_date.values())

    @property
    def unavailable_dates(self) -> List[date]:
        return [day for day, info in self.per_date.items() if not info.available]

    @property
    def message(self) -> str:
        if self.available:
            return f"{self.min_available} units available for all selected dates"
        return "Some dates are not available"

    def to_dict(self) -> dict:
        return {
            'equipment_id': self.equipment_id,
            'available': self.available,
            'min_available': self.min_available,
            'total_units': self.total_units,
            'requested_dates': self.requested_dates.iso(),
            'available_per_date': {
                day.isoformat(): units for day, units in self.available_per_date.items()
            },
            'date_availability': {
                day.isoformat(): info.to_dict() for day, info in self.per_date.items()
            },
            'unavailable_dates': [day.isoformat() for day in self.unavailable_dates],
            'message': self.message,
        }


def counts_towards_capacity(reservation: Reservation, now: datetime,
                            include_pending: bool = True) -> bool:
    """
    Whether ``reservation`` occupies a unit at ``now``.

    Confirmed reservations and live payment holds always count. Pending
    requests count unless ``include_pending`` is off, which is how an owner
    accept is re-checked against capacity that is already committed.
    """
    if reservation.status == ReservationStatus.CONFIRMED:
        return True
    if reservation.status == ReservationStatus.PENDING:
        return include_pending
    return reservation.consumes_capacity(now)


class AvailabilityCalculator:
    """Pure capacity arithmetic over a unit and its overlapping reservations."""

    @staticmethod
    def report(
        unit: Unit,
        requested: DateSet,
        reservations: Iterable[Reservation],
        now: datetime,
        exclude_reservation_id: Optional[int] = None,
        include_pending: bool = True,
    ) -> AvailabilityReport:
        if not requested:
            raise NoDatesProvided()

        counts = {day: 0 for day in requested}
        for reservation in reservations:
            if exclude_reservation_id is not None and reservation.id == exclude_reservation_id:
                continue
            if not counts_towards_capacity(reservation, now, include_pending):
                continue
            for day in reservation.dates:
                if day in counts:
                    counts[day] += 1

        per_date = {
            day: DayAvailability(
                available_units=unit.total_quantity - booked,
                total_units=unit.total_quantity,
                bookings_count=booked,
            )
            for day, booked in counts.items()
        }
        return AvailabilityReport(
            equipment_id=unit.id,
            total_units=unit.total_quantity,
            requested_dates=requested,
            per_date=per_date,
        )
