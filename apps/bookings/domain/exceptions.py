"""
Booking Errors

Every failure a booking operation can report to its caller. Each error has
a stable ``kind`` and a readable message; some carry the dates involved so
the caller can offer alternatives.
"""

from datetime import date
from typing import Iterable, Optional


def _iso(days: Iterable) -> list:
    return [day.isoformat() if isinstance(day, date) else str(day) for day in days]


class BookingError(Exception):
    """Base class for booking operation failures."""

    kind = 'booking_error'

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {'kind': self.kind, 'detail': self.message}


class NotFound(BookingError):
    kind = 'not_found'


class AccessDenied(BookingError):
    kind = 'access_denied'


class InvalidStatus(BookingError):
    kind = 'invalid_status'


class InvalidDateWindow(BookingError):
    kind = 'invalid_date_window'

    def __init__(self, message: str, day: Optional[date] = None):
        self.day = day
        super().__init__(message)

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.day is not None:
            data['date'] = _iso([self.day])[0]
        return data


class InvalidAmount(BookingError):
    kind = 'invalid_amount'


class NoDatesProvided(BookingError):
    kind = 'no_dates_provided'

    def __init__(self, message: str = "No dates provided"):
        super().__init__(message)


class DateNotInBooking(BookingError):
    kind = 'date_not_in_booking'

    def __init__(self, dates: Iterable):
        self.dates = _iso(dates)
        super().__init__(f"These dates are not in your booking: {', '.join(self.dates)}")

    def to_dict(self) -> dict:
        data = super().to_dict()
        data['dates'] = self.dates
        return data


class AvailabilityChanged(BookingError):
    kind = 'availability_changed'

    def __init__(self, message: str, unavailable_dates: Iterable = ()):
        self.unavailable_dates = _iso(unavailable_dates)
        super().__init__(message)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data['unavailable_dates'] = self.unavailable_dates
        return data


class HoldExpired(BookingError):
    kind = 'hold_expired'
