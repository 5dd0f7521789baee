"""Booking window rules applied to every date-changing request."""

from dataclasses import dataclass
from datetime import date, timedelta

from shared.domain.value_objects import DateSet

from apps.bookings.domain.exceptions import InvalidDateWindow


@dataclass(frozen=True)
class BookingWindow:
    """
    Dates must fall within ``[today, today + horizon_days]`` (both ends
    inclusive) and a request may name at most ``max_dates`` days.
    """
    horizon_days: int = 15
    max_dates: int = 15

    @classmethod
    def from_settings(cls) -> 'BookingWindow':
        from django.conf import settings

        options = getattr(settings, 'RENTAL_BOOKING', {})
        return cls(
            horizon_days=options.get('BOOKING_WINDOW_DAYS', cls.horizon_days),
            max_dates=options.get('MAX_DATES_PER_BOOKING', cls.max_dates),
        )

    def latest(self, today: date) -> date:
        return today + timedelta(days=self.horizon_days)

    def validate(self, dates: DateSet, today: date) -> None:
        latest = self.latest(today)
        for day in dates:
            if day < today:
                raise InvalidDateWindow(f"Date {day.isoformat()} cannot be in the past", day)
            if day > latest:
                raise InvalidDateWindow(
                    f"Date {day.isoformat()} is beyond the {self.horizon_days}-day booking window. "
                    f"Latest allowed: {latest.isoformat()}",
                    day,
                )
        if len(dates) > self.max_dates:
            raise InvalidDateWindow(
                f"Cannot book more than {self.max_dates} dates at once",
                dates.days[self.max_dates],
            )
