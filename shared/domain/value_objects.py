"""
Common Value Objects

Value objects used across the rental domains:
- Money: monetary amount with currency
- DateSet: ordered set of calendar days a reservation occupies

``expand`` and ``normalize`` are the two ways a caller describes dates:
an inclusive start/end range or an explicit list of days.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Iterator, Optional, Tuple, Union

from shared.domain.base import ValueObject

DayLike = Union[date, str]

CENT = Decimal('0.01')
SUPPORTED_CURRENCIES = ('INR', 'USD', 'EUR', 'KZT')


class InvalidDate(ValueError):
    """Raised when a day identifier is not a valid ``YYYY-MM-DD`` string."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"Invalid date '{value}', expected YYYY-MM-DD")


class EmptyDateSet(ValueError):
    """Raised when a date set is required but no days were given."""


class DateRangeTooLong(ValueError):
    """Raised when a request covers more days than the caller allows.

    ``day`` is the end of an oversized range, or the first day past the limit
    in an explicit list.
    """

    def __init__(self, day: date, max_days: int):
        self.day = day
        self.max_days = max_days
        super().__init__(f"Too many days requested, at most {max_days} allowed (got up to {day.isoformat()})")


def to_day(value: DayLike) -> date:
    """Coerce a ``date`` or ISO string into a ``date``."""
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise InvalidDate(value) from None


def expand(start: DayLike, end: DayLike, max_days: Optional[int] = None) -> Tuple[date, ...]:
    """
    Inclusive day-by-day enumeration from ``start`` to ``end``.

    Works on calendar dates, so DST transitions can neither skip nor repeat
    a day. ``end`` before ``start`` gives an empty tuple. With ``max_days``
    the span is checked before anything is built.
    """
    first, last = to_day(start), to_day(end)
    span = (last - first).days
    if max_days is not None and span + 1 > max_days:
        raise DateRangeTooLong(last, max_days)
    return tuple(first + timedelta(days=offset) for offset in range(span + 1))


def normalize(
    dates: Optional[Iterable[DayLike]] = None,
    start: Optional[DayLike] = None,
    end: Optional[DayLike] = None,
    max_days: Optional[int] = None,
) -> Tuple[date, ...]:
    """
    Sorted, de-duplicated days from either an explicit list or a range.

    The explicit list wins when both forms are supplied. An empty list, or no
    usable input at all, raises ``EmptyDateSet``. More than ``max_days`` days
    raises ``DateRangeTooLong``.
    """
    if dates is not None:
        days = {to_day(value) for value in dates}
        if max_days is not None and len(days) > max_days:
            raise DateRangeTooLong(sorted(days)[max_days], max_days)
    elif start is not None and end is not None:
        days = set(expand(start, end, max_days))
    else:
        raise EmptyDateSet("Either provide dates or start and end")

    if not days:
        raise EmptyDateSet("No dates provided")
    return tuple(sorted(days))


@dataclass(frozen=True)
class Money(ValueObject):
    """
    Money value object

    Amounts are kept as ``Decimal`` and quantized to cents on every
    arithmetic result.
    """
    amount: Decimal
    currency: str = 'INR'

    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, 'amount', Decimal(str(self.amount)))
        if self.amount < 0:
            raise ValueError("Amount cannot be negative")
        if self.currency not in SUPPORTED_CURRENCIES:
            raise ValueError(f"Unsupported currency: {self.currency}")

    def _check(self, other: 'Money'):
        if not isinstance(other, Money):
            raise TypeError("Can only combine Money with Money")
        if self.currency != other.currency:
            raise ValueError(f"Currency mismatch: {self.currency} and {other.currency}")

    def __add__(self, other: 'Money') -> 'Money':
        self._check(other)
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: 'Money') -> 'Money':
        self._check(other)
        return Money(self.amount - other.amount, self.currency)

    def prorate(self, part: int, whole: int) -> 'Money':
        """Scale to ``part/whole`` of the current amount, rounded to cents."""
        if whole <= 0:
            raise ValueError("Cannot prorate over an empty whole")
        scaled = (self.amount * Decimal(part) / Decimal(whole)).quantize(CENT, rounding=ROUND_HALF_UP)
        return Money(scaled, self.currency)

    def __str__(self):
        return f"{self.amount:,.2f} {self.currency}"

    def __repr__(self):
        return f"Money({self.amount}, '{self.currency}')"


@dataclass(frozen=True)
class DateSet(ValueObject):
    """
    Ordered set of calendar days

    The range fields (``start``/``end``) are derived from the days and exist
    for consumers that only understand a start/end pair.
    """
    days: Tuple[date, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'days', tuple(sorted({to_day(day) for day in self.days})))

    @classmethod
    def of(cls, dates: Optional[Iterable[DayLike]] = None, start: Optional[DayLike] = None,
           end: Optional[DayLike] = None, max_days: Optional[int] = None) -> 'DateSet':
        return cls(normalize(dates, start, end, max_days))

    @classmethod
    def between(cls, start: DayLike, end: DayLike, max_days: Optional[int] = None) -> 'DateSet':
        return cls(expand(start, end, max_days))

    @property
    def start(self) -> Optional[date]:
        return self.days[0] if self.days else None

    @property
    def end(self) -> Optional[date]:
        return self.days[-1] if self.days else None

    def overlaps(self, other: 'DateSet') -> bool:
        return bool(set(self.days) & set(other.days))

    def intersection(self, other: 'DateSet') -> 'DateSet':
        return DateSet(tuple(set(self.days) & set(other.days)))

    def difference(self, other: 'DateSet') -> 'DateSet':
        return DateSet(tuple(set(self.days) - set(other.days)))

    def missing_from(self, other: 'DateSet') -> Tuple[date, ...]:
        """Days of this set that ``other`` does not contain."""
        return tuple(day for day in self.days if day not in other)

    def iso(self) -> list:
        return [day.isoformat() for day in self.days]

    def __contains__(self, value) -> bool:
        return to_day(value) in self.days

    def __iter__(self) -> Iterator[date]:
        return iter(self.days)

    def __len__(self) -> int:
        return len(self.days)

    def __bool__(self) -> bool:
        return bool(self.days)

    def __str__(self):
        return ', '.join(self.iso())

    def __repr__(self):
        return f"DateSet({self.iso()})"
