"""Time source for the booking engine."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Protocol

from django.utils import timezone  # type: ignore


class Clock(Protocol):
    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall clock, timezone-aware (UTC when ``USE_TZ`` is on)."""

    def now(self) -> datetime:
        return timezone.now()


class FrozenClock:
    """Clock that only moves when told to. Used by tests and replay scripts."""

    def __init__(self, at: datetime):
        self._now = at

    def now(self) -> datetime:
        return self._now

    def set(self, at: datetime) -> None:
        self._now = at

    def advance(self, **delta) -> datetime:
        self._now = self._now + timedelta(**delta)
        return self._now


def local_today(now: datetime) -> date:
    """Calendar day of ``now`` in the configured ``TIME_ZONE``."""
    return timezone.localdate(now)
