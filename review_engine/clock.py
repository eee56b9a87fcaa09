"""
Clock - source of "now" for the review engine.

Scheduling functions take an explicit timestamp; the service asks a Clock
so tests can pin time without touching the wall clock.
"""

from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """
    Manually driven clock for tests and replays.

    Naive datetimes are treated as UTC.
    """

    def __init__(self, start: datetime):
        self._now = _as_utc(start)

    def now(self) -> datetime:
        return self._now

    def set(self, timestamp: datetime) -> None:
        self._now = _as_utc(timestamp)

    def advance(self, **kwargs) -> datetime:
        """Move forward by a timedelta built from kwargs (days=1, hours=2, ...)."""
        self._now = self._now + timedelta(**kwargs)
        return self._now


def _as_utc(timestamp: datetime) -> datetime:
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp
