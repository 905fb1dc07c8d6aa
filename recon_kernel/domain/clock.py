"""
Clock -- injectable time source.

Responsibility:
    Reconciliation code never calls ``datetime.now()`` directly.  Record
    ages, ``last_checked_at`` stamps and run durations all come from a
    Clock passed in at construction time.

Architecture position:
    Kernel > Domain.  ``SystemClock`` is the only place that reads the
    wall clock.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


class Clock(ABC):
    """
    Abstract clock interface.

    Guarantees:
        ``now()`` returns a timezone-aware UTC ``datetime``.
    """

    @abstractmethod
    def now(self) -> datetime:
        ...

    def seconds_since(self, moment: datetime) -> int:
        """Whole seconds elapsed between ``moment`` and ``now()``.

        Naive datetimes (as returned by SQLite) are treated as UTC.
        """
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return int((self.now() - moment).total_seconds())


class SystemClock(Clock):
    """Production clock backed by the system time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Test clock with controlled time.

    ``now()`` returns the same value until ``advance()`` or ``set_time()``
    is called.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._time = fixed_time or datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._time

    def set_time(self, time: datetime) -> None:
        self._time = time

    def advance(self, seconds: float = 1) -> None:
        self._time = self._time + timedelta(seconds=seconds)
