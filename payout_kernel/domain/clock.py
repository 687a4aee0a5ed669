"""
Clock -- injectable time source.

Responsibility:
    Services, the sweep and the eligibility rule never call ``datetime.now()``
    directly; they receive a Clock.  Tests drive the 48-hour settlement
    window with a DeterministicClock instead of sleeping.

Architecture position:
    Kernel > Domain.  SystemClock is the one sanctioned I/O boundary for time.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


class Clock(ABC):
    """
    Abstract clock interface.

    Guarantees:
        - ``now()`` returns a timezone-aware UTC ``datetime``.
    """

    @abstractmethod
    def now(self) -> datetime:
        """Get the current time."""
        ...


class SystemClock(Clock):
    """Production clock backed by the system time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Test clock with controlled time.

    ``now()`` returns the same value on repeated calls until ``advance()``
    or ``set_time()`` is called.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._current = fixed_time or datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._current

    def set_time(self, time: datetime) -> None:
        """Set the clock to a specific time."""
        self._current = time

    def advance(self, seconds: float = 0, *, hours: float = 0) -> datetime:
        """Move the clock forward and return the new time."""
        self._current = self._current + timedelta(seconds=seconds, hours=hours)
        return self._current

    def tick(self) -> datetime:
        """Advance by 1 second and return the new time."""
        return self.advance(1)
