# backend/planner/core/clock.py
"""
Injectable source of "now".

Services take a Clock instead of calling datetime.now() so tests can pin
reference dates and cache expiry deterministically.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Optional, Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        """Current timezone-aware UTC datetime."""
        ...

    def today(self) -> date:
        """Current UTC calendar date."""
        ...


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def today(self) -> date:
        return self.now().date()


class FixedClock:
    """Clock pinned to a given instant; advance() moves it forward."""

    def __init__(self, instant: Optional[datetime] = None) -> None:
        instant = instant or datetime(2023, 6, 15, 12, 0, tzinfo=timezone.utc)
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        self._instant = instant

    def now(self) -> datetime:
        return self._instant

    def today(self) -> date:
        return self._instant.date()

    def advance(self, **delta: float) -> None:
        self._instant = self._instant + timedelta(**delta)


system_clock = SystemClock()
