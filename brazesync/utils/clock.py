"""Time reference shared by the activity filter, data-series queries and export.

Everything that needs "the last UTC midnight" goes through a :class:`Clock` so a
single import pass (and every test) sees one consistent reference point.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

__all__ = ["Clock", "FixedClock", "system_clock", "ONE_DAY"]

ONE_DAY = timedelta(days=1)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Clock:
    """Injectable wall clock."""

    def __init__(self, now: Callable[[], datetime] | None = None) -> None:
        self._now = now or _utc_now

    def now(self) -> datetime:
        current = self._now()
        if current.tzinfo is None:
            current = current.replace(tzinfo=timezone.utc)
        return current.astimezone(timezone.utc)

    def last_utc_midnight(self) -> datetime:
        """Return today's 00:00:00.000 UTC as an aware datetime."""
        return self.now().replace(hour=0, minute=0, second=0, microsecond=0)


class FixedClock(Clock):
    """Clock frozen at *at*; used by tests and by replayed import passes."""

    def __init__(self, at: datetime) -> None:
        super().__init__(lambda: at)


system_clock = Clock()
