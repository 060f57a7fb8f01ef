"""
Week Clock

Maps wall-clock time onto the 7-day schedule cycle (Sunday 00:00:00 = 0).
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, time, timedelta

from weeklight_core.models import SECONDS_PER_WEEK

SECONDS_PER_DAY = 24 * 60 * 60

__all__ = ["SECONDS_PER_DAY", "SECONDS_PER_WEEK", "WeekClock", "seconds_since_start_of_week"]


def seconds_since_start_of_week(day: int, at: time) -> int:
    """Weekly offset of a time of day on a weekday (0=Sunday)."""
    return day * SECONDS_PER_DAY + at.hour * 3600 + at.minute * 60 + at.second


class WeekClock:
    """
    Local wall clock with week arithmetic.

    The time source is injectable so schedule timing can be tested
    without waiting.
    """

    def __init__(self, now: Callable[[], datetime] = datetime.now):
        self._now = now

    def now(self) -> datetime:
        return self._now()

    @staticmethod
    def weekday(dt: datetime) -> int:
        """Weekday with Sunday as 0 (datetime uses Monday as 0)."""
        return (dt.weekday() + 1) % 7

    @classmethod
    def week_start(cls, dt: datetime) -> datetime:
        """Sunday 00:00:00 of the week containing dt."""
        midnight = dt.replace(hour=0, minute=0, second=0, microsecond=0)
        return midnight - timedelta(days=cls.weekday(dt))

    def week_offset(self, dt: datetime | None = None) -> int:
        """Whole seconds elapsed since the start of the week."""
        if dt is None:
            dt = self.now()
        return seconds_since_start_of_week(self.weekday(dt), dt.time())
