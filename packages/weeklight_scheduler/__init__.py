"""
Scheduler package for weeklight.

Compiles weekly schedules into ordered event queues and fires them
against the wall clock.
"""

from .compiler import ScheduleCompiler
from .scheduler import Scheduler
from .week_clock import SECONDS_PER_DAY, SECONDS_PER_WEEK, WeekClock
from .weekly_queue import WeeklyQueue

__all__ = [
    "ScheduleCompiler",
    "Scheduler",
    "WeekClock",
    "WeeklyQueue",
    "SECONDS_PER_DAY",
    "SECONDS_PER_WEEK",
]
