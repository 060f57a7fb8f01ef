"""
Weekly Queue

Time-ordered queue of compiled events for one schedule, consumed from
the front and regenerated from the full compiled set when exhausted.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable

from weeklight_core.models import CompiledEvent

logger = logging.getLogger(__name__)


class WeeklyQueue:
    """
    Ordered pass through one week of compiled events.

    The full event list is kept sorted by week offset (stable, so events at
    the same offset keep declaration order). The live queue holds the part
    of the current pass that has not fired yet.

    Usage:
        >>> queue = WeeklyQueue("default", events)
        >>> queue.regenerate(now_offset=clock.week_offset())
        >>> next_event = queue.peek()
    """

    def __init__(self, name: str, events: Iterable[CompiledEvent]):
        self.name = name
        self._events: tuple[CompiledEvent, ...] = tuple(
            sorted(events, key=lambda e: e.week_offset_seconds)
        )
        self._queue: deque[CompiledEvent] = deque(self._events)
        # True when the queue holds next week's pass because nothing
        # was left in the current week at regeneration time
        self.deferred: bool = False

    @property
    def events(self) -> tuple[CompiledEvent, ...]:
        """Full compiled week, ordered by offset."""
        return self._events

    def peek(self) -> CompiledEvent | None:
        """Next event to fire, or None if the pass is exhausted."""
        if self._queue:
            return self._queue[0]
        return None

    def pop(self) -> CompiledEvent | None:
        """Remove and return the next event, or None if the pass is exhausted."""
        if self._queue:
            return self._queue.popleft()
        return None

    def regenerate(self, now_offset: int) -> None:
        """
        Rebuild the pass relative to the current week offset.

        Args:
            now_offset: Seconds since the start of the current week

        If nothing is left to run this week the whole week is queued for
        the next pass; otherwise only events strictly after now_offset are
        kept. Calling it twice at the same offset gives the same queue.
        """
        self._queue.clear()
        self.deferred = False
        if not self._events:
            return

        if self._events[-1].week_offset_seconds <= now_offset:
            self._queue.extend(self._events)
            self.deferred = True
            logger.debug(
                f"Schedule '{self.name}': nothing left this week, "
                f"queued {len(self._queue)} event(s) for next week"
            )
        else:
            self._queue.extend(
                e for e in self._events if e.week_offset_seconds > now_offset
            )
            logger.debug(
                f"Schedule '{self.name}': {len(self._queue)} event(s) left this week"
            )

    def rollover(self) -> None:
        """Queue the full week verbatim at the start of a new week."""
        self._queue.clear()
        self._queue.extend(self._events)
        self.deferred = False

    def remaining(self) -> tuple[CompiledEvent, ...]:
        """Events still queued in this pass."""
        return tuple(self._queue)

    def __len__(self) -> int:
        return len(self._queue)

    def __repr__(self) -> str:
        return (
            f"WeeklyQueue(name={self.name!r}, events={len(self._events)}, "
            f"remaining={len(self._queue)})"
        )
