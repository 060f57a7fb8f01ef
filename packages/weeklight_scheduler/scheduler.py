"""
Weekly Scheduler

Runs the active schedule: waits until the next event is due, fires every
due event in order, and starts a new pass at each week rollover.
"""

from __future__ import annotations

import asyncio
import logging
import traceback
from collections.abc import Awaitable, Callable, Mapping
from datetime import datetime, timedelta

from weeklight_core.exceptions import SchedulerActivationError
from weeklight_core.models import Command, CompiledEvent

from .week_clock import WeekClock
from .weekly_queue import WeeklyQueue

logger = logging.getLogger(__name__)

TriggerConsumer = Callable[[Command], None]
SleepFunc = Callable[[float], Awaitable[None]]

ONE_WEEK = timedelta(weeks=1)


class Scheduler:
    """
    Drives one active WeeklyQueue against the wall clock.

    States:
        idle -> activate(name) -> waiting -> (timer) -> firing -> waiting
        waiting with an exhausted pass -> (week boundary) -> rollover -> waiting

    Triggered commands go to a single consumer callback, in the order they
    were due.

    Usage:
        >>> scheduler = Scheduler(queues, on_trigger=dispatcher.enqueue)
        >>> scheduler.activate("default")
        >>> await scheduler.run()
    """

    ERROR_BACKOFF: float = 1.0  # seconds
    # Longest single wait; due times are re-checked against the wall clock
    # after each one, so a DST shift or clock change costs at most this much
    MAX_SLEEP: float = 600.0  # seconds

    def __init__(
        self,
        queues: Mapping[str, WeeklyQueue],
        clock: WeekClock | None = None,
        on_trigger: TriggerConsumer | None = None,
        sleep: SleepFunc | None = None,
    ):
        """
        Initialize scheduler.

        Args:
            queues: Compiled schedules (from ScheduleCompiler.compile)
            clock: Week clock (injectable for tests)
            on_trigger: Consumer for triggered commands
            sleep: Awaitable sleep (defaults to a sleep that activation interrupts)
        """
        self._queues = dict(queues)
        self._clock = clock or WeekClock()
        self._on_trigger = on_trigger
        self._sleep = sleep or self._interruptible_sleep

        self._active_name: str | None = None
        self._active_queue: WeeklyQueue | None = None
        # Start of the week the active queue's offsets are measured from
        self._pass_start: datetime | None = None
        # Bumped on every activation so a sleeping loop recomputes its delay
        self._generation = 0

        self._wakeup = asyncio.Event()
        self._running = False

    # ================================================================
    # Activation
    # ================================================================

    @property
    def schedules(self) -> list[str]:
        """Names of the schedules that can be activated."""
        return list(self._queues.keys())

    @property
    def active_schedule(self) -> str | None:
        return self._active_name

    @property
    def active_queue(self) -> WeeklyQueue | None:
        return self._active_queue

    def set_consumer(self, on_trigger: TriggerConsumer | None) -> None:
        """Register the consumer for triggered commands."""
        self._on_trigger = on_trigger

    def activate(self, name: str) -> None:
        """
        Make a schedule the active one.

        The previous queue is discarded; the new one gets a fresh copy of
        the compiled week, regenerated for the current time.

        Raises:
            SchedulerActivationError: If the schedule is unknown. The
                scheduler keeps its previous state.
        """
        if name not in self._queues:
            logger.error(f"Couldn't find schedule '{name}'")
            raise SchedulerActivationError(f"Unknown schedule: {name}")

        compiled = self._queues[name]
        queue = WeeklyQueue(compiled.name, compiled.events)

        now = self._clock.now()
        queue.regenerate(self._clock.week_offset(now))
        week_start = WeekClock.week_start(now)
        self._pass_start = week_start + ONE_WEEK if queue.deferred else week_start

        self._active_name = name
        self._active_queue = queue
        self._generation += 1
        self._wakeup.set()
        logger.info(f"Starting schedule '{name}'")

    # ================================================================
    # Timing
    # ================================================================

    def next_run_at(self) -> datetime | None:
        """Wall-clock time of the next queued event in this pass."""
        queue = self._require_active()
        event = queue.peek()
        if event is None:
            return None
        return self._due_at(event)

    def seconds_until_next_run(self, now: datetime | None = None) -> float:
        """
        Seconds until the next event fires.

        With the current pass exhausted this is the time until the first
        event of next week's pass. Never negative; 0 means overdue.
        """
        queue = self._require_active()
        if now is None:
            now = self._clock.now()

        event = queue.peek()
        if event is not None:
            target = self._due_at(event)
        elif queue.events:
            target = self._next_pass_start() + timedelta(
                seconds=queue.events[0].week_offset_seconds
            )
        else:
            target = self._next_pass_start()
        return max(0.0, (target - now).total_seconds())

    def seconds_until_rollover(self, now: datetime | None = None) -> float:
        """Seconds until the current pass's week ends."""
        self._require_active()
        if now is None:
            now = self._clock.now()
        return max(0.0, (self._next_pass_start() - now).total_seconds())

    def _due_at(self, event: CompiledEvent) -> datetime:
        assert self._pass_start is not None
        return self._pass_start + timedelta(seconds=event.week_offset_seconds)

    def _next_pass_start(self) -> datetime:
        assert self._pass_start is not None
        return self._pass_start + ONE_WEEK

    def _require_active(self) -> WeeklyQueue:
        if self._active_queue is None:
            raise SchedulerActivationError("No schedule is active")
        return self._active_queue

    # ================================================================
    # Firing
    # ================================================================

    def fire_due(self) -> list[CompiledEvent]:
        """
        Pop and emit every event that is due now.

        More than one event fires when the timer overshoots or the process
        was suspended; they are emitted in queue order.

        Returns:
            The events that fired
        """
        queue = self._require_active()
        fired: list[CompiledEvent] = []

        while True:
            event = queue.peek()
            if event is None or self._due_at(event) > self._clock.now():
                break
            queue.pop()
            logger.info(f"Triggering event on {event.label} - '{event.command}'")
            fired.append(event)
            if self._on_trigger is not None:
                self._on_trigger(event.command)

        return fired

    def rollover(self) -> None:
        """
        Start the next weekly pass.

        If whole weeks were missed (e.g. the host was suspended) the pass is
        rebuilt for the current week instead of replaying stale events.
        """
        queue = self._require_active()
        now = self._clock.now()
        next_start = self._next_pass_start()

        if next_start + ONE_WEEK <= now:
            queue.regenerate(self._clock.week_offset(now))
            week_start = WeekClock.week_start(now)
            self._pass_start = week_start + ONE_WEEK if queue.deferred else week_start
            logger.warning(
                f"Schedule '{self._active_name}' missed a whole week; "
                "regenerated for the current week"
            )
        else:
            queue.rollover()
            self._pass_start = next_start
            logger.info(f"Regenerated schedule '{self._active_name}' for the new week")

    # ================================================================
    # Main Loop
    # ================================================================

    async def run(self) -> None:
        """Run the trigger loop until stop() is called."""
        self._running = True

        while self._running:
            queue = self._active_queue
            if queue is None:
                await self._wakeup.wait()
                self._wakeup.clear()
                continue

            generation = self._generation
            try:
                if queue.peek() is None:
                    # Nothing left this week: wait for the rollover
                    delay = self.seconds_until_rollover()
                    logger.info(f"End of week - regenerating schedule in {delay:.0f} seconds")
                    await self._sleep(min(delay, self.MAX_SLEEP))
                    if not self._running or generation != self._generation:
                        continue
                    if self.seconds_until_rollover() > 0:
                        continue
                    self.rollover()
                    continue

                delay = self.seconds_until_next_run()
                next_run = self.next_run_at()
                logger.info(
                    f"Triggering next event in {delay:.0f} seconds "
                    f"({next_run:%a %H:%M:%S})"
                )
                await self._sleep(min(delay, self.MAX_SLEEP))
                if not self._running or generation != self._generation:
                    continue
                self.fire_due()

            except Exception as e:
                logger.error(f"Schedule loop error: {e}\n{traceback.format_exc()}")
                await asyncio.sleep(self.ERROR_BACKOFF)

    def stop(self) -> None:
        """Stop the trigger loop."""
        self._running = False
        self._wakeup.set()

    @property
    def is_running(self) -> bool:
        return self._running

    async def _interruptible_sleep(self, seconds: float) -> None:
        """Sleep until the deadline or until activate()/stop() is called."""
        try:
            await asyncio.wait_for(self._wakeup.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass
        self._wakeup.clear()
