"""
Ramp Engine

Turns a "fade up to brightness over N minutes" command into an initial
on-command at brightness 1 followed by timed +1 brightness steps.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from weeklight_core.models import MIN_BRIGHTNESS, Command, LightState

logger = logging.getLogger(__name__)

MILLIS_PER_MINUTE = 60 * 1000


@dataclass
class RampState:
    """Progress of one ramp. Only the owning RampEngine touches it."""

    remaining_steps: int
    step_interval_ms: int
    current_brightness: int
    target_brightness: int
    template: Command


class RampHandle:
    """Handle for a running ramp, returned by RampEngine.start()."""

    def __init__(self, ramp_id: int, state: RampState, initial_command: Command):
        self.ramp_id = ramp_id
        self.state = state
        self.initial_command = initial_command
        self._done = asyncio.Event()

    @property
    def done(self) -> bool:
        return self._done.is_set()

    async def wait(self) -> None:
        """Wait until the final step has been issued."""
        await self._done.wait()

    def _finish(self) -> None:
        self._done.set()

    def __repr__(self) -> str:
        return (
            f"RampHandle(id={self.ramp_id}, remaining={self.state.remaining_steps}, "
            f"interval_ms={self.state.step_interval_ms})"
        )


class RampEngine:
    """
    Runs ramps as independent timed step sequences.

    Step commands are handed to `submit` (the dispatcher's enqueue) rather
    than sent to the device, so ramps share the dispatch rate limit with
    everything else.

    Usage:
        >>> engine = RampEngine(dispatcher.enqueue, startup_offset_ms=100)
        >>> handle = engine.start(command, on_done=active_ramps.discard)
        >>> await device.send(...handle.initial_command...)
    """

    def __init__(
        self,
        submit: Callable[[Command], None],
        startup_offset_ms: int = 0,
        clock: Callable[[], float] = time.perf_counter,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Initialize ramp engine.

        Args:
            submit: Receives each step command
            startup_offset_ms: Time taken off the ramp for the initial command
            clock: Monotonic time source in seconds
            sleep: Awaitable sleep
        """
        self._submit = submit
        self._startup_offset_ms = startup_offset_ms
        self._clock = clock
        self._sleep = sleep
        self._ids = itertools.count(1)
        self._tasks: set[asyncio.Task[None]] = set()

    @staticmethod
    def compute_step_interval_ms(
        ramp_minutes: int,
        step_count: int,
        startup_offset_ms: int = 0,
    ) -> int:
        """
        Milliseconds between steps.

        Integer division truncates, so step_count * interval may fall short
        of the ramp duration by up to step_count - 1 ms. A result <= 0 means
        every step fires immediately.
        """
        if step_count <= 0:
            return 0
        interval = (ramp_minutes * MILLIS_PER_MINUTE - startup_offset_ms) // step_count
        return max(0, interval)

    def start(
        self,
        command: Command,
        on_done: Callable[[RampHandle], None] | None = None,
    ) -> RampHandle:
        """
        Start a ramp for an on-command with ramp_minutes > 0.

        Must be called from a running event loop. The caller sends
        handle.initial_command itself; steps follow through `submit`.

        Raises:
            ValueError: If the command does not request a ramp
        """
        if not command.is_ramp or command.brightness is None:
            raise ValueError(f"Not a ramp command: {command}")

        target = command.brightness
        step_count = target - MIN_BRIGHTNESS
        state = RampState(
            remaining_steps=step_count,
            step_interval_ms=self.compute_step_interval_ms(
                command.ramp_minutes, step_count, self._startup_offset_ms
            ),
            current_brightness=MIN_BRIGHTNESS,
            target_brightness=target,
            template=command,
        )
        initial = Command(
            target_ids=command.target_ids,
            state=LightState.ON,
            brightness=MIN_BRIGHTNESS,
            color_temperature=command.color_temperature,
        )
        handle = RampHandle(next(self._ids), state, initial)

        logger.info(
            f"Starting ramp {handle.ramp_id} to {target} over {command.ramp_minutes} min "
            f"({step_count} steps, {state.step_interval_ms} ms apart) on "
            f"{','.join(command.target_ids)}"
        )

        task = asyncio.get_running_loop().create_task(self._run(handle, on_done))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return handle

    async def _run(
        self,
        handle: RampHandle,
        on_done: Callable[[RampHandle], None] | None,
    ) -> None:
        state = handle.state
        interval = state.step_interval_ms / 1000
        anchor = self._clock()
        step = 0

        try:
            while state.remaining_steps > 0:
                step += 1
                if interval > 0:
                    # Anchored to the start so sleep overshoot doesn't accumulate
                    wait_time = anchor + step * interval - self._clock()
                    if wait_time > 0:
                        await self._sleep(wait_time)

                state.current_brightness += 1
                state.remaining_steps -= 1
                self._submit(
                    Command(
                        target_ids=state.template.target_ids,
                        state=LightState.NO_CHANGE,
                        brightness_delta=1,
                    )
                )
            logger.info(f"Ramp {handle.ramp_id} done at brightness {state.current_brightness}")
        finally:
            handle._finish()
            if on_done is not None:
                on_done(handle)

    @property
    def running_count(self) -> int:
        return len(self._tasks)

    def shutdown(self) -> None:
        """Cancel outstanding ramp tasks (process shutdown only)."""
        for task in list(self._tasks):
            task.cancel()
