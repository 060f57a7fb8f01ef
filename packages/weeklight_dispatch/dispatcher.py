"""
Command Dispatcher

Rate-limited single-consumer queue in front of the device interface.
The device drops or mangles commands sent faster than its hardware rate,
so at most one command is forwarded per tick.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
import traceback
from collections import deque

from weeklight_core.exceptions import DeviceError, ProducerError
from weeklight_core.models import Command
from weeklight_core.protocols import DeviceInterface

from .ramp import RampEngine, RampHandle

logger = logging.getLogger(__name__)


class Dispatcher:
    """
    Forwards queued commands to the device, one per dispatch interval.

    Design:
    - Producers (scheduler, direct commands, ramps) only append
    - tick() is the only consumer, so the queue needs no lock;
      deque.append/popleft are safe across threads
    - Ramp commands are handed to the RampEngine; its step commands come
      back through enqueue() and share the same rate limit
    - The active-ramp set is touched by tick() and by ramp completion,
      so it is guarded by a lock

    Usage:
        >>> dispatcher = Dispatcher(device, interval_ms=100)
        >>> dispatcher.enqueue(command)
        >>> await dispatcher.run()
    """

    DEFAULT_INTERVAL_MS = 100

    def __init__(
        self,
        device: DeviceInterface,
        interval_ms: int = DEFAULT_INTERVAL_MS,
        ramp_engine: RampEngine | None = None,
    ):
        """
        Initialize dispatcher.

        Args:
            device: Device interface (HueBridgeSender, LoggingDeviceSender or mock)
            interval_ms: Minimum gap between forwarded commands
            ramp_engine: Ramp engine (default: one feeding back into enqueue)
        """
        if interval_ms <= 0:
            raise ValueError(f"Dispatch interval must be positive: {interval_ms}")

        self._device = device
        self._interval_ms = interval_ms
        self._queue: deque[Command] = deque()
        self._ramp_engine = ramp_engine or RampEngine(
            self.enqueue, startup_offset_ms=interval_ms
        )

        self._active_ramps: set[RampHandle] = set()
        self._ramps_lock = threading.Lock()

        self._running = False
        self._paused = False

        self._stats: dict[str, int] = {
            "sent": 0,
            "failed": 0,
            "ramps_started": 0,
        }

    # ================================================================
    # Producers
    # ================================================================

    def enqueue(self, command: Command) -> None:
        """
        Append a command. Never blocks.

        Raises:
            ProducerError: If the command has no target fixtures
        """
        if not command.target_ids:
            raise ProducerError(f"Command has no target fixtures: {command}")
        self._queue.append(command)

    # ================================================================
    # Consumer
    # ================================================================

    async def tick(self) -> Command | None:
        """
        Forward at most one queued command.

        Returns:
            The command taken off the queue, or None if paused or idle
        """
        if self._paused or not self._queue:
            return None

        command = self._queue.popleft()
        if command.is_ramp:
            handle = self._ramp_engine.start(command, on_done=self._end_ramp)
            with self._ramps_lock:
                self._active_ramps.add(handle)
            self._stats["ramps_started"] += 1
            # The initial on-command uses this tick's slot
            await self._forward(handle.initial_command)
        else:
            await self._forward(command)
        return command

    async def _forward(self, command: Command) -> None:
        logger.debug(f"Dispatching {command}")
        try:
            ok = await self._device.send(
                command.target_ids,
                on=command.desired_on,
                brightness=command.brightness,
                color_temperature=command.color_temperature,
                brightness_delta=command.brightness_delta,
            )
        except DeviceError as e:
            logger.warning(f"Device error sending {command}: {e}")
            ok = False

        if ok:
            self._stats["sent"] += 1
        else:
            # No retry: the next tick moves on
            self._stats["failed"] += 1
            logger.warning(f"Device rejected command {command}")

    def _end_ramp(self, handle: RampHandle) -> None:
        with self._ramps_lock:
            self._active_ramps.discard(handle)
        logger.debug(f"Ramp {handle.ramp_id} removed from active set")

    # ================================================================
    # Main Loop
    # ================================================================

    async def run(self) -> None:
        """
        Run the dispatch loop.

        Each tick starts no sooner than interval_ms after the previous one,
        however long the device took to answer.
        """
        self._running = True
        interval = self._interval_ms / 1000

        while self._running:
            started = time.perf_counter()
            try:
                await self.tick()
            except Exception as e:
                logger.error(f"Dispatch error: {e}\n{traceback.format_exc()}")
            elapsed = time.perf_counter() - started
            await asyncio.sleep(max(0.0, interval - elapsed))

    def stop(self) -> None:
        """Stop the dispatch loop and cancel running ramps."""
        self._running = False
        self._ramp_engine.shutdown()

    def pause(self) -> None:
        """Hold queued commands (device disconnected)."""
        if not self._paused:
            logger.info("Dispatcher paused")
        self._paused = True

    def resume(self) -> None:
        """Resume forwarding (device connected)."""
        if self._paused:
            logger.info("Dispatcher resumed")
        self._paused = False

    # ================================================================
    # Status
    # ================================================================

    @property
    def is_paused(self) -> bool:
        return self._paused

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def interval_ms(self) -> int:
        return self._interval_ms

    @property
    def pending_count(self) -> int:
        """Number of queued commands."""
        return len(self._queue)

    @property
    def active_ramps(self) -> set[RampHandle]:
        """Snapshot of running ramps."""
        with self._ramps_lock:
            return set(self._active_ramps)

    def get_stats(self) -> dict[str, int]:
        """Dispatch statistics for monitoring."""
        return {
            **self._stats,
            "pending": len(self._queue),
            "active_ramps": len(self.active_ramps),
        }
