"""
Weeklight Engine

Main engine that orchestrates:
- Schedule compilation and the weekly trigger loop
- Rate-limited dispatch to the device interface
- Connection monitoring (pauses dispatch while disconnected)
- Direct light commands and explicit configuration reload

Dependencies are injected via constructor for testability.
Use create_engine() factory for production instances.
"""

from __future__ import annotations

import asyncio
import logging
import traceback
from typing import Any

from pydantic import ValidationError

from weeklight_config.config_models import AppConfig
from weeklight_core.exceptions import ProducerError, SchedulerActivationError
from weeklight_core.models import Command, LightState
from weeklight_core.protocols import DeviceInterface, EventSink
from weeklight_dispatch.dispatcher import Dispatcher
from weeklight_scheduler.compiler import ScheduleCompiler
from weeklight_scheduler.scheduler import Scheduler
from weeklight_scheduler.week_clock import WeekClock

from .commands import ActivateScheduleCommand, LightCommand
from .result import CommandResult

logger = logging.getLogger(__name__)


class LightControlEngine:
    """
    Runs the weekly schedule against a light controller.

    Scheduler triggers are forwarded to the dispatcher and reported to the
    event sink. Reloading recompiles everything and replaces the scheduler;
    the dispatcher and its queue carry over.
    """

    # Connection monitoring
    CONNECTION_CHECK_INTERVAL: float = 30.0  # seconds

    def __init__(
        self,
        config: AppConfig,
        device: DeviceInterface,
        sink: EventSink,
        dispatcher: Dispatcher | None = None,
        clock: WeekClock | None = None,
        connection_check_interval: float | None = None,
    ):
        """
        Initialize engine with injected dependencies.

        Args:
            config: Validated configuration
            device: Device interface (HueBridgeSender, LoggingDeviceSender or mock)
            sink: Event sink for connection and trigger notifications
            dispatcher: Dispatcher (default: one built from config.dispatch_interval_ms)
            clock: Week clock shared with the scheduler
            connection_check_interval: Seconds between connection checks
        """
        self._config = config
        self._device = device
        self._sink = sink
        self._clock = clock or WeekClock()
        self._dispatcher = dispatcher or Dispatcher(device, config.dispatch_interval_ms)
        self._connection_check_interval = (
            connection_check_interval
            if connection_check_interval is not None
            else self.CONNECTION_CHECK_INTERVAL
        )

        self._compiler = ScheduleCompiler()
        self.scheduler = self._build_scheduler(config)

        self._connected: bool | None = None
        self._running = False
        self._stopped = asyncio.Event()

    def _build_scheduler(self, config: AppConfig) -> Scheduler:
        queues = self._compiler.compile(config.schedules, config.groups)
        return Scheduler(queues, clock=self._clock, on_trigger=self._on_trigger)

    def _on_trigger(self, command: Command) -> None:
        self._dispatcher.enqueue(command)
        self._sink.trigger_fired(command)

    # ================================================================
    # Lifecycle
    # ================================================================

    async def start(self) -> None:
        """Connect the device and activate the startup schedule."""
        self._set_connected(await self._device.connect())

        name = self._startup_schedule()
        if name is None:
            logger.warning("No schedule compiled; nothing to run")
        else:
            self.activate_schedule(name)

        logger.info("Light control engine started")

    async def stop(self) -> None:
        """Stop all loops and disconnect the device."""
        self._running = False
        self._stopped.set()
        self.scheduler.stop()
        self._dispatcher.stop()
        await self._device.disconnect()
        logger.info("Light control engine stopped")

    def _startup_schedule(self) -> str | None:
        if self._config.default_schedule in self.scheduler.schedules:
            return self._config.default_schedule
        if self._config.default_schedule is not None:
            logger.warning(
                f"Default schedule '{self._config.default_schedule}' failed to compile"
            )
        schedules = self.scheduler.schedules
        return schedules[0] if schedules else None

    def _set_connected(self, connected: bool) -> None:
        """Pause or resume dispatch on connection changes and notify the sink."""
        if connected == self._connected:
            return
        self._connected = connected
        if connected:
            self._dispatcher.resume()
            self._sink.connected()
        else:
            self._dispatcher.pause()
            self._sink.disconnected()

    # ================================================================
    # Command Handlers
    # ================================================================

    def _handle_activate(self, payload: dict[str, Any]) -> CommandResult:
        try:
            cmd = ActivateScheduleCommand(**payload)
        except ValidationError as e:
            return CommandResult.error(f"Invalid activate command: {e}")

        try:
            self.scheduler.activate(cmd.name)
        except SchedulerActivationError as e:
            return CommandResult.error(str(e))
        return CommandResult.ok(data={"schedule": cmd.name})

    def _handle_light(self, payload: dict[str, Any]) -> CommandResult:
        try:
            cmd = LightCommand(**payload)
        except ValidationError as e:
            return CommandResult.error(f"Invalid light command: {e}")

        target_ids = list(cmd.lights)
        if cmd.group is not None:
            if cmd.group not in self._config.groups:
                return CommandResult.error(f"Unknown lighting group: {cmd.group}")
            target_ids.extend(self._config.groups[cmd.group])

        try:
            command = Command(
                target_ids=tuple(target_ids),
                state=LightState(cmd.state),
                brightness=cmd.brightness,
                color_temperature=cmd.color_temperature,
                ramp_minutes=cmd.ramp,
            )
            self._dispatcher.enqueue(command)
        except (ValueError, ProducerError) as e:
            return CommandResult.error(f"Invalid light command: {e}")

        logger.debug(f"Queued direct command {command}")
        return CommandResult.ok(data={"pending": self._dispatcher.pending_count})

    # ================================================================
    # Public API
    # ================================================================

    def activate_schedule(self, name: str) -> CommandResult:
        """
        Activate a schedule by name.

        An unknown name leaves the current schedule running.
        """
        return self._handle_activate({"name": name})

    def send_command(self, payload: dict[str, Any]) -> CommandResult:
        """
        Queue a direct light command.

        Args:
            payload: LightCommand fields, e.g. {"group": "bedroom", "state": "off"}
        """
        return self._handle_light(payload)

    def reload(self, config: AppConfig) -> CommandResult:
        """
        Recompile from a new configuration and replace the scheduler.

        The previously active schedule is re-activated if it still compiles,
        otherwise the startup schedule is used.
        """
        previous = self.scheduler.active_schedule
        old_scheduler = self.scheduler

        if config.dispatch_interval_ms != self._dispatcher.interval_ms:
            logger.warning("Dispatch interval changes take effect after a restart")

        self._config = config
        self.scheduler = self._build_scheduler(config)
        old_scheduler.stop()

        name = previous if previous in self.scheduler.schedules else self._startup_schedule()
        if name is not None:
            self.scheduler.activate(name)

        logger.info(f"Configuration reloaded ({len(self.scheduler.schedules)} schedule(s))")
        return CommandResult.ok(
            data={"schedule": name, "errors": self.schedule_errors},
        )

    def list_schedules(self) -> list[str]:
        return self.scheduler.schedules

    @property
    def schedule_errors(self) -> dict[str, str]:
        """Schedules excluded by the last compilation, with the reason."""
        return {name: str(e) for name, e in self._compiler.errors.items()}

    # ================================================================
    # Main Loop
    # ================================================================

    async def run(self) -> None:
        """Run the main loops"""
        self._running = True
        self._stopped.clear()

        await asyncio.gather(
            self._scheduler_loop(),
            self._dispatcher.run(),
            self._connection_loop(),
        )

    async def _scheduler_loop(self) -> None:
        """Run the current scheduler; picks up the replacement after reload()."""
        while self._running:
            scheduler = self.scheduler
            await scheduler.run()

    async def _connection_loop(self) -> None:
        """
        Watch the device connection.

        Reconnects while disconnected; dispatch is paused until it succeeds.
        """
        while self._running:
            try:
                connected = self._device.is_connected
                if not connected:
                    connected = await self._device.connect()
                self._set_connected(connected)
            except Exception as e:
                logger.error(f"Connection check error: {e}\n{traceback.format_exc()}")
                self._set_connected(False)

            try:
                await asyncio.wait_for(
                    self._stopped.wait(), timeout=self._connection_check_interval
                )
            except asyncio.TimeoutError:
                pass

    # ================================================================
    # Status
    # ================================================================

    def get_status(self) -> dict[str, Any]:
        """Current engine status for monitoring."""
        next_run = None
        if self.scheduler.active_queue is not None:
            at = self.scheduler.next_run_at()
            next_run = at.isoformat() if at else None
        return {
            "connected": bool(self._connected),
            "schedule": self.scheduler.active_schedule,
            "next_run": next_run,
            "dispatch": self._dispatcher.get_stats(),
        }

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    @property
    def device(self) -> DeviceInterface:
        return self._device

    @property
    def is_connected(self) -> bool:
        return bool(self._connected)
