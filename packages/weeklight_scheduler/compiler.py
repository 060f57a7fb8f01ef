"""
Schedule Compiler

Translates declarative schedules (with inheritance) into ordered weekly
queues of time-stamped commands.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import time

from weeklight_config.config_models import ScheduleElementSpec, ScheduleSpec
from weeklight_core.exceptions import ConfigurationError
from weeklight_core.models import MAX_BRIGHTNESS, Command, CompiledEvent, LightState

from .week_clock import seconds_since_start_of_week
from .weekly_queue import WeeklyQueue

logger = logging.getLogger(__name__)


class ScheduleCompiler:
    """
    Compiles schedule specs into WeeklyQueue instances.

    A schedule that fails to compile is reported in `errors` and left out
    of the result; the remaining schedules still compile.

    Usage:
        >>> compiler = ScheduleCompiler()
        >>> queues = compiler.compile(config.schedules, config.groups)
        >>> for name, error in compiler.errors.items():
        ...     print(name, error)
    """

    def __init__(self) -> None:
        self.errors: dict[str, ConfigurationError] = {}

    def compile(
        self,
        specs: Mapping[str, ScheduleSpec],
        groups: Mapping[str, Sequence[str]],
    ) -> dict[str, WeeklyQueue]:
        """
        Compile every schedule.

        Args:
            specs: Schedule name -> ScheduleSpec
            groups: Lighting group name -> fixture ids

        Returns:
            Schedule name -> WeeklyQueue, for schedules that compiled
        """
        self.errors = {}
        queues: dict[str, WeeklyQueue] = {}

        for name in specs:
            try:
                events = self.compile_events(name, specs, groups)
            except ConfigurationError as e:
                e.schedule = name
                self.errors[name] = e
                logger.error(f"Schedule '{name}' excluded: {e}")
                continue
            queues[name] = WeeklyQueue(name, events)
            logger.debug(f"Compiled schedule '{name}': {len(events)} event(s)")

        logger.info(
            f"Compiled {len(queues)} schedule(s)"
            + (f", {len(self.errors)} failed" if self.errors else "")
        )
        return queues

    def compile_events(
        self,
        name: str,
        specs: Mapping[str, ScheduleSpec],
        groups: Mapping[str, Sequence[str]],
    ) -> list[CompiledEvent]:
        """
        Compile one schedule into its full, ordered week of events.

        Raises:
            ConfigurationError: If the schedule or anything it inherits is invalid
        """
        events: list[CompiledEvent] = []
        for element in self.resolve(name, specs):
            events.extend(self._expand_element(element, groups))
        # sorted() is stable: ties keep declaration order
        return sorted(events, key=lambda e: e.week_offset_seconds)

    def resolve(
        self,
        name: str,
        specs: Mapping[str, ScheduleSpec],
    ) -> list[ScheduleElementSpec]:
        """
        Resolve inheritance into the effective element list.

        A child element replaces the parent element with the same name in
        place; child elements with new names are appended. Within one
        schedule every element is kept, even when names repeat; a child
        redefining a repeated name replaces all of the parent's copies.

        Raises:
            ConfigurationError: On a missing parent or an inheritance cycle
        """
        chain: list[str] = []
        current: str | None = name
        while current is not None:
            if current in chain:
                cycle = " -> ".join([*chain, current])
                raise ConfigurationError(f"Cyclic inheritance: {cycle}", name)
            if current not in specs:
                if not chain:
                    raise ConfigurationError(f"Unknown schedule '{current}'", name)
                raise ConfigurationError(
                    f"Schedule '{chain[-1]}' inherits unknown schedule '{current}'", name
                )
            chain.append(current)
            current = specs[current].inherit

        if len(chain) == 1:
            return list(specs[name].elements)

        # Apply from the root ancestor down to the requested schedule
        resolved: dict[str, list[ScheduleElementSpec]] = {}
        for schedule_name in reversed(chain):
            level: dict[str, list[ScheduleElementSpec]] = {}
            for element in specs[schedule_name].elements:
                level.setdefault(element.name, []).append(element)
            resolved.update(level)
        return [element for elements in resolved.values() for element in elements]

    def _expand_element(
        self,
        element: ScheduleElementSpec,
        groups: Mapping[str, Sequence[str]],
    ) -> list[CompiledEvent]:
        """One event per day x {on, off} present on the element."""
        if element.lights is None:
            raise ConfigurationError(f"Element '{element.name}' has no lighting group")
        if element.lights not in groups:
            raise ConfigurationError(
                f"Element '{element.name}' references unknown lighting group '{element.lights}'"
            )
        target_ids = tuple(groups[element.lights])
        if not target_ids:
            raise ConfigurationError(
                f"Lighting group '{element.lights}' used by '{element.name}' has no fixtures"
            )
        if not element.days:
            raise ConfigurationError(f"Element '{element.name}' has no days")
        if element.on_time is None and element.off_time is None:
            raise ConfigurationError(
                f"Element '{element.name}' needs an on time, an off time, or both"
            )
        if element.ramp > 0 and element.on_time is None:
            raise ConfigurationError(
                f"Element '{element.name}' ramps but has no on time"
            )

        events: list[CompiledEvent] = []
        for day in element.days:
            if element.on_time is not None:
                events.append(
                    self._create_event(element, LightState.ON, element.on_time, day, target_ids)
                )
            if element.off_time is not None:
                events.append(
                    self._create_event(element, LightState.OFF, element.off_time, day, target_ids)
                )
        return events

    @staticmethod
    def _create_event(
        element: ScheduleElementSpec,
        state: LightState,
        at: time,
        day: int,
        target_ids: tuple[str, ...],
    ) -> CompiledEvent:
        if state is LightState.ON:
            ramp = element.ramp
            # A ramp always climbs to full brightness
            brightness = MAX_BRIGHTNESS if ramp > 0 else element.brightness
            color_temperature = element.color_temperature
        else:
            ramp = 0
            brightness = None
            color_temperature = None

        try:
            command = Command(
                target_ids=target_ids,
                state=state,
                brightness=brightness,
                color_temperature=color_temperature,
                ramp_minutes=ramp,
            )
        except ValueError as e:
            raise ConfigurationError(f"Element '{element.name}': {e}") from e

        return CompiledEvent(
            week_offset_seconds=seconds_since_start_of_week(day, at),
            label=element.name,
            command=command,
        )
