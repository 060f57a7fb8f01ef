"""
Command and compiled event models.

These use dataclasses (not Pydantic) because they are built on every
trigger and every ramp step. Validation of user input happens in
weeklight_config; these models only guard their own invariants.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from .exceptions import ConfigurationError

MIN_BRIGHTNESS = 1
MAX_BRIGHTNESS = 254
MIN_COLOR_TEMPERATURE = 153  # mireds (~6500K)
MAX_COLOR_TEMPERATURE = 500  # mireds (~2000K)

SECONDS_PER_WEEK = 7 * 24 * 60 * 60


class LightState(str, Enum):
    """Desired on/off state of a command"""

    NO_CHANGE = "no_change"
    OFF = "off"
    ON = "on"


@dataclass(frozen=True, slots=True)
class Command:
    """
    A single instruction for a set of fixtures.

    Design principles:
    - frozen=True so a command handed to another component can never be
      changed under the producer (ramp progress lives in RampState)
    - target_ids is an ordered, de-duplicated tuple
    - None means "leave unchanged" for brightness and color temperature

    Example:
        >>> cmd = Command(
        ...     target_ids=("1", "2"),
        ...     state=LightState.ON,
        ...     brightness=254,
        ...     ramp_minutes=10,
        ... )
    """

    target_ids: tuple[str, ...]
    state: LightState = LightState.NO_CHANGE
    brightness: int | None = None  # 1-254
    color_temperature: int | None = None  # mireds, 153-500
    ramp_minutes: int = 0  # 0 means no ramp
    brightness_delta: int | None = None  # relative step, used by ramps

    def __post_init__(self) -> None:
        object.__setattr__(self, "target_ids", tuple(dict.fromkeys(self.target_ids)))
        object.__setattr__(self, "state", LightState(self.state))

        if self.brightness is not None and not (
            MIN_BRIGHTNESS <= self.brightness <= MAX_BRIGHTNESS
        ):
            raise ValueError(
                f"Brightness must be in {MIN_BRIGHTNESS}-{MAX_BRIGHTNESS}: {self.brightness}"
            )
        if self.color_temperature is not None and not (
            MIN_COLOR_TEMPERATURE <= self.color_temperature <= MAX_COLOR_TEMPERATURE
        ):
            raise ValueError(
                f"Color temperature must be in {MIN_COLOR_TEMPERATURE}-"
                f"{MAX_COLOR_TEMPERATURE} mireds: {self.color_temperature}"
            )
        if self.ramp_minutes < 0:
            raise ValueError(f"Ramp minutes must be >= 0: {self.ramp_minutes}")
        if self.ramp_minutes > 0:
            if self.state is not LightState.ON:
                raise ConfigurationError(
                    f"Ramp requires an 'on' command, got state '{self.state.value}'"
                )
            if self.brightness is None:
                raise ConfigurationError("Ramp requires a target brightness")

    @property
    def desired_on(self) -> bool | None:
        """True to turn on, False to turn off, None to leave the state unchanged."""
        if self.state is LightState.ON:
            return True
        if self.state is LightState.OFF:
            return False
        return None

    @property
    def is_ramp(self) -> bool:
        return self.ramp_minutes > 0 and self.state is LightState.ON

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary (for JSON serialization)."""
        return {
            "target_ids": list(self.target_ids),
            "state": self.state.value,
            "brightness": self.brightness,
            "color_temperature": self.color_temperature,
            "ramp_minutes": self.ramp_minutes,
            "brightness_delta": self.brightness_delta,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Command:
        """Create from dictionary (for JSON deserialization)."""
        return cls(
            target_ids=tuple(data["target_ids"]),
            state=LightState(data.get("state", LightState.NO_CHANGE.value)),
            brightness=data.get("brightness"),
            color_temperature=data.get("color_temperature"),
            ramp_minutes=data.get("ramp_minutes", 0),
            brightness_delta=data.get("brightness_delta"),
        )

    def __str__(self) -> str:
        parts = [f"state={self.state.value}"]
        if self.brightness is not None:
            parts.append(f"bri={self.brightness}")
        if self.color_temperature is not None:
            parts.append(f"ct={self.color_temperature}")
        if self.brightness_delta is not None:
            parts.append(f"bri_inc={self.brightness_delta:+d}")
        if self.ramp_minutes:
            parts.append(f"ramp={self.ramp_minutes}m")
        return f"[{', '.join(parts)}] -> {','.join(self.target_ids)}"


@dataclass(frozen=True, slots=True)
class CompiledEvent:
    """
    A command bound to a point in the week.

    week_offset_seconds counts from Sunday 00:00:00 and is always in
    [0, SECONDS_PER_WEEK).
    """

    week_offset_seconds: int
    label: str  # schedule element name
    command: Command

    def __post_init__(self) -> None:
        if not 0 <= self.week_offset_seconds < SECONDS_PER_WEEK:
            raise ValueError(
                f"Week offset out of range: {self.week_offset_seconds}"
            )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary (for JSON serialization)."""
        return {
            "week_offset_seconds": self.week_offset_seconds,
            "label": self.label,
            "command": self.command.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CompiledEvent:
        """Create from dictionary (for JSON deserialization)."""
        return cls(
            week_offset_seconds=data["week_offset_seconds"],
            label=data["label"],
            command=Command.from_dict(data["command"]),
        )
