"""
Schedule configuration models with Pydantic validation.

These models validate field-level data (time syntax, value ranges) when the
configuration is loaded. Cross-field rules (a present and known lighting
group, at least one of on/off, non-empty days, resolvable inheritance) are
checked by the ScheduleCompiler so that one broken schedule does not reject
the whole file.
"""

from __future__ import annotations

from datetime import datetime, time
from typing import Annotated, Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

MINUTES_PER_DAY = 24 * 60

Weekday = Annotated[int, Field(ge=0, le=6)]


def parse_time_of_day(value: Any) -> time | None:
    """
    Parse a time of day from configuration.

    Accepts "H:MM", "H:MM:SS", datetime.time and datetime values. YAML 1.1
    reads an unquoted 7:00 as the sexagesimal integer 420, so integers below
    1440 are taken as minutes since midnight.

    Raises:
        ValueError: If the value is not a valid time of day
    """
    if value is None or isinstance(value, time):
        return value
    if isinstance(value, datetime):
        return value.time()
    if isinstance(value, bool):
        raise ValueError(f"Invalid time of day: {value!r}")
    if isinstance(value, int):
        if not 0 <= value < MINUTES_PER_DAY:
            raise ValueError(
                f"Invalid time of day: {value} (quote times like '7:00:30' in YAML)"
            )
        return time(value // 60, value % 60)
    if isinstance(value, str):
        parts = value.strip().split(":")
        if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
            raise ValueError(f"Invalid time of day: {value!r} (expected H:MM or H:MM:SS)")
        hour, minute, *rest = (int(p) for p in parts)
        return time(hour, minute, rest[0] if rest else 0)
    raise ValueError(f"Invalid time of day: {value!r}")


class ScheduleElementSpec(BaseModel):
    """
    One named entry of a schedule.

    Example:
        >>> element = ScheduleElementSpec(
        ...     name="Morning",
        ...     lights="bedroom",
        ...     days=[1, 2, 3, 4, 5],
        ...     on="7:00",
        ...     off="7:15",
        ...     ramp=10,
        ... )
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., min_length=1, description="Element name, used for inheritance overrides")
    lights: str | None = Field(
        default=None, description="Lighting group this element controls"
    )
    days: tuple[Weekday, ...] = Field(
        default=(), description="Weekdays (0=Sunday .. 6=Saturday)"
    )
    on_time: time | None = Field(
        default=None,
        validation_alias=AliasChoices("on", "on_time"),
        description="Time of day to turn the group on",
    )
    off_time: time | None = Field(
        default=None,
        validation_alias=AliasChoices("off", "off_time"),
        description="Time of day to turn the group off",
    )
    ramp: Annotated[int, Field(ge=0)] = Field(
        default=0, description="Minutes to ramp brightness up after turning on"
    )
    brightness: Annotated[int, Field(ge=1, le=254)] | None = None
    color_temperature: Annotated[int, Field(ge=153, le=500)] | None = Field(
        default=None,
        validation_alias=AliasChoices("color_temperature", "colour", "color"),
        description="Color temperature in mireds",
    )

    @model_validator(mode="before")
    @classmethod
    def restore_boolean_keys(cls, data: Any) -> Any:
        """YAML 1.1 loads bare `on:`/`off:` keys as True/False"""
        if isinstance(data, dict) and (True in data or False in data):
            data = dict(data)
            if True in data:
                data["on"] = data.pop(True)
            if False in data:
                data["off"] = data.pop(False)
        return data

    @field_validator("on_time", "off_time", mode="before")
    @classmethod
    def validate_time_of_day(cls, v: Any) -> time | None:
        return parse_time_of_day(v)

    @field_validator("days")
    @classmethod
    def normalize_days(cls, v: tuple[int, ...]) -> tuple[int, ...]:
        """Days are a set; keep them sorted and unique"""
        return tuple(sorted(set(v)))


class ScheduleSpec(BaseModel):
    """
    A named weekly schedule, optionally inheriting from another.

    Example:
        >>> away = ScheduleSpec(
        ...     name="away",
        ...     inherit="default",
        ...     elements=[night_override],
        ... )
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    inherit: str | None = Field(default=None, description="Parent schedule name")
    elements: list[ScheduleElementSpec] = Field(default_factory=list)

    @field_validator("inherit")
    @classmethod
    def empty_inherit_is_none(cls, v: str | None) -> str | None:
        return v or None


class AppConfig(BaseModel):
    """
    Complete configuration supplied at startup.

    Example:
        >>> config = AppConfig(
        ...     schedules={"default": default_schedule},
        ...     groups={"bedroom": ["1", "2"]},
        ...     dispatch_interval_ms=100,
        ... )
    """

    schedules: dict[str, ScheduleSpec] = Field(default_factory=dict)
    groups: dict[str, list[str]] = Field(default_factory=dict)
    dispatch_interval_ms: Annotated[int, Field(gt=0)] = Field(
        default=100, description="Minimum gap between device commands"
    )
    default_schedule: str | None = Field(
        default=None, description="Schedule activated at startup"
    )
    bridge_host: str | None = None
    api_key: str | None = None

    @field_validator("groups", mode="before")
    @classmethod
    def stringify_fixture_ids(cls, v: Any) -> Any:
        """Hue light ids are often written as bare numbers"""
        if isinstance(v, dict):
            return {name: [str(i) for i in ids or []] for name, ids in v.items()}
        return v

    @model_validator(mode="after")
    def validate_default_schedule(self) -> AppConfig:
        if self.default_schedule is not None and self.default_schedule not in self.schedules:
            raise ValueError(f"Default schedule '{self.default_schedule}' is not defined")
        return self
