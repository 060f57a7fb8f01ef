"""
Core types shared by the weeklight packages.

Commands, compiled schedule events, the error taxonomy and the
protocols the engine talks to.
"""

from .exceptions import (
    ConfigurationError,
    DeviceError,
    ProducerError,
    SchedulerActivationError,
    WeeklightError,
)
from .models import (
    MAX_BRIGHTNESS,
    MAX_COLOR_TEMPERATURE,
    MIN_BRIGHTNESS,
    MIN_COLOR_TEMPERATURE,
    Command,
    CompiledEvent,
    LightState,
)
from .protocols import DeviceInterface, EventSink

__all__ = [
    "Command",
    "CompiledEvent",
    "LightState",
    "MAX_BRIGHTNESS",
    "MIN_BRIGHTNESS",
    "MAX_COLOR_TEMPERATURE",
    "MIN_COLOR_TEMPERATURE",
    "WeeklightError",
    "ConfigurationError",
    "ProducerError",
    "DeviceError",
    "SchedulerActivationError",
    "DeviceInterface",
    "EventSink",
]
