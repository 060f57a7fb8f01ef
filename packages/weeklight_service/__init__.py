"""
Weeklight Service

Runs weekly light schedules against a Hue bridge (or a logging stub).
"""

__version__ = "0.1.0"

from .engine import LightControlEngine
from .factory import create_device, create_engine
from .result import CommandResult
from .sinks import InProcessEventSink, LoggingEventSink

__all__ = [
    "create_engine",
    "create_device",
    "LightControlEngine",
    "CommandResult",
    "InProcessEventSink",
    "LoggingEventSink",
]
