"""
Dispatch package for weeklight.

Rate-limited command dispatch, brightness ramps, and device senders.
"""

from .dispatcher import Dispatcher
from .ramp import RampEngine, RampHandle, RampState
from .senders import HueBridgeSender, LoggingDeviceSender, build_light_state

__all__ = [
    "Dispatcher",
    "RampEngine",
    "RampHandle",
    "RampState",
    "HueBridgeSender",
    "LoggingDeviceSender",
    "build_light_state",
]
