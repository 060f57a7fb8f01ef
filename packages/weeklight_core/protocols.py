"""
Collaborator protocols for the weeklight engine.

DeviceInterface is what the dispatcher sends to; EventSink receives the
notifications the engine publishes to the surrounding application.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .models import Command

__all__ = [
    "DeviceInterface",
    "EventSink",
]


@runtime_checkable
class DeviceInterface(Protocol):
    """
    Light bridge / device controller interface.

    No ordering guarantee is assumed; the dispatcher serializes calls.

    Implementations:
        - HueBridgeSender: Philips Hue bridge over HTTP (httpx)
        - LoggingDeviceSender: JSON-lines stub for dry runs
        - MockDevice: Test double for unit tests
    """

    async def connect(self) -> bool:
        """Connect to the device controller."""
        ...

    async def disconnect(self) -> None:
        """Release the connection."""
        ...

    async def send(
        self,
        target_ids: Sequence[str],
        on: bool | None = None,
        brightness: int | None = None,
        color_temperature: int | None = None,
        brightness_delta: int | None = None,
    ) -> bool:
        """
        Send a state change to the given fixtures.

        Returns:
            True if every fixture accepted the change
        """
        ...

    @property
    def is_connected(self) -> bool:
        """Whether the controller is reachable."""
        ...


@runtime_checkable
class EventSink(Protocol):
    """
    Receiver for engine notifications.

    Implementations:
        - LoggingEventSink: Writes notifications to the log
        - InProcessEventSink: asyncio.Queue for in-process consumers
    """

    def connected(self) -> None:
        """Device interface entered the connected state."""
        ...

    def disconnected(self) -> None:
        """Device interface entered the disconnected state."""
        ...

    def trigger_fired(self, command: Command) -> None:
        """A schedule trigger fired and its command was handed to dispatch."""
        ...
