"""
Event sinks for weeklight

Receivers for the connection-state and trigger notifications the engine
publishes to the surrounding application.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from weeklight_core.models import Command

logger = logging.getLogger(__name__)

# Default queue size; drop-oldest keeps memory bounded
_DEFAULT_QUEUE_SIZE = 64


class LoggingEventSink:
    """EventSink that writes notifications to the log."""

    def connected(self) -> None:
        logger.info("Device interface connected")

    def disconnected(self) -> None:
        logger.warning("Device interface disconnected")

    def trigger_fired(self, command: Command) -> None:
        logger.info(f"Schedule trigger fired: {command}")


class InProcessEventSink:
    """EventSink backed by an asyncio.Queue.

    A UI or other in-process consumer reads from .queue; this class pushes
    events into it. When the queue is full the oldest entry is dropped
    (drop-oldest) so a slow consumer never back-pressures the engine.
    """

    def __init__(self, maxsize: int = _DEFAULT_QUEUE_SIZE) -> None:
        self._queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=maxsize)

    @property
    def queue(self) -> asyncio.Queue[dict[str, Any]]:
        return self._queue

    # ----------------------------------------------------------
    # EventSink protocol methods
    # ----------------------------------------------------------

    def connected(self) -> None:
        self._push({"type": "connection", "data": {"connected": True}})

    def disconnected(self) -> None:
        self._push({"type": "connection", "data": {"connected": False}})

    def trigger_fired(self, command: Command) -> None:
        self._push({"type": "trigger", "data": command.to_dict()})

    # ----------------------------------------------------------
    # Helpers
    # ----------------------------------------------------------

    def _push(self, event: dict[str, Any]) -> None:
        """Push event, dropping oldest if queue is full."""
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            # drop oldest
            try:
                self._queue.get_nowait()
            except asyncio.QueueEmpty:
                pass
            try:
                self._queue.put_nowait(event)
            except asyncio.QueueFull:
                pass
