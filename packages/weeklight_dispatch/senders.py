"""
Device senders - deliver commands to a Hue bridge or to a log.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import httpx

logger = logging.getLogger(__name__)


def build_light_state(
    on: bool | None = None,
    brightness: int | None = None,
    color_temperature: int | None = None,
    brightness_delta: int | None = None,
) -> dict[str, Any]:
    """
    Build a Hue light state body.

    None values are left out so the light keeps its current setting.
    """
    body: dict[str, Any] = {}
    if on is not None:
        body["on"] = on
    if brightness is not None:
        body["bri"] = brightness
    if color_temperature is not None:
        body["ct"] = color_temperature
    if brightness_delta is not None:
        body["bri_inc"] = brightness_delta
    return body


class HueBridgeSender:
    """
    Sends light state changes to a Philips Hue bridge (REST API v1).

    Design:
    - Thin wrapper around httpx.AsyncClient
    - One PUT /lights/<id>/state per fixture
    - Bridge discovery is not done here; the host comes from configuration

    Usage:
        >>> sender = HueBridgeSender(host="192.168.1.20", api_key="abc123")
        >>> await sender.connect()
        >>> await sender.send(["1", "2"], on=True, brightness=200)
    """

    DEFAULT_TIMEOUT = 5.0

    def __init__(
        self,
        host: str | None,
        api_key: str | None,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize Hue sender.

        Args:
            host: Bridge hostname or IP
            api_key: Bridge username (API key)
            timeout: Request timeout in seconds
            http_client: Optional pre-configured HTTP client
        """
        self.host = host
        self.api_key = api_key
        self.timeout = timeout
        self._http = http_client
        self._owns_http_client = http_client is None
        self._connected = False

    @property
    def _base_path(self) -> str:
        return f"/api/{self.api_key}"

    async def connect(self) -> bool:
        """
        Check that the bridge answers and accepts the API key.

        Returns:
            True if connected
        """
        if not self.host or not self.api_key:
            # Can't connect without a bridge address and key
            logger.warning("Hue bridge host or API key not configured")
            self._connected = False
            return False

        if self._http is None:
            self._http = httpx.AsyncClient(
                base_url=f"http://{self.host}",
                timeout=self.timeout,
            )

        try:
            response = await self._http.get(f"{self._base_path}/config")
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Hue bridge connection failed: {e}")
            self._connected = False
            return False

        # An unauthorized key gets the public subset of /config (no whitelist)
        self._connected = isinstance(data, dict) and "whitelist" in data
        if self._connected:
            logger.info(f"Connected to Hue bridge at {self.host}")
        else:
            logger.warning(f"Hue bridge at {self.host} rejected the API key")
        return self._connected

    async def disconnect(self) -> None:
        """Close the HTTP client if owned by this instance"""
        if self._http is not None and self._owns_http_client:
            await self._http.aclose()
            self._http = None
        self._connected = False
        logger.info("Hue bridge disconnected")

    async def send(
        self,
        target_ids: Sequence[str],
        on: bool | None = None,
        brightness: int | None = None,
        color_temperature: int | None = None,
        brightness_delta: int | None = None,
    ) -> bool:
        """
        Send one light state to every target fixture.

        Returns:
            True if every fixture accepted the change
        """
        if self._http is None or not self._connected:
            logger.warning("Hue bridge not connected")
            return False

        body = build_light_state(on, brightness, color_temperature, brightness_delta)
        ok = True
        for light_id in target_ids:
            try:
                response = await self._http.put(
                    f"{self._base_path}/lights/{light_id}/state", json=body
                )
                response.raise_for_status()
                results = response.json()
            except httpx.TransportError as e:
                logger.error(f"Hue bridge unreachable: {e}")
                self._connected = False
                return False
            except (httpx.HTTPStatusError, ValueError) as e:
                logger.error(f"Hue send error for light {light_id}: {e}")
                ok = False
                continue

            errors = [r["error"] for r in results if isinstance(r, dict) and "error" in r]
            if errors:
                logger.warning(f"Hue light {light_id} rejected {body}: {errors}")
                ok = False
        return ok

    @property
    def is_connected(self) -> bool:
        return self._connected

    def __repr__(self) -> str:
        return f"HueBridgeSender(host={self.host!r})"


class LoggingDeviceSender:
    """
    Device stub that records every send as a JSON line.

    Used for dry runs: with a path the lines go to that file, otherwise
    to the log.

    Usage:
        >>> sender = LoggingDeviceSender(path="commands.jsonl")
        >>> await sender.send(["1"], on=False)
    """

    def __init__(self, path: Path | str | None = None) -> None:
        self.path = Path(path) if path is not None else None
        self._connected = False

    async def connect(self) -> bool:
        if self.path is not None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        self._connected = True
        logger.info(f"Logging device ready ({self.path or 'log output'})")
        return True

    async def disconnect(self) -> None:
        self._connected = False

    async def send(
        self,
        target_ids: Sequence[str],
        on: bool | None = None,
        brightness: int | None = None,
        color_temperature: int | None = None,
        brightness_delta: int | None = None,
    ) -> bool:
        line = json.dumps({
            "lights": list(target_ids),
            "state": build_light_state(on, brightness, color_temperature, brightness_delta),
        })
        if self.path is None:
            logger.info(f"SEND {line}")
        else:
            with self.path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        return True

    @property
    def is_connected(self) -> bool:
        return self._connected

    def __repr__(self) -> str:
        return f"LoggingDeviceSender(path={self.path!r})"
