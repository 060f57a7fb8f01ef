"""
Weeklight Factory

Factory functions for creating production LightControlEngine instances.
Separates object creation from business logic (DI pattern).
"""

from __future__ import annotations

from pathlib import Path

from weeklight_config.config_models import AppConfig
from weeklight_config.settings import Settings
from weeklight_core.protocols import DeviceInterface, EventSink
from weeklight_dispatch.senders import HueBridgeSender, LoggingDeviceSender

from .engine import LightControlEngine
from .sinks import LoggingEventSink


def create_device(
    config: AppConfig,
    settings: Settings,
    device: str | None = None,
    device_log_path: Path | None = None,
) -> DeviceInterface:
    """
    Create the device interface selected by CLI flag or settings.

    Settings override bridge values from the config file.
    """
    kind = device or settings.device
    if kind == "log":
        return LoggingDeviceSender(device_log_path or settings.device_log_path)
    if kind == "hue":
        return HueBridgeSender(
            host=settings.bridge_host or config.bridge_host,
            api_key=settings.api_key or config.api_key,
            timeout=settings.request_timeout,
        )
    raise ValueError(f"Unknown device type '{kind}'. Must be 'hue' or 'log'.")


def create_engine(
    config: AppConfig,
    settings: Settings | None = None,
    device: DeviceInterface | None = None,
    sink: EventSink | None = None,
) -> LightControlEngine:
    """
    Create a production LightControlEngine with real I/O dependencies.

    Args:
        config: Validated schedule configuration
        settings: Process settings (default: read from environment)
        device: Device interface (default: chosen from settings)
        sink: Event sink (default: LoggingEventSink)

    Returns:
        Configured LightControlEngine instance
    """
    settings = settings or Settings()
    return LightControlEngine(
        config=config,
        device=device if device is not None else create_device(config, settings),
        sink=sink if sink is not None else LoggingEventSink(),
        connection_check_interval=settings.connection_check_interval,
    )
