"""Centralized process settings using Pydantic Settings

All environment variables are managed here.
"""

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process settings loaded from environment variables (WEEKLIGHT_*)"""

    model_config = SettingsConfigDict(
        env_prefix="WEEKLIGHT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Schedule configuration
    config_path: Path = Path("config.yml")

    # Device selection
    device: Literal["hue", "log"] = "hue"
    device_log_path: Path | None = None

    # Hue bridge (overrides values from the config file)
    bridge_host: str | None = None
    api_key: str | None = None
    request_timeout: float = 5.0

    # Seconds between connection checks / reconnect attempts
    connection_check_interval: float = 30.0

    debug: bool = False
