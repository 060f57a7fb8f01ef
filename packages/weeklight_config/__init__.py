"""
Configuration package for weeklight.

Pydantic models for schedules and lighting groups, the YAML/JSON loader,
and process settings from the environment.
"""

from .config_models import (
    AppConfig,
    ScheduleElementSpec,
    ScheduleSpec,
    parse_time_of_day,
)
from .loader import load_config, load_config_from_file
from .settings import Settings

__all__ = [
    "AppConfig",
    "ScheduleElementSpec",
    "ScheduleSpec",
    "parse_time_of_day",
    "load_config",
    "load_config_from_file",
    "Settings",
]
