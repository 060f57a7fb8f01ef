"""
Reads weeklight configuration documents.

A document is a mapping with a required `schedules` table (schedule name ->
body) and an optional `groups` table (group name -> fixture ids). It can
come from a YAML or JSON file, or already be parsed.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml

from .config_models import AppConfig

logger = logging.getLogger(__name__)

_Parser = Callable[[str], Any]

# suffix -> (format label, parse function, parse error type)
_PARSERS: dict[str, tuple[str, _Parser, type[Exception]]] = {
    ".yaml": ("YAML", yaml.safe_load, yaml.YAMLError),
    ".yml": ("YAML", yaml.safe_load, yaml.YAMLError),
    ".json": ("JSON", json.loads, json.JSONDecodeError),
}


def _named_schedules(schedules: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """Fill in each schedule's `name` from its key; an explicit name must agree."""
    named: dict[str, dict[str, Any]] = {}
    for key, body in schedules.items():
        body = dict(body or {})
        declared = body.setdefault("name", key)
        if declared != key:
            raise ValueError(
                f"Schedule name mismatch: key='{key}' vs config.name='{declared}'"
            )
        named[key] = body
    return named


def load_config(config_data: dict[str, Any]) -> AppConfig:
    """
    Validate an already-parsed configuration document.

    Raises ValueError for a malformed document layout and
    pydantic.ValidationError for bad field values.
    """
    if "schedules" not in config_data:
        raise ValueError("Configuration must have 'schedules' key")
    if not isinstance(config_data["schedules"], dict):
        raise ValueError("'schedules' must be a dictionary")

    groups = config_data.get("groups") or {}
    if not isinstance(groups, dict):
        raise ValueError("'groups' must be a dictionary")

    config = AppConfig(
        **{
            **config_data,
            "schedules": _named_schedules(config_data["schedules"]),
            "groups": groups,
        }
    )

    logger.debug(
        f"Validated configuration: {len(config.schedules)} schedule(s), "
        f"{len(config.groups)} group(s)"
    )
    return config


def load_config_from_file(file_path: Path | str) -> AppConfig:
    """Parse a .yaml/.yml/.json file by suffix, then validate it with load_config."""
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Schedule config file not found: {path}")

    suffix = path.suffix.lower()
    if suffix not in _PARSERS:
        raise ValueError(
            f"Unsupported file format: {suffix}. Use .yaml, .yml, or .json"
        )
    label, parse, parse_error = _PARSERS[suffix]

    try:
        document = parse(path.read_text(encoding="utf-8"))
    except parse_error as e:
        raise ValueError(f"Invalid {label} in {path}: {e}") from e

    if not isinstance(document, dict):
        raise ValueError(f"Configuration must be a dictionary, got {type(document)}")

    logger.info(f"Loaded configuration from {path}")
    return load_config(document)
