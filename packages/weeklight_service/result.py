"""Outcome of an engine request (activate, light, reload)."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class CommandResult:
    """A failed request carries its reason in `message` instead of raising."""

    success: bool
    message: str | None = None
    data: dict[str, Any] | None = None

    @classmethod
    def ok(cls, message: str | None = None, data: dict[str, Any] | None = None) -> "CommandResult":
        return cls(True, message, data)

    @classmethod
    def error(cls, message: str, data: dict[str, Any] | None = None) -> "CommandResult":
        return cls(False, message, data)
