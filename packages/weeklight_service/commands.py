"""
Pydantic models for service command validation.

Each direct command has a model that validates the payload structure
before anything reaches the dispatcher.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, Field, model_validator


class LightCommand(BaseModel):
    """
    Direct light command payload.

    Fields:
        lights: Fixture ids to control
        group: Lighting group name (alternative to lights)
        state: "on", "off" or "no_change"
        brightness: Target brightness 1-254
        color_temperature: Color temperature in mireds 153-500
        ramp: Minutes to ramp up (only with state "on" and a brightness)
    """

    lights: list[str] = Field(default_factory=list)
    group: str | None = None
    state: Literal["on", "off", "no_change"] = "no_change"
    brightness: Annotated[int, Field(ge=1, le=254)] | None = None
    color_temperature: Annotated[int, Field(ge=153, le=500)] | None = None
    ramp: Annotated[int, Field(ge=0)] = 0

    @model_validator(mode="after")
    def validate_target(self) -> "LightCommand":
        if not self.lights and self.group is None:
            raise ValueError("Either 'lights' or 'group' is required")
        return self


class ActivateScheduleCommand(BaseModel):
    """
    Schedule activation payload.

    Fields:
        name: Schedule name to activate
    """

    name: str = Field(..., min_length=1)
