"""Root conftest.py - Setup Python path and shared fixtures for tests"""

import sys
from datetime import datetime
from pathlib import Path

import pytest

# Add packages to Python path
root_dir = Path(__file__).parent.parent
packages_dir = root_dir / "packages"

sys.path.insert(0, str(packages_dir))

from weeklight_config.config_models import ScheduleElementSpec, ScheduleSpec  # noqa: E402

from mocks import FakeClock, MockDevice, MockEventSink  # noqa: E402


@pytest.fixture
def groups() -> dict[str, list[str]]:
    return {
        "bedroom": ["1", "2"],
        "living room": ["3", "4", "5"],
        "all": ["1", "2", "3", "4", "5"],
    }


@pytest.fixture
def default_schedule() -> ScheduleSpec:
    """Weekday morning ramp, nightly evening on and night off."""
    return ScheduleSpec(
        name="default",
        elements=[
            ScheduleElementSpec(
                name="Morning", lights="bedroom", days=[1, 2, 3, 4, 5],
                on="7:00", off="7:15", ramp=10,
            ),
            ScheduleElementSpec(
                name="Evening", lights="living room", days=list(range(7)),
                on="19:00", brightness=200, color_temperature=370,
            ),
            ScheduleElementSpec(
                name="Night", lights="all", days=list(range(7)), off="2:00",
            ),
        ],
    )


@pytest.fixture
def away_schedule() -> ScheduleSpec:
    """Inherits default; Night turns off at 00:30 instead of 02:00."""
    return ScheduleSpec(
        name="away",
        inherit="default",
        elements=[
            ScheduleElementSpec(
                name="Night", lights="all", days=list(range(7)), off="0:30",
            ),
        ],
    )


@pytest.fixture
def specs(default_schedule: ScheduleSpec, away_schedule: ScheduleSpec) -> dict[str, ScheduleSpec]:
    return {"default": default_schedule, "away": away_schedule}


@pytest.fixture
def clock() -> FakeClock:
    """Wednesday 2024-01-03 12:00:00."""
    return FakeClock(datetime(2024, 1, 3, 12, 0, 0))


@pytest.fixture
def mock_device() -> MockDevice:
    return MockDevice()


@pytest.fixture
def mock_sink() -> MockEventSink:
    return MockEventSink()
