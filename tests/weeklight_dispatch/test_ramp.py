"""Tests for RampEngine step arithmetic and timing."""

import asyncio

import pytest

from mocks import FakeMonotonic
from weeklight_core.models import Command, LightState
from weeklight_dispatch.ramp import RampEngine


def ramp_command(brightness: int = 254, minutes: int = 10, ct: int | None = None) -> Command:
    return Command(
        target_ids=("1", "2"),
        state=LightState.ON,
        brightness=brightness,
        color_temperature=ct,
        ramp_minutes=minutes,
    )


@pytest.fixture
def monotonic() -> FakeMonotonic:
    return FakeMonotonic()


@pytest.fixture
def submitted() -> list[Command]:
    return []


@pytest.fixture
def engine(submitted, monotonic) -> RampEngine:
    return RampEngine(
        submitted.append,
        startup_offset_ms=100,
        clock=monotonic,
        sleep=monotonic.sleep,
    )


class TestStepInterval:
    """Tests for compute_step_interval_ms."""

    def test_ten_minutes_to_full(self):
        assert RampEngine.compute_step_interval_ms(10, 253, 100) == 2371

    def test_without_offset(self):
        assert RampEngine.compute_step_interval_ms(10, 253) == 2371

    def test_truncates(self):
        # 60000 / 7 = 8571.43
        assert RampEngine.compute_step_interval_ms(1, 7) == 8571

    def test_no_steps(self):
        assert RampEngine.compute_step_interval_ms(10, 0, 100) == 0

    def test_offset_longer_than_ramp(self):
        assert RampEngine.compute_step_interval_ms(1, 10, 70000) == 0


class TestRampEngine:
    """Tests for running ramps."""

    @pytest.mark.asyncio
    async def test_initial_command(self, engine):
        handle = engine.start(ramp_command(ct=370))

        assert handle.initial_command == Command(
            target_ids=("1", "2"),
            state=LightState.ON,
            brightness=1,
            color_temperature=370,
        )
        assert handle.state.remaining_steps == 253
        assert handle.state.step_interval_ms == 2371
        await handle.wait()

    @pytest.mark.asyncio
    async def test_full_ramp(self, engine, submitted, monotonic):
        done = []
        handle = engine.start(ramp_command(), on_done=done.append)

        await asyncio.wait_for(handle.wait(), timeout=1.0)

        assert len(submitted) == 253
        assert all(
            c == Command(target_ids=("1", "2"), state=LightState.NO_CHANGE, brightness_delta=1)
            for c in submitted
        )
        assert handle.state.current_brightness == 254
        assert handle.state.remaining_steps == 0
        assert handle.done
        assert done == [handle]

    @pytest.mark.asyncio
    async def test_ramp_fits_duration(self, engine, monotonic):
        handle = engine.start(ramp_command())

        await asyncio.wait_for(handle.wait(), timeout=1.0)

        assert len(monotonic.waits) == 253
        assert monotonic.waits[0] == pytest.approx(2.371)
        # Startup offset plus all steps never exceeds the ramp
        assert monotonic.now + 0.1 <= 600.0
        assert monotonic.now == pytest.approx(253 * 2.371)

    @pytest.mark.asyncio
    async def test_anchor_absorbs_late_wakeups(self, submitted):
        """A slow step shortens the next wait instead of shifting every later step."""
        monotonic = FakeMonotonic()

        async def late_sleep(seconds: float) -> None:
            await monotonic.sleep(seconds + 0.5)

        engine = RampEngine(submitted.append, clock=monotonic, sleep=late_sleep)
        # 3 steps, 1 minute -> 20 s apart
        handle = engine.start(ramp_command(brightness=4, minutes=1))

        await asyncio.wait_for(handle.wait(), timeout=1.0)

        assert monotonic.waits == pytest.approx([20.5, 20.0, 20.0])

    @pytest.mark.asyncio
    async def test_degenerate_ramp(self, engine, submitted, monotonic):
        """Brightness 1 means no steps: the ramp finishes immediately."""
        handle = engine.start(ramp_command(brightness=1))

        await asyncio.wait_for(handle.wait(), timeout=1.0)

        assert handle.state.remaining_steps == 0
        assert handle.state.step_interval_ms == 0
        assert submitted == []
        assert monotonic.waits == []

    @pytest.mark.asyncio
    async def test_zero_interval_steps_immediately(self, submitted, monotonic):
        engine = RampEngine(
            submitted.append, startup_offset_ms=120000, clock=monotonic, sleep=monotonic.sleep
        )
        handle = engine.start(ramp_command(brightness=11, minutes=1))

        await asyncio.wait_for(handle.wait(), timeout=1.0)

        assert len(submitted) == 10
        assert monotonic.waits == []

    @pytest.mark.asyncio
    async def test_rejects_non_ramp(self, engine):
        with pytest.raises(ValueError, match="Not a ramp"):
            engine.start(Command(target_ids=("1",), state=LightState.ON, brightness=200))

    @pytest.mark.asyncio
    async def test_independent_ramps(self, engine, submitted):
        first = engine.start(ramp_command(brightness=3, minutes=1))
        second = engine.start(ramp_command(brightness=5, minutes=1))

        assert first.ramp_id != second.ramp_id
        await asyncio.wait_for(asyncio.gather(first.wait(), second.wait()), timeout=1.0)

        assert len(submitted) == 2 + 4

    @pytest.mark.asyncio
    async def test_shutdown_cancels(self, submitted):
        engine = RampEngine(submitted.append)
        handle = engine.start(ramp_command())
        await asyncio.sleep(0)
        assert engine.running_count == 1

        engine.shutdown()

        await asyncio.wait_for(handle.wait(), timeout=1.0)
        assert submitted == []
