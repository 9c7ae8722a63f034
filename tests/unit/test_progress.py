import asyncio

import pytest

from app.core.exceptions import ConfigurationError
from app.generation_logic.progress import ProgressState
from app.generation_logic.progress import ProgressStateError
from app.generation_logic.progress import ProgressTracker


def _tracker(**overrides) -> ProgressTracker:
    params = dict(tick_seconds=0.001, step=30, cap=90, clear_delay=0.01)
    params.update(overrides)
    return ProgressTracker(**params)


@pytest.mark.asyncio
async def test_estimate_rises_to_cap_and_stops():
    tracker = _tracker()
    tracker.start()
    assert tracker.state is ProgressState.ESTIMATING

    await asyncio.sleep(0.1)
    assert tracker.drain() == [0, 30, 60, 90]
    assert tracker.value == 90
    tracker.cancel()


@pytest.mark.asyncio
async def test_step_does_not_overshoot_cap():
    tracker = _tracker(step=40)
    tracker.start()
    await asyncio.sleep(0.1)
    assert tracker.drain() == [0, 40, 80, 90]
    tracker.cancel()


@pytest.mark.asyncio
async def test_finalize_forces_100_then_clears():
    tracker = _tracker(tick_seconds=10)
    tracker.start()
    tracker.finalize()

    assert tracker.state is ProgressState.FINALIZING
    assert tracker.drain() == [0, 100]

    await asyncio.sleep(0.05)
    assert tracker.state is ProgressState.IDLE
    assert tracker.value == 0


@pytest.mark.asyncio
async def test_finalize_stops_the_estimate():
    tracker = _tracker(tick_seconds=0.005, step=1)
    tracker.start()
    await asyncio.sleep(0.02)
    tracker.finalize()
    tracker.drain()
    await asyncio.sleep(0.005)
    assert tracker.drain() == []
    assert tracker.value == 100


@pytest.mark.asyncio
async def test_cancel_returns_to_idle_immediately():
    tracker = _tracker()
    tracker.start()
    tracker.cancel()
    assert tracker.state is ProgressState.IDLE
    assert tracker.value == 0
    # A new estimate may begin after a cancel
    tracker.start()
    tracker.cancel()


@pytest.mark.asyncio
async def test_illegal_transitions_raise():
    tracker = _tracker()
    with pytest.raises(ProgressStateError):
        tracker.finalize()

    tracker.start()
    with pytest.raises(ProgressStateError):
        tracker.start()

    tracker.finalize()
    with pytest.raises(ProgressStateError):
        tracker.finalize()
    with pytest.raises(ProgressStateError):
        tracker.start()
    tracker.cancel()


@pytest.mark.parametrize("cap", [0, 100, 120])
def test_cap_must_stay_below_100(cap):
    with pytest.raises(ConfigurationError):
        ProgressTracker(cap=cap)


def test_step_must_be_positive():
    with pytest.raises(ConfigurationError):
        ProgressTracker(step=0)
