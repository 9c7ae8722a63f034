"""Simulated upload progress reconciled with real completion.

While the processing service works, a timer raises an estimate by a fixed step
up to a cap below 100. Real completion forces 100 and, after a short delay,
clears the value again. Every value is published to ``ProgressTracker.queue``.
"""

import asyncio
import logging
from enum import Enum

from app.core.config import settings
from app.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

COMPLETE = 100


class ProgressState(str, Enum):
    IDLE = "idle"
    ESTIMATING = "estimating"
    FINALIZING = "finalizing"


class ProgressStateError(Exception):
    """Raised on an illegal progress state transition"""


class ProgressTracker:
    """State machine ``IDLE -> ESTIMATING -> FINALIZING -> IDLE``.

    ``cancel()`` returns to ``IDLE`` from any state.
    """

    def __init__(
        self,
        tick_seconds: float | None = None,
        step: int | None = None,
        cap: int | None = None,
        clear_delay: float | None = None,
    ) -> None:
        self.tick_seconds = settings.progress_tick_seconds if tick_seconds is None else tick_seconds
        self.step = settings.progress_step if step is None else step
        self.cap = settings.progress_cap if cap is None else cap
        self.clear_delay = settings.progress_clear_delay if clear_delay is None else clear_delay
        if not 0 < self.cap < COMPLETE:
            raise ConfigurationError(f"progress cap must be between 1 and {COMPLETE - 1}, got {self.cap}")
        if self.step <= 0:
            raise ConfigurationError(f"progress step must be positive, got {self.step}")

        self.state = ProgressState.IDLE
        self.value = 0
        self.queue: asyncio.Queue[int] = asyncio.Queue()
        self._tick_task: asyncio.Task | None = None
        self._clear_task: asyncio.Task | None = None

    def _publish(self, value: int) -> None:
        self.value = value
        self.queue.put_nowait(value)

    def _require(self, expected: ProgressState, action: str) -> None:
        if self.state is not expected:
            raise ProgressStateError(f"cannot {action} while {self.state.value}")

    async def _tick(self) -> None:
        while self.value < self.cap:
            await asyncio.sleep(self.tick_seconds)
            self._publish(min(self.value + self.step, self.cap))

    async def _clear_later(self) -> None:
        await asyncio.sleep(self.clear_delay)
        self.value = 0
        self.state = ProgressState.IDLE
        logger.debug("Progress cleared")

    def _stop_tick(self) -> None:
        if self._tick_task is not None:
            self._tick_task.cancel()
            self._tick_task = None

    def start(self) -> None:
        """Begin estimating from 0. Must be called inside a running event loop."""
        self._require(ProgressState.IDLE, "start")
        self.state = ProgressState.ESTIMATING
        self._publish(0)
        self._tick_task = asyncio.create_task(self._tick())

    def finalize(self) -> None:
        """Stop estimating, publish 100 and schedule the clear."""
        self._require(ProgressState.ESTIMATING, "finalize")
        self._stop_tick()
        self._publish(COMPLETE)
        self.state = ProgressState.FINALIZING
        self._clear_task = asyncio.create_task(self._clear_later())

    def cancel(self) -> None:
        self._stop_tick()
        if self._clear_task is not None:
            self._clear_task.cancel()
            self._clear_task = None
        self.value = 0
        self.state = ProgressState.IDLE

    def drain(self) -> list[int]:
        """Return every value published since the last drain."""
        values: list[int] = []
        while not self.queue.empty():
            values.append(self.queue.get_nowait())
        return values
