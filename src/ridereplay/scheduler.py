#!/usr/bin/env python3
"""
Frame scheduling for playback.

The playback controller never sleeps or spawns threads. It asks a
FrameScheduler to call it back on the next display frame and cancels that
request when playback stops. AsyncioFrameScheduler runs frames on an asyncio
event loop; ManualFrameScheduler runs them only when told to, which makes
headless replays and tests deterministic.
"""

from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Any, Callable, Optional
import asyncio
import itertools
import logging

logger = logging.getLogger(__name__)

FrameCallback = Callable[[], None]


class FrameScheduler(ABC):
    """Schedules one-shot callbacks for the next display frame."""

    @abstractmethod
    def request_frame(self, callback: FrameCallback) -> Any:
        """Schedule callback for the next frame and return a handle for it."""

    @abstractmethod
    def cancel_frame(self, handle: Any) -> None:
        """Cancel a pending frame. Cancelling a frame that already ran is a no-op."""


class AsyncioFrameScheduler(FrameScheduler):
    """Runs frames on an asyncio event loop at a fixed interval."""

    def __init__(
        self,
        interval: float = 1 / 60,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self.interval = interval
        self._loop = loop

    def request_frame(self, callback: FrameCallback) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(self.interval, callback)

    def cancel_frame(self, handle: asyncio.TimerHandle) -> None:
        handle.cancel()


class ManualClock:
    """A clock that only moves when advanced. Callable like time.monotonic."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError(f"Cannot move clock backwards by {seconds} s")
        self.now += seconds


class ManualFrameScheduler(FrameScheduler):
    """
    Queues frame callbacks and runs them on demand.

    If a ManualClock is given, each step advances it by interval before the
    queued callbacks run, emulating a display refreshing at 1 / interval Hz.
    """

    def __init__(self, clock: Optional[ManualClock] = None, interval: float = 1 / 60):
        self.clock = clock
        self.interval = interval
        self.frames_run = 0
        self._pending: "OrderedDict[int, FrameCallback]" = OrderedDict()
        self._ids = itertools.count(1)

    @property
    def pending(self) -> int:
        """Number of frames waiting to run."""
        return len(self._pending)

    def request_frame(self, callback: FrameCallback) -> int:
        handle = next(self._ids)
        self._pending[handle] = callback
        return handle

    def cancel_frame(self, handle: int) -> None:
        self._pending.pop(handle, None)

    def step(self) -> int:
        """
        Advance one frame.

        Returns:
            Number of callbacks run. Callbacks requested while this frame runs
            wait for the next step.
        """
        if self.clock is not None:
            self.clock.advance(self.interval)

        ran = 0
        for handle in list(self._pending):
            # An earlier callback in this frame may have cancelled it
            callback = self._pending.pop(handle, None)
            if callback is None:
                continue
            callback()
            ran += 1
        self.frames_run += ran
        return ran

    def run_until_idle(self, max_frames: int = 1_000_000) -> int:
        """
        Step until no frames are pending.

        Returns:
            Number of steps taken

        Raises:
            RuntimeError: If frames are still pending after max_frames steps
        """
        steps = 0
        while self._pending:
            if steps >= max_frames:
                raise RuntimeError(
                    f"Frames still pending after {max_frames} steps"
                )
            self.step()
            steps += 1
        logger.debug(f"Manual scheduler idle after {steps} steps")
        return steps
