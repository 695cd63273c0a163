"""Timer runtimes used by the feed controller and the carousel scheduler.

Components never call ``asyncio`` timer APIs directly; they receive a
``Timers`` implementation so the same code runs on the event loop in
production and on a manually advanced clock in tests.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import time
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol

Callback = Callable[[], None]

# 60 fps
DEFAULT_FRAME_INTERVAL = 1 / 60

# Tolerance for float deadlines accumulated by repeating timers
_EPSILON = 1e-9


class TimerHandle:
    """Cancellable reference to a scheduled callback.

    ``done`` turns true once the callback was cancelled or, for one-shot
    timers, has fired.
    """

    def __init__(self) -> None:
        self._done = False
        self._on_cancel: Optional[Callback] = None

    @property
    def done(self) -> bool:
        return self._done

    def cancel(self) -> None:
        if self._done:
            return
        self._done = True
        if self._on_cancel is not None:
            self._on_cancel()
            self._on_cancel = None


class Timers(Protocol):
    def now(self) -> float: ...

    def call_later(self, delay: float, callback: Callback) -> TimerHandle: ...

    def call_every(self, interval: float, callback: Callback) -> TimerHandle: ...

    def request_frame(self, callback: Callback) -> TimerHandle: ...


class AsyncioTimers:
    """Timers backed by the running event loop and ``time.monotonic``."""

    def __init__(
        self,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        frame_interval: float = DEFAULT_FRAME_INTERVAL,
    ):
        self._loop = loop
        self.frame_interval = frame_interval

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return time.monotonic()

    def call_later(self, delay: float, callback: Callback) -> TimerHandle:
        handle = TimerHandle()

        def _fire() -> None:
            if not handle.done:
                handle._done = True
                callback()

        loop_handle = self.loop.call_later(max(0.0, delay), _fire)
        handle._on_cancel = loop_handle.cancel
        return handle

    def call_every(self, interval: float, callback: Callback) -> TimerHandle:
        handle = TimerHandle()
        loop = self.loop
        next_deadline = loop.time() + interval

        def _fire() -> None:
            nonlocal next_deadline
            if handle.done:
                return
            # Re-arm first so a callback that cancels the handle also stops the chain
            next_deadline += interval
            loop_handle = loop.call_at(next_deadline, _fire)
            handle._on_cancel = loop_handle.cancel
            callback()

        first = loop.call_at(next_deadline, _fire)
        handle._on_cancel = first.cancel
        return handle

    def request_frame(self, callback: Callback) -> TimerHandle:
        return self.call_later(self.frame_interval, callback)


@dataclass(order=True)
class _Scheduled:
    deadline: float
    seq: int
    callback: Callback = field(compare=False)
    handle: TimerHandle = field(compare=False)
    interval: Optional[float] = field(default=None, compare=False)


class VirtualTimers:
    """Manually advanced clock.

    ``advance(seconds)`` moves time forward, firing every due callback in
    deadline order with ``now()`` set to that callback's deadline. Callbacks
    scheduled while advancing run in the same pass if they fall inside the
    window.
    """

    def __init__(self, start: float = 0.0, frame_interval: float = DEFAULT_FRAME_INTERVAL):
        self._now = start
        self.frame_interval = frame_interval
        self._queue: list[_Scheduled] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def _push(self, deadline: float, callback: Callback, interval: Optional[float]) -> TimerHandle:
        handle = TimerHandle()
        heapq.heappush(
            self._queue,
            _Scheduled(deadline, next(self._seq), callback, handle, interval),
        )
        return handle

    def call_later(self, delay: float, callback: Callback) -> TimerHandle:
        return self._push(self._now + max(0.0, delay), callback, None)

    def call_every(self, interval: float, callback: Callback) -> TimerHandle:
        if interval <= 0:
            raise ValueError("interval must be positive")
        return self._push(self._now + interval, callback, interval)

    def request_frame(self, callback: Callback) -> TimerHandle:
        return self.call_later(self.frame_interval, callback)

    @property
    def pending(self) -> int:
        """Number of scheduled callbacks that are still waiting to fire."""
        return sum(1 for entry in self._queue if not entry.handle.done)

    def advance(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError("cannot move a virtual clock backwards")
        target = self._now + seconds
        while self._queue and self._queue[0].deadline <= target + _EPSILON:
            entry = heapq.heappop(self._queue)
            if entry.handle.done:
                continue
            self._now = max(self._now, entry.deadline)
            if entry.interval is not None:
                heapq.heappush(
                    self._queue,
                    _Scheduled(
                        entry.deadline + entry.interval,
                        next(self._seq),
                        entry.callback,
                        entry.handle,
                        entry.interval,
                    ),
                )
            else:
                entry.handle._done = True
            entry.callback()
        self._now = max(self._now, target)

    def run_pending(self) -> None:
        self.advance(0.0)
