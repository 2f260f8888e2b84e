from __future__ import annotations
import asyncio
import logging
from typing import Awaitable, Callable, Protocol, Set

logger = logging.getLogger(__name__)

TimerCallback = Callable[[], Awaitable[None]]


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Clock plus one-shot timers. The game only ever talks to this."""

    def now(self) -> float: ...

    def call_later(self, delay: float, callback: TimerCallback) -> TimerHandle: ...


class AsyncioScheduler:
    """Timers on the running event loop.

    ``now()`` is the loop's monotonic clock so elapsed-time checks and timer
    expiry are measured against the same source.
    """

    def __init__(self) -> None:
        self._tasks: Set[asyncio.Task] = set()

    def now(self) -> float:
        return asyncio.get_running_loop().time()

    def call_later(self, delay: float, callback: TimerCallback) -> asyncio.TimerHandle:
        loop = asyncio.get_running_loop()
        return loop.call_later(max(0.0, delay), self._spawn, callback)

    def _spawn(self, callback: TimerCallback) -> None:
        task = asyncio.ensure_future(callback())
        # keep a strong reference until the callback finishes
        self._tasks.add(task)
        task.add_done_callback(self._finished)

    def _finished(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("timer callback failed", exc_info=exc)
