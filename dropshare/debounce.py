# python
"""
dropshare/debounce.py
Trailing-edge debounce that turns bursts of change notifications into one rebuild.
"""
import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class Debouncer:
    """
    Collapse any number of notify() calls into a single call of ``on_fire``.

    The callback runs no sooner than ``interval`` seconds after the most recent
    notification. A notification that arrives while the callback is running
    schedules exactly one more run. Pending work is a flag plus a deadline, never
    a queue, so an event storm cannot build a backlog.

    If ``max_wait`` is set, a continuous stream of notifications cannot defer
    the callback for longer than that many seconds after the first one.
    """

    def __init__(
        self,
        interval: float,
        on_fire: Callable[[], Awaitable[None]],
        max_wait: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if interval < 0:
            raise ValueError("interval must be >= 0")
        if max_wait is not None and max_wait < interval:
            raise ValueError("max_wait must be >= interval")
        self.interval = float(interval)
        self.max_wait = max_wait
        self.on_fire = on_fire
        self._clock = clock
        self._pending = asyncio.Event()
        self._deadline = 0.0
        self._first: Optional[float] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._task: Optional[asyncio.Task] = None
        self.fired = 0

    @property
    def pending(self) -> bool:
        return self._pending.is_set()

    def notify(self) -> None:
        """Record a change. Must be called from the event loop thread."""
        now = self._clock()
        self._deadline = now + self.interval
        if self._first is None:
            self._first = now
        self._pending.set()

    def notify_threadsafe(self) -> None:
        """Record a change from a thread other than the event loop's."""
        loop = self._loop
        if loop is None or loop.is_closed():
            logger.debug("Dropping change notification: debouncer not running")
            return
        try:
            loop.call_soon_threadsafe(self.notify)
        except RuntimeError:
            # loop closed between the check and the call
            logger.debug("Dropping change notification: event loop closed")

    def _due(self) -> float:
        due = self._deadline
        if self.max_wait is not None and self._first is not None:
            due = min(due, self._first + self.max_wait)
        return due

    async def _run(self) -> None:
        while True:
            await self._pending.wait()
            while True:
                delay = self._due() - self._clock()
                if delay <= 0:
                    break
                await asyncio.sleep(delay)
            self._pending.clear()
            self._first = None
            self.fired += 1
            try:
                await self.on_fire()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Debounced callback failed")

    def start(self) -> None:
        if self._task is not None and not self._task.done():
            return
        self._loop = asyncio.get_running_loop()
        self._task = self._loop.create_task(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        self._loop = None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
