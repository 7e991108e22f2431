"""
Deferred tasks

Cancellable, time-scheduled unit of work standing in for a queue worker.
Not persisted: pending work is lost when the process exits.
"""

import asyncio
import logging
import uuid
from typing import Awaitable, Callable, Optional

from ..clock import Clock, SystemClock


logger = logging.getLogger(__name__)


class DeferredTask:
    """Runs `work` once after `delay_sec` unless cancelled first."""

    def __init__(
        self,
        delay_sec: float,
        work: Callable[[], Awaitable[None]],
        clock: Optional[Clock] = None,
        name: Optional[str] = None,
    ):
        self.delay_sec = delay_sec
        self.work = work
        self.clock = clock or SystemClock()
        self.name = name or f"deferred_{uuid.uuid4().hex[:8]}"
        self._task: Optional[asyncio.Task] = None
        self._started_at: Optional[float] = None
        self._ran = False

    @property
    def started(self) -> bool:
        return self._task is not None

    @property
    def done(self) -> bool:
        return self._task is not None and self._task.done()

    @property
    def cancelled(self) -> bool:
        return self._task is not None and self._task.cancelled()

    @property
    def ran(self) -> bool:
        """True once `work` has been invoked (whether or not it raised)."""
        return self._ran

    def start(self) -> "DeferredTask":
        if self._task is not None:
            raise RuntimeError(f"{self.name} already started")
        self._started_at = self.clock.monotonic()
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self.name)
        return self

    async def _run(self) -> None:
        await self.clock.sleep(self.delay_sec)
        self._ran = True
        await self.work()

    def cancel(self) -> bool:
        """Cancel if still pending. Returns True if a cancel was issued."""
        if self._task is None or self._task.done():
            return False
        self._task.cancel()
        logger.debug("[DEFERRED] Cancelled %s", self.name)
        return True

    def remaining(self) -> float:
        if self._started_at is None or self.done:
            return 0.0
        elapsed = self.clock.monotonic() - self._started_at
        return max(0.0, self.delay_sec - elapsed)

    async def wait(self) -> None:
        """Wait for completion. Swallows cancellation; re-raises work errors."""
        if self._task is None:
            return
        try:
            await asyncio.shield(self._task)
        except asyncio.CancelledError:
            if not self._task.cancelled():
                raise


class DeferredScheduler:
    """Keeps track of pending deferred tasks so teardown can cancel them."""

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or SystemClock()
        self._pending: set[DeferredTask] = set()

    def schedule(
        self,
        delay_sec: float,
        work: Callable[[], Awaitable[None]],
        name: Optional[str] = None,
    ) -> DeferredTask:
        task = DeferredTask(delay_sec, work, clock=self.clock, name=name)
        task.start()
        self._pending.add(task)
        task._task.add_done_callback(lambda _t, task=task: self._pending.discard(task))
        return task

    @property
    def pending(self) -> list[DeferredTask]:
        return [t for t in self._pending if not t.done]

    async def cancel_all(self) -> int:
        tasks = self.pending
        for task in tasks:
            task.cancel()
        for task in tasks:
            await task.wait()
        if tasks:
            logger.info("[DEFERRED] Cancelled %d pending task(s)", len(tasks))
        return len(tasks)
