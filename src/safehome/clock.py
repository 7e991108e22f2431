"""
Clock abstraction

Server timestamps and deferred tasks read time through a Clock so tests
can drive them with safehome.testing.ManualClock.
"""

import asyncio
from datetime import datetime, timezone


class Clock:
    """Wall clock plus an awaitable sleep."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def monotonic(self) -> float:
        return asyncio.get_running_loop().time()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


class SystemClock(Clock):
    pass
