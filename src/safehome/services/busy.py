"""
In-flight tracking - 防重复提交

One set of busy ids per action class ("heartbeat", "clip", "alert", ...).
A second request for an id that is still in flight is suppressed before
any store request is issued. No cross-client exclusion.
"""

from collections import defaultdict
from contextlib import asynccontextmanager
from typing import AsyncIterator

from ..errors import OperationInProgress


class BusyTracker:
    """Per-action "am I already busy for this id" flags."""

    def __init__(self):
        self._busy: dict[str, set[str]] = defaultdict(set)
        self.suppressed_count = 0

    def is_busy(self, action: str, key: str) -> bool:
        return key in self._busy[action]

    @asynccontextmanager
    async def hold(self, action: str, key: str) -> AsyncIterator[None]:
        """Mark (action, key) busy for the duration of the block.

        Raises:
            OperationInProgress: if the same (action, key) is already held
        """
        if key in self._busy[action]:
            self.suppressed_count += 1
            raise OperationInProgress(action, key)
        self._busy[action].add(key)
        try:
            yield
        finally:
            self._busy[action].discard(key)
