"""
User-visible notices (toasts)

Every failure and every completed mutation posts a notice for the home it
concerns. Consumers drain them over HTTP or receive them over the feed.
"""

import logging
from collections import defaultdict, deque
from typing import Callable, Optional

from ..clock import Clock, SystemClock
from ..domain import Notice, NoticeTone


logger = logging.getLogger(__name__)

NoticeListener = Callable[[str, Notice], None]


class NoticeBoard:

    def __init__(self, clock: Optional[Clock] = None, max_per_home: int = 50):
        self.clock = clock or SystemClock()
        self.max_per_home = max_per_home
        self._notices: dict[str, deque] = defaultdict(lambda: deque(maxlen=self.max_per_home))
        self._listeners: list[NoticeListener] = []

    def post(
        self,
        home_id: str,
        title: str,
        description: str = "",
        tone: NoticeTone = NoticeTone.INFO,
    ) -> Notice:
        notice = Notice(title=title, description=description, tone=tone, created_at=self.clock.now())
        self._notices[home_id].append(notice)
        if tone == NoticeTone.ERROR:
            logger.warning("[NOTICE] %s: %s - %s", home_id, title, description)
        for listener in list(self._listeners):
            try:
                listener(home_id, notice)
            except Exception as e:
                logger.exception("[NOTICE] Listener raised: %s", e)
        return notice

    def success(self, home_id: str, title: str, description: str = "") -> Notice:
        return self.post(home_id, title, description, NoticeTone.SUCCESS)

    def error(self, home_id: str, title: str, description: str = "") -> Notice:
        return self.post(home_id, title, description, NoticeTone.ERROR)

    def info(self, home_id: str, title: str, description: str = "") -> Notice:
        return self.post(home_id, title, description, NoticeTone.INFO)

    def peek(self, home_id: str) -> list[Notice]:
        return list(self._notices.get(home_id, ()))

    def drain(self, home_id: str) -> list[Notice]:
        notices = self.peek(home_id)
        self._notices.pop(home_id, None)
        return notices

    def add_listener(self, listener: NoticeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove
