"""
Shared fixtures - 共享测试夹具
"""

import random

import pytest

from safehome.config import Settings
from safehome.services import (
    BusyTracker,
    DeferredScheduler,
    LogNotificationChannel,
    NoticeBoard,
    NotificationDispatcher,
)
from safehome.store import MemoryDocumentStore
from safehome.testing import ManualClock


HOME = "home-alpha"
OTHER_HOME = "home-beta"


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def store(clock):
    return MemoryDocumentStore(clock=clock)


@pytest.fixture
def notices(clock):
    return NoticeBoard(clock=clock)


@pytest.fixture
def busy():
    return BusyTracker()


@pytest.fixture
def scheduler(clock):
    return DeferredScheduler(clock=clock)


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def dispatcher(clock):
    dispatcher = NotificationDispatcher(clock=clock, local_time=lambda: clock.now())
    dispatcher.register_channel(LogNotificationChannel("sms"))
    dispatcher.register_channel(LogNotificationChannel("email"))
    return dispatcher


@pytest.fixture
def settings():
    return Settings(_env_file=None, custom_token="", ingestion_delay_sec=3.0, notify_webhook_url=None)
