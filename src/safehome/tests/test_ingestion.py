"""
Tests for the ingestion / inference simulator
"""

import random

import pytest

from safehome.domain import ALERT_CATALOG, Device, IngestionEvent, DeviceStatus, DeviceType
from safehome.errors import OperationInProgress, StoreWriteError
from safehome.services import IngestionSimulator
from safehome.services.ingestion import CLIP_ACTION
from safehome.store import ALERTS, DEVICES, EVENTS
from safehome.testing import seed_home

from .conftest import HOME


@pytest.fixture
def ingestion(store, scheduler, notices, busy, rng):
    return IngestionSimulator(store, scheduler, notices, busy, rng=rng, delay_sec=3.0)


async def make_device(store) -> Device:
    seeded = await seed_home(
        store, HOME,
        devices=(("Hallway Mic", DeviceType.AUDIO_SENSOR, DeviceStatus.ONLINE),),
        contacts=(),
    )
    return Device.from_snapshot(await store.get(DEVICES, seeded.device_ids[0]))


async def count(store, collection):
    return len(await store.run_query(store.query(collection)))


class TestClassify:

    def test_choices_come_from_catalog(self, store, scheduler, notices, busy):
        simulator = IngestionSimulator(store, scheduler, notices, busy, rng=random.Random(7))
        seen = set()
        for _ in range(300):
            entry, severity = simulator.classify()
            assert entry in ALERT_CATALOG
            assert severity in entry.severity_pool
            seen.add(entry.type)
        assert seen == {entry.type for entry in ALERT_CATALOG}

    def test_same_seed_same_sequence(self, store, scheduler, notices, busy):
        a = IngestionSimulator(store, scheduler, notices, busy, rng=random.Random(42))
        b = IngestionSimulator(store, scheduler, notices, busy, rng=random.Random(42))
        assert [a.classify() for _ in range(20)] == [b.classify() for _ in range(20)]


class TestSendTestClip:

    @pytest.mark.asyncio
    async def test_event_written_immediately(self, store, ingestion, clock):
        device = await make_device(store)

        submission = await ingestion.send_test_clip(HOME, device)

        event = await store.get(EVENTS, submission.event_id)
        assert event.exists
        assert IngestionEvent.from_snapshot(event).device_id == device.id
        assert event.get("home_id") == HOME
        assert event.get("device_id") == device.id
        assert event.get("device_name") == "Hallway Mic"
        epoch_ms = int(clock.now().timestamp() * 1000)
        assert event.get("storage_key") == f"audio/{device.id}/{epoch_ms}.wav"
        assert await count(store, ALERTS) == 0
        await ingestion.shutdown()

    @pytest.mark.asyncio
    async def test_alert_written_after_delay(self, store, ingestion, clock, notices):
        device = await make_device(store)
        submission = await ingestion.send_test_clip(HOME, device)

        await clock.advance(2.5)
        assert await count(store, ALERTS) == 0

        await clock.advance(0.5)
        alert_id = await submission.wait()

        alert = await store.get(ALERTS, alert_id)
        assert alert.get("status") == "open"
        assert alert.get("event_id") == submission.event_id
        assert alert.get("type") == submission.entry.type.value
        assert alert.get("type_label") == submission.entry.label
        assert alert.get("severity") == submission.severity.value
        assert alert.get("device_id") == device.id

        titles = [n.title for n in notices.peek(HOME)]
        assert titles[-2:] == ["Test clip sent", "Inference complete"]

    @pytest.mark.asyncio
    async def test_event_write_failure_schedules_nothing(self, store, ingestion, notices):
        device = await make_device(store)
        store.fail_next("add", EVENTS, RuntimeError("quota exceeded"))

        with pytest.raises(StoreWriteError):
            await ingestion.send_test_clip(HOME, device)

        assert ingestion.pending == []
        assert notices.peek(HOME)[-1].title == "Clip upload failed"

    @pytest.mark.asyncio
    async def test_alert_write_failure_keeps_event(self, store, ingestion, clock, notices):
        device = await make_device(store)
        submission = await ingestion.send_test_clip(HOME, device)
        store.fail_next("add", ALERTS, RuntimeError("permission denied"))

        await clock.advance(3)

        assert await submission.wait() is None
        assert submission.error == "permission denied"
        assert await count(store, EVENTS) == 1
        assert await count(store, ALERTS) == 0
        last = notices.peek(HOME)[-1]
        assert (last.title, last.description, last.tone.value) == ("Alert fan-out failed", "permission denied", "error")

    @pytest.mark.asyncio
    async def test_shutdown_cancels_pending_writes(self, store, ingestion, clock):
        device = await make_device(store)
        submission = await ingestion.send_test_clip(HOME, device)

        await clock.settle()
        assert clock.pending_sleepers == 1

        assert await ingestion.shutdown() == 1
        assert clock.pending_sleepers == 0
        await clock.advance(10)

        assert submission.task.cancelled
        assert not submission.task.ran
        assert await count(store, ALERTS) == 0

    @pytest.mark.asyncio
    async def test_clip_in_flight_is_suppressed(self, store, ingestion, busy):
        device = await make_device(store)

        async with busy.hold(CLIP_ACTION, device.id):
            with pytest.raises(OperationInProgress):
                await ingestion.send_test_clip(HOME, device)

        assert await count(store, EVENTS) == 0

    @pytest.mark.asyncio
    async def test_remaining_counts_down(self, store, ingestion, clock):
        device = await make_device(store)
        submission = await ingestion.send_test_clip(HOME, device)

        assert submission.task.remaining() == pytest.approx(3.0)
        await clock.advance(1)
        assert submission.task.remaining() == pytest.approx(2.0)
        await ingestion.shutdown()
