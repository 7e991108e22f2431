"""
Tests for the alert lifecycle state machine - 告警状态机测试
"""

import pytest

from safehome.domain import Alert, AlertStatus, AlertType, ContactChannel, DeviceStatus, DeviceType, Severity
from safehome.errors import DocumentNotFound, InvalidTransition, OperationInProgress, StoreWriteError
from safehome.services import AlertLifecycle, actions_for, allowed_transitions, can_transition
from safehome.services.alert_lifecycle import ALERT_ACTION
from safehome.store import ALERTS
from safehome.testing import seed_home

from .conftest import HOME, OTHER_HOME


@pytest.fixture
def lifecycle(store, busy, notices, dispatcher):
    return AlertLifecycle(store, busy, notices, dispatcher)


async def seed_alert(store, status=AlertStatus.OPEN, home_id=HOME, contacts=()):
    seeded = await seed_home(
        store,
        home_id,
        devices=(("Hallway Mic", DeviceType.AUDIO_SENSOR, DeviceStatus.ONLINE),),
        contacts=contacts,
        alerts=((AlertType.SCREAM, Severity.HIGH, status),),
    )
    return seeded.alert_ids[0]


# =============================================================================
# Transition table
# =============================================================================

class TestTransitionTable:

    def test_allowed_transitions(self):
        assert allowed_transitions(AlertStatus.OPEN) == (AlertStatus.ACKED, AlertStatus.ESCALATED)
        assert allowed_transitions(AlertStatus.ACKED) == (AlertStatus.CLOSED,)
        assert allowed_transitions(AlertStatus.ESCALATED) == (AlertStatus.ACKED, AlertStatus.CLOSED)
        assert allowed_transitions(AlertStatus.CLOSED) == ()

    def test_can_transition_accepts_raw_values(self):
        assert can_transition("open", "acked")
        assert not can_transition("acked", "escalated")
        assert not can_transition("closed", "open")

    @pytest.mark.asyncio
    async def test_actions_follow_status(self, store):
        alert_id = await seed_alert(store, AlertStatus.ESCALATED)
        alert = Alert.from_snapshot(await store.get(ALERTS, alert_id))

        actions = actions_for(alert)
        assert [a.label for a in actions] == ["Ack", "Close"]
        assert all(a.enabled for a in actions)

    @pytest.mark.asyncio
    async def test_actions_disabled_while_in_flight(self, store, busy):
        alert_id = await seed_alert(store)
        alert = Alert.from_snapshot(await store.get(ALERTS, alert_id))

        async with busy.hold(ALERT_ACTION, alert_id):
            actions = actions_for(alert, busy)
            assert [a.label for a in actions] == ["Ack", "Escalate"]
            assert not any(a.enabled for a in actions)

        assert all(a.enabled for a in actions_for(alert, busy))


# =============================================================================
# AlertLifecycle.transition
# =============================================================================

class TestTransition:

    @pytest.mark.asyncio
    async def test_ack_writes_status_and_updated_at_only(self, store, lifecycle, clock):
        alert_id = await seed_alert(store)
        before = (await store.get(ALERTS, alert_id)).data
        await clock.advance(5)

        updated = await lifecycle.transition(HOME, alert_id, AlertStatus.ACKED)

        after = (await store.get(ALERTS, alert_id)).data
        assert updated.status == AlertStatus.ACKED
        assert after["status"] == "acked"
        assert after["updated_at"] == clock.now()
        unchanged = {k: v for k, v in after.items() if k not in ("status", "updated_at")}
        assert unchanged == {k: v for k, v in before.items() if k != "status"}

    @pytest.mark.asyncio
    async def test_success_posts_notice(self, store, lifecycle, notices):
        alert_id = await seed_alert(store)

        await lifecycle.transition(HOME, alert_id, AlertStatus.ESCALATED)

        titles = [n.title for n in notices.peek(HOME)]
        assert "Escalated alert" in titles

    @pytest.mark.asyncio
    async def test_full_path_to_closed(self, store, lifecycle):
        alert_id = await seed_alert(store)

        await lifecycle.transition(HOME, alert_id, AlertStatus.ESCALATED)
        await lifecycle.transition(HOME, alert_id, AlertStatus.ACKED)
        closed = await lifecycle.transition(HOME, alert_id, AlertStatus.CLOSED)

        assert closed.status == AlertStatus.CLOSED
        assert not closed.is_active()

    @pytest.mark.asyncio
    async def test_invalid_transition_writes_nothing(self, store, lifecycle):
        alert_id = await seed_alert(store, AlertStatus.ACKED)
        writes = store.write_count

        with pytest.raises(InvalidTransition):
            await lifecycle.transition(HOME, alert_id, AlertStatus.ESCALATED)

        assert store.write_count == writes
        assert (await store.get(ALERTS, alert_id)).get("status") == "acked"

    @pytest.mark.asyncio
    async def test_closed_is_terminal(self, store, lifecycle):
        alert_id = await seed_alert(store, AlertStatus.CLOSED)

        for target in (AlertStatus.OPEN, AlertStatus.ACKED, AlertStatus.ESCALATED, AlertStatus.CLOSED):
            with pytest.raises(InvalidTransition):
                await lifecycle.transition(HOME, alert_id, target)

    @pytest.mark.asyncio
    async def test_in_flight_transition_is_suppressed(self, store, lifecycle, busy):
        alert_id = await seed_alert(store)
        writes = store.write_count

        async with busy.hold(ALERT_ACTION, alert_id):
            with pytest.raises(OperationInProgress):
                await lifecycle.transition(HOME, alert_id, AlertStatus.ACKED)

        assert store.write_count == writes
        assert busy.suppressed_count == 1

    @pytest.mark.asyncio
    async def test_other_home_alert_not_found(self, store, lifecycle):
        alert_id = await seed_alert(store, home_id=OTHER_HOME)

        with pytest.raises(DocumentNotFound):
            await lifecycle.transition(HOME, alert_id, AlertStatus.ACKED)

        assert (await store.get(ALERTS, alert_id)).get("status") == "open"

    @pytest.mark.asyncio
    async def test_store_rejection_surfaces_notice(self, store, lifecycle, notices, busy):
        alert_id = await seed_alert(store)
        store.fail_next("update", ALERTS, RuntimeError("permission denied"))

        with pytest.raises(StoreWriteError):
            await lifecycle.transition(HOME, alert_id, AlertStatus.ACKED)

        errors = [n for n in notices.peek(HOME) if n.tone.value == "error"]
        assert errors[-1].title == "Alert update failed"
        assert errors[-1].description == "permission denied"
        assert not busy.is_busy(ALERT_ACTION, alert_id)

    @pytest.mark.asyncio
    async def test_transition_fans_out_to_contacts(self, store, lifecycle, dispatcher):
        alert_id = await seed_alert(
            store,
            contacts=(("Alex", ContactChannel.SMS, "+15550100"), ("Sam", ContactChannel.EMAIL, "sam@example.com")),
        )

        await lifecycle.transition(HOME, alert_id, AlertStatus.ACKED)
        await dispatcher.drain()

        assert dispatcher.total_delivered == 2
        sms = dispatcher.get_channel("sms")
        assert sms.sent == [{"contact_id": sms.sent[0]["contact_id"], "alert_id": alert_id, "status": "acked"}]

    @pytest.mark.asyncio
    async def test_transition_without_contacts_still_succeeds(self, store, lifecycle, dispatcher):
        alert_id = await seed_alert(store)

        updated = await lifecycle.transition(HOME, alert_id, AlertStatus.ACKED)
        await dispatcher.drain()

        assert updated.status == AlertStatus.ACKED
        assert dispatcher.total_delivered == 0

    @pytest.mark.asyncio
    async def test_list_alerts_newest_first(self, store, lifecycle, clock):
        first = await seed_alert(store)
        await clock.advance(10)
        second = await seed_alert(store)
        await seed_alert(store, home_id=OTHER_HOME)

        alerts = await lifecycle.list_alerts(HOME)
        assert [a.id for a in alerts] == [second, first]
