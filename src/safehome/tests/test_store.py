"""
Tests for the in-process document store
"""

import pytest
from datetime import timedelta

from safehome.errors import DocumentNotFound
from safehome.store import DEVICES, SERVER_TIMESTAMP


class TestWrites:

    @pytest.mark.asyncio
    async def test_add_assigns_id_and_resolves_server_timestamp(self, store, clock):
        doc_id = await store.add(DEVICES, {"home_id": "h1", "name": "Mic", "created_at": SERVER_TIMESTAMP})

        snapshot = await store.get(DEVICES, doc_id)
        assert snapshot.exists
        assert snapshot.id == doc_id
        assert snapshot.get("created_at") == clock.now()

    @pytest.mark.asyncio
    async def test_set_merge_keeps_other_fields(self, store):
        await store.set(DEVICES, "d1", {"name": "Mic", "status": "online"})
        await store.set(DEVICES, "d1", {"status": "offline"}, merge=True)

        snapshot = await store.get(DEVICES, "d1")
        assert snapshot.data == {"name": "Mic", "status": "offline"}

    @pytest.mark.asyncio
    async def test_set_without_merge_replaces(self, store):
        await store.set(DEVICES, "d1", {"name": "Mic", "status": "online"})
        await store.set(DEVICES, "d1", {"status": "offline"})

        snapshot = await store.get(DEVICES, "d1")
        assert snapshot.data == {"status": "offline"}

    @pytest.mark.asyncio
    async def test_update_missing_document_raises(self, store):
        with pytest.raises(DocumentNotFound):
            await store.update(DEVICES, "missing", {"name": "x"})

    @pytest.mark.asyncio
    async def test_stored_data_is_copied(self, store):
        data = {"home_id": "h1", "tags": ["a"]}
        doc_id = await store.add(DEVICES, data)
        data["tags"].append("b")

        snapshot = await store.get(DEVICES, doc_id)
        assert snapshot.get("tags") == ["a"]

    @pytest.mark.asyncio
    async def test_fail_next_is_one_shot(self, store):
        store.fail_next("add", DEVICES, RuntimeError("permission denied"))

        with pytest.raises(RuntimeError, match="permission denied"):
            await store.add(DEVICES, {"home_id": "h1"})
        assert await store.add(DEVICES, {"home_id": "h1"})


class TestQueries:

    @pytest.mark.asyncio
    async def test_where_filters_by_equality(self, store):
        await store.add(DEVICES, {"home_id": "h1", "name": "A"})
        await store.add(DEVICES, {"home_id": "h2", "name": "B"})

        result = await store.run_query(store.query(DEVICES).where("home_id", "h1"))
        assert [d.get("name") for d in result.docs] == ["A"]

    @pytest.mark.asyncio
    async def test_order_by_and_missing_field_excluded(self, store):
        await store.add(DEVICES, {"home_id": "h1", "name": "Zed"})
        await store.add(DEVICES, {"home_id": "h1", "name": "Alpha"})
        await store.add(DEVICES, {"home_id": "h1"})

        result = await store.run_query(store.query(DEVICES).where("home_id", "h1").order_by("name"))
        assert [d.get("name") for d in result.docs] == ["Alpha", "Zed"]

    @pytest.mark.asyncio
    async def test_descending_order(self, store, clock):
        first = await store.add(DEVICES, {"home_id": "h1", "created_at": SERVER_TIMESTAMP})
        await clock.advance(1)
        second = await store.add(DEVICES, {"home_id": "h1", "created_at": SERVER_TIMESTAMP})

        result = await store.run_query(store.query(DEVICES).order_by("created_at", descending=True))
        assert [d.id for d in result.docs] == [second, first]
        assert result.docs[0].get("created_at") - result.docs[1].get("created_at") == timedelta(seconds=1)


class TestLiveQueries:

    @pytest.mark.asyncio
    async def test_live_query_is_lazy(self, store):
        live = store.watch(store.query(DEVICES))
        assert store.listener_count(DEVICES) == 0

        sub = live.listen(lambda snap: None)
        assert store.listener_count(DEVICES) == 1
        sub.unsubscribe()

    @pytest.mark.asyncio
    async def test_listener_gets_initial_and_pushed_snapshots(self, store):
        await store.add(DEVICES, {"home_id": "h1", "name": "A"})
        received = []
        sub = store.watch(store.query(DEVICES).where("home_id", "h1")).listen(
            lambda snap: received.append(len(snap))
        )

        await store.add(DEVICES, {"home_id": "h1", "name": "B"})
        await store.add(DEVICES, {"home_id": "h2", "name": "C"})

        # the h2 write re-delivers the unchanged h1 result
        assert received == [1, 2, 2]
        sub.unsubscribe()

    @pytest.mark.asyncio
    async def test_unsubscribe_is_idempotent_and_stops_delivery(self, store):
        received = []
        sub = store.watch(store.query(DEVICES)).listen(received.append)
        sub.unsubscribe()
        sub.unsubscribe()

        await store.add(DEVICES, {"home_id": "h1"})
        assert len(received) == 1
        assert not sub.active
        assert store.listener_count() == 0

    @pytest.mark.asyncio
    async def test_live_query_can_listen_again(self, store):
        live = store.watch(store.query(DEVICES))
        live.listen(lambda snap: None).unsubscribe()

        received = []
        sub = live.listen(received.append)
        await store.add(DEVICES, {"home_id": "h1"})
        assert len(received) == 2
        sub.unsubscribe()

    @pytest.mark.asyncio
    async def test_document_watch(self, store):
        received = []
        sub = store.watch(store.document(DEVICES, "d1")).listen(lambda snap: received.append(len(snap)))

        await store.set(DEVICES, "d1", {"name": "Mic"})
        await store.set(DEVICES, "d2", {"name": "Other"})

        assert received == [0, 1, 1]
        sub.unsubscribe()

    @pytest.mark.asyncio
    async def test_break_listeners_calls_error_callback(self, store):
        errors = []
        sub = store.watch(store.query(DEVICES)).listen(lambda snap: None, errors.append)

        assert store.break_listeners(DEVICES, RuntimeError("permission denied")) == 1
        assert [str(e) for e in errors] == ["permission denied"]
        assert not sub.active

    @pytest.mark.asyncio
    async def test_stream_yields_snapshots(self, store):
        stream = store.watch(store.query(DEVICES)).stream()

        first = await stream.__anext__()
        assert len(first) == 0

        await store.add(DEVICES, {"home_id": "h1"})
        second = await stream.__anext__()
        assert len(second) == 1

        await stream.aclose()
        assert store.listener_count(DEVICES) == 0

    @pytest.mark.asyncio
    async def test_close_detaches_listeners(self, store):
        store.watch(store.query(DEVICES)).listen(lambda snap: None)
        await store.close()
        assert store.listener_count() == 0
