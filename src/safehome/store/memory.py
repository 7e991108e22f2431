"""
In-process Document Store

Emulates the hosted document database for local runs and tests:
- store-assigned ids and SERVER_TIMESTAMP resolution
- equality filters + ordering (documents missing the order field are excluded)
- live listeners that receive a full snapshot on subscribe and after every
  write touching their collection
- one-shot fault injection for writes and listener errors

Thread-safety: single event loop only.
"""

import asyncio
import copy
import logging
import uuid
from collections import defaultdict
from typing import Any, AsyncIterator, Optional

from ..clock import Clock, SystemClock
from ..errors import DocumentNotFound
from .base import (
    SERVER_TIMESTAMP,
    DocumentSnapshot,
    DocumentStore,
    ErrorCallback,
    LiveQuery,
    QuerySnapshot,
    QuerySpec,
    SnapshotCallback,
    Subscription,
)


logger = logging.getLogger(__name__)


class _MemorySubscription(Subscription):

    def __init__(
        self,
        store: "MemoryDocumentStore",
        spec: QuerySpec,
        on_snapshot: SnapshotCallback,
        on_error: Optional[ErrorCallback],
    ):
        self._store = store
        self.spec = spec
        self.on_snapshot = on_snapshot
        self.on_error = on_error
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        if not self._active:
            return
        self._active = False
        self._store._detach(self)

    def deliver(self, snapshot: QuerySnapshot) -> None:
        if not self._active:
            return
        try:
            self.on_snapshot(snapshot)
        except Exception as e:
            logger.exception("[STORE] Listener on %s raised: %s", self.spec.collection, e)

    def fail(self, error: Exception) -> None:
        if not self._active:
            return
        self.unsubscribe()
        if self.on_error:
            self.on_error(error)
        else:
            logger.warning("[STORE] Listener on %s failed: %s", self.spec.collection, error)


class _MemoryLiveQuery(LiveQuery):

    def __init__(self, store: "MemoryDocumentStore", spec: QuerySpec):
        super().__init__(spec)
        self._store = store

    def listen(
        self,
        on_snapshot: SnapshotCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        sub = _MemorySubscription(self._store, self.spec, on_snapshot, on_error)
        self._store._attach(sub)
        sub.deliver(self._store._evaluate(self.spec))
        return sub

    async def stream(self) -> AsyncIterator[QuerySnapshot]:
        queue: asyncio.Queue = asyncio.Queue()
        sub = self.listen(queue.put_nowait, queue.put_nowait)
        try:
            while True:
                item = await queue.get()
                if isinstance(item, Exception):
                    raise item
                yield item
        finally:
            sub.unsubscribe()


class MemoryDocumentStore(DocumentStore):
    """Dictionary-backed DocumentStore."""

    def __init__(self, clock: Optional[Clock] = None, namespace: str = "default"):
        self.clock = clock or SystemClock()
        self.namespace = namespace
        self._collections: dict[str, dict[str, dict[str, Any]]] = defaultdict(dict)
        self._listeners: dict[str, list[_MemorySubscription]] = defaultdict(list)
        self._write_faults: dict[tuple[str, str], Exception] = {}
        self.write_count = 0

    # =========================================================================
    # Fault injection
    # =========================================================================

    def fail_next(self, operation: str, collection: str, error: Exception) -> None:
        """Make the next `operation` ("add", "set", "update", "delete") on
        `collection` raise `error`."""
        self._write_faults[(operation, collection)] = error

    def break_listeners(self, collection: str, error: Exception) -> int:
        """Terminate every listener on `collection` with `error`."""
        subs = list(self._listeners.get(collection, []))
        for sub in subs:
            sub.fail(error)
        return len(subs)

    def _check_fault(self, operation: str, collection: str) -> None:
        error = self._write_faults.pop((operation, collection), None)
        if error is not None:
            raise error

    # =========================================================================
    # Writes
    # =========================================================================

    def _resolve(self, data: dict[str, Any]) -> dict[str, Any]:
        now = self.clock.now()
        return {
            key: (now if value is SERVER_TIMESTAMP else copy.deepcopy(value))
            for key, value in data.items()
        }

    async def add(self, collection: str, data: dict[str, Any]) -> str:
        self._check_fault("add", collection)
        doc_id = uuid.uuid4().hex[:20]
        self._collections[collection][doc_id] = self._resolve(data)
        self._after_write(collection)
        return doc_id

    async def set(self, collection: str, doc_id: str, data: dict[str, Any], merge: bool = False) -> None:
        self._check_fault("set", collection)
        resolved = self._resolve(data)
        docs = self._collections[collection]
        if merge and doc_id in docs:
            docs[doc_id].update(resolved)
        else:
            docs[doc_id] = resolved
        self._after_write(collection)

    async def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        self._check_fault("update", collection)
        docs = self._collections[collection]
        if doc_id not in docs:
            raise DocumentNotFound(collection, doc_id)
        docs[doc_id].update(self._resolve(data))
        self._after_write(collection)

    async def delete(self, collection: str, doc_id: str) -> None:
        self._check_fault("delete", collection)
        self._collections[collection].pop(doc_id, None)
        self._after_write(collection)

    def _after_write(self, collection: str) -> None:
        self.write_count += 1
        for sub in list(self._listeners.get(collection, [])):
            sub.deliver(self._evaluate(sub.spec))

    # =========================================================================
    # Reads
    # =========================================================================

    async def get(self, collection: str, doc_id: str) -> DocumentSnapshot:
        data = self._collections.get(collection, {}).get(doc_id)
        if data is None:
            return DocumentSnapshot(id=doc_id, data={}, exists=False)
        return DocumentSnapshot(id=doc_id, data=copy.deepcopy(data))

    async def run_query(self, spec: QuerySpec) -> QuerySnapshot:
        return self._evaluate(spec)

    def _evaluate(self, spec: QuerySpec) -> QuerySnapshot:
        docs = [
            DocumentSnapshot(id=doc_id, data=copy.deepcopy(data))
            for doc_id, data in self._collections.get(spec.collection, {}).items()
            if spec.matches(doc_id, data)
        ]
        if spec.order_field:
            docs.sort(key=lambda d: d.id)
            docs.sort(key=lambda d: d.data[spec.order_field], reverse=spec.descending)
        return QuerySnapshot(docs=docs)

    # =========================================================================
    # Listeners
    # =========================================================================

    def watch(self, spec: QuerySpec) -> LiveQuery:
        return _MemoryLiveQuery(self, spec)

    def _attach(self, sub: _MemorySubscription) -> None:
        self._listeners[sub.spec.collection].append(sub)

    def _detach(self, sub: _MemorySubscription) -> None:
        listeners = self._listeners.get(sub.spec.collection, [])
        if sub in listeners:
            listeners.remove(sub)

    def listener_count(self, collection: Optional[str] = None) -> int:
        if collection is not None:
            return len(self._listeners.get(collection, []))
        return sum(len(subs) for subs in self._listeners.values())

    async def close(self) -> None:
        for subs in list(self._listeners.values()):
            for sub in list(subs):
                sub.unsubscribe()
        logger.info("[STORE] Closed memory store '%s'", self.namespace)
