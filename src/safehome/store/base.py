"""
Document Store Interface

The hosted document database is an external collaborator. This module fixes
the surface the console relies on:
- auto-id creation, merge/replace upserts, partial updates, deletes
- equality filters + single-field ordering
- live queries that push full result snapshots
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable, Optional


class _ServerTimestamp:
    """Sentinel resolved to the store's clock at write time."""

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


@dataclass(frozen=True)
class DocumentSnapshot:
    id: str
    data: dict[str, Any]
    exists: bool = True

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)


@dataclass(frozen=True)
class QuerySnapshot:
    """Full result set of a query at one point in time."""
    docs: list[DocumentSnapshot] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.docs)


@dataclass(frozen=True)
class QuerySpec:
    collection: str
    filters: tuple[tuple[str, Any], ...] = ()
    order_field: Optional[str] = None
    descending: bool = False
    doc_id: Optional[str] = None  # single-document watch

    def where(self, field_name: str, value: Any) -> "QuerySpec":
        return QuerySpec(
            self.collection,
            self.filters + ((field_name, value),),
            self.order_field,
            self.descending,
            self.doc_id,
        )

    def order_by(self, field_name: str, descending: bool = False) -> "QuerySpec":
        return QuerySpec(self.collection, self.filters, field_name, descending, self.doc_id)

    def matches(self, doc_id: str, data: dict[str, Any]) -> bool:
        if self.doc_id is not None and doc_id != self.doc_id:
            return False
        if self.order_field is not None and data.get(self.order_field) is None:
            return False
        return all(data.get(name) == value for name, value in self.filters)


SnapshotCallback = Callable[[QuerySnapshot], None]
ErrorCallback = Callable[[Exception], None]


class Subscription(ABC):
    """Handle returned by LiveQuery.listen()."""

    @property
    @abstractmethod
    def active(self) -> bool:
        pass

    @abstractmethod
    def unsubscribe(self) -> None:
        """Stop receiving snapshots. Safe to call more than once."""
        pass


class LiveQuery(ABC):
    """Lazy, restartable stream of query snapshots.

    Nothing is registered with the store until listen() or stream() is
    called. After unsubscribe the same LiveQuery may be listened to again.
    """

    def __init__(self, spec: QuerySpec):
        self.spec = spec

    @abstractmethod
    def listen(
        self,
        on_snapshot: SnapshotCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        pass

    @abstractmethod
    def stream(self) -> AsyncIterator[QuerySnapshot]:
        """Unbounded async iterator; unsubscribes when the consumer stops."""
        pass


class DocumentStore(ABC):
    """Abstract document store."""

    @abstractmethod
    async def add(self, collection: str, data: dict[str, Any]) -> str:
        """Create a document with a store-assigned id."""
        pass

    @abstractmethod
    async def set(self, collection: str, doc_id: str, data: dict[str, Any], merge: bool = False) -> None:
        pass

    @abstractmethod
    async def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Partial update. Raises DocumentNotFound for a missing document."""
        pass

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        pass

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> DocumentSnapshot:
        """Returns a snapshot with exists=False for a missing document."""
        pass

    @abstractmethod
    async def run_query(self, spec: QuerySpec) -> QuerySnapshot:
        pass

    @abstractmethod
    def watch(self, spec: QuerySpec) -> LiveQuery:
        pass

    async def close(self) -> None:
        pass

    # -------------------------------------------------------------------------
    # Query builders
    # -------------------------------------------------------------------------

    def query(self, collection: str) -> QuerySpec:
        return QuerySpec(collection)

    def document(self, collection: str, doc_id: str) -> QuerySpec:
        return QuerySpec(collection, doc_id=doc_id)
