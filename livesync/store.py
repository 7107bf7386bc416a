"""
Livesync — Document Store Client

The opaque boundary to the remote document store: live queries that push
full ordered snapshots, and single-attempt writes.

DocumentStore is the protocol. MemoryDocumentStore is the in-process
implementation for tests and development; PostgresDocumentStore
(postgres_store.py) is the production backend.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from livesync.types import (
    Document,
    Filter,
    OrderSpec,
    Snapshot,
    StoreError,
    SubscriptionFailure,
)

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[Snapshot], None]
ErrorCallback = Callable[[SubscriptionFailure], None]

_handle_ids = itertools.count(1)


def new_document_id() -> str:
    """Server-assigned document id (20 hex chars)."""
    return uuid.uuid4().hex[:20]


@dataclass(eq=False)
class SubscriptionHandle:
    """Returned by subscribe(); pass it back to unsubscribe()."""

    path: str
    order: OrderSpec
    on_snapshot: SnapshotCallback
    on_error: ErrorCallback
    where: Filter | None = None
    id: int = field(default_factory=lambda: next(_handle_ids))
    active: bool = True
    sequence: int = 0

    def matches(self, path: str) -> bool:
        return self.active and self.path == path


def order_documents(docs: list[Document], order: OrderSpec) -> list[Document]:
    """
    Sort documents by the order field, ties broken by id ascending.
    Field values compare as text, the same way the Postgres backend orders.
    """
    by_id = sorted(docs, key=lambda d: d.id)
    return sorted(by_id, key=lambda d: _sort_text(d.data.get(order.field)), reverse=order.descending)


def _sort_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def deliver(handle: SubscriptionHandle, documents: list[Document]) -> None:
    """Hand one snapshot to a listener. A raising listener is logged, never propagated."""
    if not handle.active:
        return
    handle.sequence += 1
    snapshot = Snapshot(path=handle.path, documents=tuple(documents), sequence=handle.sequence)
    try:
        handle.on_snapshot(snapshot)
    except Exception as e:
        logger.warning("store: snapshot listener failed path=%s handle=%d: %s", handle.path, handle.id, e)


def fail(handle: SubscriptionHandle, error: SubscriptionFailure) -> None:
    """Report a dropped live query to its listener and deactivate the handle."""
    if not handle.active:
        return
    handle.active = False
    try:
        handle.on_error(error)
    except Exception as e:
        logger.warning("store: error listener failed path=%s handle=%d: %s", handle.path, handle.id, e)


# ---------------------------------------------------------------------------
# Store protocol
# ---------------------------------------------------------------------------


class DocumentStore:
    """
    Abstract store interface.
    Implement with Postgres for production, or in-memory for tests.
    """

    def subscribe(
        self,
        path: str,
        order: OrderSpec,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
        *,
        where: Filter | None = None,
    ) -> SubscriptionHandle:
        """
        Start a live query. Snapshots are delivered asynchronously, in order,
        every time the result set changes, until unsubscribe() is called.

        Raises:
            SubscriptionFailure: If the store refuses the query outright
        """
        raise NotImplementedError

    def unsubscribe(self, handle: SubscriptionHandle) -> None:
        """Stop a live query. Idempotent."""
        raise NotImplementedError

    async def get(self, path: str, order: OrderSpec, *, where: Filter | None = None) -> list[Document]:
        """One-shot read of the current result set."""
        raise NotImplementedError

    async def create(self, path: str, data: dict[str, Any]) -> str:
        """Add a document; returns its server-assigned id."""
        raise NotImplementedError

    async def update(self, path: str, doc_id: str, changes: dict[str, Any]) -> None:
        """Shallow-merge changes into an existing document."""
        raise NotImplementedError

    async def delete(self, path: str, doc_id: str) -> None:
        """Remove a document."""
        raise NotImplementedError

    async def close(self) -> None:
        """Release resources. Active subscriptions stop receiving snapshots."""
        return None


# ---------------------------------------------------------------------------
# In-memory store
# ---------------------------------------------------------------------------


class MemoryDocumentStore(DocumentStore):
    """
    In-memory store for testing and development.

    Writes suspend before applying (latency seconds, or one loop turn), so
    several flows can interleave exactly as they would against a remote
    store. Snapshots are computed when the change happens and handed to
    listeners on a later loop turn, in emission order.
    """

    def __init__(self, latency: float = 0.0) -> None:
        self.latency = latency
        self.collections: dict[str, dict[str, dict[str, Any]]] = {}
        self.writes: list[tuple[str, str, str]] = []
        self._handles: list[SubscriptionHandle] = []
        self._pending = 0
        self._write_error: str | None = None
        self._reject_paths: dict[str, str] = {}

    # -- failure injection --

    def fail_writes(self, reason: str | None = "store unavailable") -> None:
        """Make every following write raise StoreError. Pass None to heal."""
        self._write_error = reason or None

    def reject_subscriptions(self, path: str, reason: str = "permission denied") -> None:
        """Refuse any new live query on path."""
        self._reject_paths[path] = reason

    def drop(self, path: str, reason: str = "listen stream closed") -> int:
        """Drop every live query on path, as the server would. Returns how many."""
        dropped = [h for h in self._handles if h.matches(path)]
        for handle in dropped:
            self._schedule(fail, handle, SubscriptionFailure(reason))
        return len(dropped)

    # -- introspection --

    def documents(self, path: str) -> list[Document]:
        """Current documents at path, in insertion order."""
        return [Document(id=doc_id, data=dict(data)) for doc_id, data in self.collections.get(path, {}).items()]

    def listener_count(self, path: str | None = None) -> int:
        return sum(1 for h in self._handles if h.active and (path is None or h.path == path))

    async def flush(self) -> None:
        """Wait until every scheduled snapshot delivery has run."""
        while self._pending:
            await asyncio.sleep(0)

    # -- subscriptions --

    def subscribe(
        self,
        path: str,
        order: OrderSpec,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
        *,
        where: Filter | None = None,
    ) -> SubscriptionHandle:
        if path in self._reject_paths:
            raise SubscriptionFailure(self._reject_paths[path])

        handle = SubscriptionHandle(path=path, order=order, on_snapshot=on_snapshot, on_error=on_error, where=where)
        self._handles.append(handle)
        self._schedule(deliver, handle, self._query(path, order, where))
        logger.debug("store: subscribed path=%s handle=%d", path, handle.id)
        return handle

    def unsubscribe(self, handle: SubscriptionHandle) -> None:
        handle.active = False
        if handle in self._handles:
            self._handles.remove(handle)
            logger.debug("store: unsubscribed path=%s handle=%d", handle.path, handle.id)

    async def get(self, path: str, order: OrderSpec, *, where: Filter | None = None) -> list[Document]:
        await self._suspend()
        return self._query(path, order, where)

    # -- writes --

    async def create(self, path: str, data: dict[str, Any]) -> str:
        self._check_payload(data)
        await self._suspend()
        self._raise_if_failing()
        doc_id = new_document_id()
        self.collections.setdefault(path, {})[doc_id] = dict(data)
        self._record("create", path, doc_id)
        return doc_id

    async def update(self, path: str, doc_id: str, changes: dict[str, Any]) -> None:
        self._check_payload(changes)
        await self._suspend()
        self._raise_if_failing()
        docs = self.collections.get(path, {})
        if doc_id not in docs:
            raise StoreError(f"No document {doc_id!r} at {path}")
        docs[doc_id].update(changes)
        self._record("update", path, doc_id)

    async def delete(self, path: str, doc_id: str) -> None:
        await self._suspend()
        self._raise_if_failing()
        docs = self.collections.get(path, {})
        if doc_id not in docs:
            raise StoreError(f"No document {doc_id!r} at {path}")
        del docs[doc_id]
        self._record("delete", path, doc_id)

    async def close(self) -> None:
        for handle in list(self._handles):
            self.unsubscribe(handle)

    # -- internals --

    def _query(self, path: str, order: OrderSpec, where: Filter | None) -> list[Document]:
        docs = self.documents(path)
        if where is not None:
            docs = [d for d in docs if d.data.get(where.field) == where.value]
        return order_documents(docs, order)

    def _record(self, op: str, path: str, doc_id: str) -> None:
        self.writes.append((op, path, doc_id))
        for handle in list(self._handles):
            if handle.matches(path):
                self._schedule(deliver, handle, self._query(path, handle.order, handle.where))

    def _schedule(self, fn: Callable[..., None], *args: Any) -> None:
        self._pending += 1

        def run() -> None:
            self._pending -= 1
            fn(*args)

        asyncio.get_running_loop().call_soon(run)

    async def _suspend(self) -> None:
        await asyncio.sleep(self.latency)

    def _raise_if_failing(self) -> None:
        if self._write_error is not None:
            raise StoreError(self._write_error)

    @staticmethod
    def _check_payload(data: Any) -> None:
        if not isinstance(data, dict):
            raise StoreError(f"Malformed payload: expected an object, got {type(data).__name__}")
        for key in data:
            if not isinstance(key, str) or not key:
                raise StoreError(f"Malformed payload: invalid field name {key!r}")
