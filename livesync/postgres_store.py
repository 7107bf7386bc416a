"""
PostgresDocumentStore — production backend for the document store protocol.

Documents live in one table keyed by (path, id) with a JSONB body. A
trigger on that table calls pg_notify('document_changes', path); a single
dedicated listener connection turns notifications into fresh snapshots for
every live query on the changed path.

Requires the pool's connections to carry the JSON codecs installed by
init_connection().
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import asyncpg

from livesync.documents import document_from_row
from livesync.store import (
    DocumentStore,
    ErrorCallback,
    SnapshotCallback,
    SubscriptionHandle,
    deliver,
    fail,
    new_document_id,
)
from livesync.types import Document, Filter, OrderSpec, StoreError, SubscriptionFailure

logger = logging.getLogger(__name__)

CHANNEL = "document_changes"

_DB_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


async def init_connection(conn: asyncpg.Connection) -> None:
    """
    Initialize each new connection.
    Sets up JSON codecs so JSONB columns map to Python dicts.
    """
    await conn.set_type_codec(
        "jsonb",
        encoder=json.dumps,
        decoder=json.loads,
        schema="pg_catalog",
    )
    await conn.set_type_codec(
        "json",
        encoder=json.dumps,
        decoder=json.loads,
        schema="pg_catalog",
    )


def _select_sql(order: OrderSpec, where: Filter | None) -> str:
    direction = "DESC" if order.descending else "ASC"
    sql = "SELECT id, data FROM documents WHERE path = $1"
    if where is not None:
        sql += " AND data->>$3 = $4"
    return sql + f" ORDER BY COALESCE(data->>$2, '') {direction}, id ASC"


def _select_args(path: str, order: OrderSpec, where: Filter | None) -> list[Any]:
    args: list[Any] = [path, order.field]
    if where is not None:
        args += [where.field, str(where.value)]
    return args


class PostgresDocumentStore(DocumentStore):
    """
    Postgres-based document store with live queries over LISTEN/NOTIFY.

    Call start() once before subscribing; close() releases the listener.
    """

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool
        self._listener: asyncpg.Connection | None = None
        self._handles: list[SubscriptionHandle] = []
        self._locks: dict[int, asyncio.Lock] = {}
        self._tasks: set[asyncio.Task[None]] = set()

    async def start(self) -> None:
        """Acquire the listener connection and LISTEN on the change channel."""
        if self._listener is not None:
            return
        self._listener = await self.pool.acquire()
        await self._listener.add_listener(CHANNEL, self._on_notify)
        logger.info("postgres_store: listening on %s", CHANNEL)

    async def close(self) -> None:
        for handle in list(self._handles):
            self.unsubscribe(handle)
        for task in list(self._tasks):
            task.cancel()
        if self._listener is not None:
            await self._listener.remove_listener(CHANNEL, self._on_notify)
            await self.pool.release(self._listener)
            self._listener = None
        logger.info("postgres_store: closed")

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
        if self._listener is None:
            raise SubscriptionFailure("Store not started; call start() first")

        handle = SubscriptionHandle(path=path, order=order, on_snapshot=on_snapshot, on_error=on_error, where=where)
        self._handles.append(handle)
        self._locks[handle.id] = asyncio.Lock()
        self._refresh_later(handle)
        return handle

    def unsubscribe(self, handle: SubscriptionHandle) -> None:
        handle.active = False
        self._forget(handle)

    def _forget(self, handle: SubscriptionHandle) -> None:
        if handle in self._handles:
            self._handles.remove(handle)
        self._locks.pop(handle.id, None)

    def _on_notify(self, conn: asyncpg.Connection, pid: int, channel: str, payload: str) -> None:
        for handle in list(self._handles):
            if handle.matches(payload):
                self._refresh_later(handle)

    def _refresh_later(self, handle: SubscriptionHandle) -> None:
        task = asyncio.get_running_loop().create_task(self._refresh(handle))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _refresh(self, handle: SubscriptionHandle) -> None:
        lock = self._locks.get(handle.id)
        if lock is None:
            return
        # One query at a time per subscription keeps snapshots in order
        async with lock:
            if not handle.active:
                return
            try:
                docs = await self._query(handle.path, handle.order, handle.where)
            except _DB_ERRORS as e:
                logger.warning("postgres_store: live query failed path=%s: %s", handle.path, e)
                fail(handle, SubscriptionFailure(str(e)))
                self._forget(handle)
                return
            deliver(handle, docs)

    # -- reads --

    async def get(self, path: str, order: OrderSpec, *, where: Filter | None = None) -> list[Document]:
        try:
            return await self._query(path, order, where)
        except _DB_ERRORS as e:
            raise StoreError(f"Read failed at {path}: {e}") from e

    async def _query(self, path: str, order: OrderSpec, where: Filter | None) -> list[Document]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(_select_sql(order, where), *_select_args(path, order, where))
        return [document_from_row(row) for row in rows]

    # -- writes --

    async def create(self, path: str, data: dict[str, Any]) -> str:
        doc_id = new_document_id()
        try:
            async with self.pool.acquire() as conn:
                await conn.execute(
                    """
                    INSERT INTO documents (path, id, data)
                    VALUES ($1, $2, $3::jsonb)
                    """,
                    path,
                    doc_id,
                    data,
                )
        except (*_DB_ERRORS, TypeError, ValueError) as e:
            raise StoreError(f"Create failed at {path}: {e}") from e
        return doc_id

    async def update(self, path: str, doc_id: str, changes: dict[str, Any]) -> None:
        try:
            async with self.pool.acquire() as conn:
                status = await conn.execute(
                    """
                    UPDATE documents
                    SET data = data || $3::jsonb, updated_at = now()
                    WHERE path = $1 AND id = $2
                    """,
                    path,
                    doc_id,
                    changes,
                )
        except (*_DB_ERRORS, TypeError, ValueError) as e:
            raise StoreError(f"Update failed at {path}/{doc_id}: {e}") from e
        if status.endswith(" 0"):
            raise StoreError(f"No document {doc_id!r} at {path}")

    async def delete(self, path: str, doc_id: str) -> None:
        try:
            async with self.pool.acquire() as conn:
                status = await conn.execute(
                    "DELETE FROM documents WHERE path = $1 AND id = $2",
                    path,
                    doc_id,
                )
        except _DB_ERRORS as e:
            raise StoreError(f"Delete failed at {path}/{doc_id}: {e}") from e
        if status.endswith(" 0"):
            raise StoreError(f"No document {doc_id!r} at {path}")
