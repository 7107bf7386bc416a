"""
Livesync — Write Queue

Issues create/update/delete against the store. Consistency over latency:
no placeholder entry is rendered and nothing is pre-mutated locally, so the
view only ever shows real snapshots. A failed write is logged and reported
in its WriteResult; there is nothing to roll back.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any

from livesync.store import DocumentStore
from livesync.types import AuthUnavailable, StoreError, WriteFailure, WriteResult

logger = logging.getLogger(__name__)


class WriteQueue:
    """Single-attempt writes, reported as results instead of raised."""

    def __init__(self, store: DocumentStore):
        self._store = store
        self._inflight: set[asyncio.Task[WriteResult]] = set()

    async def create(self, path: str | None, data: dict[str, Any]) -> WriteResult:
        if path is None:
            return self._no_session("create")
        try:
            doc_id = await self._store.create(path, data)
        except StoreError as e:
            return self._failed("create", path, e)
        logger.debug("writes: created path=%s id=%s", path, doc_id)
        return WriteResult(ok=True, op="create", path=path, doc_id=doc_id)

    async def update(self, path: str | None, doc_id: str, changes: dict[str, Any]) -> WriteResult:
        if path is None:
            return self._no_session("update", doc_id)
        try:
            await self._store.update(path, doc_id, changes)
        except StoreError as e:
            return self._failed("update", path, e, doc_id)
        logger.debug("writes: updated path=%s id=%s fields=%s", path, doc_id, sorted(changes))
        return WriteResult(ok=True, op="update", path=path, doc_id=doc_id)

    async def delete(self, path: str | None, doc_id: str) -> WriteResult:
        if path is None:
            return self._no_session("delete", doc_id)
        try:
            await self._store.delete(path, doc_id)
        except StoreError as e:
            return self._failed("delete", path, e, doc_id)
        logger.debug("writes: deleted path=%s id=%s", path, doc_id)
        return WriteResult(ok=True, op="delete", path=path, doc_id=doc_id)

    # -- fire and forget --

    def submit(self, write: Awaitable[WriteResult]) -> asyncio.Task[WriteResult]:
        """
        Run a write without blocking the caller.

        Usage:
            queue.submit(queue.create(path, {"title": "Walk"}))
        """
        task = asyncio.ensure_future(write)
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._inflight)

    async def drain(self) -> list[WriteResult]:
        """Wait for every submitted write to finish."""
        results: list[WriteResult] = []
        while self._inflight:
            results.extend(await asyncio.gather(*list(self._inflight)))
        return results

    # -- internals --

    @staticmethod
    def _failed(op: Any, path: str, error: StoreError, doc_id: str | None = None) -> WriteResult:
        logger.warning("writes: %s failed path=%s id=%s: %s", op, path, doc_id, error)
        failure = WriteFailure(f"{op} rejected: {error}")
        failure.__cause__ = error
        return WriteResult.failed(op, path, failure, doc_id)

    @staticmethod
    def _no_session(op: Any, doc_id: str | None = None) -> WriteResult:
        logger.warning("writes: %s skipped, no session", op)
        return WriteResult.failed(op, "", AuthUnavailable("No session"), doc_id)
