"""
Livesync — Seed-Once Guard

"Populate with defaults if the collection is empty" is evaluated on every
snapshot, but the emptiness check and the write are separated by an await.
Several snapshots can each observe "empty" before the first seed write
echoes back, and a naive check would seed once per observation.

The guard latches (session, collection) synchronously, before the first
await, so every later observation is a no-op for the rest of the process
lifetime. Callbacks run on one event loop, so check-and-set needs no lock.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from enum import Enum
from typing import Any

from livesync.types import Document, WriteResult
from livesync.writes import WriteQueue

logger = logging.getLogger(__name__)

SeedKey = tuple[str, str]


class SeedOutcome(str, Enum):
    SEEDED = "seeded"
    NOT_EMPTY = "not_empty"
    CLAIMED = "claimed"


class SeedOnceGuard:
    """At-most-once default population per (session, collection)."""

    def __init__(self) -> None:
        self._latched: set[SeedKey] = set()
        self._tasks: set[asyncio.Task[Any]] = set()

    def claimed(self, key: SeedKey) -> bool:
        return key in self._latched

    def claim(self, key: SeedKey) -> bool:
        """Check-and-set the latch. True only for the first caller."""
        if key in self._latched:
            return False
        self._latched.add(key)
        return True

    def observe(
        self,
        key: SeedKey,
        documents: Sequence[Document],
        seed: Callable[[], Awaitable[Any]],
    ) -> asyncio.Task[Any] | None:
        """
        React to one snapshot observation. Call from a snapshot listener.

        Returns the seeding task for the first empty observation of key,
        None for every other observation.
        """
        if documents:
            return None
        if not self.claim(key):
            logger.debug("seed: race suppressed key=%s", key)
            return None

        logger.info("seed: seeding key=%s", key)
        task = asyncio.ensure_future(seed())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def seed_if_empty(
        self,
        key: SeedKey,
        documents: Sequence[Document],
        seed: Callable[[], Awaitable[Any]],
    ) -> SeedOutcome:
        """Awaitable form of observe() for callers that want the outcome."""
        if documents:
            return SeedOutcome.NOT_EMPTY
        task = self.observe(key, documents, seed)
        if task is None:
            return SeedOutcome.CLAIMED
        await task
        return SeedOutcome.SEEDED

    async def wait(self) -> None:
        """Wait for every seeding task started so far."""
        while self._tasks:
            results = await asyncio.gather(*list(self._tasks), return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    logger.error("seed: seeding task failed: %s", result)


async def seed_documents(
    writes: WriteQueue,
    path: str,
    payloads: Iterable[dict[str, Any]],
    *,
    existing: Sequence[Document] = (),
    unique_field: str | None = None,
) -> list[WriteResult]:
    """
    Write each default payload once.

    Payloads whose unique_field value already appears in existing (or
    earlier in payloads) are skipped, so repeated seeding never duplicates
    them. A failed write is reported in its result and not retried.
    """
    seen: set[Any] = set()
    if unique_field is not None:
        seen = {doc.get(unique_field) for doc in existing}

    results: list[WriteResult] = []
    for payload in payloads:
        if unique_field is not None:
            value = payload.get(unique_field)
            if value in seen:
                logger.debug("seed: skipping duplicate %s=%r at %s", unique_field, value, path)
                continue
            seen.add(value)
        results.append(await writes.create(path, payload))

    failed = [r for r in results if not r.ok]
    if failed:
        logger.warning("seed: %d of %d default documents failed at %s", len(failed), len(results), path)
    return results
