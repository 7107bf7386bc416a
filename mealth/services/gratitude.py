"""Gratitude journal."""

from __future__ import annotations

from datetime import datetime

from livesync.types import WriteFailure, WriteResult, calendar_day, monotonic_now
from livesync.writes import WriteQueue
from mealth.catalog import GRATITUDE
from mealth.models.mood import GratitudeEntry


class GratitudeService:
    def __init__(self, writes: WriteQueue, namespace: str):
        self._writes = writes
        self._namespace = namespace

    async def add_entry(self, session_id: str | None, content: str, *, now: datetime | None = None) -> WriteResult:
        path = GRATITUDE.path(self._namespace, session_id) if session_id else None
        if not content.strip():
            return WriteResult.failed("create", path or "", WriteFailure("Gratitude entry is empty"))

        now = now or monotonic_now()
        entry = GratitudeEntry(content=content, date=calendar_day(now), created_at=now)
        return await self._writes.create(path, entry.to_payload())
