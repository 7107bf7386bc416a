"""Mood logging and journaling."""

from __future__ import annotations

import logging
from datetime import datetime

from livesync.types import WriteFailure, WriteResult, calendar_day, monotonic_now
from livesync.writes import WriteQueue
from mealth.catalog import JOURNAL, MOODS
from mealth.models.mood import MOOD_SCORES, JournalEntry, MoodEntry

logger = logging.getLogger(__name__)


class MoodService:
    """Append-only writes to the moods and journal_entries collections."""

    def __init__(self, writes: WriteQueue, namespace: str):
        self._writes = writes
        self._namespace = namespace

    async def log_mood(self, session_id: str | None, mood: str, *, now: datetime | None = None) -> WriteResult:
        """
        Record a mood for today. The score comes from the fixed mood table.

        Returns:
            WriteResult; the entry shows up with the next moods snapshot
        """
        path = MOODS.path(self._namespace, session_id) if session_id else None
        score = MOOD_SCORES.get(mood)
        if score is None:
            logger.warning("moods: unknown mood %r", mood)
            return WriteResult.failed("create", path or "", WriteFailure(f"Unknown mood: {mood!r}"))

        now = now or monotonic_now()
        entry = MoodEntry(mood=mood, mood_score=score, date=calendar_day(now), created_at=now)
        return await self._writes.create(path, entry.to_payload())

    async def save_journal_entry(
        self, session_id: str | None, content: str, *, now: datetime | None = None
    ) -> WriteResult:
        """Save a journal entry for today. Blank content is not written."""
        path = JOURNAL.path(self._namespace, session_id) if session_id else None
        if not content.strip():
            return WriteResult.failed("create", path or "", WriteFailure("Journal entry is empty"))

        now = now or monotonic_now()
        entry = JournalEntry(content=content, date=calendar_day(now), created_at=now)
        return await self._writes.create(path, entry.to_payload())
