"""Mood, journal and gratitude entries."""

from __future__ import annotations

import datetime as dt
from typing import Literal

from pydantic import AliasChoices, Field, field_validator

from mealth.models.base import Instant, StoredModel

Mood = Literal["happy", "calm", "anxious", "stressed", "sad"]

MOOD_SCORES: dict[str, int] = {
    "happy": 5,
    "calm": 4,
    "anxious": 2,
    "stressed": 2,
    "sad": 1,
}

# Older documents carry "timestamp" instead of "createdAt"
_CREATED_AT = AliasChoices("createdAt", "timestamp")


class MoodEntry(StoredModel):
    """One logged mood. Several per day are allowed."""

    mood: Mood
    mood_score: int = Field(alias="moodScore", ge=1, le=5)
    date: dt.date
    created_at: Instant | None = Field(default=None, alias="createdAt", validation_alias=_CREATED_AT)


class _DatedText(StoredModel):
    content: str = Field(min_length=1, max_length=10000)
    date: dt.date
    created_at: Instant | None = Field(default=None, alias="createdAt", validation_alias=_CREATED_AT)

    @field_validator("content")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("content must not be blank")
        return value


class JournalEntry(_DatedText):
    """Free-form journal text for a day."""


class GratitudeEntry(_DatedText):
    """Something the user is grateful for."""
