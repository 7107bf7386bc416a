"""
Dashboard and tracker selectors.

Pure functions over view items. Mood views arrive newest first (date
descending); charts want them oldest first.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TypeVar

from livesync.view import chronological, head, most_recent
from mealth import config
from mealth.models.goal import Goal
from mealth.models.mood import MoodEntry

T = TypeVar("T")

AFFIRMATIONS: tuple[str, ...] = (
    "I am worthy of love and respect",
    "I have the strength to overcome challenges",
    "I am capable of creating positive change in my life",
    "I deserve happiness and peace",
    "I am resilient and can handle whatever comes my way",
    "I choose to focus on what I can control",
    "I am grateful for this moment",
    "I am enough, just as I am",
)

AFFIRMATION_INTERVAL_SECONDS = 10


@dataclass(frozen=True)
class GoalProgress:
    completed: int
    total: int

    @property
    def ratio(self) -> float:
        return self.completed / self.total if self.total else 0.0


@dataclass(frozen=True)
class TrendPoint:
    date: str
    score: int


def latest_mood(moods: Sequence[MoodEntry]) -> MoodEntry | None:
    """The dashboard's "Recent Mood" slot."""
    return most_recent(moods)


def mood_trend(moods: Sequence[MoodEntry], limit: int | None = None) -> list[TrendPoint]:
    """The limit most recent moods (MOOD_TREND_LIMIT by default), oldest first, as chart points."""
    if limit is None:
        limit = config.settings.MOOD_TREND_LIMIT
    return [TrendPoint(date=m.date.isoformat(), score=m.mood_score) for m in chronological(head(moods, limit))]


def recent_entries(items: Sequence[T]) -> list[T]:
    """The short "recent" lists on the mood and journal screens."""
    return head(items, config.settings.RECENT_LIST_LIMIT)


def goal_progress(goals: Sequence[Goal]) -> GoalProgress:
    completed = sum(1 for g in goals if g.completed)
    return GoalProgress(completed=completed, total=len(goals))


def affirmation_at(elapsed_seconds: float) -> str:
    """The affirmation shown after elapsed_seconds of rotation."""
    index = int(elapsed_seconds // AFFIRMATION_INTERVAL_SECONDS) % len(AFFIRMATIONS)
    return AFFIRMATIONS[index]
