"""
Goals — the one mutable collection.

Toggle and delete are issued straight against the document id with no
local pre-mutation; the goals view changes with the next snapshot.
"""

from __future__ import annotations

from collections.abc import Sequence

from livesync.types import WriteFailure, WriteResult, monotonic_now
from livesync.writes import WriteQueue
from mealth.catalog import GOALS
from mealth.models.goal import Goal


def completion_ratio(goals: Sequence[Goal]) -> float:
    """completed / total, or 0.0 when there are no goals."""
    if not goals:
        return 0.0
    return sum(1 for g in goals if g.completed) / len(goals)


class GoalService:
    def __init__(self, writes: WriteQueue, namespace: str):
        self._writes = writes
        self._namespace = namespace

    def _path(self, session_id: str | None) -> str | None:
        return GOALS.path(self._namespace, session_id) if session_id else None

    async def add_goal(self, session_id: str | None, title: str) -> WriteResult:
        path = self._path(session_id)
        title = title.strip()
        if not title:
            return WriteResult.failed("create", path or "", WriteFailure("Goal title is empty"))
        goal = Goal(title=title, completed=False, created_at=monotonic_now())
        return await self._writes.create(path, goal.to_payload())

    async def toggle_goal(self, session_id: str | None, goal: Goal) -> WriteResult:
        """Flip completed relative to the goal as last rendered."""
        if goal.id is None:
            raise ValueError("Goal has no id; only goals from a snapshot can be toggled")
        return await self._writes.update(self._path(session_id), goal.id, {"completed": not goal.completed})

    async def delete_goal(self, session_id: str | None, goal_id: str) -> WriteResult:
        return await self._writes.delete(self._path(session_id), goal_id)
