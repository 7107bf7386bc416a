"""Goal models."""

from __future__ import annotations

from pydantic import Field

from mealth.models.base import Instant, StoredModel


class Goal(StoredModel):
    """A user goal. The only mutable entity: completed toggles, and it can be deleted."""

    title: str = Field(min_length=1, max_length=200)
    completed: bool = False
    created_at: Instant | None = Field(default=None, alias="createdAt")
