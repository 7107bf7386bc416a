"""
Articles — the shared, public collection.

Until there is an admin interface, an empty articles collection is
populated with SAMPLE_ARTICLES. The check runs on every articles snapshot,
so it goes through the seed-once guard: one seeding per process however
many snapshots observe the collection empty, and never a duplicate title.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

from livesync.seed import SeedOnceGuard, SeedOutcome, seed_documents
from livesync.types import PUBLIC_SEGMENT, Document
from livesync.writes import WriteQueue
from mealth.catalog import ARTICLES

logger = logging.getLogger(__name__)

SAMPLE_ARTICLES: tuple[dict[str, Any], ...] = (
    {
        "title": "Understanding Anxiety: A Comprehensive Guide",
        "summary": "Learn about anxiety disorders, their symptoms, and effective management strategies.",
        "content": (
            "Anxiety is a natural human emotion that everyone experiences from time to time. However, "
            "when anxiety becomes persistent, excessive, and interferes with daily life, it may be "
            "classified as an anxiety disorder..."
        ),
        "author": "Dr. Sarah Johnson",
        "date": "2024-01-15",
        "readTime": "8 min read",
    },
    {
        "title": "The Power of Mindfulness in Daily Life",
        "summary": "Discover how mindfulness practices can improve your mental well-being and reduce stress.",
        "content": (
            "Mindfulness is the practice of being fully present and engaged in the current moment, "
            "without judgment. This ancient practice has been scientifically proven to reduce stress, "
            "improve focus, and enhance overall well-being..."
        ),
        "author": "Dr. Michael Chen",
        "date": "2024-01-12",
        "readTime": "6 min read",
    },
    {
        "title": "Building Resilience Through Difficult Times",
        "summary": "Practical strategies for developing emotional resilience and coping with life's challenges.",
        "content": (
            "Resilience is the ability to bounce back from adversity, adapt to change, and keep going in "
            "the face of hardship. While some people seem naturally resilient, it's actually a skill that "
            "can be developed..."
        ),
        "author": "Dr. Emily Rodriguez",
        "date": "2024-01-10",
        "readTime": "10 min read",
    },
)


class ArticleService:
    def __init__(
        self,
        writes: WriteQueue,
        namespace: str,
        guard: SeedOnceGuard,
        samples: Sequence[dict[str, Any]] = SAMPLE_ARTICLES,
    ):
        self._writes = writes
        self._namespace = namespace
        self._guard = guard
        self._samples = samples

    @property
    def seed_key(self) -> tuple[str, str]:
        # Articles are shared, so the latch is per collection, not per session
        return (PUBLIC_SEGMENT, ARTICLES.name)

    def ensure_samples(self, documents: Sequence[Document]) -> asyncio.Task[Any] | None:
        """
        Snapshot hook: seed the samples if this observation is empty.
        Returns the seeding task for the one observation that claims it.
        """
        path = ARTICLES.path(self._namespace, PUBLIC_SEGMENT)
        return self._guard.observe(
            self.seed_key,
            documents,
            lambda: seed_documents(self._writes, path, self._samples, existing=documents, unique_field="title"),
        )

    async def seed_if_empty(self, documents: Sequence[Document]) -> SeedOutcome:
        path = ARTICLES.path(self._namespace, PUBLIC_SEGMENT)
        return await self._guard.seed_if_empty(
            self.seed_key,
            documents,
            lambda: seed_documents(self._writes, path, self._samples, existing=documents, unique_field="title"),
        )
