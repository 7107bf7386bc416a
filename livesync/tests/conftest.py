"""
Livesync test configuration.

Every test gets a fresh MemoryDocumentStore. Snapshot deliveries run on a
later loop turn, so tests call store.flush() before asserting on views.
"""

from __future__ import annotations

from typing import Any

import pytest

from livesync.store import MemoryDocumentStore
from livesync.subscriptions import SubscriptionManager
from livesync.types import CollectionSpec, Document, OrderSpec
from livesync.writes import WriteQueue

NAMESPACE = "test-app"


def as_dict(doc: Document) -> dict[str, Any]:
    return {"id": doc.id, **doc.data}


def titled(doc: Document) -> tuple[str, str]:
    """Mapper that rejects documents without a title."""
    return (doc.id, doc.data["title"])


NOTES = CollectionSpec("notes", OrderSpec("createdAt", "asc"), as_dict)
ENTRIES = CollectionSpec("entries", OrderSpec("date", "desc"), as_dict)
SHARED = CollectionSpec("shared", OrderSpec("title", "asc"), as_dict, public=True)


@pytest.fixture
def store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture
def manager(store) -> SubscriptionManager:
    return SubscriptionManager(store, NAMESPACE)


@pytest.fixture
def writes(store) -> WriteQueue:
    return WriteQueue(store)
