"""
Livesync — Shared Types

Data classes and exceptions used across the store, views, subscription
manager, write queue, seed guard and responder.
These are the contracts that bind the core together.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any, Literal

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class SyncError(Exception):
    """Base class for every error raised by the core."""


class AuthUnavailable(SyncError):
    """No session is available; private collections cannot be addressed."""


class StoreError(SyncError):
    """The document store rejected an operation (network, auth, bad payload)."""


class SubscriptionFailure(SyncError):
    """The store rejected or dropped a live query."""


class WriteFailure(SyncError):
    """A create/update/delete was rejected."""


class DuplicateSubscription(SyncError):
    """A live query was opened on a key that already has one."""


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

PUBLIC_SEGMENT = "public"

_SEGMENT_RE = re.compile(r"^[A-Za-z0-9_\-]{1,128}$")


def _check_segment(value: str, what: str) -> str:
    if not _SEGMENT_RE.match(value):
        raise ValueError(f"Invalid {what}: {value!r}")
    return value


def collection_path(namespace: str, session_id: str, name: str) -> str:
    """Path of a private collection: <namespace>/<sessionId>/<collectionName>."""
    _check_segment(session_id, "session id")
    if session_id == PUBLIC_SEGMENT:
        raise ValueError("Session id may not alias the public namespace")
    return f"{namespace}/{session_id}/{_check_segment(name, 'collection name')}"


def public_path(namespace: str, name: str) -> str:
    """Path of a shared collection: <namespace>/public/<collectionName>."""
    return f"{namespace}/{PUBLIC_SEGMENT}/{_check_segment(name, 'collection name')}"


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

SortDirection = Literal["asc", "desc"]


@dataclass(frozen=True)
class OrderSpec:
    """Server-side ordering by a named document field."""

    field: str
    direction: SortDirection = "asc"

    @property
    def descending(self) -> bool:
        return self.direction == "desc"


@dataclass(frozen=True)
class Filter:
    """Equality filter on a named document field."""

    field: str
    value: Any


@dataclass(frozen=True)
class QueryKey:
    """Identity of one live query: (session, collection, filter)."""

    session_id: str
    collection: str
    where: Filter | None = None

    def __str__(self) -> str:
        if self.where is None:
            return f"{self.session_id}/{self.collection}"
        return f"{self.session_id}/{self.collection}[{self.where.field}={self.where.value}]"


@dataclass(frozen=True)
class CollectionSpec:
    """
    How one collection is addressed, ordered and mapped into entities.

    public collections live under <namespace>/public and ignore the session.
    """

    name: str
    order: OrderSpec
    mapper: Callable[[Document], Any]
    public: bool = False

    def path(self, namespace: str, session_id: str) -> str:
        if self.public:
            return public_path(namespace, self.name)
        return collection_path(namespace, session_id, self.name)


# ---------------------------------------------------------------------------
# Documents and snapshots
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Document:
    """One stored document: server-assigned id plus its field data."""

    id: str
    data: dict[str, Any] = field(default_factory=dict)

    def get(self, name: str, default: Any = None) -> Any:
        return self.data.get(name, default)


@dataclass(frozen=True)
class Snapshot:
    """
    A complete, ordered result set for one live query.
    Supersedes every earlier snapshot of the same subscription.
    """

    path: str
    documents: tuple[Document, ...]
    sequence: int = 0

    def __len__(self) -> int:
        return len(self.documents)

    @property
    def empty(self) -> bool:
        return not self.documents


@dataclass
class WriteResult:
    """Outcome of one write: the new id on create, or the failure."""

    ok: bool
    op: Literal["create", "update", "delete"]
    path: str
    doc_id: str | None = None
    error: SyncError | None = None

    @classmethod
    def failed(cls, op: Literal["create", "update", "delete"], path: str, error: SyncError, doc_id: str | None = None) -> WriteResult:
        return cls(ok=False, op=op, path=path, doc_id=doc_id, error=error)


# ---------------------------------------------------------------------------
# Time
# ---------------------------------------------------------------------------

_last_issued: datetime | None = None


def monotonic_now() -> datetime:
    """
    Current UTC time, strictly greater than any value previously returned
    in this process. Timestamps used as ordering keys never collide.
    """
    global _last_issued
    now = datetime.now(UTC)
    if _last_issued is not None and now <= _last_issued:
        now = _last_issued + timedelta(microseconds=1)
    _last_issued = now
    return now


def to_iso(value: datetime) -> str:
    """ISO 8601 with microseconds and a Z suffix; sorts lexicographically."""
    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def now_iso() -> str:
    """Current UTC time as ISO 8601 string."""
    return to_iso(monotonic_now())


def calendar_day(value: datetime) -> str:
    """UTC calendar day of an instant, as YYYY-MM-DD."""
    return value.astimezone(UTC).date().isoformat()
