"""
Livesync — Ordered Collection View

Pure functions: (ViewState, snapshot) → ViewState
No side effects. No IO.

Each snapshot replaces the view wholesale: documents are stable-sorted by
the collection's order key, mapped into entities and capped to the
consumer's display limit. Intermediate staleness corrects itself on the
next snapshot, so nothing is patched incrementally.

CollectionView wraps the reducers in a small state container that the
subscription manager feeds and presentation code reads.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from typing import Any, Generic, Literal, TypeVar

from livesync.types import Document, OrderSpec, Snapshot

logger = logging.getLogger(__name__)

T = TypeVar("T")

ViewStatus = Literal["idle", "loading", "ready", "error"]


@dataclass(frozen=True)
class ViewState(Generic[T]):
    """Immutable state of one collection view."""

    items: tuple[T, ...] = ()
    status: ViewStatus = "idle"
    version: int = 0
    error: str | None = None

    @property
    def ready(self) -> bool:
        return self.status == "ready"


# ---------------------------------------------------------------------------
# Reducers
# ---------------------------------------------------------------------------


def begin(state: ViewState[T]) -> ViewState[T]:
    """A live query was requested; keep the current items until it answers."""
    return replace(state, status="loading", error=None)


def apply_snapshot(
    state: ViewState[T],
    snapshot: Snapshot,
    *,
    order: OrderSpec,
    mapper: Callable[[Document], T],
    limit: int | None = None,
) -> ViewState[T]:
    """
    Replace the view with the snapshot's documents.

    Sorting is stable: documents sharing an order key keep the relative
    order the store delivered them in. Documents the mapper rejects are
    skipped. The input state is never modified.
    """
    ordered = sorted(
        snapshot.documents,
        key=lambda d: _order_value(d, order.field),
        reverse=order.descending,
    )

    items: list[T] = []
    for doc in ordered:
        try:
            items.append(mapper(doc))
        except (ValueError, TypeError, KeyError) as e:
            logger.warning("view: skipping malformed document id=%s path=%s: %s", doc.id, snapshot.path, e)

    if limit is not None:
        items = items[:limit]

    return ViewState(items=tuple(items), status="ready", version=state.version + 1, error=None)


def apply_failure(state: ViewState[T], error: Exception | str) -> ViewState[T]:
    """The live query failed. The last rendered items stay; status says why."""
    return replace(state, status="error", error=str(error))


def _order_value(doc: Document, field: str) -> str:
    value = doc.data.get(field)
    return "" if value is None else str(value)


# ---------------------------------------------------------------------------
# Selectors
# ---------------------------------------------------------------------------


def head(items: Sequence[T], n: int) -> list[T]:
    """The first n items of an ordered view (the n most recent for descending views)."""
    return list(items[: max(n, 0)])


def chronological(items: Sequence[T]) -> list[T]:
    """A descending window turned oldest-first, for charting."""
    return list(reversed(items))


def most_recent(items: Sequence[T]) -> T | None:
    """First item of a descending view, or None when it is empty."""
    return items[0] if items else None


# ---------------------------------------------------------------------------
# State container
# ---------------------------------------------------------------------------


class CollectionView(Generic[T]):
    """
    Local, ordered cache of one collection for one consumer.

    Owned by exactly one consumer; never shared between views.
    """

    def __init__(
        self,
        name: str,
        order: OrderSpec,
        mapper: Callable[[Document], T],
        *,
        limit: int | None = None,
    ) -> None:
        self.name = name
        self.order = order
        self.mapper = mapper
        self.limit = limit
        self.state: ViewState[T] = ViewState()
        self._listeners: list[Callable[[CollectionView[T], Snapshot | None], Any]] = []
        self._documents: tuple[Document, ...] = ()

    @property
    def items(self) -> tuple[T, ...]:
        return self.state.items

    @property
    def status(self) -> ViewStatus:
        return self.state.status

    @property
    def documents(self) -> tuple[Document, ...]:
        """Raw documents of the last snapshot, uncapped and in store order."""
        return self._documents

    def add_listener(self, listener: Callable[[CollectionView[T], Snapshot | None], Any]) -> None:
        """Call listener(view, snapshot) after every state change (snapshot is None on failure)."""
        self._listeners.append(listener)

    def begin(self) -> None:
        self.state = begin(self.state)

    def apply(self, snapshot: Snapshot) -> None:
        self._documents = snapshot.documents
        self.state = apply_snapshot(self.state, snapshot, order=self.order, mapper=self.mapper, limit=self.limit)
        self._notify(snapshot)

    def fail(self, error: Exception | str) -> None:
        self.state = apply_failure(self.state, error)
        self._notify(None)

    def _notify(self, snapshot: Snapshot | None) -> None:
        for listener in list(self._listeners):
            try:
                listener(self, snapshot)
            except Exception as e:
                logger.warning("view: listener failed view=%s: %s", self.name, e)

    def __len__(self) -> int:
        return len(self.state.items)

    def __repr__(self) -> str:  # pragma: no cover
        return f"CollectionView({self.name!r}, status={self.status}, items={len(self)})"
