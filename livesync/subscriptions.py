"""
Livesync — Subscription Manager

Owns the lifecycle of one live query per (session, collection, filter):

    UNSUBSCRIBED → SUBSCRIBING → ACTIVE → UNSUBSCRIBED

At most one live subscription per key exists at any time. Changing a
filter closes the old subscription before the new one opens. Failures are
caught here, logged, and surface only as the view's error state; nothing is
retried until the next lifecycle transition.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any

from livesync.store import DocumentStore, SubscriptionHandle
from livesync.types import (
    AuthUnavailable,
    CollectionSpec,
    DuplicateSubscription,
    Filter,
    QueryKey,
    Snapshot,
    SubscriptionFailure,
)
from livesync.view import CollectionView

logger = logging.getLogger(__name__)


class SubscriptionState(str, Enum):
    UNSUBSCRIBED = "unsubscribed"
    SUBSCRIBING = "subscribing"
    ACTIVE = "active"


@dataclass(eq=False)
class Subscription:
    """One live query and the view it feeds."""

    key: QueryKey
    spec: CollectionSpec
    view: CollectionView[Any]
    state: SubscriptionState = SubscriptionState.SUBSCRIBING
    handle: SubscriptionHandle | None = None


class SubscriptionManager:
    """
    Opens, re-keys and tears down live queries against a DocumentStore.

    Single-threaded: every callback runs on the event loop, so the
    bookkeeping below needs no locking.
    """

    def __init__(self, store: DocumentStore, namespace: str):
        self._store = store
        self._namespace = namespace
        self._subs: dict[QueryKey, Subscription] = {}

    # -- queries --

    def state(self, key: QueryKey) -> SubscriptionState:
        sub = self._subs.get(key)
        return sub.state if sub else SubscriptionState.UNSUBSCRIBED

    def view(self, key: QueryKey) -> CollectionView[Any] | None:
        sub = self._subs.get(key)
        return sub.view if sub else None

    def active_keys(self) -> list[QueryKey]:
        """Keys with a live (subscribing or active) query."""
        return list(self._subs)

    # -- lifecycle --

    def open(
        self,
        session_id: str | None,
        spec: CollectionSpec,
        *,
        where: Filter | None = None,
        limit: int | None = None,
    ) -> CollectionView[Any]:
        """
        Start a live query and return the view it feeds.

        Args:
            session_id: Current session; private collections need one
            spec: Collection to watch
            where: Optional equality filter (re-keys the subscription)
            limit: Per-consumer display cap applied to every snapshot

        Returns:
            A CollectionView in "loading" state, or "error" if the store refused

        Raises:
            AuthUnavailable: If there is no session
            DuplicateSubscription: If the key is already live
            ValueError: If session_id is not a valid path segment
        """
        if not session_id:
            raise AuthUnavailable(f"No session; cannot subscribe to {spec.name}")

        key = QueryKey(session_id=session_id, collection=spec.name, where=where)
        if key in self._subs:
            raise DuplicateSubscription(f"Subscription already live: {key}")

        # Invalid session ids fail here, before the key is registered
        path = spec.path(self._namespace, session_id)

        view: CollectionView[Any] = CollectionView(spec.name, spec.order, spec.mapper, limit=limit)
        view.begin()
        sub = Subscription(key=key, spec=spec, view=view)
        self._subs[key] = sub

        try:
            sub.handle = self._store.subscribe(
                path,
                spec.order,
                lambda snapshot: self._on_snapshot(sub, snapshot),
                lambda error: self._on_error(sub, error),
                where=where,
            )
        except SubscriptionFailure as e:
            logger.warning("subscriptions: store refused key=%s path=%s: %s", key, path, e)
            self._subs.pop(key, None)
            sub.state = SubscriptionState.UNSUBSCRIBED
            view.fail(e)
            return view

        logger.info("subscriptions: subscribing key=%s path=%s", key, path)
        return view

    def close(self, key: QueryKey) -> bool:
        """Stop the live query for key. Returns False if none was live."""
        sub = self._subs.pop(key, None)
        if sub is None:
            return False
        self._release(sub)
        logger.info("subscriptions: closed key=%s", key)
        return True

    def rekey(
        self,
        key: QueryKey,
        where: Filter | None,
        *,
        spec: CollectionSpec | None = None,
        limit: int | None = None,
    ) -> CollectionView[Any]:
        """
        Move a live query to a new filter. The old subscription is closed
        before the new one opens, so two never coexist.
        """
        old = self._subs.get(key)
        spec = spec or (old.spec if old else None)
        if spec is None:
            raise KeyError(f"Unknown subscription {key}; pass spec to open it")
        if limit is None and old is not None:
            limit = old.view.limit
        self.close(key)
        return self.open(key.session_id, spec, where=where, limit=limit)

    def close_session(self, session_id: str) -> int:
        """Tear down every query of a session (sign-out). Returns how many closed."""
        keys = [k for k in self._subs if k.session_id == session_id]
        for key in keys:
            self.close(key)
        return len(keys)

    def close_all(self) -> int:
        keys = list(self._subs)
        for key in keys:
            self.close(key)
        return len(keys)

    @asynccontextmanager
    async def scope(
        self,
        session_id: str | None,
        spec: CollectionSpec,
        *,
        where: Filter | None = None,
        limit: int | None = None,
    ) -> AsyncIterator[CollectionView[Any]]:
        """
        Scoped acquisition: the live query lives exactly as long as the block.

        Usage:
            async with manager.scope(session_id, GOALS) as goals:
                ...
        """
        view = self.open(session_id, spec, where=where, limit=limit)
        key = QueryKey(session_id=session_id or "", collection=spec.name, where=where)
        try:
            yield view
        finally:
            sub = self._subs.get(key)
            if sub is not None and sub.view is view:
                self.close(key)

    # -- store callbacks --

    def _on_snapshot(self, sub: Subscription, snapshot: Snapshot) -> None:
        if self._subs.get(sub.key) is not sub:
            logger.debug("subscriptions: ignoring stale snapshot key=%s", sub.key)
            return
        if sub.state is SubscriptionState.SUBSCRIBING:
            sub.state = SubscriptionState.ACTIVE
            logger.info("subscriptions: active key=%s documents=%d", sub.key, len(snapshot))
        sub.view.apply(snapshot)

    def _on_error(self, sub: Subscription, error: SubscriptionFailure) -> None:
        if self._subs.get(sub.key) is not sub:
            return
        logger.warning("subscriptions: live query dropped key=%s: %s", sub.key, error)
        self._subs.pop(sub.key, None)
        self._release(sub)
        sub.view.fail(error)

    def _release(self, sub: Subscription) -> None:
        sub.state = SubscriptionState.UNSUBSCRIBED
        if sub.handle is not None:
            self._store.unsubscribe(sub.handle)
            sub.handle = None
