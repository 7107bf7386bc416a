"""
Failure paths of PostgresDocumentStore that need no database.

The pool below hands out a listener connection but every query connection
fails, the way a pool does once the server goes away.
"""

from __future__ import annotations

import asyncio

import asyncpg
import pytest

from livesync.postgres_store import PostgresDocumentStore
from livesync.subscriptions import SubscriptionManager, SubscriptionState
from livesync.tests.conftest import NAMESPACE, NOTES
from livesync.types import OrderSpec, QueryKey, StoreError


class _Listener:
    async def add_listener(self, channel, callback):
        return None

    async def remove_listener(self, channel, callback):
        return None


class _Acquire:
    def __init__(self, listener: _Listener):
        self._listener = listener

    def __await__(self):
        return self._connect().__await__()

    async def _connect(self) -> _Listener:
        return self._listener

    async def __aenter__(self):
        raise asyncpg.PostgresError("connection lost")

    async def __aexit__(self, *exc):
        return False


class _BrokenPool:
    def __init__(self):
        self.listener = _Listener()

    def acquire(self) -> _Acquire:
        return _Acquire(self.listener)

    async def release(self, conn):
        return None


async def _settle(turns: int = 5) -> None:
    for _ in range(turns):
        await asyncio.sleep(0)


@pytest.fixture
async def broken_store():
    store = PostgresDocumentStore(_BrokenPool())
    await store.start()
    yield store
    await store.close()


class TestLiveQueryFailure:
    @pytest.mark.asyncio
    async def test_failed_query_reaches_the_manager(self, broken_store):
        manager = SubscriptionManager(broken_store, NAMESPACE)
        key = QueryKey("s1", "notes")

        view = manager.open("s1", NOTES)
        await _settle()

        assert view.status == "error"
        assert manager.state(key) is SubscriptionState.UNSUBSCRIBED
        assert manager.active_keys() == []

    @pytest.mark.asyncio
    async def test_failed_query_releases_the_handle(self, broken_store):
        errors = []
        handle = broken_store.subscribe("app/s1/notes", OrderSpec("createdAt"), lambda snapshot: None, errors.append)
        await _settle()

        assert len(errors) == 1
        assert handle.active is False
        assert handle not in broken_store._handles

    @pytest.mark.asyncio
    async def test_reopen_after_failure(self, broken_store):
        manager = SubscriptionManager(broken_store, NAMESPACE)
        manager.open("s1", NOTES)
        await _settle()

        view = manager.open("s1", NOTES)
        assert view.status == "loading"


class TestReadFailure:
    @pytest.mark.asyncio
    async def test_get_raises_store_error(self, broken_store):
        with pytest.raises(StoreError):
            await broken_store.get("app/s1/notes", OrderSpec("createdAt"))
