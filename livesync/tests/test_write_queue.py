"""Tests for WriteQueue — single attempts, reconciled through snapshots."""

from __future__ import annotations

import asyncio

import pytest

from livesync.tests.conftest import NAMESPACE, NOTES
from livesync.types import AuthUnavailable, StoreError, WriteFailure
from livesync.writes import WriteQueue

PATH = NOTES.path(NAMESPACE, "s1")


class TestCreate:
    @pytest.mark.asyncio
    async def test_view_changes_only_with_next_snapshot(self, store, manager, writes: WriteQueue):
        view = manager.open("s1", NOTES)
        await store.flush()

        result = await writes.create(PATH, {"createdAt": "1", "title": "Walk"})

        assert result.ok
        assert result.doc_id is not None
        # No placeholder: nothing rendered until the store echoes the write
        assert view.items == ()

        await store.flush()
        assert [item["id"] for item in view.items] == [result.doc_id]

    @pytest.mark.asyncio
    async def test_failure_is_reported_not_raised(self, store, manager, writes: WriteQueue):
        view = manager.open("s1", NOTES)
        await store.flush()
        store.fail_writes("quota exceeded")

        result = await writes.create(PATH, {"createdAt": "1"})
        await store.flush()

        assert not result.ok
        assert isinstance(result.error, WriteFailure)
        assert isinstance(result.error.__cause__, StoreError)
        assert "quota exceeded" in str(result.error)
        assert view.items == ()
        assert store.writes == []

    @pytest.mark.asyncio
    async def test_no_session(self, store, writes: WriteQueue):
        result = await writes.create(None, {"createdAt": "1"})
        assert not result.ok
        assert isinstance(result.error, AuthUnavailable)
        assert store.writes == []

    @pytest.mark.asyncio
    async def test_single_attempt(self, store, writes: WriteQueue):
        store.fail_writes()
        await writes.create(PATH, {"createdAt": "1"})
        store.fail_writes(None)
        await asyncio.sleep(0.01)
        assert store.documents(PATH) == []


class TestUpdateDelete:
    @pytest.mark.asyncio
    async def test_update_and_delete(self, store, writes: WriteQueue):
        created = await writes.create(PATH, {"title": "Walk", "completed": False})

        updated = await writes.update(PATH, created.doc_id, {"completed": True})
        assert updated.ok
        assert store.documents(PATH)[0].data["completed"] is True

        deleted = await writes.delete(PATH, created.doc_id)
        assert deleted.ok
        assert store.documents(PATH) == []

    @pytest.mark.asyncio
    async def test_update_missing_document(self, writes: WriteQueue):
        result = await writes.update(PATH, "missing", {"completed": True})
        assert not result.ok
        assert result.op == "update"
        assert result.doc_id == "missing"

    @pytest.mark.asyncio
    async def test_delete_without_session(self, writes: WriteQueue):
        result = await writes.delete(None, "abc")
        assert isinstance(result.error, AuthUnavailable)


class TestSubmit:
    @pytest.mark.asyncio
    async def test_submit_and_drain(self, store, writes: WriteQueue):
        writes.submit(writes.create(PATH, {"createdAt": "1"}))
        writes.submit(writes.create(PATH, {"createdAt": "2"}))
        assert writes.pending == 2

        results = await writes.drain()

        assert [r.ok for r in results] == [True, True]
        assert writes.pending == 0
        assert len(store.documents(PATH)) == 2
