"""Tests for the public articles collection and its sample seeding."""

from __future__ import annotations

import pytest

from livesync.seed import SeedOnceGuard, SeedOutcome
from livesync.types import Document
from mealth.catalog import ARTICLES
from mealth.client import MealthClient, View
from mealth.services.articles import SAMPLE_ARTICLES
from mealth.tests.conftest import NAMESPACE, settle

PUBLIC = ARTICLES.path(NAMESPACE, "public")


class TestSeeding:
    @pytest.mark.asyncio
    async def test_empty_collection_seeded_once(self, signed_in: MealthClient):
        signed_in.switch_view(View.BLOGS)
        await settle(signed_in)
        await settle(signed_in)

        articles = signed_in.views["articles"].items
        assert sorted(a.title for a in articles) == sorted(s["title"] for s in SAMPLE_ARTICLES)
        assert len(signed_in.store.documents(PUBLIC)) == 3

    @pytest.mark.asyncio
    async def test_articles_ordered_newest_first(self, signed_in: MealthClient):
        signed_in.switch_view(View.BLOGS)
        await settle(signed_in)
        await settle(signed_in)

        dates = [a.date for a in signed_in.views["articles"].items]
        assert dates == sorted(dates, reverse=True)

    @pytest.mark.asyncio
    async def test_overlapping_observers_seed_one_copy(self, store):
        guard = SeedOnceGuard()
        clients = [MealthClient(store, namespace=NAMESPACE, guard=guard) for _ in range(3)]
        for client in clients:
            client.sign_in()
            client.switch_view(View.BLOGS)

        for client in clients:
            await settle(client)
        for client in clients:
            await settle(client)

        titles = [d.get("title") for d in store.documents(PUBLIC)]
        assert sorted(titles) == sorted(s["title"] for s in SAMPLE_ARTICLES)
        for client in clients:
            assert len(client.views["articles"].items) == 3
            await client.close()

    @pytest.mark.asyncio
    async def test_revisiting_blogs_does_not_reseed(self, signed_in: MealthClient):
        signed_in.switch_view(View.BLOGS)
        await settle(signed_in)
        await settle(signed_in)

        signed_in.store.collections[PUBLIC].clear()
        signed_in.switch_view(View.DASHBOARD)
        signed_in.switch_view(View.BLOGS)
        await settle(signed_in)
        await settle(signed_in)

        assert signed_in.store.documents(PUBLIC) == []

    @pytest.mark.asyncio
    async def test_non_empty_collection_untouched(self, signed_in: MealthClient):
        await signed_in.writes.create(PUBLIC, {"title": "Existing", "date": "2024-02-01"})
        signed_in.switch_view(View.BLOGS)
        await settle(signed_in)

        assert [d.get("title") for d in signed_in.store.documents(PUBLIC)] == ["Existing"]


class TestSeedIfEmpty:
    @pytest.mark.asyncio
    async def test_outcomes(self, client: MealthClient):
        assert await client.articles.seed_if_empty([Document("x", {"title": "Existing"})]) is SeedOutcome.NOT_EMPTY
        assert await client.articles.seed_if_empty([]) is SeedOutcome.SEEDED
        assert await client.articles.seed_if_empty([]) is SeedOutcome.CLAIMED
        assert len(client.store.documents(PUBLIC)) == 3
