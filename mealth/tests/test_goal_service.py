"""Tests for goals: add, toggle relative to the rendered state, delete."""

from __future__ import annotations

import pytest

from mealth.client import MealthClient, View
from mealth.models import Goal
from mealth.services.goals import completion_ratio
from mealth.services.insights import goal_progress
from mealth.tests.conftest import settle


@pytest.fixture
async def goals_screen(signed_in: MealthClient) -> MealthClient:
    signed_in.switch_view(View.GOALS)
    await settle(signed_in)
    return signed_in


class TestAddGoal:
    @pytest.mark.asyncio
    async def test_goals_ordered_by_creation(self, goals_screen: MealthClient):
        for title in ("Walk", "Read", "Sleep early"):
            await goals_screen.add_goal(title)
        await settle(goals_screen)

        assert [g.title for g in goals_screen.views["goals"].items] == ["Walk", "Read", "Sleep early"]
        assert all(not g.completed for g in goals_screen.views["goals"].items)

    @pytest.mark.asyncio
    async def test_title_is_trimmed(self, goals_screen: MealthClient):
        await goals_screen.add_goal("  Walk  ")
        await settle(goals_screen)
        assert goals_screen.views["goals"].items[0].title == "Walk"

    @pytest.mark.asyncio
    async def test_blank_title_rejected(self, goals_screen: MealthClient):
        result = await goals_screen.add_goal("   ")
        assert not result.ok
        assert goals_screen.store.writes == []


class TestToggle:
    @pytest.mark.asyncio
    async def test_double_toggle_restores_state_and_ratio(self, goals_screen: MealthClient):
        client = goals_screen
        await client.add_goal("Walk")
        await settle(client)
        goal_id = client.views["goals"].items[0].id

        await client.toggle_goal(goal_id)
        await settle(client)
        assert client.views["goals"].items[0].completed is True
        assert completion_ratio(client.views["goals"].items) == 1.0

        await client.toggle_goal(goal_id)
        await settle(client)
        assert client.views["goals"].items[0].completed is False
        assert completion_ratio(client.views["goals"].items) == 0.0

    @pytest.mark.asyncio
    async def test_toggle_writes_only_completed(self, goals_screen: MealthClient):
        client = goals_screen
        await client.add_goal("Walk")
        await settle(client)
        goal = client.views["goals"].items[0]

        await client.toggle_goal(goal.id)
        await settle(client)

        stored = client.views["goals"].documents[0].data
        assert stored["title"] == "Walk"
        assert stored["createdAt"] == goal.model_dump(mode="json", by_alias=True)["createdAt"]

    @pytest.mark.asyncio
    async def test_toggle_unknown_goal(self, goals_screen: MealthClient):
        result = await goals_screen.toggle_goal("missing")
        assert not result.ok

    @pytest.mark.asyncio
    async def test_toggle_needs_rendered_goal(self, goals_screen: MealthClient):
        with pytest.raises(ValueError):
            await goals_screen.goals.toggle_goal(goals_screen.session_id, Goal(title="Walk"))


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete(self, goals_screen: MealthClient):
        client = goals_screen
        await client.add_goal("Walk")
        await client.add_goal("Read")
        await settle(client)

        result = await client.delete_goal(client.views["goals"].items[0].id)
        await settle(client)

        assert result.ok
        assert [g.title for g in client.views["goals"].items] == ["Read"]

    @pytest.mark.asyncio
    async def test_delete_missing_reports_failure(self, goals_screen: MealthClient):
        result = await goals_screen.delete_goal("missing")
        assert not result.ok


class TestProgress:
    def test_ratio(self):
        goals = [Goal(title="a", completed=True), Goal(title="b"), Goal(title="c"), Goal(title="d", completed=True)]
        assert completion_ratio(goals) == 0.5
        assert goal_progress(goals).completed == 2
        assert goal_progress(goals).ratio == 0.5

    def test_empty(self):
        assert completion_ratio([]) == 0.0
        assert goal_progress([]).ratio == 0.0
