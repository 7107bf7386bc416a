"""Tests for the assistant chat."""

from __future__ import annotations

import asyncio

import pytest

from mealth.client import MealthClient, View
from mealth.services.chat import ASSISTANT_PHRASES
from mealth.tests.conftest import settle


@pytest.fixture
async def chat_screen(signed_in: MealthClient) -> MealthClient:
    signed_in.switch_view(View.CHATBOT)
    await settle(signed_in)
    return signed_in


class TestSendMessage:
    @pytest.mark.asyncio
    async def test_user_message_then_reply(self, chat_screen: MealthClient):
        exchange = await chat_screen.send_chat("I had a rough day")
        await settle(chat_screen)

        assert exchange.user.ok
        assert exchange.reply.ok
        messages = chat_screen.views["messages"].items
        assert [m.sender for m in messages] == ["user", "assistant"]
        assert messages[0].content == "I had a rough day"
        assert messages[1].content in ASSISTANT_PHRASES

    @pytest.mark.asyncio
    async def test_conversation_stays_in_order(self, chat_screen: MealthClient):
        for text in ("one", "two", "three"):
            await chat_screen.send_chat(text)
        await settle(chat_screen)

        messages = chat_screen.views["messages"].items
        assert [m.sender for m in messages] == ["user", "assistant"] * 3
        assert [m.content for m in messages if m.sender == "user"] == ["one", "two", "three"]

    @pytest.mark.asyncio
    async def test_blank_message_ignored(self, chat_screen: MealthClient):
        assert await chat_screen.send_chat("   ") is None
        assert chat_screen.store.writes == []

    @pytest.mark.asyncio
    async def test_one_send_in_flight(self, chat_screen: MealthClient):
        first, second = await asyncio.gather(chat_screen.send_chat("first"), chat_screen.send_chat("second"))
        await settle(chat_screen)

        assert first is not None
        assert second is None
        assert [m.content for m in chat_screen.views["messages"].items][0] == "first"
        assert len(chat_screen.views["messages"].items) == 2
        assert not chat_screen.chat.busy(chat_screen.session_id)

    @pytest.mark.asyncio
    async def test_failed_user_write_skips_reply(self, chat_screen: MealthClient):
        chat_screen.store.fail_writes()
        exchange = await chat_screen.send_chat("hello")

        assert not exchange.user.ok
        assert exchange.reply is None

    @pytest.mark.asyncio
    async def test_no_session(self, client: MealthClient):
        assert await client.send_chat("hello") is None
