"""
Assistant chat.

Every accepted user message is followed, as soon as its write completes,
by a scripted assistant reply. No artificial delay; both messages arrive
through the chat_messages snapshot.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from livesync.responder import CancelToken, SimulatedResponder
from livesync.types import WriteResult, now_iso
from livesync.writes import WriteQueue
from mealth.catalog import CHAT

logger = logging.getLogger(__name__)

ASSISTANT_PHRASES: tuple[str, ...] = (
    "I understand you're going through something. Can you tell me more about how you're feeling?",
    "It's completely normal to feel this way. You're being very brave by reaching out.",
    "Have you tried any coping techniques that have helped you in the past?",
    "Remember that it's okay to take things one day at a time. "
    "You don't have to have everything figured out right now.",
    "What's one small thing that brought you joy today, even if it was brief?",
    "Your feelings are valid, and I'm here to listen without judgment.",
)


@dataclass
class ChatExchange:
    """The user's write and the assistant's reply write (None if not attempted)."""

    user: WriteResult
    reply: WriteResult | None = None


class ChatService:
    def __init__(self, writes: WriteQueue, namespace: str, responder: SimulatedResponder | None = None):
        self._writes = writes
        self._namespace = namespace
        self._responder = responder or SimulatedResponder(ASSISTANT_PHRASES, delay="instant")
        self._busy: set[str] = set()

    def busy(self, session_id: str) -> bool:
        return session_id in self._busy

    async def send_message(self, session_id: str | None, content: str) -> ChatExchange | None:
        """
        Write the user's message, then the assistant's reply.

        Returns None without writing when the message is blank, there is no
        session, or a previous send for this session is still in flight.
        """
        if not content.strip() or not session_id:
            return None
        if session_id in self._busy:
            logger.debug("chat: send ignored, previous message in flight session=%s", session_id)
            return None

        path = CHAT.path(self._namespace, session_id)
        self._busy.add(session_id)
        try:
            user = await self._writes.create(
                path,
                {"content": content, "sender": "user", "timestamp": now_iso()},
            )
            if not user.ok:
                return ChatExchange(user=user)

            token = CancelToken(label=f"chat:{session_id}")
            task = self._responder.schedule(
                token,
                lambda reply: self._writes.create(
                    path,
                    {"content": reply, "sender": "assistant", "timestamp": now_iso()},
                ),
            )
            reply = await task if task is not None else None
            return ChatExchange(user=user, reply=reply)
        finally:
            self._busy.discard(session_id)
