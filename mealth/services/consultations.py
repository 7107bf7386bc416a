"""
Consultations — booking and per-consultation message threads.

A thread is a filtered live query (consultationId == id) plus a cancel
token. The counterpart reply is written after a fixed delay, bound to the
consultation id the thread was opened with. Closing the thread, or moving
it to another consultation, cancels every reply still waiting.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any

from livesync.responder import CancelToken, SimulatedResponder
from livesync.subscriptions import SubscriptionManager
from livesync.types import Filter, QueryKey, WriteResult, monotonic_now, now_iso
from livesync.view import CollectionView
from livesync.writes import WriteQueue
from mealth import config
from mealth.catalog import CONSULTATION_MESSAGES, CONSULTATIONS
from mealth.models.chat import Consultation, ConsultationMessage

logger = logging.getLogger(__name__)

COUNTERPART_PHRASES: tuple[str, ...] = (
    "Thank you for sharing that with me. How are you feeling about this situation?",
)


class ConsultationThread:
    """An open message thread for one consultation."""

    def __init__(
        self,
        service: ConsultationService,
        session_id: str,
        consultation_id: str,
        view: CollectionView[ConsultationMessage],
    ):
        self._service = service
        self.session_id = session_id
        self.consultation_id = consultation_id
        self.view = view
        self.token = CancelToken(label=f"consultation:{consultation_id}")
        self.key = QueryKey(session_id, CONSULTATION_MESSAGES.name, Filter("consultationId", consultation_id))
        self.closed = False

    @property
    def messages(self) -> tuple[ConsultationMessage, ...]:
        return self.view.items

    async def send(self, content: str) -> tuple[WriteResult, asyncio.Task[Any] | None] | None:
        """
        Write the user's message and schedule the counterpart's reply.

        Returns:
            (user write result, pending reply task) or None if nothing was sent
        """
        if self.closed or not content.strip():
            return None
        return await self._service.send(self, content)

    def close(self) -> None:
        """Cancel pending replies and stop the live query. Idempotent."""
        if self.closed:
            return
        self.closed = True
        self.token.cancel()
        self._service.manager.close(self.key)


class ConsultationService:
    def __init__(
        self,
        writes: WriteQueue,
        namespace: str,
        manager: SubscriptionManager,
        responder: SimulatedResponder | None = None,
    ):
        self._writes = writes
        self._namespace = namespace
        self.manager = manager
        self._responder = responder or SimulatedResponder(
            COUNTERPART_PHRASES,
            delay=config.settings.CONSULTATION_REPLY_DELAY_SECONDS,
        )

    async def book(self, session_id: str | None, *, now: datetime | None = None) -> WriteResult:
        """Book a private session with the default therapist."""
        path = CONSULTATIONS.path(self._namespace, session_id) if session_id else None
        consultation = Consultation(
            therapist_name=config.settings.THERAPIST_NAME,
            status="scheduled",
            date=now or monotonic_now(),
            time="2:00 PM",
            type="Private Session",
        )
        return await self._writes.create(path, consultation.to_payload())

    def open_thread(
        self,
        session_id: str | None,
        consultation_id: str,
        *,
        previous: ConsultationThread | None = None,
    ) -> ConsultationThread:
        """
        Open the message thread of a consultation.

        Passing the currently open thread as previous re-keys its live query:
        the old thread is closed (its pending replies cancelled) before the
        new filter is subscribed.
        """
        where = Filter("consultationId", consultation_id)
        if previous is not None and not previous.closed:
            session_id = previous.session_id
            previous.closed = True
            previous.token.cancel()
            view = self.manager.rekey(previous.key, where, spec=CONSULTATION_MESSAGES)
        else:
            # raises AuthUnavailable without a session
            view = self.manager.open(session_id, CONSULTATION_MESSAGES, where=where)

        logger.info("consultations: opened thread consultation=%s session=%s", consultation_id, session_id)
        return ConsultationThread(self, session_id, consultation_id, view)

    async def send(
        self, thread: ConsultationThread, content: str
    ) -> tuple[WriteResult, asyncio.Task[Any] | None]:
        path = CONSULTATION_MESSAGES.path(self._namespace, thread.session_id)
        consultation_id = thread.consultation_id

        user = await self._writes.create(
            path,
            {"consultationId": consultation_id, "content": content, "sender": "user", "timestamp": now_iso()},
        )
        if not user.ok:
            return user, None

        def reply(text: str):
            return self._writes.create(
                path,
                {"consultationId": consultation_id, "content": text, "sender": "counterpart", "timestamp": now_iso()},
            )

        return user, self._responder.schedule(thread.token, reply)
