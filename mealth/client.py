"""
MealthClient — the state store presentation code is given.

Holds the session, the live views the current screen needs, and the
services that write. Switching screens closes the old screen's live
queries before opening the new ones; signing out tears every query down,
signing in re-establishes them.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from livesync.responder import SimulatedResponder
from livesync.seed import SeedOnceGuard
from livesync.store import DocumentStore
from livesync.subscriptions import SubscriptionManager
from livesync.types import (
    AuthUnavailable,
    CollectionSpec,
    QueryKey,
    Snapshot,
    WriteFailure,
    WriteResult,
)
from livesync.view import CollectionView
from livesync.writes import WriteQueue
from mealth import config
from mealth.auth import SessionProvider
from mealth.catalog import ARTICLES, CHAT, CONSULTATIONS, GOALS, GRATITUDE, JOURNAL, MOODS
from mealth.models.session import Session
from mealth.services.articles import ArticleService
from mealth.services.chat import ChatExchange, ChatService
from mealth.services.consultations import ConsultationService, ConsultationThread
from mealth.services.goals import GoalService
from mealth.services.gratitude import GratitudeService
from mealth.services.moods import MoodService

logger = logging.getLogger(__name__)


class View(str, Enum):
    AUTH = "auth"
    DASHBOARD = "dashboard"
    CHATBOT = "chatbot"
    MOOD = "mood"
    BLOGS = "blogs"
    CONSULTATIONS = "consultations"
    COPING = "coping"
    GOALS = "goals"
    CRISIS = "crisis"


@dataclass(frozen=True)
class Slot:
    """One live view a screen needs: its name, collection and display cap."""

    name: str
    spec: CollectionSpec
    limit: int | None = None


THREAD_SLOT = "thread"

_VIEW_SLOTS: dict[View, tuple[Slot, ...]] = {
    View.AUTH: (),
    View.DASHBOARD: (
        Slot("recent_moods", MOODS, config.settings.DASHBOARD_MOOD_LIMIT),
        Slot("goals", GOALS),
    ),
    View.CHATBOT: (Slot("messages", CHAT),),
    View.MOOD: (Slot("moods", MOODS), Slot("journal", JOURNAL)),
    View.BLOGS: (Slot("articles", ARTICLES),),
    View.CONSULTATIONS: (Slot("consultations", CONSULTATIONS),),
    View.COPING: (Slot("gratitude", GRATITUDE),),
    View.GOALS: (Slot("goals", GOALS),),
    View.CRISIS: (),
}

_unmapped = set(View) - set(_VIEW_SLOTS)
if _unmapped:
    raise RuntimeError(f"Views without a slot mapping: {sorted(v.value for v in _unmapped)}")


def slots_for(view: View) -> tuple[Slot, ...]:
    return _VIEW_SLOTS[view]


SlotListener = Callable[[str, CollectionView[Any]], None]


class MealthClient:
    """
    One user's live application state.

    Usage:
        client = MealthClient(store)
        client.sign_in()                # opens the dashboard's live views
        client.switch_view(View.GOALS)
        await client.add_goal("Walk 10 minutes")
        client.views["goals"].items     # updated by the next snapshot
    """

    def __init__(
        self,
        store: DocumentStore,
        *,
        namespace: str | None = None,
        sessions: SessionProvider | None = None,
        guard: SeedOnceGuard | None = None,
        chat_responder: SimulatedResponder | None = None,
        counterpart_responder: SimulatedResponder | None = None,
    ):
        self.store = store
        self.namespace = namespace or config.settings.NAMESPACE
        self.sessions = sessions or SessionProvider()
        self.manager = SubscriptionManager(store, self.namespace)
        self.writes = WriteQueue(store)
        self.guard = guard or SeedOnceGuard()

        self.moods = MoodService(self.writes, self.namespace)
        self.goals = GoalService(self.writes, self.namespace)
        self.gratitude = GratitudeService(self.writes, self.namespace)
        self.chat = ChatService(self.writes, self.namespace, chat_responder)
        self.consultations = ConsultationService(self.writes, self.namespace, self.manager, counterpart_responder)
        self.articles = ArticleService(self.writes, self.namespace, self.guard)

        self.current_view = View.AUTH
        self.views: dict[str, CollectionView[Any]] = {}
        self.thread: ConsultationThread | None = None
        self._keys: dict[str, QueryKey] = {}
        self._listeners: list[SlotListener] = []

        self.sessions.add_listener(self._on_session_change)

    # -- session --

    @property
    def session(self) -> Session | None:
        return self.sessions.current

    @property
    def session_id(self) -> str | None:
        return self.sessions.session_id

    def sign_in(self, token: str | None = None) -> Session:
        return self.sessions.sign_in(token)

    def sign_out(self) -> None:
        self.sessions.sign_out()

    def _on_session_change(self, old: Session | None, new: Session | None) -> None:
        self._teardown()
        if old is not None:
            self.manager.close_session(old.id)
        if new is None:
            self.current_view = View.AUTH
            return
        if self.current_view is View.AUTH:
            self.current_view = View.DASHBOARD
        self._open(self.current_view)

    # -- views --

    def add_listener(self, listener: SlotListener) -> None:
        """Call listener(slot, view) whenever a slot's view changes."""
        self._listeners.append(listener)

    def switch_view(self, view: View) -> dict[str, CollectionView[Any]]:
        """
        Show another screen. Returns the live views it needs, keyed by slot.
        Without a session only the auth screen is available.
        """
        view = View(view)
        if self.session_id is None and view is not View.AUTH:
            logger.warning("client: cannot show %s without a session", view.value)
            view = View.AUTH
        if view is self.current_view and self.views:
            return self.views

        self._teardown()
        self.current_view = view
        self._open(view)
        return self.views

    def _open(self, view: View) -> None:
        session_id = self.session_id
        for slot in slots_for(view):
            live = self.manager.open(session_id, slot.spec, limit=slot.limit)
            self._keys[slot.name] = QueryKey(session_id or "", slot.spec.name)
            if slot.spec is ARTICLES:
                live.add_listener(self._on_articles)
            self._track(slot.name, live)
        logger.info("client: showing %s slots=%s", view.value, list(self.views))

    def _teardown(self) -> None:
        self.close_consultation()
        for key in self._keys.values():
            self.manager.close(key)
        self._keys.clear()
        self.views.clear()

    def _track(self, slot: str, live: CollectionView[Any]) -> None:
        self.views[slot] = live
        live.add_listener(lambda v, _snapshot: self._notify(slot, v))
        self._notify(slot, live)

    def _notify(self, slot: str, live: CollectionView[Any]) -> None:
        if self.views.get(slot) is not live:
            return
        for listener in list(self._listeners):
            listener(slot, live)

    def _on_articles(self, _view: CollectionView[Any], snapshot: Snapshot | None) -> None:
        if snapshot is not None:
            self.articles.ensure_samples(snapshot.documents)

    # -- consultation threads --

    def select_consultation(self, consultation_id: str) -> ConsultationThread:
        """Open (or re-key to) the message thread of a consultation."""
        if self.session_id is None:
            raise AuthUnavailable("No session; cannot open a consultation thread")
        self.thread = self.consultations.open_thread(self.session_id, consultation_id, previous=self.thread)
        self._track(THREAD_SLOT, self.thread.view)
        return self.thread

    def close_consultation(self) -> None:
        if self.thread is None:
            return
        self.thread.close()
        self.thread = None
        self.views.pop(THREAD_SLOT, None)

    # -- actions --

    async def log_mood(self, mood: str) -> WriteResult:
        return await self.moods.log_mood(self.session_id, mood)

    async def save_journal_entry(self, content: str) -> WriteResult:
        return await self.moods.save_journal_entry(self.session_id, content)

    async def add_gratitude(self, content: str) -> WriteResult:
        return await self.gratitude.add_entry(self.session_id, content)

    async def add_goal(self, title: str) -> WriteResult:
        return await self.goals.add_goal(self.session_id, title)

    async def toggle_goal(self, goal_id: str) -> WriteResult:
        """Toggle a goal as currently rendered in the goals view."""
        live = self.views.get("goals")
        goal = next((g for g in live.items if g.id == goal_id), None) if live else None
        if goal is None:
            return WriteResult.failed("update", "", WriteFailure(f"Goal {goal_id!r} is not in view"), goal_id)
        return await self.goals.toggle_goal(self.session_id, goal)

    async def delete_goal(self, goal_id: str) -> WriteResult:
        return await self.goals.delete_goal(self.session_id, goal_id)

    async def send_chat(self, content: str) -> ChatExchange | None:
        return await self.chat.send_message(self.session_id, content)

    async def book_consultation(self) -> WriteResult:
        return await self.consultations.book(self.session_id)

    async def send_consultation_message(self, content: str) -> WriteResult | None:
        if self.thread is None:
            return None
        sent = await self.thread.send(content)
        return sent[0] if sent else None

    # -- lifecycle --

    async def close(self) -> None:
        """Tear down every live query and wait for writes still in flight."""
        self._teardown()
        self.manager.close_all()
        await self.writes.drain()
        await self.guard.wait()
        self._listeners.clear()
