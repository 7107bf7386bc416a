"""
WebSocket endpoint for live views.

Accepts connections at /ws/live. Each connection gets its own MealthClient
signed in with the session cookie (or a fresh anonymous session), and every
view change is pushed to the browser as a SnapshotMessage.

Protocol:
  Client → Server:  {"type": "view", "view": "goals"}
                    {"type": "select_consultation", "consultation_id": "..."}
                    {"type": "close_consultation"}
                    {"type": "action", "action": "add_goal", "args": {"title": "..."}, "request_id": "..."}
  Server → Client:  SessionMessage | SnapshotMessage | ActionResult
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, ValidationError

from livesync.types import SyncError, WriteResult
from livesync.view import CollectionView
from mealth import config
from mealth.client import MealthClient, View
from mealth.models.live import ActionResult, LiveRequest, SessionMessage, SnapshotMessage
from mealth.services.chat import ChatExchange

logger = logging.getLogger(__name__)

router = APIRouter(tags=["websocket"])

Action = Callable[[MealthClient, dict[str, Any]], Awaitable[Any]]


def _arg(args: dict[str, Any], name: str) -> str:
    return str(args.get(name, ""))


_ACTIONS: dict[str, Action] = {
    "log_mood": lambda c, a: c.log_mood(_arg(a, "mood")),
    "save_journal_entry": lambda c, a: c.save_journal_entry(_arg(a, "content")),
    "add_gratitude": lambda c, a: c.add_gratitude(_arg(a, "content")),
    "add_goal": lambda c, a: c.add_goal(_arg(a, "title")),
    "toggle_goal": lambda c, a: c.toggle_goal(_arg(a, "goal_id")),
    "delete_goal": lambda c, a: c.delete_goal(_arg(a, "goal_id")),
    "send_chat": lambda c, a: c.send_chat(_arg(a, "content")),
    "book_consultation": lambda c, a: c.book_consultation(),
    "send_consultation_message": lambda c, a: c.send_consultation_message(_arg(a, "content")),
}


def _item_payload(item: Any) -> dict[str, Any]:
    if isinstance(item, BaseModel):
        return item.model_dump(mode="json", by_alias=True)
    return dict(item)


def snapshot_message(slot: str, view: CollectionView[Any]) -> SnapshotMessage:
    state = view.state
    return SnapshotMessage(
        slot=slot,
        status=state.status,
        version=state.version,
        items=[_item_payload(item) for item in state.items],
        error=state.error,
    )


def _result(action: str, request_id: str | None, outcome: Any) -> ActionResult:
    """Fold whatever an action returned into an ActionResult."""
    if isinstance(outcome, ChatExchange):
        outcome = outcome.user
    if isinstance(outcome, WriteResult):
        error = str(outcome.error) if outcome.error is not None else None
        return ActionResult(action=action, ok=outcome.ok, request_id=request_id, error=error)
    if outcome is None:
        return ActionResult(action=action, ok=False, request_id=request_id, error="Nothing was sent")
    return ActionResult(action=action, ok=True, request_id=request_id)


async def _handle(client: MealthClient, req: LiveRequest) -> ActionResult | None:
    if req.type == "view":
        try:
            client.switch_view(View(req.view))
        except ValueError:
            return ActionResult(action="view", ok=False, request_id=req.request_id, error=f"Unknown view {req.view!r}")
        return None

    if req.type == "select_consultation":
        if not req.consultation_id:
            return ActionResult(
                action="select_consultation", ok=False, request_id=req.request_id, error="consultation_id is required"
            )
        try:
            client.select_consultation(req.consultation_id)
        except SyncError as e:
            return ActionResult(action="select_consultation", ok=False, request_id=req.request_id, error=str(e))
        return None

    if req.type == "close_consultation":
        client.close_consultation()
        return None

    action = _ACTIONS.get(req.action or "")
    if action is None:
        return ActionResult(
            action=req.action or "", ok=False, request_id=req.request_id, error=f"Unknown action {req.action!r}"
        )
    outcome = await action(client, req.args)
    return _result(req.action or "", req.request_id, outcome)


async def _pump(websocket: WebSocket, outbox: asyncio.Queue[BaseModel]) -> None:
    """Send queued messages in order until cancelled."""
    while True:
        message = await outbox.get()
        await websocket.send_text(message.model_dump_json())


@router.websocket("/ws/live")
async def live_websocket(websocket: WebSocket) -> None:
    await websocket.accept()

    client = MealthClient(websocket.app.state.store, guard=websocket.app.state.seed_guard)
    outbox: asyncio.Queue[BaseModel] = asyncio.Queue()

    session = client.sign_in(websocket.cookies.get(config.settings.SESSION_COOKIE))
    outbox.put_nowait(SessionMessage(session_id=session.id, anonymous=session.anonymous, view=client.current_view.value))
    for slot, view in client.views.items():
        outbox.put_nowait(snapshot_message(slot, view))
    client.add_listener(lambda slot, view: outbox.put_nowait(snapshot_message(slot, view)))
    logger.info("ws: live connection session=%s", session.id)

    sender = asyncio.create_task(_pump(websocket, outbox))
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                req = LiveRequest.model_validate_json(raw)
            except ValidationError as e:
                logger.warning("ws: malformed request from client: %r", raw[:200])
                outbox.put_nowait(ActionResult(action="invalid", ok=False, error=str(e.errors()[0]["msg"])))
                continue

            result = await _handle(client, req)
            if result is not None:
                outbox.put_nowait(result)
    except WebSocketDisconnect:
        logger.info("ws: live connection closed session=%s", session.id)
    finally:
        sender.cancel()
        try:
            await sender
        except asyncio.CancelledError:
            pass
        except (WebSocketDisconnect, RuntimeError) as e:
            logger.debug("ws: sender stopped with %r", e)
        await client.close()
