"""Messages exchanged over the /ws/live socket."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class LiveRequest(BaseModel):
    """What the browser sends over the live socket."""

    model_config = {"extra": "forbid"}

    type: Literal["view", "select_consultation", "close_consultation", "action"]
    view: str | None = None
    consultation_id: str | None = None
    action: str | None = None
    args: dict[str, Any] = Field(default_factory=dict)
    request_id: str | None = None


class SnapshotMessage(BaseModel):
    """A view's state, pushed after every snapshot or failure."""

    type: Literal["snapshot"] = "snapshot"
    slot: str
    status: str
    version: int
    items: list[dict[str, Any]]
    error: str | None = None


class ActionResult(BaseModel):
    """Outcome of an action; the data itself arrives with the next snapshot."""

    type: Literal["action.result"] = "action.result"
    action: str
    ok: bool
    request_id: str | None = None
    error: str | None = None


class SessionMessage(BaseModel):
    """First message on the socket: who the connection is signed in as."""

    type: Literal["session"] = "session"
    session_id: str
    anonymous: bool
    view: str
