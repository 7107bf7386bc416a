"""Session models."""

from __future__ import annotations

from pydantic import BaseModel


class Session(BaseModel):
    """The identity that scopes private collections. May be anonymous."""

    model_config = {"frozen": True}

    id: str
    anonymous: bool = True


class SessionResponse(BaseModel):
    """What POST /api/session returns."""

    session_id: str
    anonymous: bool
