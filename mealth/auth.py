"""
Session provider for Mealth.

Issues and verifies JWT session tokens, creates anonymous sessions, and
notifies listeners when the session changes (sign-in / sign-out). The
client tears subscriptions down and re-establishes them on those changes.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import jwt
from fastapi import HTTPException, status

from mealth import config
from mealth.models.session import Session

logger = logging.getLogger(__name__)

SessionListener = Callable[[Session | None, Session | None], None]


def new_session_id() -> str:
    """Session ids double as path segments, so keep them url-safe hex."""
    return uuid.uuid4().hex


def create_jwt(session: Session) -> str:
    """
    Create a JWT for a session.

    Args:
        session: Session to encode in the token

    Returns:
        Signed JWT string
    """
    expires_at = datetime.now(UTC) + timedelta(hours=config.settings.JWT_EXPIRY_HOURS)
    payload = {
        "sub": session.id,
        "anon": session.anonymous,
        "exp": expires_at,
        "iat": datetime.now(UTC),
    }
    return jwt.encode(payload, config.settings.JWT_SECRET, algorithm=config.settings.JWT_ALGORITHM)


def decode_jwt(token: str) -> dict:
    """
    Decode and verify a JWT.

    Raises:
        HTTPException: If token is invalid or expired
    """
    try:
        return jwt.decode(token, config.settings.JWT_SECRET, algorithms=[config.settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session expired. Please sign in again.",
        ) from e
    except jwt.InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid session token. Please sign in again.",
        ) from e


def session_from_token(token: str) -> Session:
    """
    Authenticate a session token.

    Raises:
        HTTPException: If the token is invalid, expired or has no subject
    """
    payload = decode_jwt(token)
    session_id = payload.get("sub")
    if not session_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid session token. Please sign in again.",
        )
    return Session(id=session_id, anonymous=bool(payload.get("anon", True)))


class SessionProvider:
    """
    Holds the current session and announces transitions.

    Listeners are called as listener(old, new) after every change.
    """

    def __init__(self) -> None:
        self._current: Session | None = None
        self._listeners: list[SessionListener] = []

    @property
    def current(self) -> Session | None:
        return self._current

    @property
    def session_id(self) -> str | None:
        return self._current.id if self._current else None

    def add_listener(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    def sign_in(self, token: str | None = None) -> Session:
        """
        Sign in with a session token, or anonymously without one.
        An invalid token falls back to a fresh anonymous session.
        """
        session: Session | None = None
        if token:
            try:
                session = session_from_token(token)
            except HTTPException as e:
                logger.warning("auth: token rejected (%s), falling back to anonymous session", e.detail)
        if session is None:
            session = Session(id=new_session_id(), anonymous=True)
        self._set(session)
        logger.info("auth: signed in session=%s anonymous=%s", session.id, session.anonymous)
        return session

    def sign_out(self) -> None:
        if self._current is None:
            return
        logger.info("auth: signed out session=%s", self._current.id)
        self._set(None)

    def _set(self, session: Session | None) -> None:
        old = self._current
        if old == session:
            return
        self._current = session
        for listener in list(self._listeners):
            listener(old, session)
