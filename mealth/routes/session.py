"""Session routes: anonymous sign-in and sign-out."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request, Response

from mealth import config
from mealth.auth import create_jwt, new_session_id, session_from_token
from mealth.models.session import Session, SessionResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/session", tags=["session"])


def _set_cookie(response: Response, value: str, max_age: int) -> None:
    response.set_cookie(
        key=config.settings.SESSION_COOKIE,
        value=value,
        httponly=True,
        secure=config.settings.ENVIRONMENT != "development",
        samesite="lax",
        max_age=max_age,
        path="/",
    )


@router.post("", status_code=200)
async def start_session(request: Request, response: Response) -> SessionResponse:
    """
    Resume the session in the cookie, or start a new anonymous one.

    An expired or tampered cookie is replaced rather than rejected; the
    caller always leaves with a usable session.
    """
    session: Session | None = None
    token = request.cookies.get(config.settings.SESSION_COOKIE)
    if token:
        try:
            session = session_from_token(token)
        except HTTPException as e:
            logger.info("session: replacing rejected cookie (%s)", e.detail)

    if session is None:
        session = Session(id=new_session_id(), anonymous=True)
        logger.info("session: started anonymous session=%s", session.id)

    _set_cookie(response, create_jwt(session), config.settings.JWT_EXPIRY_HOURS * 3600)
    return SessionResponse(session_id=session.id, anonymous=session.anonymous)


@router.delete("", status_code=200)
async def end_session(response: Response) -> dict[str, str]:
    """Sign out. Clears the session cookie."""
    _set_cookie(response, "", 0)
    return {"status": "signed_out"}
