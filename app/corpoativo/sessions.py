"""
Server-side login sessions.

A session is a random opaque token stored in the ``sessions`` table and handed
to the browser as an HttpOnly cookie. Resolving a request means looking the
token up together with its user; revoking means deleting the row.

Sessions do not expire unless ``SESSION_TTL_HOURS`` is set to a positive
number. No Secure flag is set on the cookie: TLS is terminated upstream.
"""
from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta

from flask import Request, Response, current_app
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.corpoativo.models import User, UserSession

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32


def _cookie_name() -> str:
    return current_app.config.get("AUTH_COOKIE_NAME") or "corpo_ativo_session"


def _ttl() -> timedelta | None:
    hours = int(current_app.config.get("SESSION_TTL_HOURS") or 0)
    if hours <= 0:
        return None
    return timedelta(hours=hours)


def new_token() -> str:
    return secrets.token_hex(TOKEN_BYTES)


def create_session(s: Session, response: Response, user_id: int) -> str:
    """Persist a fresh session for ``user_id`` and attach its cookie to ``response``."""
    token = new_token()
    s.add(UserSession(token=token, user_id=user_id, created_at=datetime.utcnow()))
    s.flush()

    ttl = _ttl()
    response.set_cookie(
        _cookie_name(),
        token,
        max_age=int(ttl.total_seconds()) if ttl else None,
        path="/",
        httponly=True,
        samesite="Lax",
    )
    return token


def request_token(request: Request) -> str | None:
    token = (request.cookies.get(_cookie_name()) or "").strip()
    return token or None


def resolve_session(s: Session, request: Request) -> tuple[str, User] | None:
    """
    Return ``(token, user)`` for the request's session cookie, or None when
    there is no cookie, the token is unknown, or the session has expired.
    """
    token = request_token(request)
    if not token:
        return None

    row = s.execute(
        select(UserSession, User).join(User, User.id == UserSession.user_id).where(UserSession.token == token)
    ).first()
    if row is None:
        return None
    sess, user = row

    ttl = _ttl()
    if ttl is not None and sess.created_at < datetime.utcnow() - ttl:
        logger.info("Expired session for user_id=%s removed", user.id)
        destroy_session(s, token)
        s.commit()
        return None
    return token, user


def destroy_session(s: Session, token: str) -> None:
    """Delete exactly the session matching ``token``. Unknown tokens are a no-op."""
    s.execute(delete(UserSession).where(UserSession.token == token))


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(_cookie_name(), path="/", httponly=True, samesite="Lax")
