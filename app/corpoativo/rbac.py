"""
Capability gate.

Every route declares the minimum capability it needs with
``@require_capability(...)``. The current user is resolved once per request
(``load_current_user``) and the decorator decides before the handler runs:
no user -> Unauthorized (401), wrong role -> Forbidden (403).
"""
from __future__ import annotations

import enum
import logging
import uuid
from collections.abc import Callable, Iterable
from functools import wraps
from typing import Any

from flask import g, request

from app.corpoativo.constants import ROLE_MEMBER, ROLE_OWNER, ROLE_STAFF
from app.corpoativo.db import db_session
from app.corpoativo.errors import Forbidden, Unauthorized
from app.corpoativo.models import User
from app.corpoativo.sessions import resolve_session

logger = logging.getLogger(__name__)


class Capability(enum.IntEnum):
    ANONYMOUS = 0
    MEMBER = 1
    STAFF = 2
    OWNER = 3


_ROLES_FOR: dict[Capability, frozenset[str]] = {
    Capability.MEMBER: frozenset({ROLE_MEMBER, ROLE_STAFF, ROLE_OWNER}),
    Capability.STAFF: frozenset({ROLE_STAFF, ROLE_OWNER}),
    Capability.OWNER: frozenset({ROLE_OWNER}),
}


def load_current_user() -> None:
    """
    Resolves g.current_user (and g.session_token) from the session cookie.
    Also assigns a simple per-request request_id (for audit/log correlation).
    """
    if not getattr(g, "request_id", None):
        g.request_id = uuid.uuid4().hex
    g.current_user = None
    g.session_token = None
    if request.path in ("/health", "/healthz"):
        return

    resolved = resolve_session(db_session(), request)
    if resolved is None:
        return
    g.session_token, g.current_user = resolved


def current_user() -> User | None:
    return getattr(g, "current_user", None)


def require_user() -> User:
    user = current_user()
    if user is None:
        raise Unauthorized()
    return user


def require_role(roles: Iterable[str]) -> User:
    user = require_user()
    allowed = frozenset(roles)
    if user.role not in allowed:
        logger.warning(
            "Forbidden: user_id=%s role=%s required=%s path=%s request_id=%s",
            user.id,
            user.role,
            ",".join(sorted(allowed)),
            request.path,
            getattr(g, "request_id", None),
        )
        raise Forbidden()
    return user


def check_capability(capability: Capability) -> User | None:
    if capability is Capability.ANONYMOUS:
        return current_user()
    return require_role(_ROLES_FOR[capability])


def require_capability(capability: Capability) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(fn)
        def wrapped(*args: Any, **kwargs: Any):
            check_capability(capability)
            return fn(*args, **kwargs)

        wrapped.required_capability = capability  # type: ignore[attr-defined]
        return wrapped

    return decorator
