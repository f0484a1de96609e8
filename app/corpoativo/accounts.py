from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from flask import current_app
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

from app.corpoativo.audit import record_event
from app.corpoativo.constants import ROLE_MEMBER
from app.corpoativo.errors import Conflict, Unauthorized
from app.corpoativo.models import User
from app.corpoativo.utils import clean_str, is_blank, normalize_email, require_fields, validate_email

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

# Same message for unknown email and wrong password.
INVALID_CREDENTIALS = "Invalid email or password."
EMAIL_TAKEN = "This email is already registered."


def hash_password(password: str) -> str:
    method = current_app.config.get("PASSWORD_HASH_METHOD") or "scrypt"
    return generate_password_hash(str(password), method=method)


def verify_password(password: str, password_hash: str) -> bool:
    # check_password_hash compares derived digests in constant time.
    return check_password_hash(password_hash, str(password))


def serialize_user(user: User) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "createdAt": user.created_at.isoformat() if user.created_at else None,
    }
    profile = user.student_profile
    data["student"] = (
        {
            "gymStatus": profile.gym_status,
            "membershipPlan": profile.membership_plan,
            "notes": profile.notes,
        }
        if profile
        else None
    )
    return data


def find_by_email(s: "Session", email: str) -> User | None:
    return s.execute(select(User).where(func.lower(User.email) == normalize_email(email))).scalar_one_or_none()


def _ensure_email_free(s: "Session", email: str, *, exclude_user_id: int | None = None) -> None:
    existing = find_by_email(s, email)
    if existing is not None and existing.id != exclude_user_id:
        raise Conflict(EMAIL_TAKEN)


def create_user(s: "Session", *, name: str, email: str, password: str, role: str = ROLE_MEMBER) -> User:
    """Insert a user with a salted password hash. Raises Conflict on a taken email."""
    email = validate_email(normalize_email(email))
    _ensure_email_free(s, email)
    user = User(name=clean_str(name), email=email, password_hash=hash_password(password), role=role)
    s.add(user)
    try:
        s.flush()
    except IntegrityError:
        # Lost a race against a concurrent registration with the same email.
        s.rollback()
        raise Conflict(EMAIL_TAKEN)
    return user


def register(s: "Session", payload: dict[str, Any]) -> User:
    require_fields(payload, ("name", "email", "password"))
    user = create_user(s, name=payload["name"], email=payload["email"], password=payload["password"])
    record_event(s, actor=user, action="auth.register", entity_type="User", entity_id=str(user.id))
    return user


def authenticate(s: "Session", payload: dict[str, Any]) -> User:
    require_fields(payload, ("email", "password"))
    email = normalize_email(payload["email"])
    user = find_by_email(s, email)
    if user is None or not verify_password(payload["password"], user.password_hash):
        logger.info("Login failed for email=%s", email)
        record_event(
            s,
            actor=None,
            action="auth.login_failed",
            entity_type="User",
            entity_id=email,
            metadata={"email": email},
        )
        s.commit()
        raise Unauthorized(INVALID_CREDENTIALS)
    record_event(s, actor=user, action="auth.login", entity_type="User", entity_id=str(user.id))
    return user


def update_account(s: "Session", user: User, payload: dict[str, Any]) -> User:
    """
    Self-service profile update. Only name, email and password can change here;
    any ``role`` key in the payload is ignored.
    """
    require_fields(payload, ("name", "email"))
    name = clean_str(payload["name"])
    email = validate_email(normalize_email(payload["email"]))
    new_password = payload.get("newPassword")
    changes: dict[str, Any] = {}

    if not is_blank(new_password):
        current_password = payload.get("currentPassword")
        if is_blank(current_password) or not verify_password(current_password, user.password_hash):
            raise Unauthorized("Current password is incorrect.")

    if email != user.email:
        _ensure_email_free(s, email, exclude_user_id=user.id)
        changes["email"] = {"old": user.email, "new": email}
        user.email = email
    if name != user.name:
        changes["name"] = {"old": user.name, "new": name}
        user.name = name
    if not is_blank(new_password):
        user.password_hash = hash_password(new_password)
        changes["password"] = "changed"

    try:
        s.flush()
    except IntegrityError:
        s.rollback()
        raise Conflict(EMAIL_TAKEN)

    record_event(
        s,
        actor=user,
        action="user.update_account",
        entity_type="User",
        entity_id=str(user.id),
        metadata={"changes": changes},
    )
    return user

