from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select

from app.corpoativo.accounts import create_user, serialize_user
from app.corpoativo.audit import record_event
from app.corpoativo.constants import DEFAULT_GYM_STATUS, GYM_STATUSES, ROLE_OWNER
from app.corpoativo.errors import Forbidden, NotFound, ValidationError
from app.corpoativo.models import User
from app.corpoativo.modules.students.models import StudentProfile
from app.corpoativo.utils import clean_str, is_blank, require_fields

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def parse_gym_status(value: Any) -> str:
    status = clean_str(value).lower()
    if status not in GYM_STATUSES:
        raise ValidationError(f"Invalid gymStatus. Must be one of: {', '.join(GYM_STATUSES)}")
    return status


def _optional_text(value: Any) -> str | None:
    return clean_str(value) or None


def list_students(s: "Session") -> list[dict[str, Any]]:
    """Every non-owner user with its (optional) enrollment profile."""
    users = s.execute(select(User).where(User.role != ROLE_OWNER).order_by(User.id.asc())).scalars().all()
    return [serialize_user(u) for u in users]


def status_counts(s: "Session") -> dict[str, int]:
    counts = {status: 0 for status in GYM_STATUSES}
    rows = s.execute(
        select(StudentProfile.gym_status, func.count()).group_by(StudentProfile.gym_status)
    ).all()
    for status, total in rows:
        counts[status] = total
    return counts


def _student_user(s: "Session", user_id: int) -> User:
    user = s.get(User, user_id)
    if user is None:
        raise NotFound("Student not found.")
    if user.role == ROLE_OWNER:
        raise Forbidden("Owner accounts cannot be managed as students.")
    return user


def _profile_changes(payload: dict[str, Any], *, partial: bool) -> dict[str, Any]:
    """Validate the profile fields present in ``payload`` before anything is written."""
    changes: dict[str, Any] = {}
    if "gymStatus" in payload and not is_blank(payload.get("gymStatus")):
        changes["gym_status"] = parse_gym_status(payload["gymStatus"])
    elif partial and "gymStatus" in payload:
        raise ValidationError("Missing required field: gymStatus")
    if "membershipPlan" in payload:
        changes["membership_plan"] = _optional_text(payload["membershipPlan"])
    if "notes" in payload:
        changes["notes"] = _optional_text(payload["notes"])
    return changes


def _apply_profile(user: User, changes: dict[str, Any]) -> None:
    profile = user.student_profile
    now = datetime.utcnow()
    if profile is None:
        profile = StudentProfile(user_id=user.id, gym_status=DEFAULT_GYM_STATUS, created_at=now)
        user.student_profile = profile
    for field, value in changes.items():
        setattr(profile, field, value)
    profile.updated_at = now


def enroll(s: "Session", payload: dict[str, Any], actor: User) -> User:
    """
    Create or update a student's enrollment.

    With ``userId`` the profile of that existing non-owner user is upserted.
    Without it a new member account is created from name/email/password.
    """
    changes = _profile_changes(payload, partial=False)
    if not is_blank(payload.get("userId")):
        try:
            user_id = int(payload["userId"])
        except (TypeError, ValueError):
            raise ValidationError("userId must be an integer.")
        user = _student_user(s, user_id)
        created_account = False
    else:
        require_fields(payload, ("name", "email", "password"))
        user = create_user(s, name=payload["name"], email=payload["email"], password=payload["password"])
        created_account = True

    _apply_profile(user, changes)
    s.flush()
    record_event(
        s,
        actor=actor,
        action="student.enroll",
        entity_type="User",
        entity_id=str(user.id),
        metadata={"created_account": created_account, "changes": changes},
    )
    return user


def update_student(s: "Session", user_id: int, payload: dict[str, Any], actor: User) -> User:
    changes = _profile_changes(payload, partial=True)
    user = _student_user(s, user_id)
    _apply_profile(user, changes)
    s.flush()
    record_event(
        s,
        actor=actor,
        action="student.update",
        entity_type="User",
        entity_id=str(user.id),
        metadata={"changes": changes},
    )
    return user


def delete_student(s: "Session", user_id: int, actor: User) -> bool:
    """Remove the student's account; sessions and profile go with it. Absent ids are a no-op."""
    user = s.get(User, user_id)
    if user is None:
        return False
    if user.role == ROLE_OWNER:
        raise Forbidden("Owner accounts cannot be deleted.")
    email = user.email
    s.delete(user)
    s.flush()
    record_event(
        s,
        actor=actor,
        action="student.delete",
        entity_type="User",
        entity_id=str(user_id),
        metadata={"email": email},
    )
    return True
