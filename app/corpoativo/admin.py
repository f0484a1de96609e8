from __future__ import annotations

from datetime import datetime, timedelta

from flask import Blueprint, jsonify
from sqlalchemy import func, select

from app.corpoativo.accounts import serialize_user
from app.corpoativo.audit import record_event, serialize_event
from app.corpoativo.constants import (
    ASSIGNABLE_ROLES,
    AUDIT_DEFAULT_LIMIT,
    AUDIT_MAX_LIMIT,
    ROLE_MEMBER,
    ROLE_OWNER,
    ROLE_STAFF,
)
from app.corpoativo.db import db_session
from app.corpoativo.errors import Forbidden, NotFound, ValidationError
from app.corpoativo.models import AuditEvent, User
from app.corpoativo.modules.catalog.repository import CoachRepository, PlanRepository, ScheduleRepository
from app.corpoativo.modules.leads.models import Lead
from app.corpoativo.modules.leads.repository import LeadRepository
from app.corpoativo.modules.students.service import list_students, status_counts
from app.corpoativo.rbac import Capability, require_capability, require_user
from app.corpoativo.utils import clean_str, parse_int_arg, read_json_body

bp = Blueprint("admin", __name__)


def _list_users(s) -> list[dict]:
    users = s.execute(select(User).order_by(User.id.asc())).scalars().all()
    return [serialize_user(u) for u in users]


def _role_counts(s) -> dict[str, int]:
    counts = {ROLE_OWNER: 0, ROLE_STAFF: 0, ROLE_MEMBER: 0}
    for role, total in s.execute(select(User.role, func.count()).group_by(User.role)).all():
        counts[role] = total
    return counts


@bp.get("/dashboard")
@require_capability(Capability.STAFF)
def dashboard():
    s = db_session()
    plans = PlanRepository(s)
    coaches = CoachRepository(s)
    schedules = ScheduleRepository(s)
    leads = LeadRepository(s)

    week_ago = datetime.utcnow() - timedelta(days=7)
    leads_last_7_days = s.execute(
        select(func.count()).select_from(Lead).where(Lead.created_at >= week_ago)
    ).scalar_one()
    by_status = status_counts(s)

    metrics = {
        "totalPlans": plans.count(),
        "totalCoaches": coaches.count(),
        "totalSchedules": schedules.count(),
        "totalLeads": leads.count(),
        "leadsLast7Days": leads_last_7_days,
        "usersByRole": _role_counts(s),
        "studentsByStatus": by_status,
        "enrolledStudents": sum(by_status.values()),
    }
    return jsonify(
        {
            "user": serialize_user(require_user()),
            "plans": plans.list(),
            "coaches": coaches.list(),
            "schedules": schedules.list(),
            "leads": leads.list(),
            "users": _list_users(s),
            "students": list_students(s),
            "metrics": metrics,
        }
    )


@bp.get("/users")
@require_capability(Capability.STAFF)
def users_list():
    return jsonify({"users": _list_users(db_session())})


@bp.put("/users/<int:user_id>/role")
@require_capability(Capability.OWNER)
def users_set_role(user_id: int):
    """
    The only path that changes a role. Targets are limited to staff/member,
    and owner accounts (including the caller's own) cannot be re-roled here.
    """
    s = db_session()
    actor = require_user()
    new_role = clean_str(read_json_body().get("role")).lower()
    if not new_role:
        raise ValidationError("Missing required field: role")
    if new_role not in ASSIGNABLE_ROLES:
        raise ValidationError(f"Invalid role. Must be one of: {', '.join(ASSIGNABLE_ROLES)}")

    user = s.get(User, user_id)
    if user is None:
        raise NotFound("User not found.")
    if user.role == ROLE_OWNER:
        raise Forbidden("The owner's role cannot be changed.")

    old_role = user.role
    user.role = new_role
    record_event(
        s,
        actor=actor,
        action="user.role_change",
        entity_type="User",
        entity_id=str(user.id),
        metadata={"before": old_role, "after": new_role},
    )
    s.commit()
    return jsonify({"user": serialize_user(user)})


@bp.get("/audit")
@require_capability(Capability.OWNER)
def audit_list():
    s = db_session()
    limit = parse_int_arg("limit", AUDIT_DEFAULT_LIMIT, maximum=AUDIT_MAX_LIMIT)
    events = (
        s.execute(select(AuditEvent).order_by(AuditEvent.id.desc()).limit(limit)).scalars().all()
    )
    return jsonify({"events": [serialize_event(ev) for ev in events]})
