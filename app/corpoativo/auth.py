from __future__ import annotations

from flask import Blueprint, g, jsonify

from app.corpoativo import accounts
from app.corpoativo.audit import record_event
from app.corpoativo.db import db_session
from app.corpoativo.rbac import Capability, current_user, require_capability, require_user
from app.corpoativo.sessions import clear_session_cookie, create_session, destroy_session
from app.corpoativo.utils import read_json_body

bp = Blueprint("auth", __name__)


@bp.post("/register")
@require_capability(Capability.ANONYMOUS)
def register():
    s = db_session()
    user = accounts.register(s, read_json_body())
    resp = jsonify({"user": accounts.serialize_user(user)})
    # New accounts are logged in straight away.
    create_session(s, resp, user.id)
    s.commit()
    resp.status_code = 201
    return resp


@bp.post("/login")
@require_capability(Capability.ANONYMOUS)
def login():
    s = db_session()
    user = accounts.authenticate(s, read_json_body())
    resp = jsonify({"user": accounts.serialize_user(user)})
    create_session(s, resp, user.id)
    s.commit()
    return resp


@bp.post("/logout")
@require_capability(Capability.ANONYMOUS)
def logout():
    s = db_session()
    token = getattr(g, "session_token", None)
    user = current_user()
    if token:
        destroy_session(s, token)
        record_event(s, actor=user, action="auth.logout", entity_type="User", entity_id=str(user.id) if user else None)
        s.commit()
    resp = jsonify({"success": True})
    clear_session_cookie(resp)
    return resp


@bp.get("/me")
@require_capability(Capability.MEMBER)
def me():
    return jsonify({"user": accounts.serialize_user(require_user())})


@bp.put("/account")
@require_capability(Capability.MEMBER)
def update_account():
    s = db_session()
    user = accounts.update_account(s, require_user(), read_json_body())
    s.commit()
    return jsonify({"user": accounts.serialize_user(user)})
