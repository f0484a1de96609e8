import pytest
from flask import g, jsonify

from app.corpoativo import create_app
from app.corpoativo.rbac import Capability
from conftest import COOKIE, register, set_role

# Every admin endpoint with a body that would be valid for a privileged caller.
ADMIN_CALLS = [
    ("get", "/api/admin/dashboard", None),
    ("get", "/api/admin/users", None),
    ("get", "/api/admin/audit", None),
    ("get", "/api/admin/plans", None),
    ("post", "/api/admin/plans", {"name": "X", "price": "R$ 1", "description": "d"}),
    ("put", "/api/admin/plans/1", {"name": "Hacked"}),
    ("delete", "/api/admin/plans/1", None),
    ("get", "/api/admin/coaches", None),
    ("post", "/api/admin/coaches", {"name": "X", "role": "Y"}),
    ("put", "/api/admin/coaches/1", {"name": "Hacked"}),
    ("delete", "/api/admin/coaches/1", None),
    ("get", "/api/admin/schedules", None),
    ("post", "/api/admin/schedules", {"day": "X", "hours": "Y", "details": "Z"}),
    ("put", "/api/admin/schedules/1", {"day": "Hacked"}),
    ("delete", "/api/admin/schedules/1", None),
    ("get", "/api/admin/leads", None),
    ("delete", "/api/admin/leads/1", None),
    ("get", "/api/admin/students", None),
    ("post", "/api/admin/students", {"name": "S", "email": "s@x.com", "password": "pw"}),
    ("put", "/api/admin/students/1", {"notes": "x"}),
    ("delete", "/api/admin/students/1", None),
    ("put", "/api/admin/users/1/role", {"role": "member"}),
]


def _call(c, method, path, body):
    fn = getattr(c, method)
    return fn(path, json=body) if body is not None else fn(path)


@pytest.mark.parametrize("method,path,body", ADMIN_CALLS)
def test_anonymous_admin_call_is_401(client, method, path, body):
    r = _call(client, method, path, body)
    assert r.status_code == 401
    assert "error" in r.json


@pytest.mark.parametrize("method,path,body", ADMIN_CALLS)
def test_member_admin_call_is_403(app, method, path, body):
    c, _ = register(app)
    r = _call(c, method, path, body)
    assert r.status_code == 403
    assert "error" in r.json


def test_member_admin_calls_do_not_mutate(app, owner_client):
    app.test_client().post("/api/leads", json={"name": "Lead", "email": "lead@x.com"})
    before = owner_client.get("/api/admin/dashboard").json
    c, _ = register(app)
    for method, path, body in ADMIN_CALLS:
        _call(c, method, path, body)
    after = owner_client.get("/api/admin/dashboard").json
    for key in ("plans", "coaches", "schedules", "leads"):
        assert after[key] == before[key]
    # The member registered in between; every pre-existing account is untouched.
    before_users = {u["id"]: u for u in before["users"]}
    for u in after["users"]:
        if u["id"] in before_users:
            assert u == before_users[u["id"]]


def test_staff_can_manage_catalog_but_not_roles(app, owner_client):
    c, ana = register(app)
    assert set_role(owner_client, ana["id"], "staff").status_code == 200

    assert c.get("/api/admin/dashboard").status_code == 200
    assert c.post("/api/admin/coaches", json={"name": "Rita", "role": "Yoga"}).status_code == 201
    assert c.delete("/api/admin/leads/999").status_code == 200

    _, bia = register(app, name="Bia", email="bia@x.com")
    assert set_role(c, bia["id"], "staff").status_code == 403
    assert c.get("/api/admin/audit").status_code == 403
    assert c.delete(f"/api/admin/students/{bia['id']}").status_code == 403


def test_end_to_end_role_promotion(app, owner_client):
    ana_client, ana = register(app, name="Ana", email="ana@x.com", password="pw123")
    assert ana["role"] == "member"
    assert ana_client.get("/api/admin/dashboard").status_code == 403

    r = set_role(owner_client, ana["id"], "staff")
    assert r.status_code == 200
    assert r.json["user"]["role"] == "staff"

    # Role is read from the store on every request; the existing session sees it.
    assert ana_client.get("/api/admin/dashboard").status_code == 200

    r = set_role(owner_client, ana["id"], "owner")
    assert r.status_code == 400
    assert ana_client.get("/api/auth/me").json["user"]["role"] == "staff"


def test_role_endpoint_rejects_unknown_role_and_missing_user(owner_client):
    assert set_role(owner_client, 999, "staff").status_code == 404
    r = owner_client.put("/api/admin/users/1/role", json={})
    assert r.status_code == 400
    assert r.json["error"] == "Missing required field: role"
    assert owner_client.put("/api/admin/users/1/role", json={"role": "admin"}).status_code == 400


def test_owner_cannot_be_demoted(owner_client):
    me = owner_client.get("/api/auth/me").json["user"]
    r = set_role(owner_client, me["id"], "member")
    assert r.status_code == 403
    assert owner_client.get("/api/auth/me").json["user"]["role"] == "owner"


def test_staff_can_be_demoted_back_to_member(app, owner_client):
    c, ana = register(app)
    set_role(owner_client, ana["id"], "staff")
    assert c.get("/api/admin/dashboard").status_code == 200
    set_role(owner_client, ana["id"], "member")
    assert c.get("/api/admin/dashboard").status_code == 403


def test_every_api_route_declares_a_capability(app):
    for rule in app.url_map.iter_rules():
        if not rule.rule.startswith("/api/"):
            continue
        view = app.view_functions[rule.endpoint]
        assert isinstance(getattr(view, "required_capability", None), Capability), rule.rule
        if rule.rule.startswith("/api/admin/"):
            assert view.required_capability >= Capability.STAFF, rule.rule


def test_session_ttl_expires_old_sessions(tmp_path, monkeypatch):
    from datetime import datetime, timedelta

    from app.corpoativo.db import session_scope
    from app.corpoativo.models import UserSession

    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'ttl.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("PASSWORD_HASH_METHOD", "pbkdf2:sha256:1000")
    monkeypatch.setenv("SESSION_TTL_HOURS", "8")
    app = create_app()

    c, _ = register(app)
    assert "Max-Age=28800" in c.post(
        "/api/auth/login", json={"email": "ana@x.com", "password": "pw123"}
    ).headers["Set-Cookie"]
    assert c.get("/api/auth/me").status_code == 200
    token = c.get_cookie(COOKIE).value

    with session_scope(app) as s:
        for row in s.query(UserSession).all():
            row.created_at = datetime.utcnow() - timedelta(hours=9)

    assert c.get("/api/auth/me").status_code == 401
    with session_scope(app) as s:
        assert s.query(UserSession).filter(UserSession.token == token).count() == 0


def test_only_exact_health_paths_skip_session_loading(app):
    @app.get("/health-report")
    def _health_report():
        return jsonify({"user": g.current_user.email if g.current_user else None})

    c, user = register(app)
    assert c.get("/health-report").json == {"user": user["email"]}
    assert c.get("/health").status_code == 200
