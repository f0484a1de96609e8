import pytest

from app.corpoativo import create_app

OWNER_EMAIL = "admin@corpoativo.com"
OWNER_PASSWORD = "corpo123"
COOKIE = "corpo_ativo_session"


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("AUTO_INIT_DB", "1")
    # Cheap hashing keeps the suite fast; production uses scrypt.
    monkeypatch.setenv("PASSWORD_HASH_METHOD", "pbkdf2:sha256:1000")
    for k in ("SESSION_TTL_HOURS", "SESSION_COOKIE_NAME", "OWNER_NAME", "OWNER_EMAIL", "OWNER_PASSWORD"):
        monkeypatch.delenv(k, raising=False)
    return create_app()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def owner_client(app):
    c = app.test_client()
    r = c.post("/api/auth/login", json={"email": OWNER_EMAIL, "password": OWNER_PASSWORD})
    assert r.status_code == 200
    return c


def register(app, name="Ana", email="ana@x.com", password="pw123"):
    """Register a member on a fresh client; returns (client, user json)."""
    c = app.test_client()
    r = c.post("/api/auth/register", json={"name": name, "email": email, "password": password})
    assert r.status_code == 201, r.json
    return c, r.json["user"]


def set_role(owner_client, user_id, role):
    return owner_client.put(f"/api/admin/users/{user_id}/role", json={"role": role})
