import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str
    database_url_explicit: bool
    log_level: str

    session_cookie_name: str
    session_ttl_hours: int
    password_hash_method: str

    auto_init_db: bool
    owner_name: str
    owner_email: str
    owner_password: str


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _getint(name: str, default: int) -> int:
    raw = _getenv(name, str(default))
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer (got {raw!r}).")


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///data/corpo-ativo.db"),
        database_url_explicit=bool(_getenv("DATABASE_URL")),
        log_level=_getenv("LOG_LEVEL", "INFO").upper(),
        session_cookie_name=_getenv("SESSION_COOKIE_NAME", "corpo_ativo_session"),
        session_ttl_hours=_getint("SESSION_TTL_HOURS", 0),
        password_hash_method=_getenv("PASSWORD_HASH_METHOD", "scrypt"),
        auto_init_db=_getenv("AUTO_INIT_DB", "1") == "1",
        owner_name=_getenv("OWNER_NAME", "Administrador Corpo Ativo"),
        owner_email=_getenv("OWNER_EMAIL", "admin@corpoativo.com").lower(),
        owner_password=os.environ.get("OWNER_PASSWORD") or "corpo123",
    )


def load_config() -> dict:
    s = load_settings()
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        # False when DATABASE_URL fell back to the local SQLite default
        "DATABASE_URL_EXPLICIT": s.database_url_explicit,
        "LOG_LEVEL": s.log_level,
        "AUTH_COOKIE_NAME": s.session_cookie_name,
        # 0 keeps sessions valid until logout
        "SESSION_TTL_HOURS": s.session_ttl_hours,
        "PASSWORD_HASH_METHOD": s.password_hash_method,
        "AUTO_INIT_DB": s.auto_init_db,
        "OWNER_NAME": s.owner_name,
        "OWNER_EMAIL": s.owner_email,
        "OWNER_PASSWORD": s.owner_password,
        # request body limit (1MB)
        "MAX_CONTENT_LENGTH": 1024 * 1024,
    }
