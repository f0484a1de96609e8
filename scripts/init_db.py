"""
Create the schema and seed the owner account plus the demo catalog.

Idempotent: existing rows are left alone and an existing owner's password is
never overwritten.

Usage:
  python scripts/init_db.py
"""
import sys
from pathlib import Path

# Ensure repo root is on sys.path when running as a script.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from dotenv import load_dotenv

from app.corpoativo.config import load_config
from app.corpoativo.db import build_engine, make_sessionmaker
from app.corpoativo.models import Base
from app.corpoativo.seed import seed_from_config


def init_db(*, database_url: str | None = None) -> None:
    config = load_config()
    db_url = (database_url or config["DATABASE_URL"]).strip()
    env = (config.get("ENV") or "").strip().lower()
    if env in ("prod", "production") and not (database_url or config["DATABASE_URL_EXPLICIT"]):
        raise RuntimeError("DATABASE_URL is required in production.")

    engine = build_engine(db_url)
    try:
        Base.metadata.create_all(bind=engine)
        s = make_sessionmaker(engine)()
        try:
            seed_from_config(s, config)
            s.commit()
        except Exception:
            s.rollback()
            raise
        finally:
            s.close()
    finally:
        engine.dispose()


def main() -> None:
    load_dotenv()
    init_db()
    print("Schema ready and seed complete.", flush=True)


if __name__ == "__main__":
    main()
