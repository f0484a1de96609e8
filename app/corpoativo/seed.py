from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from werkzeug.security import generate_password_hash

from app.corpoativo.constants import ROLE_OWNER
from app.corpoativo.models import User
from app.corpoativo.modules.catalog.models import Coach, Plan, Schedule

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

DEFAULT_PLANS = (
    ("Start", "R$ 89", "Acesso à musculação e avaliação inicial.", False),
    ("Black", "R$ 149", "Musculação, funcional, consultoria e acesso 24 horas.", True),
    ("Elite", "R$ 219", "Treino personalizado, recovery e acompanhamento premium.", False),
)

DEFAULT_COACHES = (
    ("Lucas Mendes", "Hipertrofia e força"),
    ("Ana Ribeiro", "Funcional e definição"),
    ("Bruno Costa", "Performance e condicionamento"),
)

DEFAULT_SCHEDULES = (
    ("Seg a Sex", "05:00 às 23:00", "Musculação, cardio e funcional"),
    ("Sábado", "08:00 às 18:00", "Aulas especiais e treino livre"),
    ("Domingo", "08:00 às 14:00", "Recovery, cardio e mobilidade"),
)


def _is_empty(s: "Session", model) -> bool:
    return s.execute(select(func.count()).select_from(model)).scalar_one() == 0


def seed_defaults(
    s: "Session",
    *,
    owner_name: str,
    owner_email: str,
    owner_password: str,
    password_hash_method: str = "scrypt",
) -> None:
    """
    Seed the owner account and the demo catalog in an idempotent way.
    Does NOT overwrite an existing owner's password.
    """
    owner_email = owner_email.strip().lower()
    has_owner = s.execute(select(User.id).where(User.role == ROLE_OWNER)).first() is not None
    if not has_owner:
        existing = s.execute(select(User).where(User.email == owner_email)).scalar_one_or_none()
        if existing is not None:
            raise RuntimeError(f"Cannot seed owner: {owner_email} already belongs to a non-owner account.")
        s.add(
            User(
                name=owner_name,
                email=owner_email,
                password_hash=generate_password_hash(owner_password, method=password_hash_method),
                role=ROLE_OWNER,
            )
        )
        logger.info("Seeded owner account %s", owner_email)

    if _is_empty(s, Plan):
        for name, price, description, featured in DEFAULT_PLANS:
            s.add(Plan(name=name, price=price, description=description, featured=featured))
        logger.info("Seeded %d plans", len(DEFAULT_PLANS))

    if _is_empty(s, Coach):
        for name, role in DEFAULT_COACHES:
            s.add(Coach(name=name, role=role))
        logger.info("Seeded %d coaches", len(DEFAULT_COACHES))

    if _is_empty(s, Schedule):
        for day, hours, details in DEFAULT_SCHEDULES:
            s.add(Schedule(day=day, hours=hours, details=details))
        logger.info("Seeded %d schedules", len(DEFAULT_SCHEDULES))

    s.flush()


def seed_from_config(s: "Session", config) -> None:
    seed_defaults(
        s,
        owner_name=config["OWNER_NAME"],
        owner_email=config["OWNER_EMAIL"],
        owner_password=config["OWNER_PASSWORD"],
        password_hash_method=config.get("PASSWORD_HASH_METHOD") or "scrypt",
    )
