from __future__ import annotations

from typing import Any

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from app.corpoativo.errors import Conflict
from app.corpoativo.models import User
from app.corpoativo.modules.catalog.models import Coach, Plan, Schedule
from app.corpoativo.repository import Repository
from app.corpoativo.utils import parse_bool

FEATURED_RACE = "Another plan was featured at the same time. Please retry."


class PlanRepository(Repository):
    model = Plan
    entity_type = "Plan"
    audit_prefix = "plan"
    required = ("name", "price", "description")
    optional = {"featured": parse_bool}

    def ordering(self) -> list[Any]:
        return [Plan.featured.desc(), Plan.id.asc()]

    def serialize(self, obj: Plan) -> dict[str, Any]:
        return {
            "id": obj.id,
            "name": obj.name,
            "price": obj.price,
            "description": obj.description,
            "featured": bool(obj.featured),
        }

    def before_write(self, obj: Plan | None, values: dict[str, Any]) -> None:
        if not values.get("featured"):
            return
        # Single featured plan: clear the rest in the same transaction as the write.
        stmt = update(Plan).where(Plan.featured.is_(True))
        if obj is not None:
            stmt = stmt.where(Plan.id != obj.id)
        self.s.execute(stmt.values(featured=False).execution_options(synchronize_session="fetch"))

    def create(self, payload: dict[str, Any], actor: User | None) -> Plan:
        payload = {"featured": False, **payload}
        try:
            return super().create(payload, actor)
        except IntegrityError:
            # A concurrent write featured another plan after our clear ran.
            self.s.rollback()
            raise Conflict(FEATURED_RACE)

    def update(self, obj_id: int, payload: dict[str, Any], actor: User | None) -> Plan:
        try:
            return super().update(obj_id, payload, actor)
        except IntegrityError:
            self.s.rollback()
            raise Conflict(FEATURED_RACE)


class CoachRepository(Repository):
    model = Coach
    entity_type = "Coach"
    audit_prefix = "coach"
    required = ("name", "role")

    def serialize(self, obj: Coach) -> dict[str, Any]:
        return {"id": obj.id, "name": obj.name, "role": obj.role}


class ScheduleRepository(Repository):
    model = Schedule
    entity_type = "Schedule"
    audit_prefix = "schedule"
    required = ("day", "hours", "details")

    def serialize(self, obj: Schedule) -> dict[str, Any]:
        return {"id": obj.id, "day": obj.day, "hours": obj.hours, "details": obj.details}
