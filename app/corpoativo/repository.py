"""
Uniform CRUD over the flat gym records (plans, coaches, schedules, leads).

A repository wraps the caller's SQLAlchemy session; it flushes but never
commits, so a route's writes and their audit events land in one transaction.
"""
from __future__ import annotations

from collections.abc import Callable
from typing import Any, ClassVar

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.corpoativo.audit import record_event
from app.corpoativo.errors import NotFound, ValidationError
from app.corpoativo.models import Base, User
from app.corpoativo.utils import clean_str, is_blank


class Repository:
    model: ClassVar[type[Base]]
    entity_type: ClassVar[str]  # audit entity type, e.g. "Plan"
    audit_prefix: ClassVar[str]  # audit action prefix, e.g. "plan"
    required: ClassVar[tuple[str, ...]] = ()
    # Optional fields and how to coerce their raw JSON value.
    optional: ClassVar[dict[str, Callable[[Any], Any]]] = {}
    # Per-field coercion for required fields (defaults to trimmed text).
    converters: ClassVar[dict[str, Callable[[Any], Any]]] = {}

    def __init__(self, s: Session):
        self.s = s

    # ---------- Projection ----------
    def ordering(self) -> list[Any]:
        return [self.model.id.asc()]  # type: ignore[attr-defined]

    def serialize(self, obj: Any) -> dict[str, Any]:
        raise NotImplementedError

    # ---------- Validation ----------
    def _convert(self, field: str, value: Any) -> Any:
        if field in self.optional:
            return self.optional[field](value)
        return self.converters.get(field, clean_str)(value)

    def clean(self, payload: dict[str, Any], *, partial: bool = False) -> dict[str, Any]:
        """Trim and validate ``payload``. Raises ValidationError naming the first bad field."""
        values: dict[str, Any] = {}
        for field in self.required:
            if partial and field not in payload:
                continue
            if is_blank(payload.get(field)):
                raise ValidationError(f"Missing required field: {field}")
            values[field] = self._convert(field, payload[field])
        for field in self.optional:
            if field in payload:
                values[field] = self._convert(field, payload[field])
        return values

    # ---------- Hooks ----------
    def before_write(self, obj: Any | None, values: dict[str, Any]) -> None:
        """Called inside the transaction before an insert (obj is None) or update."""

    # ---------- Operations ----------
    def list(self) -> list[dict[str, Any]]:
        rows = self.s.execute(select(self.model).order_by(*self.ordering())).scalars().all()
        return [self.serialize(r) for r in rows]

    def count(self) -> int:
        return self.s.execute(select(func.count()).select_from(self.model)).scalar_one()

    def get(self, obj_id: int) -> Any | None:
        return self.s.get(self.model, obj_id)

    def create(self, payload: dict[str, Any], actor: User | None) -> Any:
        values = self.clean(payload)
        self.before_write(None, values)
        obj = self.model(**values)
        self.s.add(obj)
        self.s.flush()
        record_event(
            self.s,
            actor=actor,
            action=f"{self.audit_prefix}.create",
            entity_type=self.entity_type,
            entity_id=str(obj.id),
            metadata=values,
        )
        return obj

    def update(self, obj_id: int, payload: dict[str, Any], actor: User | None) -> Any:
        obj = self.get(obj_id)
        if obj is None:
            raise NotFound(f"{self.entity_type} not found.")
        values = self.clean(payload, partial=True)
        self.before_write(obj, values)
        changes: dict[str, Any] = {}
        for field, value in values.items():
            old = getattr(obj, field)
            if old != value:
                changes[field] = {"old": old, "new": value}
                setattr(obj, field, value)
        self.s.flush()
        record_event(
            self.s,
            actor=actor,
            action=f"{self.audit_prefix}.update",
            entity_type=self.entity_type,
            entity_id=str(obj.id),
            metadata={"changes": changes},
        )
        return obj

    def delete(self, obj_id: int, actor: User | None) -> bool:
        """Delete by id. Returns False (and does nothing) when the id is absent."""
        obj = self.get(obj_id)
        if obj is None:
            return False
        self.s.delete(obj)
        self.s.flush()
        record_event(
            self.s,
            actor=actor,
            action=f"{self.audit_prefix}.delete",
            entity_type=self.entity_type,
            entity_id=str(obj_id),
        )
        return True
