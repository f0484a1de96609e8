from __future__ import annotations

from typing import Any

from app.corpoativo.modules.leads.models import Lead
from app.corpoativo.repository import Repository
from app.corpoativo.utils import normalize_email


class LeadRepository(Repository):
    model = Lead
    entity_type = "Lead"
    audit_prefix = "lead"
    required = ("name", "email")
    converters = {"email": normalize_email}

    def ordering(self) -> list[Any]:
        return [Lead.id.desc()]

    def serialize(self, obj: Lead) -> dict[str, Any]:
        return {
            "id": obj.id,
            "name": obj.name,
            "email": obj.email,
            "createdAt": obj.created_at.isoformat() if obj.created_at else None,
        }
