import json
from typing import Any

from flask import g, has_request_context, request
from sqlalchemy.orm import Session

from app.corpoativo.models import AuditEvent, User


def record_event(
    s: Session,
    *,
    actor: User | None,
    action: str,
    entity_type: str | None = None,
    entity_id: str | None = None,
    metadata: dict[str, Any] | None = None,
    request_id: str | None = None,
) -> AuditEvent:
    """
    Append-only audit event helper. The event joins the caller's transaction.
    """
    in_request = has_request_context()
    rid = request_id or (getattr(g, "request_id", None) if in_request else None)
    ev = AuditEvent(
        request_id=rid,
        actor_user_id=actor.id if actor else None,
        actor_user_email=actor.email if actor else None,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        metadata_json=json.dumps(metadata, sort_keys=True, default=str) if metadata else None,
        client_ip=request.remote_addr if in_request else None,
    )
    s.add(ev)
    return ev


def serialize_event(ev: AuditEvent) -> dict[str, Any]:
    return {
        "id": ev.id,
        "createdAt": ev.created_at.isoformat() if ev.created_at else None,
        "requestId": ev.request_id,
        "actorUserId": ev.actor_user_id,
        "actorUserEmail": ev.actor_user_email,
        "action": ev.action,
        "entityType": ev.entity_type,
        "entityId": ev.entity_id,
        "metadata": json.loads(ev.metadata_json) if ev.metadata_json else None,
        "clientIp": ev.client_ip,
    }
