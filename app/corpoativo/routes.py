from flask import Blueprint, jsonify

from app.corpoativo.db import db_session
from app.corpoativo.modules.catalog.repository import CoachRepository, PlanRepository, ScheduleRepository
from app.corpoativo.modules.leads.repository import LeadRepository
from app.corpoativo.rbac import Capability, current_user, require_capability
from app.corpoativo.utils import read_json_body

bp = Blueprint("routes", __name__)


@bp.get("/health")
def health():
    """Health check endpoint. Returns JSON."""
    return {"ok": True}


@bp.get("/healthz")
def healthz():
    """
    Fast health check for container probes. No DB access, minimal overhead.
    """
    return "ok", 200


@bp.get("/api/public-data")
@require_capability(Capability.ANONYMOUS)
def public_data():
    s = db_session()
    return jsonify(
        {
            "plans": PlanRepository(s).list(),
            "coaches": CoachRepository(s).list(),
            "schedules": ScheduleRepository(s).list(),
        }
    )


@bp.post("/api/leads")
@require_capability(Capability.ANONYMOUS)
def submit_lead():
    s = db_session()
    LeadRepository(s).create(read_json_body(), current_user())
    s.commit()
    return jsonify({"success": True}), 201
