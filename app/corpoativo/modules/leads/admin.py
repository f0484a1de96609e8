from flask import Blueprint, jsonify

from app.corpoativo.db import db_session
from app.corpoativo.modules.leads.repository import LeadRepository
from app.corpoativo.rbac import Capability, require_capability, require_user

bp = Blueprint("leads", __name__)


@bp.get("/leads")
@require_capability(Capability.STAFF)
def leads_list():
    return jsonify({"leads": LeadRepository(db_session()).list()})


@bp.delete("/leads/<int:lead_id>")
@require_capability(Capability.STAFF)
def lead_delete(lead_id: int):
    s = db_session()
    repo = LeadRepository(s)
    repo.delete(lead_id, require_user())
    s.commit()
    return jsonify({"leads": repo.list()})
