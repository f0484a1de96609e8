from __future__ import annotations

from flask import Blueprint, jsonify

from app.corpoativo.db import db_session
from app.corpoativo.modules.catalog.repository import CoachRepository, PlanRepository, ScheduleRepository
from app.corpoativo.rbac import Capability, require_capability, require_user
from app.corpoativo.repository import Repository
from app.corpoativo.utils import read_json_body

bp = Blueprint("catalog", __name__)

# (url collection, singular response key, repository)
RESOURCES: tuple[tuple[str, str, type[Repository]], ...] = (
    ("plans", "plan", PlanRepository),
    ("coaches", "coach", CoachRepository),
    ("schedules", "schedule", ScheduleRepository),
)


def _register_crud(collection: str, item_key: str, repo_cls: type[Repository]) -> None:
    staff_only = require_capability(Capability.STAFF)

    def list_items():
        return jsonify({collection: repo_cls(db_session()).list()})

    def create_item():
        s = db_session()
        repo = repo_cls(s)
        obj = repo.create(read_json_body(), require_user())
        s.commit()
        return jsonify({item_key: repo.serialize(obj), collection: repo.list()}), 201

    def update_item(item_id: int):
        s = db_session()
        repo = repo_cls(s)
        obj = repo.update(item_id, read_json_body(), require_user())
        s.commit()
        return jsonify({item_key: repo.serialize(obj), collection: repo.list()})

    def delete_item(item_id: int):
        s = db_session()
        repo = repo_cls(s)
        repo.delete(item_id, require_user())
        s.commit()
        return jsonify({collection: repo.list()})

    bp.add_url_rule(f"/{collection}", f"{collection}_list", staff_only(list_items), methods=["GET"])
    bp.add_url_rule(f"/{collection}", f"{collection}_create", staff_only(create_item), methods=["POST"])
    bp.add_url_rule(f"/{collection}/<int:item_id>", f"{collection}_update", staff_only(update_item), methods=["PUT"])
    bp.add_url_rule(f"/{collection}/<int:item_id>", f"{collection}_delete", staff_only(delete_item), methods=["DELETE"])


for _collection, _item_key, _repo_cls in RESOURCES:
    _register_crud(_collection, _item_key, _repo_cls)
