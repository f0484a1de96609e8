from __future__ import annotations

from flask import Blueprint, jsonify

from app.corpoativo.accounts import serialize_user
from app.corpoativo.db import db_session
from app.corpoativo.modules.students.service import delete_student, enroll, list_students, update_student
from app.corpoativo.rbac import Capability, require_capability, require_user
from app.corpoativo.utils import read_json_body

bp = Blueprint("students", __name__)


@bp.get("/students")
@require_capability(Capability.STAFF)
def students_list():
    return jsonify({"students": list_students(db_session())})


@bp.post("/students")
@require_capability(Capability.STAFF)
def students_enroll():
    s = db_session()
    user = enroll(s, read_json_body(), require_user())
    s.commit()
    return jsonify({"student": serialize_user(user), "students": list_students(s)}), 201


@bp.put("/students/<int:user_id>")
@require_capability(Capability.STAFF)
def students_update(user_id: int):
    s = db_session()
    user = update_student(s, user_id, read_json_body(), require_user())
    s.commit()
    return jsonify({"student": serialize_user(user), "students": list_students(s)})


@bp.delete("/students/<int:user_id>")
@require_capability(Capability.OWNER)
def students_delete(user_id: int):
    s = db_session()
    delete_student(s, user_id, require_user())
    s.commit()
    return jsonify({"students": list_students(s)})
