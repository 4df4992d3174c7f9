# blueprints/students/routes.py
from __future__ import annotations

from flask import Blueprint, abort, request
from flask_login import current_user

from models import UserRole
from blueprints.auth.routes import roles_required
from blueprints.core.http import arg_bool, arg_int, created, json_body, ok, page_args, paginate
from . import services as svc
from .schemas import AadharCheckIn, StudentIn, StudentUpdate

api_bp = Blueprint("students_api", __name__)

staff = roles_required(UserRole.SO_CENTER, UserRole.OFFICE_STAFF)


@api_bp.get("/students")
@roles_required(UserRole.SO_CENTER, UserRole.OFFICE_STAFF, UserRole.TEACHER, UserRole.COLLECTION_AGENT)
def list_students():
    page, per_page = page_args()
    q = svc.students_query(
        current_user,
        class_id=arg_int("class_id"),
        so_center_id=arg_int("so_center_id"),
        q=request.args.get("q"),
        active=arg_bool("active"),
    )
    return ok(paginate(q, svc.student_out, page=page, per_page=per_page))


@api_bp.post("/students")
@staff
def create_student():
    s = svc.create_student(current_user, StudentIn.model_validate(json_body()))
    return created(svc.student_out(s), location=f"/api/v1/students/{s.id}")


@api_bp.get("/students/balance-dues")
@roles_required(UserRole.SO_CENTER, UserRole.COLLECTION_AGENT)
def balance_dues():
    rows = svc.balance_dues(current_user, so_center_id=arg_int("so_center_id"))
    return ok({"items": [svc.student_out(s) for s in rows], "count": len(rows)})


@api_bp.post("/students/validate-aadhar")
@staff
def validate_aadhar():
    data = AadharCheckIn.model_validate(json_body())
    return ok({"unique": svc.aadhar_is_unique(data.aadhar_number, exclude_id=data.exclude_student_id)})


@api_bp.post("/students/import")
@staff
def import_students():
    if "file" in request.files:
        raw = request.files["file"].read()
    else:
        raw = request.get_data()
    if not raw:
        abort(400, description="Empty upload")
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        abort(400, description="File must be UTF-8 encoded CSV")
    result = svc.import_students_csv(current_user, text, so_center_id=request.form.get("so_center_id", type=int))
    return ok(result)


@api_bp.get("/students/<int:student_id>")
@roles_required(UserRole.SO_CENTER, UserRole.OFFICE_STAFF, UserRole.TEACHER, UserRole.COLLECTION_AGENT)
def get_student(student_id: int):
    return ok(svc.student_out(svc.get_student(student_id, current_user)))


@api_bp.put("/students/<int:student_id>")
@staff
def update_student(student_id: int):
    s = svc.update_student(current_user, student_id, StudentUpdate.model_validate(json_body()))
    return ok(svc.student_out(s))


@api_bp.delete("/students/<int:student_id>")
@staff
def delete_student(student_id: int):
    svc.deactivate_student(current_user, student_id)
    return ok({"ok": True})
