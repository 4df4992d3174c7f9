# blueprints/teachers/routes.py
from __future__ import annotations
import datetime as dt
from decimal import Decimal
from typing import Literal, Optional

from flask import Blueprint, request
from flask_login import current_user
from pydantic import BaseModel, Field

from models import Teacher, UserRole
from blueprints.auth.routes import admin_required, roles_required
from blueprints.core.http import arg_bool, arg_date, created, json_body, ok, page_args, paginate
from . import services as svc

api_bp = Blueprint("teachers_api", __name__)


class TeacherIn(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=20)
    email: Optional[str] = Field(default=None, max_length=255)
    qualification: Optional[str] = Field(default=None, max_length=255)
    salary_type: Literal["fixed", "hourly"] = "fixed"
    salary_amount: Decimal = Field(default=Decimal("0"), ge=0)
    is_active: bool = True
    class_ids: list[int] = Field(default_factory=list)
    subject_ids: list[int] = Field(default_factory=list)
    login_password: Optional[str] = Field(default=None, min_length=6, max_length=128)


class TeacherUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=20)
    email: Optional[str] = Field(default=None, max_length=255)
    qualification: Optional[str] = Field(default=None, max_length=255)
    salary_type: Optional[Literal["fixed", "hourly"]] = None
    salary_amount: Optional[Decimal] = Field(default=None, ge=0)
    is_active: Optional[bool] = None
    class_ids: Optional[list[int]] = None
    subject_ids: Optional[list[int]] = None


class ClassIdsIn(BaseModel):
    class_ids: list[int]


class SubjectIdsIn(BaseModel):
    subject_ids: list[int]


class RecordIn(BaseModel):
    teacher_id: int
    record_date: Optional[dt.date] = None
    class_id: int
    subject_id: int
    chapter_id: Optional[int] = None
    topic_id: Optional[int] = None
    teaching_duration: int = Field(gt=0, le=24 * 60)
    notes: Optional[str] = None


@api_bp.get("/admin/teachers")
@admin_required
def list_teachers():
    page, per_page = page_args()
    q = Teacher.query
    active = arg_bool("active")
    if active is not None:
        q = q.filter(Teacher.is_active.is_(active))
    if request.args.get("q"):
        q = q.filter(Teacher.name.ilike(f"%{request.args['q'].strip()}%"))
    q = q.order_by(Teacher.name.asc(), Teacher.id.asc())
    return ok(paginate(q, svc.teacher_out, page=page, per_page=per_page))


@api_bp.get("/admin/teachers/<int:tid>")
@admin_required
def get_teacher(tid: int):
    return ok(svc.teacher_out(svc.get_teacher(tid)))


@api_bp.post("/admin/teachers")
@admin_required
def create_teacher():
    t = svc.create_teacher(TeacherIn.model_validate(json_body()))
    return created(svc.teacher_out(t), location=f"/api/v1/admin/teachers/{t.id}")


@api_bp.put("/admin/teachers/<int:tid>")
@admin_required
def update_teacher(tid: int):
    return ok(svc.teacher_out(svc.update_teacher(tid, TeacherUpdate.model_validate(json_body()))))


@api_bp.delete("/admin/teachers/<int:tid>")
@admin_required
def delete_teacher(tid: int):
    svc.deactivate_teacher(tid)
    return ok({"ok": True})


@api_bp.put("/admin/teachers/<int:tid>/classes")
@admin_required
def set_classes(tid: int):
    data = ClassIdsIn.model_validate(json_body())
    return ok(svc.teacher_out(svc.set_classes(tid, data.class_ids)))


@api_bp.put("/admin/teachers/<int:tid>/subjects")
@admin_required
def set_subjects(tid: int):
    data = SubjectIdsIn.model_validate(json_body())
    return ok(svc.teacher_out(svc.set_subjects(tid, data.subject_ids)))


@api_bp.post("/admin/teacher-records")
@admin_required
def add_record():
    r = svc.add_record(RecordIn.model_validate(json_body()))
    return created(svc.record_out(r))


@api_bp.get("/admin/teachers/<int:tid>/records")
@admin_required
def teacher_records(tid: int):
    return ok(svc.records_summary(tid, arg_date("from"), arg_date("to")))


@api_bp.get("/teacher/me/records")
@roles_required(UserRole.TEACHER)
def my_records():
    t = svc.teacher_for_user(current_user)
    return ok(svc.records_summary(t.id, arg_date("from"), arg_date("to")))
