# blueprints/fees/routes.py
from __future__ import annotations
from decimal import Decimal
from typing import Optional

from flask import Blueprint
from flask_login import current_user
from pydantic import BaseModel, Field

from extensions import db
from models import ClassFee, CourseType, Student, UserRole
from blueprints.auth.routes import admin_required, roles_required
from blueprints.centers.services import ensure_student_access
from blueprints.core.errors import NotFound
from blueprints.core.http import arg_int, created, json_body, ok
from . import services as svc

api_bp = Blueprint("fees_api", __name__)


class ClassFeeIn(BaseModel):
    class_id: int
    course_type: CourseType = CourseType.MONTHLY
    admission_fee: Decimal = Field(default=Decimal("0"), ge=0)
    monthly_fee: Decimal = Field(default=Decimal("0"), ge=0)
    yearly_fee: Optional[Decimal] = Field(default=None, ge=0)
    is_active: bool = True


class ClassFeeUpdate(BaseModel):
    admission_fee: Optional[Decimal] = Field(default=None, ge=0)
    monthly_fee: Optional[Decimal] = Field(default=None, ge=0)
    yearly_fee: Optional[Decimal] = Field(default=None, ge=0)
    is_active: Optional[bool] = None


@api_bp.get("/admin/class-fees")
@roles_required(UserRole.SO_CENTER)
def list_class_fees():
    q = ClassFee.query
    class_id = arg_int("class_id")
    if class_id:
        q = q.filter(ClassFee.class_id == class_id)
    rows = q.order_by(ClassFee.class_id.asc(), ClassFee.course_type.asc()).all()
    return ok({"items": [svc.class_fee_out(cf) for cf in rows]})


@api_bp.post("/admin/class-fees")
@admin_required
def create_class_fee():
    cf = svc.create_class_fee(ClassFeeIn.model_validate(json_body()))
    return created(svc.class_fee_out(cf), location=f"/api/v1/admin/class-fees/{cf.id}")


@api_bp.put("/admin/class-fees/<int:fee_id>")
@admin_required
def update_class_fee(fee_id: int):
    return ok(svc.class_fee_out(svc.update_class_fee(fee_id, ClassFeeUpdate.model_validate(json_body()))))


@api_bp.delete("/admin/class-fees/<int:fee_id>")
@admin_required
def delete_class_fee(fee_id: int):
    svc.delete_class_fee(fee_id)
    return ok({"ok": True})


@api_bp.post("/students/<int:student_id>/recalculate-fees")
@roles_required(UserRole.SO_CENTER)
def recalculate_fees(student_id: int):
    s = db.session.get(Student, student_id)
    if not s:
        raise NotFound("student_not_found")
    ensure_student_access(current_user, s)
    calc = svc.recalculate_student_fees(s)
    return ok({"ok": True, "student_id": s.id, "calculation": calc.to_dict()})


@api_bp.get("/admin/monthly-fees/preview")
@admin_required
def monthly_fees_preview():
    return ok(svc.monthly_fees_preview())


@api_bp.post("/admin/monthly-fees/run")
@admin_required
def monthly_fees_run():
    return ok(svc.run_monthly_fees())
