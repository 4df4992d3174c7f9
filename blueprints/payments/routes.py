# blueprints/payments/routes.py
from __future__ import annotations
from decimal import Decimal
from typing import Optional

from flask import Blueprint
from flask_login import current_user
from pydantic import BaseModel, Field

from models import UserRole
from blueprints.auth.routes import admin_required, roles_required
from blueprints.core.http import arg_date, arg_int, created, json_body, ok, page_args, paginate
from . import services as svc

api_bp = Blueprint("payments_api", __name__)


class PaymentIn(BaseModel):
    student_id: int
    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    fee_type: str = Field(default="monthly", min_length=1, max_length=32)
    receipt_number: str = Field(min_length=1, max_length=64)
    payment_method: str = Field(default="cash", min_length=1, max_length=32)
    description: Optional[str] = None
    month: Optional[str] = Field(default=None, max_length=16)
    year: Optional[int] = Field(default=None, ge=2000, le=2100)


class PaymentUpdate(BaseModel):
    amount: Optional[Decimal] = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    payment_method: Optional[str] = Field(default=None, max_length=32)
    fee_type: Optional[str] = Field(default=None, max_length=32)
    description: Optional[str] = None
    month: Optional[str] = Field(default=None, max_length=16)
    year: Optional[int] = Field(default=None, ge=2000, le=2100)


@api_bp.post("/payments/process")
@roles_required(UserRole.SO_CENTER, UserRole.COLLECTION_AGENT)
def process_payment():
    data = PaymentIn.model_validate(json_body())
    return created(svc.process_payment(current_user, data))


@api_bp.get("/students/<int:student_id>/payments")
@roles_required(UserRole.SO_CENTER, UserRole.COLLECTION_AGENT, UserRole.OFFICE_STAFF)
def student_payments(student_id: int):
    rows = svc.student_payments(current_user, student_id)
    return ok({"items": [svc.payment_out(p) for p in rows]})


@api_bp.get("/admin/payments")
@admin_required
def list_payments():
    page, per_page = page_args()
    q = svc.payments_query(
        current_user,
        student_id=arg_int("student_id"),
        so_center_id=arg_int("so_center_id"),
        date_from=arg_date("date_from"),
        date_to=arg_date("date_to"),
    )
    return ok(paginate(q, svc.payment_out, page=page, per_page=per_page))


@api_bp.put("/admin/payments/<int:pid>")
@admin_required
def update_payment(pid: int):
    return ok(svc.payment_out(svc.update_payment(pid, PaymentUpdate.model_validate(json_body()))))


@api_bp.delete("/admin/payments/<int:pid>")
@admin_required
def delete_payment(pid: int):
    svc.delete_payment(pid)
    return ok({"ok": True})
