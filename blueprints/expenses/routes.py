# blueprints/expenses/routes.py
from __future__ import annotations
from decimal import Decimal
from typing import Literal, Optional

from flask import Blueprint, request
from flask_login import current_user
from pydantic import BaseModel, Field, model_validator

from models import UserRole
from blueprints.auth.routes import admin_required, roles_required
from blueprints.core.http import arg_int, created, json_body, ok, page_args, paginate
from . import services as svc

api_bp = Blueprint("expenses_api", __name__)


class ExpenseIn(BaseModel):
    expense_type: Literal["rent", "electric_bill", "internet_bill", "so_salary", "others"]
    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    description: Optional[str] = None
    electric_bill_number: Optional[str] = Field(default=None, max_length=64)
    internet_bill_number: Optional[str] = Field(default=None, max_length=64)
    internet_service_provider: Optional[str] = Field(default=None, max_length=128)
    service_name: Optional[str] = Field(default=None, max_length=255)
    service_phone: Optional[str] = Field(default=None, max_length=20)

    @model_validator(mode="after")
    def _type_details(self):
        if self.expense_type == "electric_bill" and not self.electric_bill_number:
            raise ValueError("electric_bill_number is required for electric bills")
        if self.expense_type == "internet_bill" and not self.internet_bill_number:
            raise ValueError("internet_bill_number is required for internet bills")
        if self.expense_type == "others" and not self.service_name:
            raise ValueError("service_name is required for other expenses")
        return self


class DecisionIn(BaseModel):
    action: Literal["approve", "reject"]
    admin_notes: Optional[str] = None


class PayIn(BaseModel):
    payment_method: Literal["cash", "upi", "bank_transfer", "cheque"]
    payment_reference: Optional[str] = Field(default=None, max_length=128)


@api_bp.post("/expenses")
@roles_required(UserRole.SO_CENTER)
def create_expense():
    x = svc.create_expense(current_user, ExpenseIn.model_validate(json_body()))
    return created(svc.expense_out(x))


@api_bp.get("/expenses")
@roles_required(UserRole.SO_CENTER)
def list_expenses():
    page, per_page = page_args()
    q = svc.expenses_query(current_user, status=request.args.get("status"),
                           so_center_id=arg_int("so_center_id"), search=request.args.get("q"))
    return ok(paginate(q, svc.expense_out, page=page, per_page=per_page))


@api_bp.get("/expenses/wallet")
@roles_required(UserRole.SO_CENTER)
def expense_wallet():
    return ok(svc.expense_wallet(current_user, arg_int("so_center_id")))


@api_bp.post("/expenses/<int:xid>/pay")
@roles_required(UserRole.SO_CENTER)
def pay_expense(xid: int):
    data = PayIn.model_validate(json_body())
    return ok(svc.expense_out(svc.pay(current_user, xid, data.payment_method, data.payment_reference)))


@api_bp.post("/admin/expenses/<int:xid>/decision")
@admin_required
def decide(xid: int):
    data = DecisionIn.model_validate(json_body())
    return ok(svc.expense_out(svc.decide(xid, data.action, data.admin_notes, current_user)))


@api_bp.get("/admin/expenses/history")
@admin_required
def history():
    page, per_page = page_args()
    return ok(paginate(svc.history_query(), svc.expense_out, page=page, per_page=per_page))


@api_bp.get("/admin/expenses/stats")
@admin_required
def stats():
    return ok(svc.expense_stats())
