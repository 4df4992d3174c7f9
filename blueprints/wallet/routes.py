# blueprints/wallet/routes.py
from __future__ import annotations
from decimal import Decimal
from typing import Literal, Optional

from flask import Blueprint, request
from flask_login import current_user
from pydantic import BaseModel, Field

from models import AdminNotification, Product, ProductPurchase, Wallet, WithdrawalRequest, UserRole
from blueprints.auth.routes import admin_required, roles_required
from blueprints.core.http import arg_bool, arg_int, created, json_body, ok, page_args, paginate
from . import services as svc

api_bp = Blueprint("wallet_api", __name__)

wallet_owner = roles_required(UserRole.AGENT, UserRole.SO_CENTER, UserRole.MARKETING_STAFF)


class ProductIn(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    price: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    commission_percentage: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    is_active: bool = True


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    commission_percentage: Optional[Decimal] = Field(default=None, ge=0, le=100)
    is_active: Optional[bool] = None


class PurchaseIn(BaseModel):
    product_id: int
    student_name: str = Field(min_length=1, max_length=255)
    student_class: Optional[str] = Field(default=None, max_length=100)
    education: Optional[str] = Field(default=None, max_length=255)
    address: Optional[str] = None
    mobile_number: Optional[str] = Field(default=None, max_length=20)


class WithdrawIn(BaseModel):
    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)


class ApproveIn(BaseModel):
    payment_mode: Literal["upi", "voucher"]
    payment_details: str = Field(min_length=1)
    notes: Optional[str] = None


class RejectIn(BaseModel):
    notes: Optional[str] = None


# ---------- wallet owner ----------
@api_bp.get("/wallet/balance")
@wallet_owner
def wallet_balance():
    return ok(svc.balance(current_user.id))


@api_bp.get("/wallet/transactions")
@wallet_owner
def wallet_transactions():
    return ok({"items": [svc.transaction_out(t) for t in svc.transactions(current_user.id)]})


@api_bp.post("/wallet/withdraw")
@wallet_owner
def withdraw():
    data = WithdrawIn.model_validate(json_body())
    r = svc.request_withdrawal(current_user, data.amount)
    return created(svc.withdrawal_out(r))


@api_bp.get("/products")
@wallet_owner
def list_products():
    rows = Product.query.filter_by(is_active=True).order_by(Product.name.asc()).all()
    return ok({"items": [svc.product_out(p) for p in rows]})


@api_bp.post("/products/purchase")
@wallet_owner
def purchase():
    return created(svc.purchase(current_user, PurchaseIn.model_validate(json_body())))


# ---------- admin ----------
@api_bp.get("/admin/products")
@admin_required
def admin_products():
    rows = Product.query.order_by(Product.name.asc()).all()
    return ok({"items": [svc.product_out(p) for p in rows]})


@api_bp.post("/admin/products")
@admin_required
def create_product():
    p = svc.create_product(ProductIn.model_validate(json_body()))
    return created(svc.product_out(p), location=f"/api/v1/admin/products/{p.id}")


@api_bp.put("/admin/products/<int:pid>")
@admin_required
def update_product(pid: int):
    return ok(svc.product_out(svc.update_product(pid, ProductUpdate.model_validate(json_body()))))


@api_bp.delete("/admin/products/<int:pid>")
@admin_required
def delete_product(pid: int):
    svc.deactivate_product(pid)
    return ok({"ok": True})


@api_bp.get("/admin/withdrawal-requests")
@admin_required
def withdrawal_requests():
    page, per_page = page_args()
    q = WithdrawalRequest.query
    status = request.args.get("status")
    if status:
        q = q.filter(WithdrawalRequest.status == status)
    q = q.order_by(WithdrawalRequest.requested_at.desc(), WithdrawalRequest.id.desc())
    return ok(paginate(q, svc.withdrawal_out, page=page, per_page=per_page))


@api_bp.post("/admin/withdrawal-requests/<int:rid>/approve")
@admin_required
def approve_withdrawal(rid: int):
    r = svc.approve_withdrawal(rid, ApproveIn.model_validate(json_body()), current_user)
    return ok(svc.withdrawal_out(r))


@api_bp.post("/admin/withdrawal-requests/<int:rid>/reject")
@admin_required
def reject_withdrawal(rid: int):
    data = RejectIn.model_validate(json_body())
    return ok(svc.withdrawal_out(svc.reject_withdrawal(rid, data.notes, current_user)))


@api_bp.get("/admin/notifications")
@admin_required
def notifications():
    page, per_page = page_args()
    q = AdminNotification.query
    kind = request.args.get("type")
    if kind:
        q = q.filter(AdminNotification.type == kind)
    if arg_bool("unread"):
        q = q.filter(AdminNotification.is_read.is_(False))
    q = q.order_by(AdminNotification.created_at.desc(), AdminNotification.id.desc())
    return ok(paginate(q, svc.notification_out, page=page, per_page=per_page))


@api_bp.patch("/admin/notifications/<int:nid>/read")
@admin_required
def read_notification(nid: int):
    return ok(svc.notification_out(svc.mark_notification_read(nid)))


@api_bp.get("/admin/course-purchases")
@admin_required
def course_purchases():
    page, per_page = page_args()
    q = ProductPurchase.query
    agent_id = arg_int("agent_id")
    if agent_id:
        q = q.filter(ProductPurchase.agent_id == agent_id)
    q = q.order_by(ProductPurchase.created_at.desc(), ProductPurchase.id.desc())
    return ok(paginate(q, svc.purchase_out, page=page, per_page=per_page))


@api_bp.get("/admin/wallets")
@admin_required
def all_wallets():
    rows = Wallet.query.order_by(Wallet.total_earnings.desc(), Wallet.id.asc()).all()
    return ok({"items": [svc.wallet_out(w) for w in rows]})
