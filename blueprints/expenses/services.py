# blueprints/expenses/services.py
from __future__ import annotations
import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import case, func, or_

from extensions import db
from models import ZERO, CenterExpense, ExpenseStatus, SoCenter
from blueprints.centers.services import center_for_user, resolve_center_id
from blueprints.core.audit import log_action
from blueprints.core.errors import BusinessRuleError, Conflict, Forbidden, NotFound
from blueprints.core.http import iso, money, reference

log = logging.getLogger(__name__)


def expense_out(x: CenterExpense) -> dict:
    return {
        "id": x.id,
        "so_center_id": x.so_center_id,
        "so_center_name": x.so_center.name if x.so_center else None,
        "center_code": x.so_center.center_code if x.so_center else None,
        "expense_type": x.expense_type,
        "amount": money(x.amount),
        "description": x.description,
        "electric_bill_number": x.electric_bill_number,
        "internet_bill_number": x.internet_bill_number,
        "internet_service_provider": x.internet_service_provider,
        "service_name": x.service_name,
        "service_phone": x.service_phone,
        "status": x.status,
        "admin_notes": x.admin_notes,
        "requested_at": iso(x.requested_at),
        "approved_at": iso(x.approved_at),
        "approver_name": x.approver.name if x.approver else None,
        "payment_method": x.payment_method,
        "payment_reference": x.payment_reference,
        "transaction_id": x.transaction_id,
        "paid_at": iso(x.paid_at),
    }


def get_expense(xid: int) -> CenterExpense:
    x = db.session.get(CenterExpense, xid)
    if not x:
        raise NotFound("expense_not_found")
    return x


def create_expense(user, data) -> CenterExpense:
    center = center_for_user(user)
    if not center:
        raise Forbidden("no_center_assigned")
    x = CenterExpense(
        so_center_id=center.id,
        status=ExpenseStatus.PENDING.value,
        requested_by=user.id,
        **data.model_dump(),
    )
    db.session.add(x)
    db.session.flush()
    log_action("create", "expense", x.id, {"type": x.expense_type, "amount": str(x.amount)})
    db.session.commit()
    log.info("expense requested center=%s type=%s amount=%s", center.center_code, x.expense_type, x.amount)
    return x


def expenses_query(user, status: Optional[str] = None, so_center_id: Optional[int] = None,
                   search: Optional[str] = None):
    center_id = resolve_center_id(user, so_center_id)
    q = CenterExpense.query.join(SoCenter, SoCenter.id == CenterExpense.so_center_id)
    if center_id:
        q = q.filter(CenterExpense.so_center_id == center_id)
    if status and status != "all":
        q = q.filter(CenterExpense.status == status)
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(or_(SoCenter.name.ilike(like), SoCenter.center_code.ilike(like)))
    return q.order_by(CenterExpense.requested_at.desc(), CenterExpense.id.desc())


def history_query():
    processed = (ExpenseStatus.APPROVED.value, ExpenseStatus.REJECTED.value, ExpenseStatus.PAID.value)
    return (CenterExpense.query.filter(CenterExpense.status.in_(processed))
            .order_by(CenterExpense.approved_at.desc(), CenterExpense.id.desc()))


def decide(xid: int, action: str, admin_notes: Optional[str], admin) -> CenterExpense:
    x = get_expense(xid)
    if x.status != ExpenseStatus.PENDING.value:
        raise Conflict("already_processed", status=x.status)
    x.status = ExpenseStatus.APPROVED.value if action == "approve" else ExpenseStatus.REJECTED.value
    x.admin_notes = admin_notes
    x.approved_by = admin.id
    x.approved_at = datetime.utcnow()
    log_action(x.status, "expense", x.id, {"notes": admin_notes})
    db.session.commit()
    log.info("expense %s %s", x.id, x.status)
    return x


def pay(user, xid: int, payment_method: str, payment_reference: Optional[str]) -> CenterExpense:
    x = get_expense(xid)
    center_id = resolve_center_id(user, None)
    if center_id and x.so_center_id != center_id:
        raise Forbidden("expense_not_in_center")
    if x.status != ExpenseStatus.APPROVED.value:
        raise Conflict("not_approved", status=x.status)
    x.status = ExpenseStatus.PAID.value
    x.payment_method = payment_method
    x.payment_reference = payment_reference
    x.transaction_id = reference("EXP")
    x.paid_by = user.id
    x.paid_at = datetime.utcnow()
    log_action("pay", "expense", x.id, {"transaction_id": x.transaction_id})
    db.session.commit()
    log.info("expense %s paid txn=%s", x.id, x.transaction_id)
    return x


def expense_wallet(user, so_center_id: Optional[int]) -> dict:
    """Collections held by the center against the expenses it has paid out of them."""
    center_id = resolve_center_id(user, so_center_id)
    if not center_id:
        raise BusinessRuleError("so_center_required")
    center = db.session.get(SoCenter, center_id)
    if not center:
        raise NotFound("center_not_found")
    spent = (db.session.query(func.coalesce(func.sum(CenterExpense.amount), 0))
             .filter(CenterExpense.so_center_id == center_id,
                     CenterExpense.status == ExpenseStatus.PAID.value)
             .scalar())
    collections = Decimal(center.wallet_balance or 0)
    spent = Decimal(spent or ZERO)
    return {
        "so_center_id": center_id,
        "total_collections": money(collections),
        "total_expenses": money(spent),
        "remaining_balance": money(collections - spent),
    }


def expense_stats() -> dict:
    def _count(status: str):
        return func.sum(case((CenterExpense.status == status, 1), else_=0))

    row = db.session.query(
        _count(ExpenseStatus.PENDING.value),
        _count(ExpenseStatus.APPROVED.value),
        _count(ExpenseStatus.REJECTED.value),
        _count(ExpenseStatus.PAID.value),
        func.sum(case((CenterExpense.status == ExpenseStatus.PAID.value, CenterExpense.amount), else_=0)),
    ).one()
    pending, approved, rejected, paid, paid_amount = row
    return {
        "total_pending": int(pending or 0),
        "total_approved": int(approved or 0),
        "total_rejected": int(rejected or 0),
        "total_paid": int(paid or 0),
        "total_paid_amount": money(Decimal(paid_amount or 0)),
    }
