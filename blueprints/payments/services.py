# blueprints/payments/services.py
from __future__ import annotations
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from extensions import db
from models import ZERO, CenterWalletTransaction, Payment, SoCenter, Student, UserRole
from blueprints.centers.services import resolve_center_id
from blueprints.core.audit import log_action
from blueprints.core.errors import Conflict, NotFound
from blueprints.core.http import iso, money, reference
from blueprints.fees.services import refresh_payment_status
from blueprints.students.services import get_student

log = logging.getLogger(__name__)


def payment_out(p: Payment) -> dict:
    return {
        "id": p.id,
        "student_id": p.student_id,
        "student_name": p.student.name if p.student else None,
        "student_code": p.student.student_code if p.student else None,
        "amount": money(p.amount),
        "payment_method": p.payment_method,
        "fee_type": p.fee_type,
        "receipt_number": p.receipt_number,
        "transaction_id": p.transaction_id,
        "description": p.description,
        "month": p.month,
        "year": p.year,
        "recorded_by": p.recorded_by,
        "created_at": iso(p.created_at),
    }


def _center_wallet_entry(center: SoCenter, amount: Decimal, kind: str, description: str,
                         payment_id: Optional[int], agent_id: Optional[int] = None) -> None:
    if kind == "credit":
        center.wallet_balance = Decimal(center.wallet_balance or 0) + amount
    else:
        center.wallet_balance = Decimal(center.wallet_balance or 0) - amount
    db.session.add(CenterWalletTransaction(
        so_center_id=center.id, amount=amount, type=kind, description=description,
        payment_id=payment_id, collection_agent_id=agent_id,
    ))


def _rebalance(s: Student) -> None:
    s.pending_amount = max(ZERO, Decimal(s.total_fee_amount or 0) - Decimal(s.paid_amount or 0))
    refresh_payment_status(s)


def process_payment(user, data) -> dict:
    s = get_student(data.student_id, user)
    if Payment.query.filter_by(receipt_number=data.receipt_number).first():
        raise Conflict("duplicate_receipt")

    amount = Decimal(data.amount)
    p = Payment(
        student_id=s.id,
        amount=amount,
        payment_method=data.payment_method,
        fee_type=data.fee_type,
        receipt_number=data.receipt_number,
        transaction_id=reference("TXN"),
        description=data.description,
        month=data.month,
        year=data.year,
        recorded_by=user.id,
    )
    db.session.add(p)

    s.paid_amount = Decimal(s.paid_amount or 0) + amount
    s.pending_amount = max(ZERO, Decimal(s.pending_amount or 0) - amount)
    refresh_payment_status(s)
    db.session.flush()

    agent_id = user.id if user.role == UserRole.COLLECTION_AGENT.value else None
    _center_wallet_entry(s.so_center, amount, "credit",
                         f"Fee payment {p.transaction_id} from {s.student_code}", p.id, agent_id)
    log_action("create", "payment", p.id, {"student_id": s.id, "amount": str(amount)})
    db.session.commit()
    log.info("payment recorded txn=%s student=%s amount=%s", p.transaction_id, s.student_code, amount)

    return {
        "ok": True,
        "invoice": {
            **payment_out(p),
            "so_center": {"id": s.so_center.id, "center_code": s.so_center.center_code, "name": s.so_center.name},
            "paid_amount": money(s.paid_amount),
            "pending_amount": money(s.pending_amount),
            "payment_status": s.payment_status,
        },
    }


def student_payments(user, student_id: int) -> list[Payment]:
    s = get_student(student_id, user)
    return (Payment.query.filter_by(student_id=s.id)
            .order_by(Payment.created_at.desc(), Payment.id.desc()).all())


def payments_query(user, student_id: Optional[int] = None, so_center_id: Optional[int] = None,
                   date_from: Optional[date] = None, date_to: Optional[date] = None):
    center_id = resolve_center_id(user, so_center_id)
    q = Payment.query.join(Student, Student.id == Payment.student_id)
    if center_id:
        q = q.filter(Student.so_center_id == center_id)
    if student_id:
        q = q.filter(Payment.student_id == student_id)
    if date_from:
        q = q.filter(Payment.created_at >= datetime.combine(date_from, datetime.min.time()))
    if date_to:
        q = q.filter(Payment.created_at <= datetime.combine(date_to, datetime.max.time()))
    return q.order_by(Payment.created_at.desc(), Payment.id.desc())


def get_payment(pid: int) -> Payment:
    p = db.session.get(Payment, pid)
    if not p:
        raise NotFound("payment_not_found")
    return p


def update_payment(pid: int, data) -> Payment:
    p = get_payment(pid)
    fields = data.model_dump(exclude_unset=True)
    new_amount = fields.pop("amount", None)
    if new_amount is not None and Decimal(new_amount) != Decimal(p.amount):
        diff = Decimal(new_amount) - Decimal(p.amount)
        s = p.student
        s.paid_amount = max(ZERO, Decimal(s.paid_amount or 0) + diff)
        _rebalance(s)
        _center_wallet_entry(s.so_center, abs(diff), "credit" if diff > 0 else "debit",
                             f"Payment {p.transaction_id} corrected", p.id)
        p.amount = Decimal(new_amount)
    for key, val in fields.items():
        if val is not None:
            setattr(p, key, val)
    log_action("update", "payment", p.id, {k: str(v) for k, v in data.model_dump(exclude_unset=True).items()})
    db.session.commit()
    return p


def delete_payment(pid: int) -> None:
    p = get_payment(pid)
    s = p.student
    amount = Decimal(p.amount)
    s.paid_amount = max(ZERO, Decimal(s.paid_amount or 0) - amount)
    _rebalance(s)
    _center_wallet_entry(s.so_center, amount, "debit", f"Payment {p.transaction_id} reversed", None)
    log_action("delete", "payment", p.id, {"student_id": s.id, "amount": str(amount)})
    db.session.delete(p)
    db.session.commit()
    log.info("payment reversed txn=%s student=%s", p.transaction_id, s.student_code)
