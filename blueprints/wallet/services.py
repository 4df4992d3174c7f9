# blueprints/wallet/services.py
from __future__ import annotations
import logging
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from flask import current_app
from sqlalchemy import func

from extensions import db
from models import (
    ZERO, AdminNotification, Product, ProductPurchase, RequestStatus, User, Wallet,
    WalletTransaction, WithdrawalRequest,
)
from blueprints.core.audit import log_action
from blueprints.core.errors import BusinessRuleError, Conflict, NotFound
from blueprints.core.http import iso, money, reference

log = logging.getLogger(__name__)

CENT = Decimal("0.01")

TX_COURSE_PURCHASE = "course_purchase"
TX_COMMISSION_EARNED = "commission_earned"
TX_WITHDRAWAL_REQUEST = "withdrawal_request"
TX_WITHDRAWAL_COMPLETED = "withdrawal_completed"


def commission_for(price: Decimal, percentage: Decimal) -> Decimal:
    return (Decimal(price) * Decimal(percentage) / Decimal(100)).quantize(CENT, rounding=ROUND_HALF_UP)


# ---------- wallets ----------
def get_or_create_wallet(user_id: int) -> Wallet:
    w = Wallet.query.filter_by(user_id=user_id).first()
    if not w:
        w = Wallet(user_id=user_id, course_wallet_balance=ZERO,
                   commission_wallet_balance=ZERO, total_earnings=ZERO)
        db.session.add(w)
        db.session.flush()
    return w


def wallet_out(w: Wallet) -> dict:
    return {
        "user_id": w.user_id,
        "user_name": w.user.name if w.user else None,
        "course_wallet_balance": money(w.course_wallet_balance),
        "commission_wallet_balance": money(w.commission_wallet_balance),
        "total_earnings": money(w.total_earnings),
        "updated_at": iso(w.updated_at),
    }


def transaction_out(t: WalletTransaction) -> dict:
    return {
        "id": t.id, "transaction_id": t.transaction_id, "type": t.type,
        "amount": money(t.amount), "description": t.description,
        "status": t.status, "created_at": iso(t.created_at),
    }


def balance(user_id: int) -> dict:
    w = get_or_create_wallet(user_id)
    db.session.commit()
    return wallet_out(w)


def transactions(user_id: int) -> list[WalletTransaction]:
    limit = int(current_app.config.get("WALLET_TRANSACTIONS_LIMIT", 50))
    return (WalletTransaction.query.filter_by(user_id=user_id)
            .order_by(WalletTransaction.created_at.desc(), WalletTransaction.id.desc())
            .limit(limit).all())


# ---------- products ----------
def product_out(p: Product) -> dict:
    return {
        "id": p.id, "name": p.name, "description": p.description,
        "price": money(p.price), "commission_percentage": money(p.commission_percentage),
        "is_active": p.is_active,
    }


def get_product(pid: int) -> Product:
    p = db.session.get(Product, pid)
    if not p:
        raise NotFound("product_not_found")
    return p


def create_product(data) -> Product:
    if Product.query.filter(func.lower(Product.name) == data.name.strip().lower()).first():
        raise Conflict("duplicate_name")
    p = Product(name=data.name.strip(), description=data.description, price=data.price,
                commission_percentage=data.commission_percentage, is_active=data.is_active)
    db.session.add(p)
    db.session.flush()
    log_action("create", "product", p.id, {"name": p.name})
    db.session.commit()
    return p


def update_product(pid: int, data) -> Product:
    p = get_product(pid)
    for key, val in data.model_dump(exclude_unset=True).items():
        if val is not None:
            setattr(p, key, val)
    log_action("update", "product", p.id)
    db.session.commit()
    return p


def deactivate_product(pid: int) -> Product:
    p = get_product(pid)
    p.is_active = False
    log_action("deactivate", "product", p.id)
    db.session.commit()
    return p


def purchase(user: User, data) -> dict:
    product = db.session.get(Product, data.product_id)
    if not product or not product.is_active:
        raise NotFound("product_not_found")

    price = Decimal(product.price)
    pct = Decimal(product.commission_percentage)
    commission = commission_for(price, pct)
    txn = reference("TXN")

    w = get_or_create_wallet(user.id)
    w.course_wallet_balance = Decimal(w.course_wallet_balance) + price
    w.commission_wallet_balance = Decimal(w.commission_wallet_balance) + commission
    w.total_earnings = Decimal(w.total_earnings) + commission

    db.session.add(WalletTransaction(
        user_id=user.id, transaction_id=f"{txn}-C", type=TX_COURSE_PURCHASE, amount=price,
        description=f"Course purchase: {product.name} for {data.student_name}", status="completed",
    ))
    db.session.add(WalletTransaction(
        user_id=user.id, transaction_id=f"{txn}-M", type=TX_COMMISSION_EARNED, amount=commission,
        description=f"Commission {pct}% on {product.name}", status="completed",
    ))
    row = ProductPurchase(
        product_id=product.id, agent_id=user.id, transaction_id=txn,
        student_name=data.student_name, student_class=data.student_class,
        student_education=data.education, student_address=data.address,
        student_mobile=data.mobile_number, course_price=price,
        commission_percentage=pct, commission_amount=commission,
    )
    db.session.add(row)
    db.session.add(AdminNotification(
        type="course_purchase",
        title="New course purchase",
        message=f"{user.name} sold {product.name} to {data.student_name}",
        data={"transaction_id": txn, "product_id": product.id, "agent_id": user.id,
              "amount": str(price), "commission": str(commission)},
    ))
    db.session.commit()
    log.info("course purchase txn=%s agent=%s product=%s commission=%s", txn, user.id, product.id, commission)

    return {
        "ok": True,
        "invoice": {
            "transaction_id": txn,
            "product": product_out(product),
            "student_name": row.student_name,
            "student_class": row.student_class,
            "mobile_number": row.student_mobile,
            "course_price": money(price),
            "commission_amount": money(commission),
            "agent": {"id": user.id, "name": user.name},
            "created_at": iso(row.created_at),
        },
        "wallet": wallet_out(w),
    }


def purchase_out(p: ProductPurchase) -> dict:
    return {
        "id": p.id, "transaction_id": p.transaction_id, "product_id": p.product_id,
        "product_name": p.product.name if p.product else None, "agent_id": p.agent_id,
        "student_name": p.student_name, "student_class": p.student_class,
        "student_mobile": p.student_mobile, "course_price": money(p.course_price),
        "commission_percentage": money(p.commission_percentage),
        "commission_amount": money(p.commission_amount), "created_at": iso(p.created_at),
    }


# ---------- withdrawals ----------
def withdrawal_out(r: WithdrawalRequest) -> dict:
    return {
        "id": r.id, "withdrawal_id": r.withdrawal_id, "user_id": r.user_id,
        "user_name": r.user.name if r.user else None, "amount": money(r.amount),
        "status": r.status, "payment_mode": r.payment_mode,
        "payment_details": r.payment_details, "notes": r.notes,
        "requested_at": iso(r.requested_at), "processed_at": iso(r.processed_at),
        "processed_by": r.processed_by,
    }


def _pending_total(user_id: int) -> Decimal:
    total = (db.session.query(func.coalesce(func.sum(WithdrawalRequest.amount), 0))
             .filter(WithdrawalRequest.user_id == user_id,
                     WithdrawalRequest.status == RequestStatus.PENDING.value)
             .scalar())
    return Decimal(total or 0)


def request_withdrawal(user: User, amount: Decimal) -> WithdrawalRequest:
    amount = Decimal(amount).quantize(CENT)
    minimum = Decimal(str(current_app.config.get("MIN_WITHDRAWAL_AMOUNT", 1000)))
    if amount < minimum:
        raise BusinessRuleError("minimum_withdrawal", minimum_amount=money(minimum))

    w = get_or_create_wallet(user.id)
    available = Decimal(w.commission_wallet_balance) - _pending_total(user.id)
    if amount > available:
        raise BusinessRuleError("insufficient_balance", available_balance=money(max(available, ZERO)))

    r = WithdrawalRequest(user_id=user.id, withdrawal_id=reference("WDR"), amount=amount,
                          status=RequestStatus.PENDING.value)
    db.session.add(r)
    db.session.add(WalletTransaction(
        user_id=user.id, transaction_id=r.withdrawal_id, type=TX_WITHDRAWAL_REQUEST,
        amount=amount, description="Withdrawal request", status=RequestStatus.PENDING.value,
    ))
    db.session.commit()
    log.info("withdrawal requested %s user=%s amount=%s", r.withdrawal_id, user.id, amount)
    return r


def _pending_request(rid: int) -> WithdrawalRequest:
    r = WithdrawalRequest.query.filter_by(id=rid, status=RequestStatus.PENDING.value).first()
    if not r:
        raise NotFound("request_not_found")
    return r


def _request_tx(r: WithdrawalRequest) -> Optional[WalletTransaction]:
    return WalletTransaction.query.filter_by(transaction_id=r.withdrawal_id).first()


def approve_withdrawal(rid: int, data, admin: User) -> WithdrawalRequest:
    r = _pending_request(rid)
    w = get_or_create_wallet(r.user_id)
    if Decimal(w.commission_wallet_balance) < Decimal(r.amount):
        raise BusinessRuleError("insufficient_balance", available_balance=money(w.commission_wallet_balance))

    w.commission_wallet_balance = Decimal(w.commission_wallet_balance) - Decimal(r.amount)
    r.status = RequestStatus.APPROVED.value
    r.payment_mode = data.payment_mode
    r.payment_details = data.payment_details
    r.notes = data.notes
    r.processed_at = datetime.utcnow()
    r.processed_by = admin.id

    pending_tx = _request_tx(r)
    if pending_tx:
        pending_tx.status = "completed"
    db.session.add(WalletTransaction(
        user_id=r.user_id, transaction_id=reference("PAY"), type=TX_WITHDRAWAL_COMPLETED,
        amount=r.amount, description=f"Withdrawal {r.withdrawal_id} paid via {data.payment_mode}",
        status="completed",
    ))
    log_action("approve", "withdrawal_request", r.id, {"amount": str(r.amount), "mode": data.payment_mode})
    db.session.commit()
    log.info("withdrawal approved %s amount=%s", r.withdrawal_id, r.amount)
    return r


def reject_withdrawal(rid: int, notes: Optional[str], admin: User) -> WithdrawalRequest:
    r = _pending_request(rid)
    r.status = RequestStatus.REJECTED.value
    r.notes = notes
    r.processed_at = datetime.utcnow()
    r.processed_by = admin.id
    pending_tx = _request_tx(r)
    if pending_tx:
        pending_tx.status = RequestStatus.REJECTED.value
    log_action("reject", "withdrawal_request", r.id)
    db.session.commit()
    log.info("withdrawal rejected %s", r.withdrawal_id)
    return r


# ---------- admin notifications ----------
def notification_out(n: AdminNotification) -> dict:
    return {"id": n.id, "type": n.type, "title": n.title, "message": n.message,
            "data": n.data, "is_read": n.is_read, "created_at": iso(n.created_at)}


def mark_notification_read(nid: int) -> AdminNotification:
    n = db.session.get(AdminNotification, nid)
    if not n:
        raise NotFound("notification_not_found")
    n.is_read = True
    db.session.commit()
    return n
