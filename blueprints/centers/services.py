# blueprints/centers/services.py
from __future__ import annotations
import logging
from typing import Optional

from flask import current_app
from sqlalchemy import func

from extensions import db
from models import CenterWalletTransaction, SoCenter, Student, User, UserRole
from blueprints.core.audit import log_action
from blueprints.core.errors import BusinessRuleError, Conflict, Forbidden, NotFound
from blueprints.core.http import iso, money

log = logging.getLogger(__name__)


# ---------- scoping of so_center users ----------
def center_for_user(user) -> Optional[SoCenter]:
    if getattr(user, "role", None) != UserRole.SO_CENTER.value:
        return None
    return user.managed_center


def resolve_center_id(user, requested: Optional[int]) -> Optional[int]:
    """so_center users are pinned to their own center; other roles pass through."""
    if getattr(user, "role", None) != UserRole.SO_CENTER.value:
        return requested
    center = center_for_user(user)
    if not center:
        raise Forbidden("no_center_assigned")
    if requested and requested != center.id:
        raise Forbidden("center_forbidden")
    return center.id


def ensure_student_access(user, student: Student) -> None:
    if getattr(user, "role", None) == UserRole.SO_CENTER.value:
        center = center_for_user(user)
        if not center or student.so_center_id != center.id:
            raise Forbidden("student_not_in_center")


# ---------- centers ----------
def center_out(c: SoCenter) -> dict:
    return {
        "id": c.id,
        "center_code": c.center_code,
        "name": c.name,
        "address": c.address,
        "phone": c.phone,
        "manager_id": c.manager_id,
        "manager_name": c.manager.name if c.manager else None,
        "wallet_balance": money(c.wallet_balance),
        "is_active": c.is_active,
        "created_at": iso(c.created_at),
    }


def get_center(cid: int) -> SoCenter:
    c = db.session.get(SoCenter, cid)
    if not c:
        raise NotFound("center_not_found")
    return c


def next_center_code() -> str:
    prefix = current_app.config.get("CENTER_CODE_PREFIX", "NNASOC")
    n = db.session.query(func.count(SoCenter.id)).scalar() + 1
    code = f"{prefix}{n:05d}"
    while SoCenter.query.filter_by(center_code=code).first():
        n += 1
        code = f"{prefix}{n:05d}"
    return code


def _check_manager(manager_id: Optional[int], center_id: Optional[int] = None) -> None:
    if manager_id is None:
        return
    u = db.session.get(User, manager_id)
    if not u or u.role != UserRole.SO_CENTER.value:
        raise BusinessRuleError("invalid_manager")
    other = SoCenter.query.filter(SoCenter.manager_id == manager_id)
    if center_id:
        other = other.filter(SoCenter.id != center_id)
    if other.first():
        raise BusinessRuleError("manager_already_assigned")


def create_center(data) -> SoCenter:
    _check_manager(data.manager_id)
    code = (data.center_code or "").strip().upper() or next_center_code()
    if SoCenter.query.filter_by(center_code=code).first():
        raise Conflict("center_code_taken")
    c = SoCenter(
        center_code=code, name=data.name.strip(), address=data.address,
        phone=data.phone, manager_id=data.manager_id, is_active=data.is_active,
    )
    db.session.add(c)
    db.session.flush()
    log_action("create", "so_center", c.id, {"center_code": code})
    db.session.commit()
    log.info("center created %s", code)
    return c


def update_center(cid: int, data) -> SoCenter:
    c = get_center(cid)
    fields = data.model_dump(exclude_unset=True)
    if "manager_id" in fields:
        _check_manager(fields["manager_id"], center_id=c.id)
        c.manager_id = fields["manager_id"]
    for key in ("name", "address", "phone", "is_active"):
        if key in fields and fields[key] is not None:
            setattr(c, key, fields[key])
    log_action("update", "so_center", c.id, fields)
    db.session.commit()
    return c


def deactivate_center(cid: int) -> SoCenter:
    c = get_center(cid)
    active = (db.session.query(func.count(Student.id))
              .filter(Student.so_center_id == c.id, Student.is_active.is_(True))
              .scalar())
    if active:
        raise Conflict("has_active_students", active_students=active)
    c.is_active = False
    c.manager_id = None
    log_action("deactivate", "so_center", c.id)
    db.session.commit()
    return c


def center_wallet(c: SoCenter) -> dict:
    limit = int(current_app.config.get("WALLET_TRANSACTIONS_LIMIT", 50))
    txs = (CenterWalletTransaction.query
           .filter_by(so_center_id=c.id)
           .order_by(CenterWalletTransaction.created_at.desc(), CenterWalletTransaction.id.desc())
           .limit(limit).all())
    return {
        "so_center_id": c.id,
        "balance": money(c.wallet_balance),
        "transactions": [{
            "id": t.id, "amount": money(t.amount), "type": t.type,
            "description": t.description, "payment_id": t.payment_id,
            "created_at": iso(t.created_at),
        } for t in txs],
    }
