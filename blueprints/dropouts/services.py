# blueprints/dropouts/services.py
from __future__ import annotations
import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from extensions import db
from models import DropoutRequest, RequestStatus, Student, UserRole
from blueprints.centers.services import center_for_user
from blueprints.core.audit import log_action
from blueprints.core.errors import BusinessRuleError, Conflict, Forbidden, NotFound
from blueprints.core.http import iso, money

log = logging.getLogger(__name__)


def dropout_out(r: DropoutRequest) -> dict:
    return {
        "id": r.id,
        "student_id": r.student_id,
        "student_name": r.student.name if r.student else None,
        "student_code": r.student.student_code if r.student else None,
        "so_center_id": r.so_center_id,
        "so_center_name": r.so_center.name if r.so_center else None,
        "reason": r.reason,
        "status": r.status,
        "requested_by": r.requested_by,
        "processed_by": r.processed_by,
        "processed_at": iso(r.processed_at),
        "admin_notes": r.admin_notes,
        "created_at": iso(r.created_at),
    }


def create_request(user, student_id: int, reason: str) -> DropoutRequest:
    center = center_for_user(user)
    s = db.session.get(Student, student_id)
    if not s:
        raise NotFound("student_not_found")
    if not center or s.so_center_id != center.id:
        raise Forbidden("student_not_in_center")
    if not s.is_active:
        raise BusinessRuleError("student_inactive")
    pending = Decimal(s.pending_amount or 0)
    if pending > 0:
        raise BusinessRuleError("pending_balance", pending_amount=money(pending))
    if DropoutRequest.query.filter_by(student_id=s.id, status=RequestStatus.PENDING.value).first():
        raise Conflict("request_already_pending")

    r = DropoutRequest(student_id=s.id, so_center_id=center.id, reason=reason.strip(),
                       status=RequestStatus.PENDING.value, requested_by=user.id)
    db.session.add(r)
    db.session.flush()
    log_action("create", "dropout_request", r.id, {"student_id": s.id})
    db.session.commit()
    log.info("dropout requested student=%s center=%s", s.student_code, center.center_code)
    return r


def requests_query(user, status: Optional[str] = None):
    q = DropoutRequest.query
    if user.role == UserRole.SO_CENTER.value:
        center = center_for_user(user)
        q = q.filter(DropoutRequest.so_center_id == (center.id if center else -1))
    if status:
        q = q.filter(DropoutRequest.status == status)
    return q.order_by(DropoutRequest.created_at.desc(), DropoutRequest.id.desc())


def process_request(rid: int, status: str, admin_notes: Optional[str], admin) -> DropoutRequest:
    r = db.session.get(DropoutRequest, rid)
    if not r:
        raise NotFound("request_not_found")
    if r.status != RequestStatus.PENDING.value:
        raise Conflict("already_processed", status=r.status)
    r.status = status
    r.admin_notes = admin_notes
    r.processed_by = admin.id
    r.processed_at = datetime.utcnow()
    if status == RequestStatus.APPROVED.value:
        r.student.is_active = False
    log_action(status, "dropout_request", r.id, {"student_id": r.student_id, "notes": admin_notes})
    db.session.commit()
    log.info("dropout request %s %s", r.id, status)
    return r
