# blueprints/dashboard/services.py
from __future__ import annotations
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import func

from extensions import db
from models import (
    Attendance, AttendanceStatus, DropoutRequest, Payment, RequestStatus, SoCenter, Student,
    Teacher, WithdrawalRequest,
)
from blueprints.core.http import money


def _sum(query) -> Decimal:
    return Decimal(query.scalar() or 0)


def admin_stats() -> dict:
    return {
        "role": "admin",
        "counters": {
            "students": Student.query.filter_by(is_active=True).count(),
            "active_centers": SoCenter.query.filter_by(is_active=True).count(),
            "teachers": Teacher.query.filter_by(is_active=True).count(),
            "pending_withdrawals": WithdrawalRequest.query.filter_by(status=RequestStatus.PENDING.value).count(),
            "pending_dropouts": DropoutRequest.query.filter_by(status=RequestStatus.PENDING.value).count(),
        },
        "total_collected": money(_sum(db.session.query(func.sum(Payment.amount)))),
        "total_pending": money(_sum(db.session.query(func.sum(Student.pending_amount))
                                    .filter(Student.is_active.is_(True)))),
    }


def center_stats(center: SoCenter, today: date | None = None) -> dict:
    today = today or date.today()
    month_start = datetime(today.year, today.month, 1)
    collected = _sum(db.session.query(func.sum(Payment.amount))
                     .join(Student, Student.id == Payment.student_id)
                     .filter(Student.so_center_id == center.id, Payment.created_at >= month_start))
    marked = dict(db.session.query(Attendance.status, func.count(Attendance.id))
                  .filter(Attendance.so_center_id == center.id, Attendance.date == today)
                  .group_by(Attendance.status).all())
    return {
        "role": "so_center",
        "so_center": {"id": center.id, "center_code": center.center_code, "name": center.name},
        "counters": {
            "students": Student.query.filter_by(so_center_id=center.id, is_active=True).count(),
            "students_with_dues": Student.query.filter(
                Student.so_center_id == center.id, Student.is_active.is_(True),
                Student.pending_amount > 0).count(),
        },
        "collections_this_month": money(collected),
        "attendance_today": {
            "present": marked.get(AttendanceStatus.PRESENT.value, 0),
            "absent": marked.get(AttendanceStatus.ABSENT.value, 0),
            "holiday": marked.get(AttendanceStatus.HOLIDAY.value, 0),
        },
        "wallet_balance": money(center.wallet_balance),
    }
