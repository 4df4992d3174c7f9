# blueprints/reports/services.py
from __future__ import annotations
import csv
from datetime import date, datetime
from io import StringIO
from typing import Iterable, Optional, Sequence

from sqlalchemy import func

from extensions import db
from models import Attendance, AttendanceStatus, Payment, SoCenter, Student
from blueprints.attendance.services import attendance_percentage, month_bounds
from blueprints.core.http import money


def _to_csv(header: Sequence[str], rows: Iterable[Sequence]) -> str:
    buf = StringIO()
    w = csv.writer(buf, delimiter=";")
    w.writerow(header)
    w.writerows(rows)
    return buf.getvalue()


def payments_csv(d_from: date, d_to: date, so_center_id: Optional[int] = None) -> str:
    """
    CSV: date;transaction_id;receipt_number;student_code;student;center_code;fee_type;method;amount
    """
    q = (db.session.query(Payment, Student, SoCenter)
         .join(Student, Student.id == Payment.student_id)
         .join(SoCenter, SoCenter.id == Student.so_center_id)
         .filter(Payment.created_at >= datetime.combine(d_from, datetime.min.time()),
                 Payment.created_at <= datetime.combine(d_to, datetime.max.time())))
    if so_center_id:
        q = q.filter(Student.so_center_id == so_center_id)
    q = q.order_by(Payment.created_at.asc(), Payment.id.asc())
    rows = [(
        p.created_at.date().isoformat(), p.transaction_id, p.receipt_number, s.student_code,
        s.name, c.center_code, p.fee_type, p.payment_method, f"{money(p.amount):.2f}",
    ) for p, s, c in q.all()]
    return _to_csv(["date", "transaction_id", "receipt_number", "student_code", "student",
                    "center_code", "fee_type", "method", "amount"], rows)


def attendance_csv(month: Optional[str], so_center_id: Optional[int] = None) -> str:
    """
    CSV: student_code;student;class;present;absent;holiday;percentage
    """
    first, last = month_bounds(month)
    sq = Student.query.filter(Student.is_active.is_(True))
    if so_center_id:
        sq = sq.filter(Student.so_center_id == so_center_id)
    students = sq.order_by(Student.student_code.asc()).all()

    counts: dict[int, dict[str, int]] = {}
    if students:
        aq = (db.session.query(Attendance.student_id, Attendance.status, func.count(Attendance.id))
              .filter(Attendance.student_id.in_([s.id for s in students]),
                      Attendance.date >= first, Attendance.date <= last)
              .group_by(Attendance.student_id, Attendance.status))
        for sid, status, n in aq.all():
            counts.setdefault(sid, {})[status] = n

    rows = []
    for s in students:
        c = counts.get(s.id, {})
        present = c.get(AttendanceStatus.PRESENT.value, 0)
        absent = c.get(AttendanceStatus.ABSENT.value, 0)
        rows.append((s.student_code, s.name, s.school_class.name if s.school_class else "",
                     present, absent, c.get(AttendanceStatus.HOLIDAY.value, 0),
                     f"{attendance_percentage(present, absent):.2f}"))
    return _to_csv(["student_code", "student", "class", "present", "absent", "holiday", "percentage"], rows)


def dues_csv(so_center_id: Optional[int] = None) -> str:
    """
    CSV: student_code;student;center_code;parent_phone;total;paid;pending;status
    """
    q = Student.query.filter(Student.is_active.is_(True), Student.pending_amount > 0)
    if so_center_id:
        q = q.filter(Student.so_center_id == so_center_id)
    rows = [(
        s.student_code, s.name, s.so_center.center_code if s.so_center else "", s.parent_phone,
        f"{money(s.total_fee_amount):.2f}", f"{money(s.paid_amount):.2f}",
        f"{money(s.pending_amount):.2f}", s.payment_status,
    ) for s in q.order_by(Student.pending_amount.desc(), Student.student_code.asc()).all()]
    return _to_csv(["student_code", "student", "center_code", "parent_phone",
                    "total", "paid", "pending", "status"], rows)
