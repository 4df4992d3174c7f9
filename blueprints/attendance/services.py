# blueprints/attendance/services.py
from __future__ import annotations
import calendar
import logging
from collections import Counter, defaultdict
from datetime import date
from typing import Iterable, Optional

from extensions import db
from models import Attendance, AttendanceStatus, SchoolClass, Student
from blueprints.centers.services import resolve_center_id
from blueprints.core.errors import BusinessRuleError, NotFound
from blueprints.students.services import get_student

log = logging.getLogger(__name__)


def month_bounds(month: Optional[str], today: Optional[date] = None) -> tuple[date, date]:
    """'YYYY-MM' -> (first day, last day); defaults to the current month."""
    if month:
        try:
            y, m = (int(p) for p in month.split("-", 1))
            first = date(y, m, 1)
        except ValueError:
            raise BusinessRuleError("bad_month", expected="YYYY-MM") from None
    else:
        t = today or date.today()
        first = date(t.year, t.month, 1)
    last = date(first.year, first.month, calendar.monthrange(first.year, first.month)[1])
    return first, last


def attendance_percentage(present: int, absent: int) -> float:
    """Holidays do not count towards the working days."""
    working = present + absent
    if working <= 0:
        return 0.0
    return round(present * 100.0 / working, 2)


def _counts(statuses: Iterable[str]) -> dict:
    c = Counter(statuses)
    present = c.get(AttendanceStatus.PRESENT.value, 0)
    absent = c.get(AttendanceStatus.ABSENT.value, 0)
    return {
        "present_count": present,
        "absent_count": absent,
        "holiday_count": c.get(AttendanceStatus.HOLIDAY.value, 0),
        "attendance_percentage": attendance_percentage(present, absent),
    }


def _upsert(day: date, rows: list[tuple[Student, str]], marked_by: Optional[int]) -> tuple[int, int]:
    ids = [s.id for s, _ in rows]
    existing = {a.student_id: a for a in
                Attendance.query.filter(Attendance.date == day, Attendance.student_id.in_(ids)).all()}
    created = updated = 0
    for s, status in rows:
        a = existing.get(s.id)
        if a:
            a.status = status
            a.class_id = s.class_id
            a.marked_by = marked_by
            updated += 1
        else:
            db.session.add(Attendance(
                student_id=s.id, date=day, class_id=s.class_id, so_center_id=s.so_center_id,
                status=status, marked_by=marked_by,
            ))
            created += 1
    return created, updated


def _check_day_and_class(day: date, class_id: int, today: Optional[date]) -> None:
    if day > (today or date.today()):
        raise BusinessRuleError("future_date")
    if not db.session.get(SchoolClass, class_id):
        raise NotFound("class_not_found")


def submit_attendance(user, data, today: Optional[date] = None) -> dict:
    _check_day_and_class(data.date, data.class_id, today)
    center_id = resolve_center_id(user, data.so_center_id)

    wanted = {r.student_id: r.status.value for r in data.records}
    students = {s.id: s for s in Student.query.filter(Student.id.in_(list(wanted))).all()}
    invalid = sorted(
        sid for sid in wanted
        if sid not in students
        or students[sid].class_id != data.class_id
        or (center_id is not None and students[sid].so_center_id != center_id)
    )
    if invalid:
        raise BusinessRuleError("invalid_students", student_ids=invalid)

    rows = [(students[sid], status) for sid, status in wanted.items()]
    created, updated = _upsert(data.date, rows, user.id)
    db.session.commit()
    log.info("attendance saved date=%s class=%s created=%s updated=%s",
             data.date, data.class_id, created, updated)
    out = _counts(wanted.values())
    out.pop("attendance_percentage")
    out.update({"created": created, "updated": updated})
    return out


def mark_holiday(user, day: date, class_id: int, so_center_id: Optional[int],
                 today: Optional[date] = None) -> dict:
    _check_day_and_class(day, class_id, today)
    center_id = resolve_center_id(user, so_center_id)
    if not center_id:
        raise BusinessRuleError("so_center_required")
    students = (Student.query
                .filter(Student.so_center_id == center_id, Student.class_id == class_id,
                        Student.is_active.is_(True))
                .all())
    _upsert(day, [(s, AttendanceStatus.HOLIDAY.value) for s in students], user.id)
    db.session.commit()
    log.info("holiday marked date=%s class=%s center=%s students=%s", day, class_id, center_id, len(students))
    return {"student_count": len(students)}


def existing_attendance(day: date, student_ids: list[int]) -> dict:
    if not student_ids:
        return {}
    rows = Attendance.query.filter(Attendance.date == day, Attendance.student_id.in_(student_ids)).all()
    return {str(a.student_id): {"status": a.status, "id": a.id} for a in rows}


def attendance_stats(user, month: Optional[str], class_id: Optional[int], so_center_id: Optional[int]) -> dict:
    first, last = month_bounds(month)
    center_id = resolve_center_id(user, so_center_id)
    q = db.session.query(Attendance.status).filter(Attendance.date >= first, Attendance.date <= last)
    if class_id:
        q = q.filter(Attendance.class_id == class_id)
    if center_id:
        q = q.filter(Attendance.so_center_id == center_id)
    out = _counts(status for (status,) in q.all())
    out["month"] = f"{first:%Y-%m}"
    return out


def student_report(user, student_id: int, month: Optional[str]) -> dict:
    s = get_student(student_id, user)
    first, last = month_bounds(month)
    rows = (Attendance.query
            .filter(Attendance.student_id == s.id, Attendance.date >= first, Attendance.date <= last)
            .order_by(Attendance.date.asc()).all())
    out = {
        "student_id": s.id,
        "student_name": s.name,
        "month": f"{first:%Y-%m}",
        "days": [{"date": a.date.isoformat(), "status": a.status} for a in rows],
    }
    out.update(_counts(a.status for a in rows))
    return out


def monthly_report(user, month: Optional[str], class_id: Optional[int], so_center_id: Optional[int]) -> dict:
    first, last = month_bounds(month)
    center_id = resolve_center_id(user, so_center_id)
    sq = Student.query.filter(Student.is_active.is_(True))
    if class_id:
        sq = sq.filter(Student.class_id == class_id)
    if center_id:
        sq = sq.filter(Student.so_center_id == center_id)
    students = sq.order_by(Student.name.asc()).all()

    by_student: dict[int, dict[str, str]] = defaultdict(dict)
    if students:
        rows = Attendance.query.filter(
            Attendance.student_id.in_([s.id for s in students]),
            Attendance.date >= first, Attendance.date <= last,
        ).all()
        for a in rows:
            by_student[a.student_id][a.date.isoformat()] = a.status

    items = []
    for s in students:
        days = by_student.get(s.id, {})
        row = {"student_id": s.id, "student_code": s.student_code, "name": s.name, "days": days}
        row.update(_counts(days.values()))
        items.append(row)
    return {"month": f"{first:%Y-%m}", "days_in_month": last.day, "students": items}
