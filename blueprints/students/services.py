# blueprints/students/services.py
from __future__ import annotations
import csv
import logging
import secrets
from datetime import date
from io import StringIO
from typing import Optional

from pydantic import ValidationError
from sqlalchemy import or_

from extensions import db
from models import SchoolClass, SoCenter, Student
from blueprints.centers.services import ensure_student_access, resolve_center_id
from blueprints.core.audit import log_action
from blueprints.core.errors import BusinessRuleError, Conflict, NotFound, ServiceError
from blueprints.core.http import iso, money
from blueprints.fees.services import apply_fees
from .schemas import StudentIn, StudentUpdate

log = logging.getLogger(__name__)


def student_out(s: Student) -> dict:
    return {
        "id": s.id,
        "student_code": s.student_code,
        "name": s.name,
        "class_id": s.class_id,
        "class_name": s.school_class.name if s.school_class else None,
        "so_center_id": s.so_center_id,
        "so_center_code": s.so_center.center_code if s.so_center else None,
        "parent_name": s.parent_name,
        "parent_phone": s.parent_phone,
        "father_name": s.father_name,
        "mother_name": s.mother_name,
        "aadhar_number": s.aadhar_number,
        "course_type": s.course_type,
        "enrollment_date": iso(s.enrollment_date),
        "admission_fee_paid": s.admission_fee_paid,
        "total_fee_amount": money(s.total_fee_amount),
        "paid_amount": money(s.paid_amount),
        "pending_amount": money(s.pending_amount),
        "payment_status": s.payment_status,
        "qr_code": s.qr_code,
        "is_active": s.is_active,
        "created_at": iso(s.created_at),
    }


def get_student(student_id: int, user=None) -> Student:
    s = db.session.get(Student, student_id)
    if not s:
        raise NotFound("student_not_found")
    if user is not None:
        ensure_student_access(user, s)
    return s


def students_query(user, class_id: Optional[int] = None, so_center_id: Optional[int] = None,
                   q: Optional[str] = None, active: Optional[bool] = None):
    center_id = resolve_center_id(user, so_center_id)
    query = Student.query
    if center_id:
        query = query.filter(Student.so_center_id == center_id)
    if class_id:
        query = query.filter(Student.class_id == class_id)
    if active is not None:
        query = query.filter(Student.is_active.is_(active))
    if q:
        like = f"%{q.strip()}%"
        query = query.filter(or_(Student.name.ilike(like), Student.student_code.ilike(like),
                                 Student.parent_phone.ilike(like)))
    return query.order_by(Student.name.asc(), Student.id.asc())


# ---------- identifiers ----------
def next_student_code(center: SoCenter) -> str:
    prefix = f"{center.center_code}-"
    n = Student.query.filter(Student.so_center_id == center.id).count() + 1
    code = f"{prefix}{n:04d}"
    while Student.query.filter_by(student_code=code).first():
        n += 1
        code = f"{prefix}{n:04d}"
    return code


def new_qr_code() -> str:
    while True:
        token = secrets.token_urlsafe(16)
        if not Student.query.filter_by(qr_code=token).first():
            return token


def aadhar_is_unique(aadhar: str, exclude_id: Optional[int] = None) -> bool:
    q = Student.query.filter(Student.aadhar_number == aadhar)
    if exclude_id:
        q = q.filter(Student.id != exclude_id)
    return q.first() is None


# ---------- CRUD ----------
def _target_center(user, requested: Optional[int]) -> SoCenter:
    center_id = resolve_center_id(user, requested)
    if not center_id:
        raise BusinessRuleError("so_center_required")
    center = db.session.get(SoCenter, center_id)
    if not center or not center.is_active:
        raise NotFound("center_not_found")
    return center


def create_student(user, data: StudentIn, today: Optional[date] = None, commit: bool = True) -> Student:
    center = _target_center(user, data.so_center_id)
    if not db.session.get(SchoolClass, data.class_id):
        raise NotFound("class_not_found")
    if data.aadhar_number and not aadhar_is_unique(data.aadhar_number):
        raise Conflict("aadhar_taken")

    s = Student(
        student_code=next_student_code(center),
        name=data.name.strip(),
        class_id=data.class_id,
        so_center_id=center.id,
        parent_name=data.parent_name,
        parent_phone=data.parent_phone,
        father_name=data.father_name,
        mother_name=data.mother_name,
        aadhar_number=data.aadhar_number,
        course_type=data.course_type.value,
        enrollment_date=data.enrollment_date or today or date.today(),
        admission_fee_paid=data.admission_fee_paid,
        qr_code=new_qr_code(),
    )
    db.session.add(s)
    db.session.flush()
    calc = apply_fees(s, today=today)
    if calc is None:
        log.warning("no fee structure for class=%s course=%s, student %s starts without dues",
                    s.class_id, s.course_type, s.student_code)
    log_action("create", "student", s.id, {"student_code": s.student_code})
    if commit:
        db.session.commit()
    log.info("student enrolled %s center=%s", s.student_code, center.center_code)
    return s


def update_student(user, student_id: int, data: StudentUpdate) -> Student:
    s = get_student(student_id, user)
    fields = data.model_dump(exclude_unset=True)
    if fields.get("aadhar_number") and not aadhar_is_unique(fields["aadhar_number"], exclude_id=s.id):
        raise Conflict("aadhar_taken")
    if fields.get("class_id") and not db.session.get(SchoolClass, fields["class_id"]):
        raise NotFound("class_not_found")
    if fields.get("course_type") is not None:
        fields["course_type"] = fields["course_type"].value
    nullable = {"aadhar_number", "parent_name", "father_name", "mother_name", "enrollment_date"}
    for key, val in fields.items():
        if val is not None or key in nullable:
            setattr(s, key, val)
    log_action("update", "student", s.id, {k: str(v) for k, v in fields.items()})
    db.session.commit()
    return s


def deactivate_student(user, student_id: int) -> Student:
    s = get_student(student_id, user)
    s.is_active = False
    log_action("deactivate", "student", s.id)
    db.session.commit()
    return s


# ---------- CSV import ----------
def read_csv_text(text: str) -> tuple[list[str], list[list[str]]]:
    lines = text.splitlines()
    if not lines:
        return [], []
    try:
        delim = csv.Sniffer().sniff(lines[0], delimiters=",;\t").delimiter
    except csv.Error:
        delim = ";" if ";" in lines[0] else ","
    rows = [r for r in csv.reader(StringIO(text), delimiter=delim) if any(c.strip() for c in r)]
    if not rows:
        return [], []
    header, data = rows[0], rows[1:]
    return [h.strip().lower() for h in header], [[c.strip() for c in r] for r in data]


HEADER_SYNONYMS: dict[str, list[str]] = {
    "name": ["name", "student_name", "student"],
    "class": ["class", "class_name"],
    "parent_phone": ["parent_phone", "phone", "mobile"],
    "parent_name": ["parent_name", "parent"],
    "course_type": ["course_type", "course"],
    "enrollment_date": ["enrollment_date", "enrolled", "date"],
    "aadhar_number": ["aadhar_number", "aadhar"],
}


def _column(header: list[str], field: str) -> Optional[int]:
    for cand in HEADER_SYNONYMS.get(field, [field]):
        if cand in header:
            return header.index(cand)
    return None


def import_students_csv(user, text: str, so_center_id: Optional[int] = None) -> dict:
    header, rows = read_csv_text(text)
    cols = {f: _column(header, f) for f in HEADER_SYNONYMS}
    missing = [f for f in ("name", "class", "parent_phone") if cols[f] is None]
    if missing:
        raise BusinessRuleError("missing_columns", columns=missing)

    classes = {c.name.strip().lower(): c.id for c in SchoolClass.query.all()}
    created, errors = 0, []
    for i, row in enumerate(rows, start=2):
        def cell(field: str) -> Optional[str]:
            idx = cols[field]
            return row[idx] if idx is not None and idx < len(row) and row[idx] else None

        class_id = classes.get((cell("class") or "").lower())
        if not class_id:
            errors.append({"row": i, "error": "unknown_class"})
            continue
        try:
            data = StudentIn.model_validate({
                "name": cell("name") or "",
                "class_id": class_id,
                "parent_phone": cell("parent_phone") or "",
                "parent_name": cell("parent_name"),
                "course_type": cell("course_type") or "monthly",
                "enrollment_date": cell("enrollment_date"),
                "aadhar_number": cell("aadhar_number"),
                "so_center_id": so_center_id,
            })
        except ValidationError as ve:
            errors.append({"row": i, "error": "validation_error",
                           "fields": [".".join(map(str, e["loc"])) for e in ve.errors()]})
            continue
        try:
            create_student(user, data, commit=False)
        except ServiceError as ex:
            errors.append({"row": i, "error": ex.code})
            continue
        created += 1
    db.session.commit()
    log.info("student import: created=%s errors=%s", created, len(errors))
    return {"created": created, "errors": errors}


def balance_dues(user, so_center_id: Optional[int] = None) -> list[Student]:
    center_id = resolve_center_id(user, so_center_id)
    q = Student.query.filter(Student.pending_amount > 0, Student.is_active.is_(True))
    if center_id:
        q = q.filter(Student.so_center_id == center_id)
    return q.order_by(Student.pending_amount.desc(), Student.id.asc()).all()
