# blueprints/teachers/services.py
from __future__ import annotations
import logging
from dataclasses import asdict, dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from werkzeug.security import generate_password_hash

from extensions import db
from models import (
    Chapter, SchoolClass, Subject, Teacher, TeacherDailyRecord, Topic, User, UserRole,
)
from blueprints.core.audit import log_action
from blueprints.core.errors import BusinessRuleError, Conflict, NotFound
from blueprints.core.http import iso, money

log = logging.getLogger(__name__)


@dataclass
class RecordOut:
    id: int
    record_date: str
    class_id: int
    class_name: Optional[str]
    subject_id: int
    subject_name: Optional[str]
    chapter_id: Optional[int]
    chapter_name: Optional[str]
    topic_id: Optional[int]
    topic_name: Optional[str]
    teaching_duration: int
    notes: Optional[str]


def teacher_out(t: Teacher) -> dict:
    return {
        "id": t.id,
        "name": t.name,
        "phone": t.phone,
        "email": t.email,
        "qualification": t.qualification,
        "salary_type": t.salary_type,
        "salary_amount": money(t.salary_amount),
        "is_active": t.is_active,
        "user_id": t.user_id,
        "class_ids": [c.id for c in t.classes],
        "subject_ids": [s.id for s in t.subjects],
        "created_at": iso(t.created_at),
    }


def record_out(r: TeacherDailyRecord) -> dict:
    return asdict(RecordOut(
        id=r.id,
        record_date=r.record_date.isoformat(),
        class_id=r.class_id,
        class_name=r.school_class.name if r.school_class else None,
        subject_id=r.subject_id,
        subject_name=r.subject.name if r.subject else None,
        chapter_id=r.chapter_id,
        chapter_name=r.chapter.name if r.chapter else None,
        topic_id=r.topic_id,
        topic_name=r.topic.name if r.topic else None,
        teaching_duration=r.teaching_duration,
        notes=r.notes,
    ))


def get_teacher(tid: int) -> Teacher:
    t = db.session.get(Teacher, tid)
    if not t:
        raise NotFound("teacher_not_found")
    return t


def _load_all(model, ids: list[int], code: str) -> list:
    ids = sorted(set(ids))
    rows = model.query.filter(model.id.in_(ids)).all() if ids else []
    if len(rows) != len(ids):
        missing = sorted(set(ids) - {r.id for r in rows})
        raise NotFound(code, ids=missing)
    return rows


def create_teacher(data) -> Teacher:
    t = Teacher(
        name=data.name.strip(), phone=data.phone, email=data.email,
        qualification=data.qualification, salary_type=data.salary_type,
        salary_amount=data.salary_amount, is_active=data.is_active,
    )
    t.classes = _load_all(SchoolClass, data.class_ids, "class_not_found")
    t.subjects = _load_all(Subject, data.subject_ids, "subject_not_found")
    if data.login_password:
        if not data.email:
            raise BusinessRuleError("email_required_for_login")
        if User.query.filter_by(email=data.email).first():
            raise Conflict("email_taken")
        user = User(email=data.email, name=t.name, phone=t.phone, role=UserRole.TEACHER.value,
                    password_hash=generate_password_hash(data.login_password))
        db.session.add(user)
        db.session.flush()
        t.user_id = user.id
    db.session.add(t)
    db.session.flush()
    log_action("create", "teacher", t.id, {"name": t.name})
    db.session.commit()
    log.info("teacher created id=%s", t.id)
    return t


def update_teacher(tid: int, data) -> Teacher:
    t = get_teacher(tid)
    fields = data.model_dump(exclude_unset=True)
    if fields.get("class_ids") is not None:
        t.classes = _load_all(SchoolClass, fields.pop("class_ids"), "class_not_found")
    if fields.get("subject_ids") is not None:
        t.subjects = _load_all(Subject, fields.pop("subject_ids"), "subject_not_found")
    fields.pop("class_ids", None)
    fields.pop("subject_ids", None)
    for key, val in fields.items():
        if val is not None:
            setattr(t, key, val)
    log_action("update", "teacher", t.id)
    db.session.commit()
    return t


def deactivate_teacher(tid: int) -> Teacher:
    t = get_teacher(tid)
    t.is_active = False
    if t.user:
        t.user.is_active = False
    log_action("deactivate", "teacher", t.id)
    db.session.commit()
    return t


def set_classes(tid: int, class_ids: list[int]) -> Teacher:
    t = get_teacher(tid)
    t.classes = _load_all(SchoolClass, class_ids, "class_not_found")
    db.session.commit()
    return t


def set_subjects(tid: int, subject_ids: list[int]) -> Teacher:
    t = get_teacher(tid)
    t.subjects = _load_all(Subject, subject_ids, "subject_not_found")
    db.session.commit()
    return t


# ---------- daily teaching records ----------
def add_record(data) -> TeacherDailyRecord:
    t = get_teacher(data.teacher_id)
    if not t.is_active:
        raise BusinessRuleError("teacher_inactive")
    subject = db.session.get(Subject, data.subject_id)
    if not subject:
        raise NotFound("subject_not_found")
    if subject.class_id != data.class_id:
        raise BusinessRuleError("subject_not_in_class")
    if data.chapter_id is not None:
        chapter = db.session.get(Chapter, data.chapter_id)
        if not chapter:
            raise NotFound("chapter_not_found")
        if chapter.subject_id != subject.id:
            raise BusinessRuleError("chapter_not_in_subject")
    if data.topic_id is not None:
        topic = db.session.get(Topic, data.topic_id)
        if not topic:
            raise NotFound("topic_not_found")
        if data.chapter_id is None or topic.chapter_id != data.chapter_id:
            raise BusinessRuleError("topic_not_in_chapter")

    r = TeacherDailyRecord(
        teacher_id=t.id, record_date=data.record_date or date.today(),
        class_id=data.class_id, subject_id=subject.id, chapter_id=data.chapter_id,
        topic_id=data.topic_id, teaching_duration=data.teaching_duration, notes=data.notes,
    )
    db.session.add(r)
    db.session.commit()
    log.info("teaching record teacher=%s minutes=%s", t.id, r.teaching_duration)
    return r


def records_summary(tid: int, d_from: Optional[date] = None, d_to: Optional[date] = None) -> dict:
    t = get_teacher(tid)
    q = TeacherDailyRecord.query.filter(TeacherDailyRecord.teacher_id == t.id)
    if d_from:
        q = q.filter(TeacherDailyRecord.record_date >= d_from)
    if d_to:
        q = q.filter(TeacherDailyRecord.record_date <= d_to)
    rows = q.order_by(TeacherDailyRecord.record_date.desc(), TeacherDailyRecord.id.desc()).all()
    total_minutes = sum(r.teaching_duration for r in rows)
    return {
        "teacher": {"id": t.id, "name": t.name},
        "records": [record_out(r) for r in rows],
        "summary": {
            "total_minutes": total_minutes,
            "total_hours": float((Decimal(total_minutes) / 60).quantize(Decimal("0.01"))),
            "days": len({r.record_date for r in rows}),
            "records": len(rows),
        },
    }


def teacher_for_user(user) -> Teacher:
    t = Teacher.query.filter_by(user_id=user.id).first()
    if not t:
        raise NotFound("teacher_not_found")
    return t
