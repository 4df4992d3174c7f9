# blueprints/progress/services.py
from __future__ import annotations
import logging
from datetime import date
from typing import Optional

from sqlalchemy import func

from extensions import db
from models import (
    Attendance, AttendanceStatus, Chapter, HomeworkActivity, Student, Subject, Topic, TopicProgress, TopicStatus,
)
from blueprints.announcements.services import announcement_out, for_qr_page
from blueprints.attendance.services import attendance_percentage, month_bounds
from blueprints.core.errors import BusinessRuleError, NotFound
from blueprints.core.http import iso
from blueprints.students.services import get_student

log = logging.getLogger(__name__)


def _topic(topic_id: int) -> Topic:
    t = db.session.get(Topic, topic_id)
    if not t:
        raise NotFound("topic_not_found")
    return t


def _progress_row(student_id: int, topic_id: int) -> Optional[TopicProgress]:
    return TopicProgress.query.filter_by(student_id=student_id, topic_id=topic_id).first()


def complete_topic(user, student_id: int, topic_id: int, feedback: Optional[str] = None,
                   today: Optional[date] = None) -> TopicProgress:
    s = get_student(student_id, user)
    t = _topic(topic_id)
    row = _progress_row(s.id, t.id)
    if row and row.status == TopicStatus.LEARNED.value:
        raise BusinessRuleError("already_completed", completed_date=iso(row.completed_date))
    if not row:
        row = TopicProgress(student_id=s.id, topic_id=t.id)
        db.session.add(row)
    row.status = TopicStatus.LEARNED.value
    row.completed_date = today or date.today()
    row.updated_by = user.id
    if feedback:
        row.teacher_feedback = feedback
    db.session.commit()
    log.info("topic %s learned by student %s", t.id, s.student_code)
    return row


def reset_topic(user, student_id: int, topic_id: int) -> TopicProgress:
    s = get_student(student_id, user)
    t = _topic(topic_id)
    row = _progress_row(s.id, t.id)
    if not row:
        raise NotFound("progress_not_found")
    row.status = TopicStatus.PENDING.value
    row.completed_date = None
    row.updated_by = user.id
    db.session.commit()
    return row


def topics_status(user, student_id: int, chapter_id: int) -> dict:
    s = get_student(student_id, user)
    if not db.session.get(Chapter, chapter_id):
        raise NotFound("chapter_not_found")
    topics = (Topic.query.filter_by(chapter_id=chapter_id, is_active=True)
              .order_by(Topic.order_index.asc(), Topic.name.asc()).all())
    rows = {p.topic_id: p for p in TopicProgress.query.filter(
        TopicProgress.student_id == s.id,
        TopicProgress.topic_id.in_([t.id for t in topics] or [-1])).all()}

    completed, remaining, details = [], [], []
    for t in topics:
        p = rows.get(t.id)
        learned = bool(p and p.status == TopicStatus.LEARNED.value)
        (completed if learned else remaining).append(t.id)
        details.append({
            "topic_id": t.id,
            "name": t.name,
            "order_index": t.order_index,
            "is_important": t.is_important,
            "is_moderate": t.is_moderate,
            "status": TopicStatus.LEARNED.value if learned else TopicStatus.PENDING.value,
            "completed_date": iso(p.completed_date) if learned else None,
            "teacher_feedback": p.teacher_feedback if p else None,
        })
    return {"completed": completed, "remaining": remaining, "total": len(topics), "details": details}


# ---------- homework ----------
def save_homework(user, activities) -> dict:
    count = 0
    for act in activities:
        s = get_student(act.student_id, user)
        row = HomeworkActivity.query.filter_by(student_id=s.id, homework_date=act.date).first()
        if not row:
            row = HomeworkActivity(student_id=s.id, homework_date=act.date, class_id=s.class_id)
            db.session.add(row)
        row.status = act.status.value
        row.completion_type = act.completion_type
        row.reason = act.reason
        count += 1
    db.session.commit()
    return {"count": count}


def homework_for(user, student_id: int, month: Optional[str]) -> list[dict]:
    s = get_student(student_id, user)
    first, last = month_bounds(month)
    rows = (HomeworkActivity.query
            .filter(HomeworkActivity.student_id == s.id,
                    HomeworkActivity.homework_date >= first, HomeworkActivity.homework_date <= last)
            .order_by(HomeworkActivity.homework_date.asc()).all())
    return [{"date": r.homework_date.isoformat(), "status": r.status,
             "completion_type": r.completion_type, "reason": r.reason} for r in rows]


# ---------- summaries ----------
def subject_progress(s: Student) -> list[dict]:
    totals = dict(
        db.session.query(Subject.id, func.count(Topic.id))
        .join(Chapter, Chapter.subject_id == Subject.id)
        .join(Topic, Topic.chapter_id == Chapter.id)
        .filter(Subject.class_id == s.class_id, Topic.is_active.is_(True))
        .group_by(Subject.id).all()
    )
    learned = dict(
        db.session.query(Subject.id, func.count(TopicProgress.id))
        .join(Chapter, Chapter.subject_id == Subject.id)
        .join(Topic, Topic.chapter_id == Chapter.id)
        .join(TopicProgress, TopicProgress.topic_id == Topic.id)
        .filter(Subject.class_id == s.class_id, Topic.is_active.is_(True),
                TopicProgress.student_id == s.id,
                TopicProgress.status == TopicStatus.LEARNED.value)
        .group_by(Subject.id).all()
    )
    out = []
    for subj in Subject.query.filter_by(class_id=s.class_id).order_by(Subject.name.asc()).all():
        total = totals.get(subj.id, 0)
        done = learned.get(subj.id, 0)
        out.append({
            "subject_id": subj.id,
            "name": subj.name,
            "total_topics": total,
            "completed_topics": done,
            "percentage": round(done * 100.0 / total, 2) if total else 0.0,
        })
    return out


def student_progress(user, student_id: int) -> dict:
    s = get_student(student_id, user)
    return {"student_id": s.id, "name": s.name, "class_id": s.class_id, "subjects": subject_progress(s)}


def public_progress(qr_code: str, today: Optional[date] = None) -> dict:
    s = Student.query.filter_by(qr_code=qr_code).first()
    if not s or not s.is_active:
        raise NotFound("student_not_found")
    first, last = month_bounds(None, today=today)
    statuses = [st for (st,) in db.session.query(Attendance.status).filter(
        Attendance.student_id == s.id, Attendance.date >= first, Attendance.date <= last).all()]
    present = statuses.count(AttendanceStatus.PRESENT.value)
    absent = statuses.count(AttendanceStatus.ABSENT.value)
    return {
        "student": {
            "name": s.name,
            "student_code": s.student_code,
            "class_name": s.school_class.name if s.school_class else None,
            "so_center": s.so_center.name if s.so_center else None,
        },
        "subjects": subject_progress(s),
        "attendance": {
            "month": f"{first:%Y-%m}",
            "present": present,
            "absent": absent,
            "percentage": attendance_percentage(present, absent),
        },
        "announcements": [announcement_out(a) for a in for_qr_page(today)],
    }
