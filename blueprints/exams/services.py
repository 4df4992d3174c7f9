# blueprints/exams/services.py
from __future__ import annotations
import logging
from typing import Optional

from extensions import db
from models import (
    AnswerState, Chapter, Exam, ExamResult, ExamStatus, SchoolClass, SoCenter, Student, Subject, UserRole,
)
from blueprints.centers.services import center_for_user, resolve_center_id
from blueprints.core.audit import log_action
from blueprints.core.errors import BusinessRuleError, Conflict, Forbidden, NotFound
from blueprints.core.http import iso

log = logging.getLogger(__name__)


def exam_percentage(marks: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return round(marks * 100 / total, 2)


def answer_state(question_marks: Optional[list[dict]], question_count: int, marks: int) -> str:
    """How much of the paper was attempted, from per-question marks when they were entered."""
    if question_marks is None:
        return AnswerState.FULLY_ANSWERED.value if marks > 0 else AnswerState.NOT_ANSWERED.value
    answered = sum(1 for q in question_marks if q["marks"] > 0)
    if answered == 0:
        return AnswerState.NOT_ANSWERED.value
    if answered >= question_count:
        return AnswerState.FULLY_ANSWERED.value
    return AnswerState.PARTIALLY_ANSWERED.value


def exam_out(e: Exam, with_questions: bool = False) -> dict:
    out = {
        "id": e.id,
        "title": e.title,
        "description": e.description,
        "class_id": e.class_id,
        "class_name": e.school_class.name if e.school_class else None,
        "subject_id": e.subject_id,
        "subject_name": e.subject.name if e.subject else None,
        "chapter_ids": [c.id for c in e.chapters],
        "so_center_ids": [c.id for c in e.centers],
        "exam_date": e.exam_date.isoformat(),
        "duration": e.duration,
        "total_questions": e.total_questions,
        "total_marks": e.total_marks,
        "passing_marks": e.passing_marks,
        "status": e.status,
        "created_at": iso(e.created_at),
    }
    if with_questions:
        out["questions"] = e.questions or []
    return out


def result_out(r: ExamResult) -> dict:
    total = r.exam.total_marks
    return {
        "id": r.id,
        "exam_id": r.exam_id,
        "student_id": r.student_id,
        "student_name": r.student.name if r.student else None,
        "student_code": r.student.student_code if r.student else None,
        "marks_obtained": r.marks_obtained,
        "percentage": exam_percentage(r.marks_obtained, total),
        "passed": r.marks_obtained >= r.exam.passing_marks,
        "answered_questions": r.answered_questions,
        "question_marks": r.question_marks or [],
        "remarks": r.remarks,
        "updated_at": iso(r.updated_at),
    }


def get_exam(eid: int) -> Exam:
    e = db.session.get(Exam, eid)
    if not e:
        raise NotFound("exam_not_found")
    return e


# ---------- admin ----------
def _rows(model, ids: list[int]) -> list:
    ids = sorted(set(ids))
    return model.query.filter(model.id.in_(ids)).all() if ids else []


def _check_paper(e: Exam) -> None:
    if not db.session.get(SchoolClass, e.class_id):
        raise NotFound("class_not_found")
    subject = db.session.get(Subject, e.subject_id)
    if not subject:
        raise NotFound("subject_not_found")
    if subject.class_id != e.class_id:
        raise BusinessRuleError("subject_not_in_class")
    stray = sorted(c.id for c in e.chapters if c.subject_id != e.subject_id)
    if stray:
        raise BusinessRuleError("invalid_chapters", chapter_ids=stray)
    if e.passing_marks > e.total_marks:
        raise BusinessRuleError("passing_exceeds_total")
    if e.questions:
        numbers = [q["question_number"] for q in e.questions]
        if len(numbers) != len(set(numbers)):
            raise BusinessRuleError("duplicate_question_numbers")
        question_total = sum(q["marks"] for q in e.questions)
        if question_total != e.total_marks:
            raise BusinessRuleError("question_marks_mismatch", question_total=question_total,
                                    total_marks=e.total_marks)
        e.total_questions = len(e.questions)


def _assign(e: Exam, chapter_ids: Optional[list[int]], so_center_ids: Optional[list[int]]) -> None:
    if chapter_ids is not None:
        chapters = _rows(Chapter, chapter_ids)
        if len(chapters) != len(set(chapter_ids)):
            raise NotFound("chapter_not_found", ids=sorted(set(chapter_ids) - {c.id for c in chapters}))
        e.chapters = chapters
    if so_center_ids is not None:
        centers = [c for c in _rows(SoCenter, so_center_ids) if c.is_active]
        if len(centers) != len(set(so_center_ids)):
            raise BusinessRuleError("invalid_centers", ids=sorted(set(so_center_ids) - {c.id for c in centers}))
        e.centers = centers


def create_exam(data, user) -> Exam:
    e = Exam(
        title=data.title.strip(), description=data.description,
        class_id=data.class_id, subject_id=data.subject_id, exam_date=data.exam_date,
        duration=data.duration, total_questions=data.total_questions or 0,
        total_marks=data.total_marks, passing_marks=data.passing_marks,
        questions=[q.model_dump() for q in data.questions] or None,
        status=ExamStatus.SCHEDULED.value, created_by=user.id,
    )
    _assign(e, data.chapter_ids, data.so_center_ids)
    _check_paper(e)
    db.session.add(e)
    db.session.flush()
    log_action("create", "exam", e.id, {"title": e.title, "centers": [c.id for c in e.centers]})
    db.session.commit()
    log.info("exam created id=%s class=%s subject=%s", e.id, e.class_id, e.subject_id)
    return e


def update_exam(eid: int, data) -> Exam:
    e = get_exam(eid)
    fields = data.model_dump(exclude_unset=True)
    _assign(e, fields.pop("chapter_ids", None), fields.pop("so_center_ids", None))
    if "questions" in fields:
        fields["questions"] = fields["questions"] or None
    for key, val in fields.items():
        if val is not None or key in ("description", "questions"):
            setattr(e, key, val)
    _check_paper(e)
    log_action("update", "exam", e.id, {k: str(v) for k, v in data.model_dump(exclude_unset=True).items()})
    db.session.commit()
    return e


def delete_exam(eid: int) -> None:
    e = get_exam(eid)
    log_action("delete", "exam", e.id, {"title": e.title, "results": len(e.results)})
    db.session.delete(e)
    db.session.commit()
    log.info("exam deleted id=%s", eid)


def exams_query(user, status: Optional[str] = None, class_id: Optional[int] = None,
                so_center_id: Optional[int] = None):
    center_id = resolve_center_id(user, so_center_id)
    q = Exam.query
    if center_id:
        q = q.filter(Exam.centers.any(SoCenter.id == center_id))
    if status:
        q = q.filter(Exam.status == status)
    if class_id:
        q = q.filter(Exam.class_id == class_id)
    return q.order_by(Exam.exam_date.desc(), Exam.id.desc())


# ---------- center side ----------
def exam_for_user(user, eid: int) -> tuple[Exam, Optional[int]]:
    """Load an exam the caller may work on, with the caller's center id (None for admin)."""
    e = get_exam(eid)
    if getattr(user, "role", None) != UserRole.SO_CENTER.value:
        return e, None
    center = center_for_user(user)
    if not center:
        raise Forbidden("no_center_assigned")
    if center not in e.centers:
        raise Forbidden("exam_not_assigned")
    return e, center.id


def exam_students(user, eid: int) -> list[dict]:
    e, center_id = exam_for_user(user, eid)
    q = Student.query.filter(Student.class_id == e.class_id, Student.is_active.is_(True))
    if center_id:
        q = q.filter(Student.so_center_id == center_id)
    else:
        q = q.filter(Student.so_center_id.in_([c.id for c in e.centers]))
    results = {r.student_id: r for r in e.results}
    out = []
    for s in q.order_by(Student.name.asc(), Student.id.asc()).all():
        r = results.get(s.id)
        out.append({
            "id": s.id,
            "name": s.name,
            "student_code": s.student_code,
            "father_name": s.father_name,
            "parent_phone": s.parent_phone,
            "marks_obtained": r.marks_obtained if r else None,
            "answered_questions": r.answered_questions if r else None,
        })
    return out


def _score(e: Exam, entry) -> tuple[int, Optional[list[dict]]]:
    if entry.question_marks is None:
        if entry.marks_obtained is None:
            raise BusinessRuleError("marks_required", student_id=entry.student_id)
        return entry.marks_obtained, None
    paper = {q["question_number"]: q["marks"] for q in (e.questions or [])}
    unknown = sorted(qm.question_number for qm in entry.question_marks if qm.question_number not in paper)
    if unknown:
        raise BusinessRuleError("unknown_questions", student_id=entry.student_id, question_numbers=unknown)
    for qm in entry.question_marks:
        if qm.marks > paper[qm.question_number]:
            raise BusinessRuleError("question_marks_exceed", student_id=entry.student_id,
                                    question_number=qm.question_number, max_marks=paper[qm.question_number])
    detail = [qm.model_dump() for qm in sorted(entry.question_marks, key=lambda x: x.question_number)]
    return sum(qm.marks for qm in entry.question_marks), detail


def save_results(user, eid: int, entries: list) -> dict:
    e, center_id = exam_for_user(user, eid)
    if e.status == ExamStatus.CANCELLED.value:
        raise Conflict("exam_cancelled")
    if e.status == ExamStatus.COMPLETED.value:
        raise Conflict("exam_completed")

    wanted = {entry.student_id: entry for entry in entries}
    students = {s.id: s for s in Student.query.filter(Student.id.in_(list(wanted))).all()}
    allowed_centers = {center_id} if center_id else {c.id for c in e.centers}
    invalid = sorted(
        sid for sid in wanted
        if sid not in students
        or students[sid].class_id != e.class_id
        or students[sid].so_center_id not in allowed_centers
    )
    if invalid:
        raise BusinessRuleError("invalid_students", student_ids=invalid)

    existing = {r.student_id: r for r in e.results}
    saved = []
    for sid, entry in wanted.items():
        marks, detail = _score(e, entry)
        if marks > e.total_marks:
            raise BusinessRuleError("marks_exceed_total", student_id=sid, total_marks=e.total_marks)
        r = existing.get(sid)
        if r is None:
            r = ExamResult(exam=e, student_id=sid)
            db.session.add(r)
        r.marks_obtained = marks
        r.question_marks = detail
        r.answered_questions = answer_state(detail, e.total_questions, marks)
        r.remarks = entry.remarks
        r.submitted_by = user.id
        saved.append(r)
    db.session.flush()
    log_action("results", "exam", e.id, {"students": sorted(wanted)})
    db.session.commit()
    log.info("exam results saved exam=%s count=%s", e.id, len(saved))
    return {"saved": len(saved), "results": [result_out(r) for r in saved]}


def exam_results(user, eid: int, so_center_id: Optional[int] = None) -> dict:
    e, center_id = exam_for_user(user, eid)
    center_id = center_id or so_center_id
    q = ExamResult.query.join(Student, Student.id == ExamResult.student_id).filter(ExamResult.exam_id == e.id)
    if center_id:
        q = q.filter(Student.so_center_id == center_id)
    rows = [result_out(r) for r in q.order_by(ExamResult.marks_obtained.desc(), Student.name.asc()).all()]
    passed = sum(1 for r in rows if r["passed"])
    return {
        "exam": exam_out(e),
        "results": rows,
        "summary": {
            "count": len(rows),
            "passed": passed,
            "failed": len(rows) - passed,
            "average_percentage": round(sum(r["percentage"] for r in rows) / len(rows), 2) if rows else 0.0,
        },
    }


def complete_exam(user, eid: int) -> Exam:
    e, _ = exam_for_user(user, eid)
    if e.status == ExamStatus.COMPLETED.value:
        raise Conflict("already_completed")
    if e.status == ExamStatus.CANCELLED.value:
        raise Conflict("exam_cancelled")
    e.status = ExamStatus.COMPLETED.value
    log_action("complete", "exam", e.id, {"results": len(e.results)})
    db.session.commit()
    log.info("exam %s completed by user=%s", e.id, user.id)
    return e
