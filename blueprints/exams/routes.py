# blueprints/exams/routes.py
from __future__ import annotations
import datetime as dt
from typing import Literal, Optional

from flask import Blueprint, request
from flask_login import current_user
from pydantic import BaseModel, Field

from models import UserRole
from blueprints.auth.routes import admin_required, roles_required
from blueprints.core.http import arg_int, created, json_body, ok, page_args, paginate
from . import services as svc

api_bp = Blueprint("exams_api", __name__)


class QuestionIn(BaseModel):
    question_number: int = Field(ge=1)
    marks: int = Field(ge=1)
    question_text: str = Field(min_length=1)


class ExamIn(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    class_id: int
    subject_id: int
    chapter_ids: list[int] = Field(min_length=1)
    so_center_ids: list[int] = Field(min_length=1)
    exam_date: dt.date
    duration: int = Field(gt=0, le=600)
    total_questions: Optional[int] = Field(default=None, ge=0)
    total_marks: int = Field(gt=0)
    passing_marks: int = Field(ge=0)
    questions: list[QuestionIn] = Field(default_factory=list)


class ExamUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    class_id: Optional[int] = None
    subject_id: Optional[int] = None
    chapter_ids: Optional[list[int]] = Field(default=None, min_length=1)
    so_center_ids: Optional[list[int]] = Field(default=None, min_length=1)
    exam_date: Optional[dt.date] = None
    duration: Optional[int] = Field(default=None, gt=0, le=600)
    total_questions: Optional[int] = Field(default=None, ge=0)
    total_marks: Optional[int] = Field(default=None, gt=0)
    passing_marks: Optional[int] = Field(default=None, ge=0)
    questions: Optional[list[QuestionIn]] = None
    status: Optional[Literal["scheduled", "completed", "cancelled"]] = None


class QuestionMarkIn(BaseModel):
    question_number: int = Field(ge=1)
    marks: int = Field(ge=0)


class ResultIn(BaseModel):
    student_id: int
    marks_obtained: Optional[int] = Field(default=None, ge=0)
    question_marks: Optional[list[QuestionMarkIn]] = None
    remarks: Optional[str] = None


class ResultsIn(BaseModel):
    results: list[ResultIn] = Field(min_length=1)


# ---------- admin ----------
@api_bp.get("/admin/exams")
@admin_required
def list_exams():
    page, per_page = page_args()
    q = svc.exams_query(current_user, status=request.args.get("status"),
                        class_id=arg_int("class_id"), so_center_id=arg_int("so_center_id"))
    return ok(paginate(q, svc.exam_out, page=page, per_page=per_page))


@api_bp.get("/admin/exams/<int:eid>")
@admin_required
def get_exam(eid: int):
    return ok(svc.exam_out(svc.get_exam(eid), with_questions=True))


@api_bp.post("/admin/exams")
@admin_required
def create_exam():
    e = svc.create_exam(ExamIn.model_validate(json_body()), current_user)
    return created(svc.exam_out(e, with_questions=True), location=f"/api/v1/admin/exams/{e.id}")


@api_bp.put("/admin/exams/<int:eid>")
@admin_required
def update_exam(eid: int):
    return ok(svc.exam_out(svc.update_exam(eid, ExamUpdate.model_validate(json_body())), with_questions=True))


@api_bp.delete("/admin/exams/<int:eid>")
@admin_required
def delete_exam(eid: int):
    svc.delete_exam(eid)
    return ok({"ok": True})


# ---------- centers ----------
@api_bp.get("/exams")
@roles_required(UserRole.SO_CENTER)
def center_exams():
    q = svc.exams_query(current_user, status=request.args.get("status"), class_id=arg_int("class_id"))
    return ok([svc.exam_out(e) for e in q.all()])


@api_bp.get("/exams/<int:eid>/questions")
@roles_required(UserRole.SO_CENTER)
def exam_questions(eid: int):
    e, _ = svc.exam_for_user(current_user, eid)
    return ok({"exam_id": e.id, "total_marks": e.total_marks, "questions": e.questions or []})


@api_bp.get("/exams/<int:eid>/students")
@roles_required(UserRole.SO_CENTER)
def exam_students(eid: int):
    return ok(svc.exam_students(current_user, eid))


@api_bp.get("/exams/<int:eid>/results")
@roles_required(UserRole.SO_CENTER)
def exam_results(eid: int):
    return ok(svc.exam_results(current_user, eid, so_center_id=arg_int("so_center_id")))


@api_bp.post("/exams/<int:eid>/results")
@roles_required(UserRole.SO_CENTER)
def save_results(eid: int):
    data = ResultsIn.model_validate(json_body())
    return ok(svc.save_results(current_user, eid, data.results))


@api_bp.post("/exams/<int:eid>/complete")
@roles_required(UserRole.SO_CENTER)
def complete_exam(eid: int):
    return ok(svc.exam_out(svc.complete_exam(current_user, eid)))
