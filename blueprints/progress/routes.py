# blueprints/progress/routes.py
from __future__ import annotations
import datetime as dt
from typing import Optional

from flask import Blueprint, abort, request
from flask_login import current_user
from pydantic import BaseModel, Field, field_validator

from models import HomeworkStatus, UserRole
from blueprints.auth.routes import roles_required
from blueprints.core.http import arg_int, iso, json_body, ok
from . import services as svc

api_bp = Blueprint("progress_api", __name__)

trackers = roles_required(UserRole.SO_CENTER, UserRole.TEACHER)


class TopicActionIn(BaseModel):
    student_id: int
    topic_id: int
    teacher_feedback: Optional[str] = None


class HomeworkItemIn(BaseModel):
    student_id: int
    date: dt.date
    status: HomeworkStatus
    completion_type: Optional[str] = Field(default=None, max_length=32)
    reason: Optional[str] = None

    @field_validator("date")
    @classmethod
    def _not_future(cls, v: dt.date) -> dt.date:
        if v > dt.date.today():
            raise ValueError("date cannot be in the future")
        return v


class HomeworkIn(BaseModel):
    activities: list[HomeworkItemIn] = Field(min_length=1)


@api_bp.post("/progress/topics/complete")
@trackers
def complete_topic():
    data = TopicActionIn.model_validate(json_body())
    row = svc.complete_topic(current_user, data.student_id, data.topic_id, data.teacher_feedback)
    return ok({"ok": True, "status": row.status, "completed_date": iso(row.completed_date)})


@api_bp.post("/progress/topics/reset")
@trackers
def reset_topic():
    data = TopicActionIn.model_validate(json_body())
    row = svc.reset_topic(current_user, data.student_id, data.topic_id)
    return ok({"ok": True, "status": row.status})


@api_bp.get("/progress/topics/status")
@trackers
def topics_status():
    student_id, chapter_id = arg_int("student_id"), arg_int("chapter_id")
    if not student_id or not chapter_id:
        abort(400, description="student_id and chapter_id are required")
    return ok(svc.topics_status(current_user, student_id, chapter_id))


@api_bp.post("/progress/homework")
@trackers
def save_homework():
    data = HomeworkIn.model_validate(json_body())
    return ok(svc.save_homework(current_user, data.activities))


@api_bp.get("/progress/homework")
@trackers
def get_homework():
    student_id = arg_int("student_id")
    if not student_id:
        abort(400, description="student_id is required")
    return ok({"items": svc.homework_for(current_user, student_id, request.args.get("month"))})


@api_bp.get("/progress/students/<int:student_id>")
@trackers
def student_progress(student_id: int):
    return ok(svc.student_progress(current_user, student_id))


@api_bp.get("/public/progress/<qr_code>")
def public_progress(qr_code: str):
    return ok(svc.public_progress(qr_code))
