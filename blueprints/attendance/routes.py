# blueprints/attendance/routes.py
from __future__ import annotations
import datetime as dt
from typing import Optional

from flask import Blueprint, abort, request
from flask_login import current_user
from pydantic import BaseModel, Field

from models import AttendanceStatus, UserRole
from blueprints.auth.routes import roles_required
from blueprints.core.http import arg_date, arg_int, json_body, ok
from . import services as svc

api_bp = Blueprint("attendance_api", __name__)

markers = roles_required(UserRole.SO_CENTER)


class AttendanceRecordIn(BaseModel):
    student_id: int
    status: AttendanceStatus


class AttendanceSubmitIn(BaseModel):
    date: dt.date
    class_id: int
    so_center_id: Optional[int] = None
    records: list[AttendanceRecordIn] = Field(min_length=1)


class HolidayIn(BaseModel):
    date: dt.date
    class_id: int
    so_center_id: Optional[int] = None


@api_bp.post("/attendance/submit")
@markers
def submit():
    data = AttendanceSubmitIn.model_validate(json_body())
    return ok(svc.submit_attendance(current_user, data))


@api_bp.post("/attendance/holiday")
@markers
def holiday():
    data = HolidayIn.model_validate(json_body())
    return ok(svc.mark_holiday(current_user, data.date, data.class_id, data.so_center_id))


@api_bp.get("/attendance/existing")
@markers
def existing():
    day = arg_date("date", default=dt.date.today())
    raw = request.args.get("student_ids", "")
    try:
        ids = [int(x) for x in raw.split(",") if x.strip()]
    except ValueError:
        abort(400, description="Bad student_ids")
    return ok(svc.existing_attendance(day, ids))


@api_bp.get("/attendance/stats")
@roles_required(UserRole.SO_CENTER, UserRole.TEACHER)
def stats():
    return ok(svc.attendance_stats(current_user, request.args.get("month"),
                                   arg_int("class_id"), arg_int("so_center_id")))


@api_bp.get("/attendance/student-report")
@roles_required(UserRole.SO_CENTER, UserRole.TEACHER)
def student_report():
    student_id = arg_int("student_id")
    if not student_id:
        abort(400, description="student_id is required")
    return ok(svc.student_report(current_user, student_id, request.args.get("month")))


@api_bp.get("/attendance/monthly-report")
@roles_required(UserRole.SO_CENTER, UserRole.TEACHER)
def monthly_report():
    return ok(svc.monthly_report(current_user, request.args.get("month"),
                                 arg_int("class_id"), arg_int("so_center_id")))
