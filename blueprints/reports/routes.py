# blueprints/reports/routes.py
from __future__ import annotations
from datetime import date

from flask import Blueprint, Response, abort, request

from blueprints.auth.routes import admin_required
from blueprints.core.http import arg_int
from .services import attendance_csv, dues_csv, payments_csv

api_bp = Blueprint("reports_api", __name__)

def _parse_dates() -> tuple[date, date]:
    today = date.today()
    try:
        d_from = date.fromisoformat(request.args.get("date_from") or today.replace(day=1).isoformat())
        d_to = date.fromisoformat(request.args.get("date_to") or today.isoformat())
    except ValueError:
        abort(400, description="Bad date range")
    if d_to < d_from:
        d_from, d_to = d_to, d_from
    return d_from, d_to

def _csv_resp(content: str, filename: str) -> Response:
    return Response(
        content,
        mimetype="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )

@api_bp.get("/admin/reports/payments.csv")
@admin_required
def payments_report():
    d_from, d_to = _parse_dates()
    return _csv_resp(payments_csv(d_from, d_to, arg_int("so_center_id")),
                     f"payments_{d_from.isoformat()}_{d_to.isoformat()}.csv")

@api_bp.get("/admin/reports/attendance.csv")
@admin_required
def attendance_report():
    month = request.args.get("month")
    return _csv_resp(attendance_csv(month, arg_int("so_center_id")), f"attendance_{month or 'current'}.csv")

@api_bp.get("/admin/reports/dues.csv")
@admin_required
def dues_report():
    return _csv_resp(dues_csv(arg_int("so_center_id")), "dues.csv")
