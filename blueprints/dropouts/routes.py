# blueprints/dropouts/routes.py
from __future__ import annotations
from typing import Literal, Optional

from flask import Blueprint, request
from flask_login import current_user
from pydantic import BaseModel, Field

from models import UserRole
from blueprints.auth.routes import admin_required, roles_required
from blueprints.core.http import created, json_body, ok, page_args, paginate
from . import services as svc

api_bp = Blueprint("dropouts_api", __name__)


class DropoutIn(BaseModel):
    student_id: int
    reason: str = Field(min_length=3)


class DropoutDecisionIn(BaseModel):
    status: Literal["approved", "rejected"]
    admin_notes: Optional[str] = None


@api_bp.post("/dropout-requests")
@roles_required(UserRole.SO_CENTER)
def create_request():
    data = DropoutIn.model_validate(json_body())
    return created(svc.dropout_out(svc.create_request(current_user, data.student_id, data.reason)))


@api_bp.get("/dropout-requests")
@roles_required(UserRole.SO_CENTER)
def list_requests():
    page, per_page = page_args()
    q = svc.requests_query(current_user, status=request.args.get("status"))
    return ok(paginate(q, svc.dropout_out, page=page, per_page=per_page))


@api_bp.patch("/dropout-requests/<int:rid>")
@admin_required
def decide(rid: int):
    data = DropoutDecisionIn.model_validate(json_body())
    return ok(svc.dropout_out(svc.process_request(rid, data.status, data.admin_notes, current_user)))
