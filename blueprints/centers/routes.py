# blueprints/centers/routes.py
from __future__ import annotations
from typing import Optional

from flask import Blueprint
from flask_login import current_user, login_required
from pydantic import BaseModel, Field

from models import SoCenter, UserRole
from blueprints.auth.routes import admin_required, roles_required
from blueprints.core.errors import NotFound
from blueprints.core.http import arg_bool, created, json_body, ok, page_args, paginate
from . import services as svc

api_bp = Blueprint("centers_api", __name__)


class CenterIn(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    address: Optional[str] = None
    phone: Optional[str] = Field(default=None, max_length=20)
    manager_id: Optional[int] = None
    center_code: Optional[str] = Field(default=None, max_length=20)
    is_active: bool = True


class CenterUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    address: Optional[str] = None
    phone: Optional[str] = Field(default=None, max_length=20)
    manager_id: Optional[int] = None
    is_active: Optional[bool] = None


@api_bp.get("/centers")
@login_required
def list_centers():
    page, per_page = page_args()
    q = SoCenter.query
    own = svc.center_for_user(current_user)
    if current_user.role == UserRole.SO_CENTER.value:
        q = q.filter(SoCenter.id == (own.id if own else -1))
    active = arg_bool("active")
    if active is not None:
        q = q.filter(SoCenter.is_active.is_(active))
    q = q.order_by(SoCenter.center_code.asc())
    return ok(paginate(q, svc.center_out, page=page, per_page=per_page))


@api_bp.get("/centers/current")
@roles_required(UserRole.SO_CENTER)
def current_center():
    c = svc.center_for_user(current_user)
    if not c:
        raise NotFound("center_not_found")
    return ok(svc.center_out(c))


@api_bp.get("/centers/<int:cid>/wallet")
@roles_required(UserRole.SO_CENTER)
def center_wallet(cid: int):
    svc.resolve_center_id(current_user, cid)
    return ok(svc.center_wallet(svc.get_center(cid)))


@api_bp.get("/admin/centers/next-code")
@admin_required
def next_code():
    return ok({"center_code": svc.next_center_code()})


@api_bp.get("/admin/centers/<int:cid>")
@admin_required
def get_center(cid: int):
    return ok(svc.center_out(svc.get_center(cid)))


@api_bp.post("/admin/centers")
@admin_required
def create_center():
    c = svc.create_center(CenterIn.model_validate(json_body()))
    return created(svc.center_out(c), location=f"/api/v1/admin/centers/{c.id}")


@api_bp.put("/admin/centers/<int:cid>")
@admin_required
def update_center(cid: int):
    return ok(svc.center_out(svc.update_center(cid, CenterUpdate.model_validate(json_body()))))


@api_bp.delete("/admin/centers/<int:cid>")
@admin_required
def delete_center(cid: int):
    svc.deactivate_center(cid)
    return ok({"ok": True})
