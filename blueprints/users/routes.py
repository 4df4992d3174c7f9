# blueprints/users/routes.py
from __future__ import annotations

from flask import Blueprint, request
from flask_login import current_user

from blueprints.auth.routes import admin_required
from blueprints.core.http import arg_bool, created, json_body, ok, page_args, paginate
from . import services as svc
from .schemas import UserIn, UserUpdate

api_bp = Blueprint("users_api", __name__)


@api_bp.get("/admin/users")
@admin_required
def list_users():
    page, per_page = page_args()
    q = svc.users_query(role=request.args.get("role"), q=request.args.get("q"), active=arg_bool("active"))
    return ok(paginate(q, svc.user_out, page=page, per_page=per_page))


@api_bp.get("/admin/users/unassigned-managers")
@admin_required
def unassigned_managers():
    return ok({"items": [svc.user_out(u) for u in svc.unassigned_managers()]})


@api_bp.get("/admin/users/<int:uid>")
@admin_required
def get_user(uid: int):
    return ok(svc.user_out(svc.get_user(uid)))


@api_bp.post("/admin/users")
@admin_required
def create_user():
    data = UserIn.model_validate(json_body())
    u = svc.create_user(data)
    return created(svc.user_out(u), location=f"/api/v1/admin/users/{u.id}")


@api_bp.put("/admin/users/<int:uid>")
@admin_required
def update_user(uid: int):
    data = UserUpdate.model_validate(json_body())
    return ok(svc.user_out(svc.update_user(uid, data, actor_id=current_user.id)))


@api_bp.delete("/admin/users/<int:uid>")
@admin_required
def delete_user(uid: int):
    svc.deactivate_user(uid, actor_id=current_user.id)
    return ok({"ok": True})
