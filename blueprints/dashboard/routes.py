# blueprints/dashboard/routes.py
from __future__ import annotations

from flask import Blueprint
from flask_login import current_user

from extensions import db
from models import AuditLog, UserRole
from blueprints.auth.routes import admin_required, roles_required
from blueprints.centers.services import center_for_user
from blueprints.core.errors import NotFound
from blueprints.core.http import ok
from . import services as svc

api_bp = Blueprint("dashboard_api", __name__)


@api_bp.get("/dashboard/stats")
@roles_required(UserRole.SO_CENTER)
def stats():
    if current_user.role == UserRole.ADMIN.value:
        return ok(svc.admin_stats())
    center = center_for_user(current_user)
    if not center:
        raise NotFound("center_not_found")
    return ok(svc.center_stats(center))


@api_bp.get("/admin/audit-logs")
@admin_required
def audit_logs():
    q = db.session.query(AuditLog).order_by(AuditLog.id.desc()).limit(50).all()
    return ok({"ok": True, "items": [
        {"id": a.id, "user_id": a.user_id, "action": a.action, "entity": a.entity,
         "entity_id": a.entity_id, "payload": a.payload, "created_at": a.created_at.isoformat()}
        for a in q
    ]})
