# blueprints/announcements/routes.py
from __future__ import annotations
from datetime import date
from typing import Optional

from flask import Blueprint
from flask_login import current_user, login_required
from pydantic import BaseModel, Field

from models import Announcement, Audience, Priority
from blueprints.auth.routes import admin_required
from blueprints.core.http import created, json_body, ok, page_args, paginate
from . import services as svc

api_bp = Blueprint("announcements_api", __name__)


class AnnouncementIn(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    content: Optional[str] = None
    target_audience: Audience = Audience.ALL
    priority: Priority = Priority.NORMAL
    image_url: Optional[str] = Field(default=None, max_length=500)
    from_date: date
    to_date: date
    is_active: bool = True
    show_on_qr_code: bool = False


class AnnouncementUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    content: Optional[str] = None
    target_audience: Optional[Audience] = None
    priority: Optional[Priority] = None
    image_url: Optional[str] = Field(default=None, max_length=500)
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    is_active: Optional[bool] = None
    show_on_qr_code: Optional[bool] = None


@api_bp.get("/announcements")
@login_required
def visible_announcements():
    return ok({"items": [svc.announcement_out(a) for a in svc.visible_for(current_user.role)]})


@api_bp.get("/admin/announcements")
@admin_required
def list_announcements():
    page, per_page = page_args()
    q = Announcement.query.order_by(Announcement.created_at.desc(), Announcement.id.desc())
    return ok(paginate(q, svc.announcement_out, page=page, per_page=per_page))


@api_bp.post("/admin/announcements")
@admin_required
def create_announcement():
    a = svc.create_announcement(AnnouncementIn.model_validate(json_body()), created_by=current_user.id)
    return created(svc.announcement_out(a), location=f"/api/v1/admin/announcements/{a.id}")


@api_bp.put("/admin/announcements/<int:aid>")
@admin_required
def update_announcement(aid: int):
    a = svc.update_announcement(aid, AnnouncementUpdate.model_validate(json_body()))
    return ok(svc.announcement_out(a))


@api_bp.delete("/admin/announcements/<int:aid>")
@admin_required
def delete_announcement(aid: int):
    svc.delete_announcement(aid)
    return ok({"ok": True})
