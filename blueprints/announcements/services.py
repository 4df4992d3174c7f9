# blueprints/announcements/services.py
from __future__ import annotations
import logging
from datetime import date
from typing import Optional

from sqlalchemy import case

from extensions import db
from models import Announcement, Audience, Priority, UserRole
from blueprints.core.audit import log_action
from blueprints.core.errors import BusinessRuleError, NotFound
from blueprints.core.http import iso

log = logging.getLogger(__name__)

ROLE_AUDIENCE = {
    UserRole.SO_CENTER.value: Audience.SO_CENTERS.value,
    UserRole.TEACHER.value: Audience.TEACHERS.value,
    UserRole.ACADEMIC_ADMIN.value: Audience.TEACHERS.value,
}

_PRIORITY_RANK = case(
    (Announcement.priority == Priority.URGENT.value, 0),
    (Announcement.priority == Priority.HIGH.value, 1),
    (Announcement.priority == Priority.NORMAL.value, 2),
    else_=3,
)


def announcement_out(a: Announcement) -> dict:
    return {
        "id": a.id,
        "title": a.title,
        "description": a.description,
        "content": a.content,
        "target_audience": a.target_audience,
        "priority": a.priority,
        "image_url": a.image_url,
        "from_date": iso(a.from_date),
        "to_date": iso(a.to_date),
        "is_active": a.is_active,
        "show_on_qr_code": a.show_on_qr_code,
        "created_at": iso(a.created_at),
    }


def active_query(today: Optional[date] = None):
    today = today or date.today()
    return (Announcement.query
            .filter(Announcement.is_active.is_(True),
                    Announcement.from_date <= today, Announcement.to_date >= today)
            .order_by(_PRIORITY_RANK.asc(), Announcement.created_at.desc(), Announcement.id.desc()))


def visible_for(role: Optional[str], today: Optional[date] = None) -> list[Announcement]:
    q = active_query(today)
    if role == UserRole.ADMIN.value:
        return q.all()
    audiences = [Audience.ALL.value]
    if role in ROLE_AUDIENCE:
        audiences.append(ROLE_AUDIENCE[role])
    return q.filter(Announcement.target_audience.in_(audiences)).all()


def for_qr_page(today: Optional[date] = None) -> list[Announcement]:
    return active_query(today).filter(Announcement.show_on_qr_code.is_(True)).all()


def _check_range(from_date: date, to_date: date) -> None:
    if from_date > to_date:
        raise BusinessRuleError("invalid_date_range")


def get_announcement(aid: int) -> Announcement:
    a = db.session.get(Announcement, aid)
    if not a:
        raise NotFound("announcement_not_found")
    return a


def create_announcement(data, created_by: int) -> Announcement:
    _check_range(data.from_date, data.to_date)
    fields = data.model_dump()
    fields["target_audience"] = data.target_audience.value
    fields["priority"] = data.priority.value
    a = Announcement(created_by=created_by, **fields)
    db.session.add(a)
    db.session.flush()
    log_action("create", "announcement", a.id, {"title": a.title})
    db.session.commit()
    return a


def update_announcement(aid: int, data) -> Announcement:
    a = get_announcement(aid)
    fields = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
    for key in ("target_audience", "priority"):
        if key in fields:
            fields[key] = fields[key].value
    _check_range(fields.get("from_date", a.from_date), fields.get("to_date", a.to_date))
    for key, val in fields.items():
        setattr(a, key, val)
    log_action("update", "announcement", a.id)
    db.session.commit()
    return a


def delete_announcement(aid: int) -> None:
    a = get_announcement(aid)
    log_action("delete", "announcement", a.id, {"title": a.title})
    db.session.delete(a)
    db.session.commit()
