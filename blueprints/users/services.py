# blueprints/users/services.py
from __future__ import annotations
import logging
from typing import Optional

from sqlalchemy import or_
from werkzeug.security import generate_password_hash

from extensions import db
from models import SoCenter, User, UserRole
from blueprints.core.audit import log_action
from blueprints.core.errors import BusinessRuleError, Conflict, NotFound
from blueprints.core.http import iso
from .schemas import UserIn, UserUpdate

log = logging.getLogger(__name__)


def user_out(u: User) -> dict:
    return {
        "id": u.id,
        "email": u.email,
        "name": u.name,
        "phone": u.phone,
        "role": u.role,
        "is_active": u.is_active,
        "created_at": iso(u.created_at),
    }


def get_user(uid: int) -> User:
    u = db.session.get(User, uid)
    if not u:
        raise NotFound("user_not_found")
    return u


def users_query(role: Optional[str] = None, q: Optional[str] = None, active: Optional[bool] = None):
    query = User.query
    if role:
        query = query.filter(User.role == role)
    if active is not None:
        query = query.filter(User.is_active.is_(active))
    if q:
        like = f"%{q.strip()}%"
        query = query.filter(or_(User.name.ilike(like), User.email.ilike(like)))
    return query.order_by(User.name.asc(), User.id.asc())


def _email_taken(email: str, exclude_id: Optional[int] = None) -> bool:
    q = User.query.filter(User.email == email)
    if exclude_id:
        q = q.filter(User.id != exclude_id)
    return db.session.query(q.exists()).scalar()


def create_user(data: UserIn) -> User:
    if _email_taken(data.email):
        raise Conflict("email_taken")
    u = User(
        email=data.email,
        name=data.name.strip(),
        phone=data.phone,
        role=data.role.value,
        is_active=data.is_active,
        password_hash=generate_password_hash(data.password),
    )
    db.session.add(u)
    db.session.flush()
    log_action("create", "user", u.id, {"email": u.email, "role": u.role})
    db.session.commit()
    log.info("user created id=%s role=%s", u.id, u.role)
    return u


def update_user(uid: int, data: UserUpdate, actor_id: int) -> User:
    u = get_user(uid)
    fields = data.model_dump(exclude_unset=True)
    if "email" in fields and fields["email"] != u.email:
        if _email_taken(fields["email"], exclude_id=u.id):
            raise Conflict("email_taken")
        u.email = fields["email"]
    if fields.get("is_active") is False and u.id == actor_id:
        raise BusinessRuleError("cannot_deactivate_self")
    if "password" in fields and fields["password"]:
        u.password_hash = generate_password_hash(fields["password"])
    if fields.get("role") is not None:
        u.role = fields["role"].value
    for key in ("name", "phone", "is_active"):
        if key in fields and fields[key] is not None:
            setattr(u, key, fields[key])
    changed = {k: v for k, v in fields.items() if k not in ("password", "role")}
    if "role" in fields:
        changed["role"] = u.role
    log_action("update", "user", u.id, changed)
    db.session.commit()
    return u


def deactivate_user(uid: int, actor_id: int) -> User:
    u = get_user(uid)
    if u.id == actor_id:
        raise BusinessRuleError("cannot_deactivate_self")
    u.is_active = False
    log_action("deactivate", "user", u.id)
    db.session.commit()
    log.info("user deactivated id=%s", u.id)
    return u


def unassigned_managers() -> list[User]:
    managed = db.session.query(SoCenter.manager_id).filter(SoCenter.manager_id.isnot(None))
    return (User.query
            .filter(User.role == UserRole.SO_CENTER.value, User.is_active.is_(True))
            .filter(User.id.notin_(managed))
            .order_by(User.name.asc())
            .all())
