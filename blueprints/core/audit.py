# blueprints/core/audit.py
from __future__ import annotations

from flask_login import current_user

from extensions import db
from models import AuditLog


def log_action(action: str, entity: str, entity_id: int | None, payload: dict | None = None) -> None:
    """Adds an audit row to the current session; the caller commits."""
    db.session.add(AuditLog(
        user_id=getattr(current_user, "id", None),
        action=action, entity=entity, entity_id=entity_id, payload=payload or {},
    ))
