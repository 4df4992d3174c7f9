# blueprints/auth/routes.py
from __future__ import annotations
from functools import wraps
from typing import Callable, Optional

from flask import Blueprint, abort, current_app, jsonify, request
from flask_login import current_user, login_required, login_user, logout_user
from flask_wtf.csrf import generate_csrf, validate_csrf
from pydantic import BaseModel, Field
from wtforms import ValidationError as CSRFError

from extensions import db, login_manager
from models import User, UserRole
from blueprints.core.errors import ServiceError
from blueprints.users.services import user_out
from . import services as svc

api_bp = Blueprint("auth_api", __name__)

CSRF_EXEMPT_PATHS = ("/api/v1/auth/login", "/api/v1/csrf")

@login_manager.user_loader
def load_user(uid: str) -> Optional[User]:
    try:
        return db.session.get(User, int(uid))
    except (TypeError, ValueError):
        return None

def _bearer_token() -> Optional[str]:
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return None

@login_manager.request_loader
def load_user_from_request(req) -> Optional[User]:
    token = _bearer_token()
    if not token:
        return None
    return svc.user_from_token(token)

# ---------- CSRF (cookie sessions only; bearer clients are exempt) ----------
def verify_csrf() -> None:
    if not current_app.config.get("API_CSRF_ENABLED", True):
        return
    if request.method not in ("POST", "PUT", "PATCH", "DELETE"):
        return
    if not request.path.startswith("/api/") or request.path in CSRF_EXEMPT_PATHS:
        return
    if _bearer_token():
        return
    token = request.headers.get("X-CSRF-Token") or request.headers.get("X-CSRFToken")
    try:
        validate_csrf(token)
    except CSRFError:
        abort(400, description="CSRF token missing or invalid")

@api_bp.before_app_request
def _csrf_middleware():
    verify_csrf()

# ---------- role decorators ----------
def roles_required(*roles: UserRole | str):
    allowed = {r.value if isinstance(r, UserRole) else r for r in roles}

    def deco(fn: Callable):
        @wraps(fn)
        @login_required
        def wrapper(*args, **kwargs):
            role = getattr(current_user, "role", None)
            # admin passes every role check
            if role != UserRole.ADMIN.value and role not in allowed:
                abort(403)
            return fn(*args, **kwargs)
        return wrapper
    return deco

def admin_required(fn: Callable):
    return roles_required()(fn)

@login_manager.unauthorized_handler
def _unauth():
    return jsonify({"error": "unauthorized"}), 401

# ---------- API ----------
class LoginIn(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1, max_length=255)

class ChangePasswordIn(BaseModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6, max_length=128)

def _rl_key(email: str) -> str:
    ip = request.headers.get("X-Forwarded-For", request.remote_addr or "0.0.0.0").split(",")[0].strip()
    return f"{ip}|{(email or '').lower()}"

@api_bp.get("/csrf")
def api_csrf():
    token = generate_csrf()
    resp = jsonify({"csrf": token})
    resp.set_cookie("csrf_token", token, samesite="Lax", httponly=False, path="/")
    return resp

@api_bp.post("/auth/login")
def api_login():
    payload = request.get_json(silent=True) or request.form or {}
    email = (payload.get("email") or "").strip().lower()
    password = payload.get("password") or ""
    if not email or not password:
        return jsonify({"error": "missing_credentials"}), 400
    data = LoginIn.model_validate({"email": email, "password": password})

    key = _rl_key(data.email)
    if svc.rate_limited(key):
        return jsonify({"error": "too_many_attempts"}), 429
    try:
        user = svc.authenticate(data.email, data.password)
    except ServiceError:
        svc.register_failure(key)
        raise
    svc.reset_failures(key)

    login_user(user, remember=False)
    return jsonify({"ok": True, "token": svc.issue_token(user), "user": user_out(user)})

@api_bp.post("/auth/logout")
@login_required
def api_logout():
    logout_user()
    return jsonify({"ok": True})

@api_bp.get("/auth/me")
@login_required
def api_me():
    out = user_out(current_user)
    center = current_user.managed_center
    out["so_center"] = (
        {"id": center.id, "center_code": center.center_code, "name": center.name} if center else None
    )
    out["teacher_id"] = current_user.teacher.id if current_user.teacher else None
    return jsonify(out)

@api_bp.post("/auth/change-password")
@login_required
def api_change_password():
    data = ChangePasswordIn.model_validate(request.get_json(silent=True) or {})
    svc.change_password(current_user, data.current_password, data.new_password)
    return jsonify({"ok": True})
