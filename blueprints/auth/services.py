# blueprints/auth/services.py
from __future__ import annotations
import logging
import time
from typing import Optional

from flask import current_app
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from werkzeug.security import check_password_hash, generate_password_hash

from extensions import db
from models import User
from blueprints.core.errors import BusinessRuleError, Forbidden, ServiceError

log = logging.getLogger(__name__)

TOKEN_SALT = "auth-token"

def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=TOKEN_SALT)

def issue_token(user: User) -> str:
    return _serializer().dumps({"uid": user.id})

def user_from_token(token: str) -> Optional[User]:
    max_age = int(current_app.config.get("AUTH_TOKEN_MAX_AGE", 12 * 60 * 60))
    try:
        data = _serializer().loads(token, max_age=max_age)
    except SignatureExpired:
        log.info("expired bearer token")
        return None
    except BadSignature:
        return None
    user = db.session.get(User, int(data.get("uid", 0)))
    if not user or not user.is_active:
        return None
    return user

# ---------- rate limit (failed attempts only) ----------
def _attempts() -> dict[str, list[float]]:
    return current_app.extensions.setdefault("login_attempts", {})

def rate_limited(key: str) -> bool:
    now = time.time()
    win = current_app.config.get("AUTH_RL_WINDOW", 300)
    mx = current_app.config.get("AUTH_RL_MAX", 5)
    bucket = _attempts().setdefault(key, [])
    cutoff = now - win
    while bucket and bucket[0] < cutoff:
        bucket.pop(0)
    return len(bucket) >= mx

def register_failure(key: str) -> None:
    _attempts().setdefault(key, []).append(time.time())

def reset_failures(key: str) -> None:
    _attempts().pop(key, None)

def authenticate(email: str, password: str) -> User:
    user: Optional[User] = User.query.filter_by(email=email).first()
    if not user or not user.password_hash or not check_password_hash(user.password_hash, password):
        raise ServiceError("invalid_credentials", http_status=401)
    if not user.is_active:
        raise Forbidden("inactive")
    return user

def change_password(user: User, current_password: str, new_password: str) -> None:
    if not check_password_hash(user.password_hash, current_password):
        raise BusinessRuleError("wrong_password")
    if current_password == new_password:
        raise BusinessRuleError("password_unchanged")
    user.password_hash = generate_password_hash(new_password)
    db.session.commit()
    log.info("password changed for user %s", user.id)
