# blueprints/core/http.py
from __future__ import annotations
import secrets
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable

from flask import abort, jsonify, request
from sqlalchemy.orm import Query


def ok(data: Any, status: int = 200):
    return jsonify(data), status

def created(data: Any, location: str | None = None):
    resp = jsonify(data)
    resp.status_code = 201
    if location:
        resp.headers["Location"] = location
    return resp

def error(msg: str, status: int = 400, **extra):
    payload = {"error": msg}
    payload.update(extra)
    return jsonify(payload), status

def money(val: Decimal | None) -> float:
    if val is None:
        return 0.0
    return float(Decimal(val).quantize(Decimal("0.01")))

def iso(val: date | datetime | None) -> str | None:
    return val.isoformat() if val else None

def page_args(default_per_page: int = 20) -> tuple[int, int]:
    try:
        page = max(1, int(request.args.get("page", 1)))
        per_page = min(100, max(1, int(request.args.get("per_page", default_per_page))))
    except ValueError:
        abort(400, description="Bad pagination")
    return page, per_page

def paginate(query: Query, serializer: Callable[[Any], dict], *, page: int, per_page: int) -> dict:
    total = query.count()
    rows = query.offset((page - 1) * per_page).limit(per_page).all()
    return {"items": [serializer(r) for r in rows], "meta": {"page": page, "per_page": per_page, "total": total}}

def arg_int(name: str) -> int | None:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except ValueError:
        abort(400, description=f"Bad {name}")

def arg_date(name: str, default: date | None = None) -> date | None:
    raw = request.args.get(name)
    if not raw:
        return default
    try:
        return date.fromisoformat(raw)
    except ValueError:
        abort(400, description=f"Bad {name}")

def arg_bool(name: str) -> bool | None:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    return raw.lower() in ("1", "true", "yes")

def json_body() -> dict:
    return request.get_json(silent=True) or {}

def reference(prefix: str) -> str:
    """Human readable unique reference, e.g. TXN20240105103000A1B2C3."""
    return f"{prefix}{datetime.utcnow():%Y%m%d%H%M%S}{secrets.token_hex(3).upper()}"
