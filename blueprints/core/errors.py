# blueprints/core/errors.py
from __future__ import annotations
import logging

from flask import jsonify, request
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from extensions import db

log = logging.getLogger(__name__)


class ServiceError(Exception):
    """Business-rule failure raised by services, rendered as {"error": code, ...}."""
    status = 400

    def __init__(self, code: str, *, http_status: int | None = None, **extra):
        super().__init__(code)
        self.code = code
        if http_status is not None:
            self.status = http_status
        self.extra = extra

    def to_dict(self) -> dict:
        body = {"error": self.code}
        body.update(self.extra)
        return body


class BusinessRuleError(ServiceError):
    status = 400


class Forbidden(ServiceError):
    status = 403


class NotFound(ServiceError):
    status = 404


class Conflict(ServiceError):
    status = 409


def pydantic_errors_safe(ve: ValidationError) -> list[dict]:
    errs = ve.errors()
    for e in errs:
        if "ctx" in e and isinstance(e["ctx"], dict):
            e["ctx"] = {k: str(v) for k, v in e["ctx"].items()}
        e.pop("url", None)
    return errs


def register_error_handlers(app) -> None:
    @app.errorhandler(ServiceError)
    def _service_error(ex: ServiceError):
        db.session.rollback()
        return jsonify(ex.to_dict()), ex.status

    @app.errorhandler(ValidationError)
    def _validation_error(ve: ValidationError):
        return jsonify({"error": "validation_error", "detail": pydantic_errors_safe(ve)}), 422

    @app.errorhandler(IntegrityError)
    def _integrity_error(ex: IntegrityError):
        db.session.rollback()
        log.warning("integrity error: %s", getattr(ex, "orig", ex))
        return jsonify({"error": "unique_constraint"}), 409

    @app.errorhandler(HTTPException)
    def _http_error(ex: HTTPException):
        if not request.path.startswith("/api/"):
            return ex
        body = {"error": (ex.name or "error").lower().replace(" ", "_")}
        if ex.description and ex.code == 400:
            body["detail"] = ex.description
        return jsonify(body), ex.code
