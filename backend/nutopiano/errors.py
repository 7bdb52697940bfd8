# Overview: Domain error taxonomy and the JSON envelope handlers that render it.

"""
Every service raises one of these. A single set of Flask error handlers
turns them into the standard error envelope:

    {"success": false, "message": "...", "errors": [...]}

NotFound is also used for rows that exist in another business so that
tenant boundaries cannot be probed by id.
"""

from __future__ import annotations

from flask import current_app, jsonify
from werkzeug.exceptions import HTTPException

from .extensions import db


class ApiError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, errors: list | None = None):
        self.message = message or self.default_message
        self.errors = errors or []
        super().__init__(self.message)


class BadRequestError(ApiError):
    status_code = 400
    default_message = "Bad request"


class UnauthorizedError(ApiError):
    status_code = 401
    default_message = "Unauthorized"


class ForbiddenError(ApiError):
    status_code = 403
    default_message = "Access denied"


class NotFoundError(ApiError):
    status_code = 404
    default_message = "Not found"


def error_envelope(message: str, status: int, errors: list | None = None):
    return jsonify({"success": False, "message": message, "errors": errors or []}), status


def register_error_handlers(app) -> None:
    @app.errorhandler(ApiError)
    def handle_api_error(exc: ApiError):
        # Nothing half-applied survives a refused request
        db.session.rollback()
        if exc.status_code >= 500:
            current_app.logger.error("Unhandled domain error: %s", exc.message)
        return error_envelope(exc.message, exc.status_code, exc.errors)

    @app.errorhandler(HTTPException)
    def handle_http_exception(exc: HTTPException):
        return error_envelope(exc.description or exc.name, exc.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        db.session.rollback()
        current_app.logger.exception("Unhandled exception")
        return error_envelope("Internal server error", 500)
