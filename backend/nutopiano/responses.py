from __future__ import annotations

from flask import jsonify, request

from .errors import BadRequestError


def ok(data=None, status: int = 200):
    """Wrap a payload in the standard success envelope."""
    return jsonify({"success": True, "data": data, "message": None}), status


def json_body() -> dict:
    """Request JSON object; an absent body is {}, anything but an object is 400."""
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise BadRequestError("Invalid JSON payload")
    return payload
