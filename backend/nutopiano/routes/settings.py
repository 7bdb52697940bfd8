# Overview: Flask API routes for per-business settings.

"""
Settings routes.

ADMIN and STAFF may read; only ADMIN may write. Values are arbitrary JSON.
"""
from flask import Blueprint, g

from ..decorators import require_auth, require_roles
from ..errors import NotFoundError
from ..responses import json_body, ok
from ..services import settings_service
from ..validation import ValidationError

settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("")
@require_auth
@require_roles("ADMIN", "STAFF")
def list_settings():
    return ok([s.to_dict() for s in settings_service.list_settings(g.identity.business_id)])


@settings_bp.post("")
@require_auth
@require_roles("ADMIN")
def upsert_setting_from_body():
    """Body: {"key": "order.defaultStatusKey", "value": "CREATED"}"""
    payload = json_body()
    if "value" not in payload:
        raise ValidationError("value is required")
    setting = settings_service.set(g.identity.business_id, payload.get("key"), payload["value"])
    return ok(setting.to_dict())


@settings_bp.get("/<key>")
@require_auth
@require_roles("ADMIN", "STAFF")
def get_setting(key: str):
    setting = settings_service.get(g.identity.business_id, key)
    if not setting:
        raise NotFoundError("Setting not found")
    return ok(setting.to_dict())


@settings_bp.post("/<key>")
@require_auth
@require_roles("ADMIN")
def upsert_setting(key: str):
    """Body: {"value": <any JSON>}"""
    payload = json_body()
    if "value" not in payload:
        raise ValidationError("value is required")
    setting = settings_service.set(g.identity.business_id, key, payload["value"])
    return ok(setting.to_dict())
