# Overview: Flask API routes for reading users of the caller's business.

"""
User routes.

ADMIN may list and fetch any user of their business. STAFF may fetch only
their own record, by id or by phone.
"""
from flask import Blueprint, g

from ..decorators import require_auth, require_roles, staff_self
from ..responses import ok
from ..services import user_service

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_roles("ADMIN")
def list_users():
    return ok([u.to_dict() for u in user_service.list_users(g.identity.business_id)])


@users_bp.get("/by-phone/<phone>")
@require_auth
@require_roles("ADMIN", "STAFF")
@staff_self("phone", "phone")
def get_user_by_phone(phone: str):
    return ok(user_service.get_user_by_phone(g.identity.business_id, phone).to_dict())


@users_bp.get("/<int:user_id>")
@require_auth
@require_roles("ADMIN", "STAFF")
@staff_self("id", "user_id")
def get_user(user_id: int):
    return ok(user_service.get_user(g.identity.business_id, user_id).to_dict())
