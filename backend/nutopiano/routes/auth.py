# Overview: Flask API routes for authentication and the caller's own profile.

"""
Authentication routes.

SECURITY:
- login / register / forgot-password / reset-password are public
- profile and change-password require a valid bearer token
- forgot-password answers {"ok": true} whether or not the email exists
"""
from flask import Blueprint, g

from ..decorators import require_auth
from ..responses import json_body, ok
from ..services import auth_service
from ..validation import parse_int

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login():
    """
    Login with phone or email.

    Body: {"phone": ..., "password": ...} or {"email": ..., "password": ...}
    ("identifier" is accepted for either.)
    """
    payload = json_body()
    identifier = payload.get("identifier") or payload.get("email") or payload.get("phone")
    return ok(auth_service.login(identifier, payload.get("password")))


@auth_bp.post("/register")
def register():
    """Self-service CUSTOMER sign-up. Returns an access token."""
    payload = json_body()
    business_id = payload.get("business_id")
    if business_id is not None:
        business_id = parse_int(business_id, field_name="business_id")

    result = auth_service.register(
        name=payload.get("name"),
        phone=payload.get("phone"),
        email=payload.get("email"),
        password=payload.get("password"),
        business_id=business_id,
    )
    return ok(result, 201)


@auth_bp.post("/forgot-password")
def forgot_password():
    payload = json_body()
    return ok(auth_service.forgot_password(payload.get("email")))


@auth_bp.post("/reset-password")
def reset_password():
    payload = json_body()
    return ok(auth_service.reset_password(payload.get("token"), payload.get("new_password")))


@auth_bp.get("/profile")
@require_auth
def get_profile():
    return ok(auth_service.profile(g.identity))


@auth_bp.patch("/profile")
@require_auth
def update_profile():
    payload = json_body()
    return ok(auth_service.update_profile(g.identity, payload))


@auth_bp.post("/change-password")
@require_auth
def change_password():
    payload = json_body()
    return ok(auth_service.change_password(
        g.identity,
        payload.get("current_password"),
        payload.get("new_password"),
    ))
