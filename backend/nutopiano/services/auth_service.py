# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

WHY: Every action must be attributable. Uses bcrypt for password hashing,
signed access tokens for sessions, and single-use hashed tokens for
password reset.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor BCRYPT_ROUNDS, default 12)
- Login failures share one message so accounts cannot be enumerated
- forgot_password always answers {ok: true} for the same reason
- Only SHA-256(reset token) is stored; the raw token lives in the email
- Reset tokens expire after 30 minutes and are cleared on use
"""

from __future__ import annotations

import hashlib
import secrets
from datetime import timedelta

import bcrypt
from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..errors import BadRequestError, UnauthorizedError
from ..models import User
from ..models.auth import ROLE_CUSTOMER, ROLES
from ..validation import ValidationError, validate_password
from ..time_utils import utcnow
from . import email_service, tenant_service, token_service
from .security_service import log_security_event
from .token_service import Identity

RESET_TOKEN_TTL = timedelta(minutes=30)
INVALID_CREDENTIALS = "Invalid credentials"
INVALID_RESET_TOKEN = "Invalid or expired token"


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt.

    Password is validated for strength before hashing.
    """
    validate_password(password)
    rounds = int(current_app.config.get("BCRYPT_ROUNDS") or 12)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str | None) -> bool:
    """
    Verify password against bcrypt hash.

    Passwordless accounts (no hash) never verify.
    """
    if not password_hash or not isinstance(password, str):
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def hash_token(token: str) -> str:
    """SHA-256 hex digest; reset tokens are high-entropy so no salt is needed."""
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def _clean(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def _normalize_email(value) -> str | None:
    email = _clean(value).lower()
    return email or None


def login(identifier: str, password: str) -> dict:
    """
    Authenticate by phone or email. An identifier containing "@" is an email.

    Returns {"access_token": ...}. Raises UnauthorizedError("Invalid
    credentials") for every failure mode.
    """
    identifier = _clean(identifier)
    if not identifier or not isinstance(password, str):
        raise UnauthorizedError(INVALID_CREDENTIALS)

    query = db.session.query(User)
    if "@" in identifier:
        user = query.filter_by(email=identifier.lower()).first()
    else:
        user = query.filter_by(phone=identifier).first()

    if not user or not user.is_active or not verify_password(password, user.password_hash):
        log_security_event(
            user_id=user.id if user else None,
            event_type="LOGIN_FAILED",
            success=False,
            reason="Invalid credentials",
            business_id=user.business_id if user else None,
        )
        raise UnauthorizedError(INVALID_CREDENTIALS)

    return {"access_token": token_service.issue_access_token(user)}


def register(
    name: str,
    phone: str,
    email: str,
    password: str,
    business_id: int | None = None,
) -> dict:
    """
    Self-service sign-up. Always creates an active CUSTOMER.

    Raises:
        ValidationError on missing fields or duplicate email/phone
        NotFoundError when no business can be resolved
    """
    name = _clean(name)
    phone = _clean(phone)
    email = _normalize_email(email)
    if not name or not phone or not email or not password:
        raise ValidationError("name, phone, email and password are required")

    password_hash = hash_password(password)
    business = tenant_service.resolve_registration_business(business_id)

    # Both checks run before either is reported
    email_taken = db.session.query(User.id).filter_by(email=email).first() is not None
    phone_taken = db.session.query(User.id).filter_by(phone=phone).first() is not None
    if email_taken:
        raise BadRequestError("Email already in use")
    if phone_taken:
        raise BadRequestError("Phone already in use")

    user = User(
        business_id=business.id,
        name=name,
        phone=phone,
        email=email,
        password_hash=password_hash,
        role=ROLE_CUSTOMER,
        is_active=True,
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        current_app.logger.exception("Registration conflict")
        raise BadRequestError("Email or phone already in use")

    return {"access_token": token_service.issue_access_token(user)}


def build_reset_url(token: str) -> str:
    base = (current_app.config.get("SITE_URL") or "http://localhost:3002").rstrip("/")
    return f"{base}/reset-password?token={token}"


def forgot_password(email: str) -> dict:
    """
    Start a password reset. The response never reveals whether the email
    belongs to an account.
    """
    email = _normalize_email(email)
    if not email:
        return {"ok": True}

    user = db.session.query(User).filter_by(email=email).first()
    if not user or not user.is_active:
        return {"ok": True}

    token = secrets.token_hex(32)
    user.reset_password_token_hash = hash_token(token)
    user.reset_password_expires_at = utcnow() + RESET_TOKEN_TTL
    db.session.commit()

    log_security_event(
        user_id=user.id,
        event_type="PASSWORD_RESET_REQUESTED",
        success=True,
        business_id=user.business_id,
    )
    email_service.send_password_reset_email(user.email, build_reset_url(token))
    return {"ok": True}


def reset_password(token: str, new_password: str) -> dict:
    """
    Consume a reset token.

    Unknown and expired tokens fail identically. On success the stored hash
    and expiry are cleared so the token cannot be replayed.
    """
    token = _clean(token)
    if not token:
        raise BadRequestError(INVALID_RESET_TOKEN)

    user = (
        db.session.query(User)
        .filter(
            User.reset_password_token_hash == hash_token(token),
            User.reset_password_expires_at > utcnow(),
        )
        .first()
    )
    if not user:
        raise BadRequestError(INVALID_RESET_TOKEN)

    user.password_hash = hash_password(new_password)
    user.reset_password_token_hash = None
    user.reset_password_expires_at = None
    db.session.commit()

    log_security_event(
        user_id=user.id,
        event_type="PASSWORD_RESET_COMPLETED",
        success=True,
        business_id=user.business_id,
    )
    return {"ok": True}


def _require_active_user(identity: Identity) -> User:
    user = db.session.get(User, identity.user_id)
    if not user or not user.is_active or user.business_id != identity.business_id:
        raise UnauthorizedError("User not found or inactive")
    return user


def _profile_dict(user: User) -> dict:
    return {
        "user_id": user.id,
        "name": user.name,
        "phone": user.phone,
        "email": user.email,
        "role": user.role,
        "business_id": user.business_id,
    }


def profile(identity: Identity) -> dict:
    return _profile_dict(_require_active_user(identity))


def update_profile(identity: Identity, payload: dict) -> dict:
    user = _require_active_user(identity)

    for k in payload:
        if k not in ("name", "phone", "email"):
            raise ValidationError(f"Field not allowed: {k}")

    if "name" in payload:
        name = _clean(payload["name"])
        if not name:
            raise ValidationError("name cannot be blank")
        user.name = name
    if "phone" in payload:
        phone = _clean(payload["phone"])
        if not phone:
            raise ValidationError("phone cannot be blank")
        user.phone = phone
    if "email" in payload:
        user.email = _normalize_email(payload["email"])

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        current_app.logger.exception("Profile update failed for user %s", user.id)
        raise BadRequestError("Profile could not be updated")

    return _profile_dict(user)


def change_password(identity: Identity, current_password: str, new_password: str) -> dict:
    user = _require_active_user(identity)
    if not verify_password(current_password, user.password_hash):
        raise BadRequestError("Current password is incorrect")

    user.password_hash = hash_password(new_password)
    db.session.commit()
    return {"ok": True}


def create_user(
    *,
    business_id: int,
    name: str,
    phone: str,
    role: str,
    password: str | None = None,
    email: str | None = None,
) -> User:
    """
    Operator-side user creation (CLI, seeding). password may be omitted for
    phone-only accounts.
    """
    if role not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ROLES)}")
    name = _clean(name)
    phone = _clean(phone)
    if not name or not phone:
        raise ValidationError("name and phone are required")

    user = User(
        business_id=business_id,
        name=name,
        phone=phone,
        email=_normalize_email(email),
        password_hash=hash_password(password) if password else None,
        role=role,
        is_active=True,
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise BadRequestError("Email or phone already in use")
    return user
