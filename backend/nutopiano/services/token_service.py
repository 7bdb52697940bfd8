# Overview: Signed access tokens (JWT, HS256) carrying the caller identity.

"""
Access Token Service

WHY: Requests are authenticated by a bearer JWT so that the tenant and role
are known without a database lookup. The payload carries the ids as strings;
decode_access_token is the single place that parses them back.

SECURITY:
- HS256 signed with JWT_SECRET
- exp enforced by PyJWT
- Any unparseable identity field is treated as an invalid token
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app

from ..errors import UnauthorizedError
from ..models.auth import ROLES

ALGORITHM = "HS256"


@dataclass(frozen=True)
class Identity:
    """Resolved caller of an authenticated request."""
    user_id: int
    role: str
    business_id: int
    phone: str | None = None


def issue_access_token(user) -> str:
    now = datetime.now(timezone.utc)
    expires_in = int(current_app.config.get("JWT_EXPIRES_IN_SECONDS") or 86400)
    payload = {
        "sub": str(user.id),
        "userId": str(user.id),
        "phone": user.phone,
        "role": user.role,
        "businessId": str(user.business_id),
        "iat": now,
        "exp": now + timedelta(seconds=expires_in),
    }
    return jwt.encode(payload, current_app.config["JWT_SECRET"], algorithm=ALGORITHM)


def decode_access_token(token: str) -> Identity:
    try:
        payload = jwt.decode(token, current_app.config["JWT_SECRET"], algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token expired")
    except jwt.InvalidTokenError:
        raise UnauthorizedError("Invalid token")

    try:
        user_id = int(payload.get("userId"))
        business_id = int(payload.get("businessId"))
    except (TypeError, ValueError):
        raise UnauthorizedError("Invalid token")

    role = payload.get("role")
    if role not in ROLES:
        raise UnauthorizedError("Invalid token")

    return Identity(
        user_id=user_id,
        role=role,
        business_id=business_id,
        phone=payload.get("phone"),
    )
