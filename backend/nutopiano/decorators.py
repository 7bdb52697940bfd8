# Overview: Request decorators for API routes: authentication, role and self-access guards.

from functools import wraps
from flask import request, g

from .errors import ForbiddenError, UnauthorizedError
from .services import token_service
from .services.security_service import log_security_event


def require_auth(f):
    """
    Require a bearer access token and establish tenant context.

    MULTI-TENANT: Sets g.identity (user_id, role, business_id, phone).
    Every service call made from a route takes its business_id from here,
    never from the request body.

    SECURITY: 401 if the header is missing, the token is invalid or
    expired, or its identity fields cannot be parsed.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            raise UnauthorizedError("Authentication required")

        token = auth_header.split(" ", 1)[1].strip()
        g.identity = token_service.decode_access_token(token)

        return f(*args, **kwargs)

    return decorated_function


def require_roles(*roles: str):
    """
    Restrict a route to the given roles. Must be applied after @require_auth.

    Denials are logged as ROLE_DENIED security events.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            identity = getattr(g, "identity", None)
            if identity is None:
                raise UnauthorizedError("Authentication required")

            if identity.role not in roles:
                log_security_event(
                    user_id=identity.user_id,
                    event_type="ROLE_DENIED",
                    success=False,
                    reason=f"Role {identity.role} not in {', '.join(roles)}",
                    business_id=identity.business_id,
                )
                raise ForbiddenError("Access denied")

            return f(*args, **kwargs)

        return decorated_function

    return decorator


def staff_self(kind: str, param: str):
    """
    STAFF may only address their own user record.

    kind="id": the URL param must equal the caller's user id.
    kind="phone": the URL param must equal the caller's phone.
    Other roles pass through (role checks belong to @require_roles).
    """
    if kind not in ("id", "phone"):
        raise ValueError("kind must be 'id' or 'phone'")

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            identity = getattr(g, "identity", None)
            if identity is None:
                raise UnauthorizedError("Authentication required")

            if identity.role == "STAFF":
                value = kwargs.get(param)
                if value is None:
                    raise ForbiddenError("Access denied")
                if kind == "id":
                    allowed = str(value) == str(identity.user_id)
                else:
                    allowed = str(value) == (identity.phone or "")
                if not allowed:
                    raise ForbiddenError("Access denied")

            return f(*args, **kwargs)

        return decorated_function

    return decorator
