# Overview: Service-layer operations for the security audit trail.

from __future__ import annotations

from flask import has_request_context, request

from ..extensions import db
from ..models import SecurityEvent
from ..time_utils import utcnow


def log_security_event(
    user_id: int | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    business_id: int | None = None,
) -> SecurityEvent:
    """
    Log security event to audit trail with tenant context.

    Client context (path, method, IP, user agent) is taken from the current
    request when one is active and not given explicitly.

    event_type examples:
    - ACCESS_DENIED
    - ROLE_DENIED
    - LOGIN_FAILED
    - PASSWORD_RESET_REQUESTED
    - PASSWORD_RESET_COMPLETED
    """
    ip_address = None
    user_agent = None
    if has_request_context():
        resource = (resource or request.path)[:128]
        action = action or request.method
        ip_address = request.remote_addr
        user_agent = (request.headers.get("User-Agent") or "")[:512] or None

    event = SecurityEvent(
        user_id=user_id,
        business_id=business_id,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent,
        occurred_at=utcnow(),
    )

    db.session.add(event)
    db.session.commit()

    return event
