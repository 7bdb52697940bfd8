# Overview: Retention cleanup for the security audit trail.

from __future__ import annotations

from datetime import timedelta

from ..extensions import db
from ..models import SecurityEvent
from ..time_utils import utcnow


def cleanup_security_events(*, retention_days: int = 90, business_id: int | None = None) -> int:
    """
    Delete security events that occurred more than retention_days ago.

    MULTI-TENANT: business_id limits the purge to one tenant's trail;
    None purges every business, including pre-auth events with no tenant.
    """
    if retention_days < 1:
        raise ValueError("retention_days must be >= 1")

    query = db.session.query(SecurityEvent).filter(
        SecurityEvent.occurred_at < utcnow() - timedelta(days=retention_days)
    )
    if business_id is not None:
        query = query.filter(SecurityEvent.business_id == business_id)

    deleted = query.delete(synchronize_session=False)
    db.session.commit()
    return deleted
