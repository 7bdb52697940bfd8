"""
Multi-Tenant Service: Business resolution helpers

WHY: Authenticated requests carry their business in the token. Public
storefront requests and self-registration do not, so they resolve a
"public" business: the configured PUBLIC_BUSINESS_ID, else the lowest-id
business. The fallback is resolved once per process and cached on the app
so concurrent requests never see different storefronts.

USAGE:
    from nutopiano.services.tenant_service import get_public_business_id

    business_id = get_public_business_id()
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..errors import NotFoundError
from ..models import Business

_CACHE_KEY = "nutopiano.public_business_id"


def get_business(business_id: int) -> Business | None:
    return db.session.get(Business, business_id)


def _lowest_business_id() -> int | None:
    row = db.session.query(Business.id).order_by(Business.id.asc()).first()
    return row[0] if row else None


def get_public_business_id() -> int:
    """
    Business id shown by the unauthenticated storefront.

    Raises NotFoundError when no business exists yet. A miss is not cached
    so the first business created later is picked up.
    """
    configured = current_app.config.get("PUBLIC_BUSINESS_ID")
    if configured:
        return int(configured)

    cached = current_app.extensions.get(_CACHE_KEY)
    if cached is not None:
        return cached

    business_id = _lowest_business_id()
    if business_id is None:
        raise NotFoundError("Business not found")
    current_app.extensions[_CACHE_KEY] = business_id
    return business_id


def resolve_registration_business(business_id: int | None = None) -> Business:
    """Explicit id -> configured public id -> lowest-id business."""
    if business_id is not None:
        business = get_business(business_id)
        if not business:
            raise NotFoundError("Business not found")
        return business

    business = get_business(get_public_business_id())
    if not business:
        raise NotFoundError("Business not found")
    return business


def reset_public_business_cache() -> None:
    current_app.extensions.pop(_CACHE_KEY, None)


def create_business(name: str) -> Business:
    name = (name or "").strip()
    if not name:
        raise ValueError("Business name is required")
    business = Business(name=name)
    db.session.add(business)
    db.session.commit()
    return business
