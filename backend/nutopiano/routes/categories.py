# Overview: Flask API routes for categories (admin) and the public category storefront.

"""
Category routes.

MULTI-TENANT: admin routes act on g.identity.business_id. Public routes
read the storefront business (PUBLIC_BUSINESS_ID or the lowest-id business).
"""
from flask import Blueprint, g

from ..decorators import require_auth, require_roles
from ..responses import json_body, ok
from ..services import category_service

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")
public_categories_bp = Blueprint("public_categories", __name__, url_prefix="/api/public/categories")


@categories_bp.get("")
@require_auth
@require_roles("ADMIN", "STAFF")
def list_categories():
    categories = category_service.list_categories(g.identity.business_id)
    return ok([c.to_dict() for c in categories])


@categories_bp.post("")
@require_auth
@require_roles("ADMIN")
def create_category():
    payload = json_body()
    category = category_service.create_category(g.identity, payload)
    return ok(category.to_dict(), 201)


@categories_bp.patch("/<int:category_id>")
@require_auth
@require_roles("ADMIN")
def update_category(category_id: int):
    payload = json_body()
    category = category_service.update_category(g.identity, category_id, payload)
    return ok(category.to_dict())


@categories_bp.delete("/<int:category_id>")
@require_auth
@require_roles("ADMIN")
def archive_category(category_id: int):
    """Archive (soft delete). 400 while active products reference it."""
    category = category_service.archive_category(g.identity, category_id)
    return ok(category.to_dict())


@public_categories_bp.get("")
def list_public_categories():
    categories = category_service.list_public_categories()
    return ok([
        {"id": c.id, "name": c.name, "slug": c.slug, "order_index": c.order_index}
        for c in categories
    ])


@public_categories_bp.get("/<slug>")
def get_public_category(slug: str):
    category, products = category_service.get_public_category_by_slug(slug)
    return ok({
        "id": category.id,
        "name": category.name,
        "slug": category.slug,
        "order_index": category.order_index,
        "products": [p.to_dict() for p in products],
    })
