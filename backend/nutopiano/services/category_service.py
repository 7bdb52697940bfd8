# Overview: Service-layer operations for categories; tenant-scoped CRUD with archive.

from __future__ import annotations

import re

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..errors import BadRequestError, NotFoundError
from ..models import Category, Product
from ..validation import ModelValidationPolicy, validate_payload
from ..time_utils import utcnow
from . import tenant_service
from .token_service import Identity


CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "slug", "is_active", "order_index"},
    required_on_create={"name"},
)

_TRANSLITERATION = str.maketrans({"ç": "c", "ğ": "g", "ı": "i", "ö": "o", "ş": "s", "ü": "u"})


def slugify(text: str) -> str:
    """
    URL slug: lowercase ASCII, Turkish letters transliterated, words joined
    by single hyphens.

    >>> slugify("  Çiğ Köfte & Dürüm ")
    'cig-kofte-durum'
    """
    value = (text or "").strip().lower().translate(_TRANSLITERATION)
    value = re.sub(r"[^a-z0-9\s-]", "", value)
    value = re.sub(r"\s+", "-", value)
    value = re.sub(r"-+", "-", value)
    return value.strip("-")


def _slug_taken(business_id: int, slug: str, exclude_id: int | None = None) -> bool:
    query = db.session.query(Category.id).filter_by(business_id=business_id, slug=slug)
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    return query.first() is not None


def _commit_slug_change(category: Category) -> Category:
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        current_app.logger.exception("Category slug conflict")
        raise BadRequestError("Slug already in use")
    return category


def create_category(identity: Identity, payload: dict) -> Category:
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)

    slug = slugify(patch.get("slug") or "") or slugify(patch["name"])
    if not slug:
        raise BadRequestError("Slug cannot be empty")
    if _slug_taken(identity.business_id, slug):
        raise BadRequestError("Slug already in use")

    category = Category(
        business_id=identity.business_id,
        created_by_user_id=identity.user_id,
        name=patch["name"],
        slug=slug,
        is_active=patch.get("is_active", True),
        order_index=patch.get("order_index") or 0,
    )
    db.session.add(category)
    return _commit_slug_change(category)


def list_categories(business_id: int) -> list[Category]:
    return (
        db.session.query(Category)
        .filter_by(business_id=business_id, is_active=True)
        .order_by(Category.order_index.asc(), Category.name.asc())
        .all()
    )


def get_category(business_id: int, category_id: int) -> Category:
    category = db.session.query(Category).filter_by(id=category_id, business_id=business_id).first()
    if not category:
        raise NotFoundError("Category not found")
    return category


def _deactivate(business_id: int, category: Category) -> None:
    active_products = (
        db.session.query(Product)
        .filter_by(business_id=business_id, category_id=category.id, is_active=True)
        .count()
    )
    if active_products:
        raise BadRequestError(
            f"Category has {active_products} active product(s); move or archive them first"
        )

    category.is_active = False
    category.archived_at = utcnow()


def update_category(identity: Identity, category_id: int, payload: dict) -> Category:
    category = get_category(identity.business_id, category_id)
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=True)

    if "slug" in patch:
        slug = slugify(patch["slug"] or "")
        if not slug:
            raise BadRequestError("Slug cannot be empty")
        if _slug_taken(identity.business_id, slug, exclude_id=category.id):
            raise BadRequestError("Slug already in use")
        category.slug = slug

    if "name" in patch:
        category.name = patch["name"]
    if "order_index" in patch and patch["order_index"] is not None:
        category.order_index = patch["order_index"]
    if "is_active" in patch:
        if patch["is_active"]:
            category.is_active = True
            category.archived_at = None
        elif category.is_active:
            _deactivate(identity.business_id, category)

    return _commit_slug_change(category)


def archive_category(identity: Identity, category_id: int) -> Category:
    """
    Soft-delete a category.

    Refused while active products still point at it so products are never
    silently orphaned into an archived category.
    """
    category = get_category(identity.business_id, category_id)
    _deactivate(identity.business_id, category)
    db.session.commit()
    return category


def list_public_categories() -> list[Category]:
    try:
        business_id = tenant_service.get_public_business_id()
    except NotFoundError:
        return []
    return list_categories(business_id)


def get_public_category_by_slug(slug: str) -> tuple[Category, list[Product]]:
    business_id = tenant_service.get_public_business_id()
    category = (
        db.session.query(Category)
        .filter_by(business_id=business_id, slug=slug, is_active=True)
        .first()
    )
    if not category:
        raise NotFoundError("Category not found")

    products = (
        db.session.query(Product)
        .filter_by(business_id=business_id, category_id=category.id, is_active=True)
        .order_by(Product.name.asc())
        .all()
    )
    return category, products
