# Overview: Service-layer operations for products; catalog writes and the public storefront reads.

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..errors import BadRequestError, NotFoundError
from ..models import Category, Product
from ..models.catalog import PRODUCT_TYPES
from ..validation import ModelValidationPolicy, validate_payload
from . import tenant_service
from .token_service import Identity


PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "category_id", "name", "subtitle", "sku", "type", "price",
        "description", "features", "image_url", "images", "stock", "tags",
        "seo_title", "seo_description",
    },
    required_on_create={"name", "price"},
    money_fields={"price": "price_cents"},
    choices={"type": PRODUCT_TYPES},
)


def _require_category_in_tenant(business_id: int, category_id: int) -> Category:
    """
    Validate that a category belongs to the business and is active.

    SECURITY: a category from another business is reported as missing.
    """
    category = (
        db.session.query(Category)
        .filter_by(id=category_id, business_id=business_id, is_active=True)
        .first()
    )
    if not category:
        raise NotFoundError("Category not found")
    return category


def _get_in_tenant(business_id: int, product_id: int) -> Product:
    product = db.session.query(Product).filter_by(id=product_id, business_id=business_id).first()
    if not product:
        raise NotFoundError("Product not found")
    return product


def create_product(identity: Identity, payload: dict) -> Product:
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)

    if patch.get("category_id") is not None:
        _require_category_in_tenant(identity.business_id, patch["category_id"])

    images = patch.get("images") or []
    if not patch.get("image_url") and images:
        patch["image_url"] = images[0]

    product = Product(
        business_id=identity.business_id,
        created_by_user_id=identity.user_id,
        **patch,
    )
    if product.type is None:
        product.type = "PHYSICAL"
    db.session.add(product)
    db.session.commit()
    return product


def update_product(identity: Identity, product_id: int, payload: dict) -> Product:
    """
    Patch a product.

    Supplying images without image_url also moves image_url to the first
    image. Constraint violations surface as a generic BadRequest; the
    underlying error is logged.
    """
    product = _get_in_tenant(identity.business_id, product_id)
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)

    if patch.get("category_id") is not None:
        _require_category_in_tenant(identity.business_id, patch["category_id"])

    if "images" in patch and "image_url" not in patch and patch["images"]:
        patch["image_url"] = patch["images"][0]

    for key, value in patch.items():
        setattr(product, key, value)

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        current_app.logger.exception("Product update failed for product %s", product_id)
        raise BadRequestError("Product could not be updated")

    return product


def archive_product(identity: Identity, product_id: int) -> Product:
    """Soft delete. Order items keep referencing the row."""
    product = _get_in_tenant(identity.business_id, product_id)
    product.is_active = False
    db.session.commit()
    return product


def list_active_products(business_id: int) -> list[Product]:
    return (
        db.session.query(Product)
        .filter_by(business_id=business_id, is_active=True)
        .order_by(Product.name.asc())
        .all()
    )


def list_public_products() -> list[Product]:
    try:
        business_id = tenant_service.get_public_business_id()
    except NotFoundError:
        return []
    return list_active_products(business_id)


def get_public_product(product_id: int) -> Product:
    return _get_in_tenant(tenant_service.get_public_business_id(), product_id)
