# Overview: Flask API routes for products; public reads, admin writes.

"""
Product routes.

GET routes are public and show the storefront business only.
Writes require ADMIN and act on the caller's business.
"""
from flask import Blueprint, g

from ..decorators import require_auth, require_roles
from ..responses import json_body, ok
from ..services import products_service

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
def list_products():
    return ok([p.to_dict() for p in products_service.list_public_products()])


@products_bp.get("/<int:product_id>")
def get_product(product_id: int):
    return ok(products_service.get_public_product(product_id).to_dict())


@products_bp.post("")
@require_auth
@require_roles("ADMIN")
def create_product():
    """
    Create a product.

    price is integer cents sent as a string, e.g. {"price": "1000"}.
    image_url defaults to the first entry of images.
    """
    payload = json_body()
    product = products_service.create_product(g.identity, payload)
    return ok(product.to_dict(), 201)


@products_bp.patch("/<int:product_id>")
@require_auth
@require_roles("ADMIN")
def update_product(product_id: int):
    payload = json_body()
    product = products_service.update_product(g.identity, product_id, payload)
    return ok(product.to_dict())


@products_bp.delete("/<int:product_id>")
@require_auth
@require_roles("ADMIN")
def archive_product(product_id: int):
    product = products_service.archive_product(g.identity, product_id)
    return ok(product.to_dict())
