# Overview: Flask API routes for customers.

"""
Customer routes.

MULTI-TENANT: scoped to g.identity.business_id through the access policy.
STAFF only reach customers they created; another STAFF's customer is 403,
another business's customer is 404.
"""
from flask import Blueprint, g

from ..decorators import require_auth, require_roles
from ..responses import json_body, ok
from ..services import customer_service

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_auth
@require_roles("ADMIN", "STAFF")
def list_customers():
    return ok([c.to_dict() for c in customer_service.list_customers(g.identity)])


@customers_bp.post("")
@require_auth
@require_roles("ADMIN", "STAFF")
def create_customer():
    payload = json_body()
    customer = customer_service.create_customer(g.identity, payload)
    return ok(customer.to_dict(), 201)


@customers_bp.get("/me")
@require_auth
@require_roles("ADMIN", "STAFF", "CUSTOMER")
def my_customer():
    """Customer record linked to the caller, created on first request."""
    return ok(customer_service.find_or_create_for_user(g.identity).to_dict())


@customers_bp.get("/<int:customer_id>")
@require_auth
@require_roles("ADMIN", "STAFF")
def get_customer(customer_id: int):
    return ok(customer_service.get_customer(g.identity, customer_id).to_dict())


@customers_bp.patch("/<int:customer_id>")
@require_auth
@require_roles("ADMIN", "STAFF")
def update_customer(customer_id: int):
    payload = json_body()
    return ok(customer_service.update_customer(g.identity, customer_id, payload).to_dict())


@customers_bp.delete("/<int:customer_id>")
@require_auth
@require_roles("ADMIN", "STAFF")
def delete_customer(customer_id: int):
    return ok(customer_service.delete_customer(g.identity, customer_id))
