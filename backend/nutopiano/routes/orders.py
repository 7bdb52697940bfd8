# Overview: Flask API routes for orders and their payments.

"""
Order routes.

MULTI-TENANT: every lookup goes through the access policy.
- ADMIN: all orders of the business
- STAFF: orders they created
- CUSTOMER: may list orders placed for their own customer record
"""
from flask import Blueprint, g

from ..decorators import require_auth, require_roles
from ..responses import json_body, ok
from ..services import order_service

orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.get("")
@require_auth
@require_roles("ADMIN", "STAFF", "CUSTOMER")
def list_orders():
    return ok([o.to_dict() for o in order_service.list_orders(g.identity)])


@orders_bp.post("")
@require_auth
@require_roles("ADMIN", "STAFF")
def create_order():
    """
    Body: {"customer_id": 1, "items": [{"product_id": 2, "quantity": 3}],
           "source": "POS", "notes": "..."}
    """
    payload = json_body()
    order = order_service.create_order(g.identity, payload)
    return ok(order.to_dict(include_items=True), 201)


@orders_bp.get("/<int:order_id>")
@require_auth
@require_roles("ADMIN", "STAFF")
def get_order(order_id: int):
    return ok(order_service.get_order(g.identity, order_id).to_dict(include_items=True))


@orders_bp.patch("/<int:order_id>")
@require_auth
@require_roles("ADMIN", "STAFF")
def update_order(order_id: int):
    payload = json_body()
    order = order_service.update_order(g.identity, order_id, payload)
    return ok(order.to_dict(include_items=True))


@orders_bp.get("/<int:order_id>/payments")
@require_auth
@require_roles("ADMIN", "STAFF")
def list_payments(order_id: int):
    return ok([p.to_dict() for p in order_service.list_payments(g.identity, order_id)])


@orders_bp.post("/<int:order_id>/payments")
@require_auth
@require_roles("ADMIN", "STAFF")
def add_payment(order_id: int):
    """Body: {"amount": "1500", "method": "CASH", "reference": "..."}"""
    payload = json_body()
    payment = order_service.add_payment(g.identity, order_id, payload)
    return ok(payment.to_dict(), 201)
