# Overview: Flask API routes for per-business order statuses.

from flask import Blueprint, g

from ..decorators import require_auth, require_roles
from ..responses import json_body, ok
from ..services import order_status_service

order_status_bp = Blueprint("order_status", __name__, url_prefix="/api/order-status")


@order_status_bp.get("")
@require_auth
@require_roles("ADMIN", "STAFF")
def list_statuses():
    statuses = order_status_service.list_statuses(g.identity.business_id)
    return ok([s.to_dict() for s in statuses])


@order_status_bp.post("")
@require_auth
@require_roles("ADMIN")
def create_status():
    """
    Create a status. is_default=true demotes the current default in the
    same transaction.
    """
    payload = json_body()
    status = order_status_service.create_status(g.identity.business_id, payload)
    return ok(status.to_dict(), 201)


@order_status_bp.get("/<int:status_id>")
@require_auth
@require_roles("ADMIN", "STAFF")
def get_status(status_id: int):
    return ok(order_status_service.get_status(g.identity.business_id, status_id).to_dict())


@order_status_bp.patch("/<int:status_id>")
@require_auth
@require_roles("ADMIN")
def update_status(status_id: int):
    payload = json_body()
    status = order_status_service.update_status(g.identity.business_id, status_id, payload)
    return ok(status.to_dict())


@order_status_bp.delete("/<int:status_id>")
@require_auth
@require_roles("ADMIN")
def delete_status(status_id: int):
    return ok(order_status_service.delete_status(g.identity.business_id, status_id))
