"""
Access Policy: tenant + role row scoping

WHY: Every tenant-scoped read or write goes through one predicate builder
instead of repeating ADMIN/STAFF/CUSTOMER branches in each service.

RESOURCES maps a resource name to its model, the column that makes a STAFF
user the "owner" of a row, and the predicate that makes a row the caller's
own when the caller is a CUSTOMER.

ROLE_SCOPES maps a role to the predicate builder applied on top of the
tenant filter:
- ADMIN:    business_id only
- STAFF:    business_id AND owner column = caller
- CUSTOMER: business_id AND row linked to the caller's own customer record

SECURITY:
- A row outside the caller's business is NotFound, indistinguishable from
  a missing id, so tenant boundaries cannot be probed.
- A row inside the business but outside the role predicate is Forbidden,
  and the attempt is written to the security audit trail.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

import sqlalchemy as sa

from ..extensions import db
from ..errors import ForbiddenError, NotFoundError
from ..models import Appointment, Customer, Order
from ..models.auth import ROLE_ADMIN, ROLE_CUSTOMER, ROLE_STAFF
from .security_service import log_security_event
from .token_service import Identity


def _own_customer_ids(identity: Identity):
    return sa.select(Customer.id).where(
        Customer.business_id == identity.business_id,
        Customer.user_id == identity.user_id,
    )


@dataclass(frozen=True)
class ResourcePolicy:
    name: str
    model: type
    staff_owner_column: str
    customer_predicate: Callable[[Identity], sa.ColumnElement]


RESOURCES: dict[str, ResourcePolicy] = {
    "customer": ResourcePolicy(
        name="Customer",
        model=Customer,
        staff_owner_column="created_by_user_id",
        customer_predicate=lambda identity: Customer.user_id == identity.user_id,
    ),
    "order": ResourcePolicy(
        name="Order",
        model=Order,
        staff_owner_column="created_by_user_id",
        customer_predicate=lambda identity: Order.customer_id.in_(_own_customer_ids(identity)),
    ),
    "appointment": ResourcePolicy(
        name="Appointment",
        model=Appointment,
        staff_owner_column="staff_user_id",
        customer_predicate=lambda identity: sa.false(),
    ),
}


ROLE_SCOPES: dict[str, Callable[[ResourcePolicy, Identity], sa.ColumnElement | None]] = {
    ROLE_ADMIN: lambda policy, identity: None,
    ROLE_STAFF: lambda policy, identity: getattr(policy.model, policy.staff_owner_column) == identity.user_id,
    ROLE_CUSTOMER: lambda policy, identity: policy.customer_predicate(identity),
}


def _policy(resource: str) -> ResourcePolicy:
    try:
        return RESOURCES[resource]
    except KeyError:
        raise ValueError(f"Unknown resource: {resource}")


def role_predicate(resource: str, identity: Identity):
    """Ownership predicate for the caller's role, or None when unrestricted."""
    builder = ROLE_SCOPES.get(identity.role)
    if builder is None:
        return sa.false()
    return builder(_policy(resource), identity)


def scoped_query(resource: str, identity: Identity):
    """
    Query over the rows of `resource` visible to the caller.

    MULTI-TENANT: always filtered by identity.business_id.
    """
    policy = _policy(resource)
    query = db.session.query(policy.model).filter(policy.model.business_id == identity.business_id)
    predicate = role_predicate(resource, identity)
    if predicate is not None:
        query = query.filter(predicate)
    return query


def find_accessible(resource: str, identity: Identity, obj_id: int):
    """
    Fetch a single row the caller may act on.

    Raises:
        NotFoundError: no row with this id in the caller's business
        ForbiddenError: row exists in the business but the role predicate hides it
    """
    policy = _policy(resource)
    model = policy.model
    obj = (
        db.session.query(model)
        .filter(model.id == obj_id, model.business_id == identity.business_id)
        .first()
    )
    if obj is None:
        raise NotFoundError(f"{policy.name} not found")

    predicate = role_predicate(resource, identity)
    if predicate is not None:
        visible = db.session.query(model.id).filter(model.id == obj.id, predicate).first()
        if visible is None:
            log_security_event(
                user_id=identity.user_id,
                event_type="ACCESS_DENIED",
                success=False,
                reason=f"{identity.role} {identity.user_id} denied {policy.name} {obj_id}",
                business_id=identity.business_id,
            )
            raise ForbiddenError("Access denied")

    return obj
