# Overview: Service-layer operations for customers; access-policy scoped CRUD.

from __future__ import annotations

from ..extensions import db
from ..errors import BadRequestError, UnauthorizedError
from ..models import Appointment, Customer, Order, User
from ..validation import ModelValidationPolicy, validate_payload
from . import access_policy
from .token_service import Identity


CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "phone", "balance"},
    required_on_create={"name", "phone"},
    money_fields={"balance": "balance"},
)


def _validate(payload: dict, *, partial: bool) -> dict:
    return validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=partial)


def create_customer(identity: Identity, payload: dict) -> Customer:
    patch = _validate(payload, partial=False)
    customer = Customer(
        business_id=identity.business_id,
        created_by_user_id=identity.user_id,
        name=patch["name"],
        phone=patch["phone"],
        balance=patch.get("balance", 0),
    )
    db.session.add(customer)
    db.session.commit()
    return customer


def list_customers(identity: Identity) -> list[Customer]:
    return access_policy.scoped_query("customer", identity).order_by(Customer.id.asc()).all()


def get_customer(identity: Identity, customer_id: int) -> Customer:
    return access_policy.find_accessible("customer", identity, customer_id)


def update_customer(identity: Identity, customer_id: int, payload: dict) -> Customer:
    customer = access_policy.find_accessible("customer", identity, customer_id)
    patch = _validate(payload, partial=True)
    for key, value in patch.items():
        setattr(customer, key, value)
    db.session.commit()
    return customer


def delete_customer(identity: Identity, customer_id: int) -> dict:
    """
    Hard delete.

    Refused while orders or appointments still reference the customer so
    order history is never left dangling.
    """
    customer = access_policy.find_accessible("customer", identity, customer_id)

    has_orders = db.session.query(Order.id).filter_by(customer_id=customer.id).first() is not None
    has_appointments = db.session.query(Appointment.id).filter_by(customer_id=customer.id).first() is not None
    if has_orders or has_appointments:
        raise BadRequestError("Customer has orders or appointments and cannot be deleted")

    data = customer.to_dict()
    db.session.delete(customer)
    db.session.commit()
    return data


def find_or_create_for_user(identity: Identity) -> Customer:
    """
    Customer record representing the calling user, created on first use
    (checkout needs one for every buyer).
    """
    customer = (
        db.session.query(Customer)
        .filter_by(business_id=identity.business_id, user_id=identity.user_id)
        .order_by(Customer.id.asc())
        .first()
    )
    if customer:
        return customer

    user = db.session.get(User, identity.user_id)
    if not user or not user.is_active or user.business_id != identity.business_id:
        raise UnauthorizedError("User not found or inactive")

    customer = Customer(
        business_id=identity.business_id,
        created_by_user_id=user.id,
        user_id=user.id,
        name=user.name,
        phone=user.phone,
        balance=0,
    )
    db.session.add(customer)
    db.session.commit()
    return customer
