# Overview: Service-layer operations for orders and payments.

"""
Order Service

WHY: An order freezes what the customer owes at the moment it is placed.
Each line stores the product price as a snapshot and the order total is the
sum of those snapshots. Later product price changes never touch either.

ATOMICITY: The order row and all of its items are written in one
transaction. Every product is validated before anything is added to the
session, so a bad line fails the whole order and no partial items exist.

Payments are an append-only sub-ledger with no reconciliation against the
order total.
"""

from __future__ import annotations

from ..extensions import db
from ..errors import BadRequestError, NotFoundError
from ..models import Customer, Order, OrderItem, Payment, Product
from ..models.orders import ORDER_SOURCES, PAYMENT_METHODS
from ..validation import ValidationError, parse_int, parse_money_cents
from . import access_policy, order_status_service, settings_service
from .token_service import Identity

DEFAULT_STATUS_KEY = "CREATED"


def _resolve_default_status(business_id: int):
    key = settings_service.get_json(business_id, settings_service.ORDER_DEFAULT_STATUS_KEY)
    if not isinstance(key, str) or not key.strip():
        key = DEFAULT_STATUS_KEY
    status = order_status_service.get_status_by_key(business_id, key.strip())
    if not status:
        raise NotFoundError("Default order status not configured")
    return status


def _parse_items(raw_items) -> list[tuple[int, int]]:
    if not isinstance(raw_items, list) or not raw_items:
        raise BadRequestError("Order items are required")

    items = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            raise ValidationError("Each item must be an object")
        product_id = parse_int(raw.get("product_id"), field_name="product_id")
        quantity = parse_int(raw.get("quantity"), field_name="quantity")
        if product_id < 1:
            raise ValidationError("product_id must be >= 1")
        if quantity < 1:
            raise ValidationError("quantity must be >= 1")
        items.append((product_id, quantity))
    return items


def create_order(identity: Identity, payload: dict) -> Order:
    """
    Place an order.

    Steps:
    1. customer must exist in the caller's business
    2. default status from setting order.defaultStatusKey (fallback CREATED)
    3. items must be non-empty
    4. every product must be active and in the business
    5. unit prices are snapshotted and summed into total_amount_cents
    6. order and items are committed together
    """
    payload = payload or {}
    business_id = identity.business_id

    customer_id = parse_int(payload.get("customer_id"), field_name="customer_id")
    customer = db.session.query(Customer.id).filter_by(id=customer_id, business_id=business_id).first()
    if not customer:
        raise NotFoundError("Customer not found")

    status = _resolve_default_status(business_id)
    items = _parse_items(payload.get("items"))

    source = payload.get("source") or "POS"
    if source not in ORDER_SOURCES:
        raise ValidationError(f"source must be one of: {', '.join(ORDER_SOURCES)}")
    notes = payload.get("notes")
    if notes is not None and not isinstance(notes, str):
        raise ValidationError("notes must be a string")

    product_ids = {product_id for product_id, _ in items}
    products = {
        p.id: p
        for p in db.session.query(Product).filter(
            Product.business_id == business_id,
            Product.id.in_(product_ids),
            Product.is_active.is_(True),
        )
    }

    lines = []
    total_amount_cents = 0
    for product_id, quantity in items:
        product = products.get(product_id)
        if product is None:
            raise NotFoundError(f"Product not found: {product_id}")
        unit_price_cents = product.price_cents
        line_total = unit_price_cents * quantity
        total_amount_cents += line_total
        lines.append((product_id, quantity, unit_price_cents, line_total))

    order = Order(
        business_id=business_id,
        customer_id=customer_id,
        created_by_user_id=identity.user_id,
        status_id=status.id,
        total_amount_cents=total_amount_cents,
        source=source,
        notes=notes,
    )
    try:
        db.session.add(order)
        db.session.flush()
        for product_id, quantity, unit_price_cents, line_total in lines:
            db.session.add(OrderItem(
                business_id=business_id,
                order_id=order.id,
                product_id=product_id,
                quantity=quantity,
                unit_price_cents=unit_price_cents,
                total_amount_cents=line_total,
            ))
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    return order


def list_orders(identity: Identity) -> list[Order]:
    return (
        access_policy.scoped_query("order", identity)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )


def get_order(identity: Identity, order_id: int) -> Order:
    return access_policy.find_accessible("order", identity, order_id)


def update_order(identity: Identity, order_id: int, payload: dict) -> Order:
    order = access_policy.find_accessible("order", identity, order_id)
    payload = payload or {}

    for k in payload:
        if k not in ("status_key", "notes"):
            raise ValidationError(f"Field not allowed: {k}")

    if payload.get("status_key") is not None:
        status_key = payload["status_key"]
        if not isinstance(status_key, str):
            raise ValidationError("status_key must be a string")
        status = order_status_service.get_status_by_key(identity.business_id, status_key.strip())
        if not status:
            raise NotFoundError("Order status not found")
        order.status_id = status.id

    if "notes" in payload:
        notes = payload["notes"]
        if notes is not None and not isinstance(notes, str):
            raise ValidationError("notes must be a string")
        order.notes = notes

    db.session.commit()
    return order


def list_payments(identity: Identity, order_id: int) -> list[Payment]:
    order = access_policy.find_accessible("order", identity, order_id)
    return (
        db.session.query(Payment)
        .filter_by(business_id=identity.business_id, order_id=order.id)
        .order_by(Payment.created_at.asc(), Payment.id.asc())
        .all()
    )


def add_payment(identity: Identity, order_id: int, payload: dict) -> Payment:
    order = access_policy.find_accessible("order", identity, order_id)
    payload = payload or {}

    if payload.get("amount") is None:
        raise ValidationError("amount is required")
    amount_cents = parse_money_cents(payload["amount"], field_name="amount", allow_zero=False)

    method = payload.get("method")
    if method not in PAYMENT_METHODS:
        raise ValidationError(f"method must be one of: {', '.join(PAYMENT_METHODS)}")

    reference = payload.get("reference")
    if reference is not None:
        if not isinstance(reference, str):
            raise ValidationError("reference must be a string")
        reference = reference.strip()[:255] or None

    payment = Payment(
        business_id=identity.business_id,
        order_id=order.id,
        amount_cents=amount_cents,
        method=method,
        reference=reference,
    )
    db.session.add(payment)
    db.session.commit()
    return payment
