# Overview: Service-layer operations for order statuses; per-business workflow steps.

"""
Order Status Service

WHY: Each business defines its own order workflow as rows. Exactly one row
per business may be the default (the status new orders start in).

CONCURRENCY: Setting is_default clears every other default of the business
and sets the new one in a single transaction. The business row is locked
first (SELECT ... FOR UPDATE) so two writers promoting different statuses
serialise instead of both clearing and both setting. A partial unique index
on (business_id) WHERE is_default backs this at the storage layer.
"""

from __future__ import annotations

from flask import current_app
import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..errors import BadRequestError, NotFoundError
from ..models import Business, Order, OrderStatus
from ..validation import ModelValidationPolicy, validate_payload
from .concurrency import lock_for_update, run_with_retry


ORDER_STATUS_POLICY = ModelValidationPolicy(
    writable_fields={"key", "label", "order_index", "is_final", "is_default"},
    required_on_create={"key", "label"},
)

DEFAULT_STATUSES = (
    {"key": "CREATED", "label": "Created", "order_index": 1, "is_final": False, "is_default": True},
    {"key": "IN_PROGRESS", "label": "In progress", "order_index": 2, "is_final": False, "is_default": False},
    {"key": "COMPLETED", "label": "Completed", "order_index": 3, "is_final": True, "is_default": False},
)


def _lock_business(business_id: int) -> None:
    lock_for_update(db.session.query(Business).filter_by(id=business_id)).first()


def _clear_default(business_id: int, except_id: int | None = None) -> None:
    stmt = (
        sa.update(OrderStatus)
        .where(OrderStatus.business_id == business_id, OrderStatus.is_default.is_(True))
        .values(is_default=False)
    )
    if except_id is not None:
        stmt = stmt.where(OrderStatus.id != except_id)
    db.session.execute(stmt.execution_options(synchronize_session="fetch"))


def _key_taken(business_id: int, key: str, exclude_id: int | None = None) -> bool:
    query = db.session.query(OrderStatus.id).filter_by(business_id=business_id, key=key)
    if exclude_id is not None:
        query = query.filter(OrderStatus.id != exclude_id)
    return query.first() is not None


def _commit() -> None:
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        current_app.logger.exception("Order status write conflict")
        raise BadRequestError("Order status key already exists")


def _next_order_index(business_id: int) -> int:
    current_max = (
        db.session.query(sa.func.max(OrderStatus.order_index))
        .filter(OrderStatus.business_id == business_id)
        .scalar()
    )
    return (current_max or 0) + 1


def create_status(business_id: int, payload: dict) -> OrderStatus:
    patch = validate_payload(model=OrderStatus, payload=payload, policy=ORDER_STATUS_POLICY, partial=False)
    if _key_taken(business_id, patch["key"]):
        raise BadRequestError("Order status key already exists")

    def _op():
        if patch.get("is_default"):
            _lock_business(business_id)
            _clear_default(business_id)

        order_index = patch.get("order_index")
        if order_index is None:
            order_index = _next_order_index(business_id)

        status = OrderStatus(
            business_id=business_id,
            key=patch["key"],
            label=patch["label"],
            order_index=order_index,
            is_final=bool(patch.get("is_final", False)),
            is_default=bool(patch.get("is_default", False)),
        )
        db.session.add(status)
        _commit()
        return status

    return run_with_retry(_op)


def list_statuses(business_id: int) -> list[OrderStatus]:
    return (
        db.session.query(OrderStatus)
        .filter_by(business_id=business_id)
        .order_by(OrderStatus.order_index.asc(), OrderStatus.id.asc())
        .all()
    )


def get_status(business_id: int, status_id: int) -> OrderStatus:
    status = db.session.query(OrderStatus).filter_by(id=status_id, business_id=business_id).first()
    if not status:
        raise NotFoundError("Order status not found")
    return status


def get_status_by_key(business_id: int, key: str) -> OrderStatus | None:
    return db.session.query(OrderStatus).filter_by(business_id=business_id, key=key).first()


def update_status(business_id: int, status_id: int, payload: dict) -> OrderStatus:
    get_status(business_id, status_id)
    patch = validate_payload(model=OrderStatus, payload=payload, policy=ORDER_STATUS_POLICY, partial=True)
    if "key" in patch and _key_taken(business_id, patch["key"], exclude_id=status_id):
        raise BadRequestError("Order status key already exists")

    def _op():
        if patch.get("is_default"):
            _lock_business(business_id)
            _clear_default(business_id, except_id=status_id)

        status = get_status(business_id, status_id)
        for key, value in patch.items():
            setattr(status, key, value)
        _commit()
        return status

    return run_with_retry(_op)


def delete_status(business_id: int, status_id: int) -> dict:
    status = get_status(business_id, status_id)
    in_use = db.session.query(Order.id).filter_by(status_id=status.id).first() is not None
    if in_use:
        raise BadRequestError("Order status is used by orders and cannot be deleted")

    data = status.to_dict()
    db.session.delete(status)
    db.session.commit()
    return data


def create_default_statuses(business_id: int) -> list[OrderStatus]:
    """Seed CREATED / IN_PROGRESS / COMPLETED when the business has no statuses."""
    existing = db.session.query(OrderStatus.id).filter_by(business_id=business_id).count()
    if existing:
        return []

    statuses = [OrderStatus(business_id=business_id, **fields) for fields in DEFAULT_STATUSES]
    db.session.add_all(statuses)
    db.session.commit()
    return statuses
