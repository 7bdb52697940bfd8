from __future__ import annotations

from ..extensions import db
from nutopiano.time_utils import to_utc_z

ORDER_SOURCES = ("POS", "ONLINE")
PAYMENT_METHODS = ("CASH", "CARD", "TRANSFER", "OTHER")


class OrderStatus(db.Model):
    """
    Business-defined order workflow step.

    WHY: Statuses are rows, not a fixed enum, so each business can model
    its own workflow. Order.status_id is a foreign key to this table.

    INVARIANT: at most one is_default=True per business. Enforced by the
    partial unique index below plus transactional clearing in
    order_status_service.
    """
    __tablename__ = "order_statuses"
    __table_args__ = (
        db.UniqueConstraint("business_id", "key", name="uq_order_statuses_business_key"),
        db.Index(
            "uq_order_statuses_one_default",
            "business_id",
            unique=True,
            postgresql_where=db.text("is_default"),
            sqlite_where=db.text("is_default = 1"),
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    business_id = db.Column(db.Integer, db.ForeignKey("businesses.id"), nullable=False, index=True)

    key = db.Column(db.String(64), nullable=False)
    label = db.Column(db.String(255), nullable=False)
    order_index = db.Column(db.Integer, nullable=False, default=0)
    is_final = db.Column(db.Boolean, nullable=False, default=False)
    is_default = db.Column(db.Boolean, nullable=False, default=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "key": self.key,
            "label": self.label,
            "order_index": self.order_index,
            "is_final": self.is_final,
            "is_default": self.is_default,
        }


class Order(db.Model):
    """
    Customer order.

    total_amount_cents is frozen at creation from the item snapshots and is
    never recomputed from live product prices.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_business_created", "business_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    business_id = db.Column(db.Integer, db.ForeignKey("businesses.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    status_id = db.Column(db.Integer, db.ForeignKey("order_statuses.id"), nullable=False, index=True)

    total_amount_cents = db.Column(db.Integer, nullable=False)
    source = db.Column(db.String(16), nullable=False, default="POS")
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    customer = db.relationship("Customer", backref=db.backref("orders", lazy=True))
    status = db.relationship("OrderStatus")
    items = db.relationship("OrderItem", backref="order", lazy=True, order_by="OrderItem.id")

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "customer_id": self.customer_id,
            "created_by_user_id": self.created_by_user_id,
            "status_id": self.status_id,
            "status_key": self.status.key if self.status else None,
            "total_amount_cents": self.total_amount_cents,
            "source": self.source,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class OrderItem(db.Model):
    """
    Order line. IMMUTABLE: unit_price_cents is the product price snapshot at
    order time and total_amount_cents = quantity * unit_price_cents.
    """
    __tablename__ = "order_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    business_id = db.Column(db.Integer, db.ForeignKey("businesses.id"), nullable=False, index=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    total_amount_cents = db.Column(db.Integer, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "total_amount_cents": self.total_amount_cents,
        }


class Payment(db.Model):
    """
    Payment against an order.

    IMMUTABLE: append-only. Payments are not reconciled against the order
    total; that is left to manual reconciliation.
    """
    __tablename__ = "payments"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    business_id = db.Column(db.Integer, db.ForeignKey("businesses.id"), nullable=False, index=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)

    amount_cents = db.Column(db.Integer, nullable=False)
    method = db.Column(db.String(16), nullable=False)
    reference = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "amount_cents": self.amount_cents,
            "method": self.method,
            "reference": self.reference,
            "created_at": to_utc_z(self.created_at),
        }
