from __future__ import annotations

from ..extensions import db
from nutopiano.time_utils import to_utc_z


class Customer(db.Model):
    """
    Purchaser record, distinct from User.

    MULTI-TENANT: Customers are scoped to businesses via business_id.
    STAFF only see customers they created (created_by_user_id).
    user_id links the record to the CUSTOMER user it represents, if any.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_business_creator", "business_id", "created_by_user_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    business_id = db.Column(db.Integer, db.ForeignKey("businesses.id"), nullable=False, index=True)
    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=False)

    # Integer cents
    balance = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "balance": self.balance,
            "created_at": to_utc_z(self.created_at),
        }
