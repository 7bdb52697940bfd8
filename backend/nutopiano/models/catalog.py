from __future__ import annotations

from ..extensions import db
from nutopiano.time_utils import to_utc_z

PRODUCT_TYPES = ("PHYSICAL", "SERVICE", "WEIGHT", "CUSTOM")


class Category(db.Model):
    """
    Product category.

    MULTI-TENANT: slug is unique per business, not globally.
    Archived categories keep their rows (is_active=False, archived_at set).
    """
    __tablename__ = "categories"
    __table_args__ = (
        db.UniqueConstraint("business_id", "slug", name="uq_categories_business_slug"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    business_id = db.Column(db.Integer, db.ForeignKey("businesses.id"), nullable=False, index=True)
    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    order_index = db.Column(db.Integer, nullable=False, default=0)
    archived_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "is_active": self.is_active,
            "order_index": self.order_index,
            "archived_at": to_utc_z(self.archived_at),
        }


class Product(db.Model):
    """
    Sellable item or service.

    WHY price_cents: money is stored as integer cents to avoid float rounding.
    Products are never hard-deleted; archive sets is_active=False so
    historical order items keep a valid reference.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_business_active", "business_id", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    business_id = db.Column(db.Integer, db.ForeignKey("businesses.id"), nullable=False, index=True)
    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True, index=True)

    name = db.Column(db.String(255), nullable=False)
    subtitle = db.Column(db.String(255), nullable=True)
    sku = db.Column(db.String(64), nullable=True)
    type = db.Column(db.String(16), nullable=False, default="PHYSICAL")

    price_cents = db.Column(db.Integer, nullable=False)

    description = db.Column(db.Text, nullable=True)
    features = db.Column(db.JSON, nullable=False, default=list)
    image_url = db.Column(db.String(1024), nullable=True)
    images = db.Column(db.JSON, nullable=False, default=list)
    stock = db.Column(db.Integer, nullable=True)
    tags = db.Column(db.JSON, nullable=False, default=list)

    seo_title = db.Column(db.String(255), nullable=True)
    seo_description = db.Column(db.String(512), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    category = db.relationship("Category", backref=db.backref("products", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "category_id": self.category_id,
            "name": self.name,
            "subtitle": self.subtitle,
            "sku": self.sku,
            "type": self.type,
            "price_cents": self.price_cents,
            "description": self.description,
            "features": list(self.features or []),
            "image_url": self.image_url,
            "images": list(self.images or []),
            "stock": self.stock,
            "tags": list(self.tags or []),
            "seo_title": self.seo_title,
            "seo_description": self.seo_description,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
