from __future__ import annotations

from ..extensions import db
from nutopiano.time_utils import to_utc_z


class Setting(db.Model):
    """
    Per-business key/value configuration.

    The value is arbitrary JSON with no schema; consumers interpret it and
    fall back to their own defaults.
    """
    __tablename__ = "settings"
    __table_args__ = (
        db.UniqueConstraint("business_id", "key", name="uq_settings_business_key"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    business_id = db.Column(db.Integer, db.ForeignKey("businesses.id"), nullable=False, index=True)

    key = db.Column(db.String(128), nullable=False)
    value = db.Column(db.JSON, nullable=True)

    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self):
        return {
            "id": self.id,
            "key": self.key,
            "value": self.value,
            "updated_at": to_utc_z(self.updated_at),
        }
