# Overview: Per-business key/value settings consumed by order and appointment defaults.

from __future__ import annotations

from typing import Any

from ..extensions import db
from ..models import Setting
from ..validation import ValidationError


ORDER_DEFAULT_STATUS_KEY = "order.defaultStatusKey"
APPOINTMENT_DEFAULT_DURATION = "appointment.defaultDurationMinutes"
APPOINTMENT_AUTO_CONFIRM = "appointment.autoConfirm"
APPOINTMENT_ALLOW_STAFF_CREATE = "appointment.allowStaffCreate"

MAX_KEY_LENGTH = 128


def list_settings(business_id: int) -> list[Setting]:
    return (
        db.session.query(Setting)
        .filter_by(business_id=business_id)
        .order_by(Setting.key.asc())
        .all()
    )


def get(business_id: int, key: str) -> Setting | None:
    return db.session.query(Setting).filter_by(business_id=business_id, key=key).first()


def set(business_id: int, key: str, value: Any) -> Setting:
    """
    Create or replace the value stored under (business_id, key).

    No schema validation is applied to value; readers must tolerate
    anything JSON can hold.
    """
    key = (key or "").strip() if isinstance(key, str) else ""
    if not key:
        raise ValidationError("key is required")
    if len(key) > MAX_KEY_LENGTH:
        raise ValidationError(f"key exceeds max length {MAX_KEY_LENGTH}")

    setting = get(business_id, key)
    if setting is None:
        setting = Setting(business_id=business_id, key=key, value=value)
        db.session.add(setting)
    else:
        setting.value = value
    db.session.commit()
    return setting


def get_json(business_id: int, key: str, default: Any = None) -> Any:
    setting = get(business_id, key)
    if setting is None or setting.value is None:
        return default
    return setting.value


def set_json(business_id: int, key: str, value: Any) -> Setting:
    return set(business_id, key, value)
