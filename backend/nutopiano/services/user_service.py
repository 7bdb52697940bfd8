# Overview: Service-layer read access to users within the caller's business.

from __future__ import annotations

from ..extensions import db
from ..errors import NotFoundError
from ..models import User


def list_users(business_id: int) -> list[User]:
    return db.session.query(User).filter_by(business_id=business_id).order_by(User.id.asc()).all()


def get_user(business_id: int, user_id: int) -> User:
    """MULTI-TENANT: a user of another business is reported as missing."""
    user = db.session.query(User).filter_by(id=user_id, business_id=business_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def get_user_by_phone(business_id: int, phone: str) -> User:
    user = db.session.query(User).filter_by(phone=phone, business_id=business_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user
