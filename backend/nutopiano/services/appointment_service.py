# Overview: Service-layer operations for appointments; scheduling with settings-driven defaults.

from __future__ import annotations

from ..extensions import db
from ..errors import ForbiddenError, NotFoundError
from ..models import Appointment, Customer, User
from ..models.appointments import APPOINTMENT_STATUSES
from ..models.auth import ROLE_ADMIN, ROLE_STAFF
from ..validation import ValidationError, parse_int
from ..time_utils import minutes_after, parse_iso_datetime
from . import access_policy, settings_service
from .token_service import Identity

DEFAULT_DURATION_MINUTES = 60


def _parse_datetime(value, field_name: str):
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be an ISO-8601 datetime")
    try:
        dt = parse_iso_datetime(value)
    except ValueError:
        raise ValidationError(f"{field_name} must be an ISO-8601 datetime")
    if dt is None:
        raise ValidationError(f"{field_name} must be an ISO-8601 datetime")
    return dt


def _default_duration_minutes(business_id: int) -> int:
    value = settings_service.get_json(business_id, settings_service.APPOINTMENT_DEFAULT_DURATION)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        return DEFAULT_DURATION_MINUTES
    return int(value)


def _require_staff_user(business_id: int, staff_user_id) -> User:
    staff_user_id = parse_int(staff_user_id, field_name="staff_user_id")
    staff = (
        db.session.query(User)
        .filter_by(id=staff_user_id, business_id=business_id, role=ROLE_STAFF)
        .first()
    )
    if not staff:
        raise NotFoundError("Staff user not found")
    return staff


def _validate_status(status) -> str:
    if status not in APPOINTMENT_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(APPOINTMENT_STATUSES)}")
    return status


def _validate_notes(notes):
    if notes is not None and not isinstance(notes, str):
        raise ValidationError("notes must be a string")
    return notes


def create_appointment(identity: Identity, payload: dict) -> Appointment:
    """
    Book an appointment.

    STAFF may only create when appointment.allowStaffCreate is truthy, and
    only for themselves (an omitted staff_user_id means "me"). end_at
    defaults to start_at + appointment.defaultDurationMinutes (60 when
    unset or invalid). status defaults to CONFIRMED when
    appointment.autoConfirm is truthy, else SCHEDULED.
    """
    payload = payload or {}
    business_id = identity.business_id
    is_staff = identity.role == ROLE_STAFF

    if is_staff and not settings_service.get_json(business_id, settings_service.APPOINTMENT_ALLOW_STAFF_CREATE):
        raise ForbiddenError("Staff cannot create appointments")

    customer_id = parse_int(payload.get("customer_id"), field_name="customer_id")
    customer = db.session.query(Customer.id).filter_by(id=customer_id, business_id=business_id).first()
    if not customer:
        raise NotFoundError("Customer not found")

    staff_user_id = None
    if payload.get("staff_user_id") is not None:
        staff = _require_staff_user(business_id, payload["staff_user_id"])
        if is_staff and staff.id != identity.user_id:
            raise ForbiddenError("Staff cannot create appointments for other staff")
        staff_user_id = staff.id
    elif is_staff:
        staff_user_id = identity.user_id

    service_name = payload.get("service_name")
    if not isinstance(service_name, str) or not service_name.strip():
        raise ValidationError("service_name is required")

    start_at = _parse_datetime(payload.get("start_at"), "start_at")
    if payload.get("end_at"):
        end_at = _parse_datetime(payload["end_at"], "end_at")
    else:
        end_at = minutes_after(start_at, _default_duration_minutes(business_id))
    if end_at < start_at:
        raise ValidationError("end_at must not be before start_at")

    if payload.get("status"):
        status = _validate_status(payload["status"])
    elif settings_service.get_json(business_id, settings_service.APPOINTMENT_AUTO_CONFIRM):
        status = "CONFIRMED"
    else:
        status = "SCHEDULED"

    appointment = Appointment(
        business_id=business_id,
        customer_id=customer_id,
        staff_user_id=staff_user_id,
        created_by_user_id=identity.user_id,
        start_at=start_at,
        end_at=end_at,
        status=status,
        service_name=service_name.strip()[:255],
        notes=_validate_notes(payload.get("notes")),
    )
    db.session.add(appointment)
    db.session.commit()
    return appointment


def list_appointments(identity: Identity) -> list[Appointment]:
    return (
        access_policy.scoped_query("appointment", identity)
        .order_by(Appointment.start_at.asc(), Appointment.id.asc())
        .all()
    )


def get_appointment(identity: Identity, appointment_id: int) -> Appointment:
    return access_policy.find_accessible("appointment", identity, appointment_id)


def update_appointment(identity: Identity, appointment_id: int, payload: dict) -> Appointment:
    """
    Change status / notes. Only ADMIN may (re)assign staff_user_id; null
    unassigns.
    """
    appointment = access_policy.find_accessible("appointment", identity, appointment_id)
    payload = payload or {}

    for k in payload:
        if k not in ("status", "notes", "staff_user_id"):
            raise ValidationError(f"Field not allowed: {k}")

    if "staff_user_id" in payload:
        if identity.role != ROLE_ADMIN:
            raise ForbiddenError("Only admin can change staff assignment")
        if payload["staff_user_id"] is None:
            appointment.staff_user_id = None
        else:
            appointment.staff_user_id = _require_staff_user(identity.business_id, payload["staff_user_id"]).id

    if payload.get("status"):
        appointment.status = _validate_status(payload["status"])
    if "notes" in payload:
        appointment.notes = _validate_notes(payload["notes"])

    db.session.commit()
    return appointment
