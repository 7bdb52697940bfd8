# Overview: Flask API routes for appointments.

from flask import Blueprint, g

from ..decorators import require_auth, require_roles
from ..responses import json_body, ok
from ..services import appointment_service

appointments_bp = Blueprint("appointments", __name__, url_prefix="/api/appointments")


@appointments_bp.get("")
@require_auth
@require_roles("ADMIN", "STAFF")
def list_appointments():
    """STAFF see the appointments assigned to them, ordered by start time."""
    return ok([a.to_dict() for a in appointment_service.list_appointments(g.identity)])


@appointments_bp.post("")
@require_auth
@require_roles("ADMIN", "STAFF")
def create_appointment():
    payload = json_body()
    appointment = appointment_service.create_appointment(g.identity, payload)
    return ok(appointment.to_dict(), 201)


@appointments_bp.get("/<int:appointment_id>")
@require_auth
@require_roles("ADMIN", "STAFF")
def get_appointment(appointment_id: int):
    return ok(appointment_service.get_appointment(g.identity, appointment_id).to_dict())


@appointments_bp.patch("/<int:appointment_id>")
@require_auth
@require_roles("ADMIN", "STAFF")
def update_appointment(appointment_id: int):
    payload = json_body()
    appointment = appointment_service.update_appointment(g.identity, appointment_id, payload)
    return ok(appointment.to_dict())
