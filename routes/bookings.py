from flask import Blueprint, request, jsonify, g

from models.booking import Booking
from security.rbac import require_roles
from services import booking_policy, cancellation, lifecycle
from services.errors import ValidationError
from services.schedules import parse_date
from services.views import project_booking
from utils.auth_context import login_required, actor_role

bookings_bp = Blueprint("bookings", __name__, url_prefix="/bookings")


def _history(student_id: int, status=None):
    q = Booking.query.filter_by(student_id=student_id)
    if status:
        q = q.filter_by(status=status)
    rows = q.order_by(Booking.booking_time.desc()).all()
    return [project_booking(b) for b in rows]


# ---------- STUDENTS: book a duty ----------
@bookings_bp.post("")
@require_roles("STUDENT")
def create_booking():
    data = request.get_json(silent=True) or {}
    schedule_id = data.get("schedule_id")
    if not schedule_id:
        return jsonify(error="schedule_id required"), 400

    try:
        schedule_id = int(schedule_id)
    except (TypeError, ValueError):
        raise ValidationError("schedule_id must be an integer")

    target_date = parse_date(data["date"]) if data.get("date") else None
    booking = booking_policy.book(schedule_id, g.user.id, target_date)
    return jsonify(project_booking(booking)), 201


# ---------- STUDENTS / ADMIN: cancel ----------
@bookings_bp.post("/<int:booking_id>/cancel")
@require_roles("STUDENT", "ADMIN")
def cancel_booking(booking_id: int):
    data = request.get_json(silent=True) or {}
    reason = (data.get("reason") or "").strip() or None

    booking = cancellation.cancel(booking_id, g.user.id, actor_role(), reason)
    body = project_booking(booking)
    body["message"] = "Duty cancelled. You cannot book another duty for this date today."
    return jsonify(body), 200


# ---------- STUDENTS: complete / withdraw ----------
@bookings_bp.post("/<int:booking_id>/complete")
@require_roles("STUDENT")
def complete_booking(booking_id: int):
    booking = lifecycle.complete(booking_id, g.user.id)
    return jsonify(project_booking(booking)), 200


@bookings_bp.delete("/<int:booking_id>")
@require_roles("STUDENT")
def delete_booking(booking_id: int):
    lifecycle.delete_pending_booking(booking_id, g.user.id)
    return jsonify(message="Pending booking deleted"), 200


# ---------- duty history ----------
@bookings_bp.get("/me")
@login_required
def my_bookings():
    # optional: status filter (booked/cancelled/completed)
    return jsonify(_history(g.user.id, request.args.get("status"))), 200


@bookings_bp.get("/child")
@require_roles("PARENT")
def child_bookings():
    if not g.user.linked_student_id:
        return jsonify(error="No linked student found for this parent"), 404
    return jsonify(_history(g.user.linked_student_id, request.args.get("status"))), 200
