from flask import Blueprint, request, jsonify, g

from security.rbac import require_roles
from services import approval
from services.schedules import (
    create_schedule,
    generate_schedules,
    list_schedules,
    available_schedules,
    WEEKDAYS,
)
from services.views import project_schedule, student_context
from utils.auth_context import login_required
from utils.roles import ROLE_STUDENT, primary_role

schedules_bp = Blueprint("schedules", __name__, url_prefix="/schedules")


def _project_all(schedules):
    ctx = {}
    if primary_role(g.user) == ROLE_STUDENT:
        ctx = student_context(g.user.id)
    return [project_schedule(s, g.user, **ctx) for s in schedules]


# ---------- ALL ROLES: calendar ----------
@schedules_bp.get("")
@login_required
def list_all():
    # optional filters: start, end (YYYY-MM-DD), location
    rows = list_schedules(
        start=request.args.get("start"),
        end=request.args.get("end"),
        location=request.args.get("location"),
    )
    return jsonify(_project_all(rows)), 200


@schedules_bp.get("/available")
@login_required
def list_available():
    return jsonify(_project_all(available_schedules(request.args.get("start")))), 200


# ---------- ADMIN: create schedules ----------
@schedules_bp.post("")
@require_roles("ADMIN")
def create():
    data = request.get_json(silent=True) or {}
    if not data.get("date") or not data.get("location"):
        return jsonify(error="date and location are required"), 400

    schedule = create_schedule(
        data["date"],
        data["location"],
        created_by=g.user.id,
        shift_start=data.get("shift_start"),
        shift_end=data.get("shift_end"),
        description=data.get("description"),
        max_students=data.get("max_students"),
    )
    return jsonify(project_schedule(schedule, g.user)), 201


@schedules_bp.post("/bulk")
@require_roles("ADMIN")
def create_bulk():
    data = request.get_json(silent=True) or {}
    if not data.get("start_date") or not data.get("end_date"):
        return jsonify(error="start_date and end_date are required"), 400

    weekdays = data.get("weekdays", list(WEEKDAYS))
    if not isinstance(weekdays, list) or not all(isinstance(d, int) for d in weekdays):
        return jsonify(error="weekdays must be a list of integers 0-6"), 400

    created = generate_schedules(
        data["start_date"],
        data["end_date"],
        created_by=g.user.id,
        weekdays=weekdays,
        description=data.get("description"),
    )
    return jsonify(created=len(created), ids=[s.id for s in created]), 201


# ---------- ADMIN: approval workflow ----------
@schedules_bp.post("/<int:schedule_id>/approve")
@require_roles("ADMIN")
def approve(schedule_id: int):
    schedule = approval.approve(schedule_id, g.user.id)
    return jsonify(project_schedule(schedule, g.user)), 200


@schedules_bp.post("/<int:schedule_id>/reject")
@require_roles("ADMIN")
def reject(schedule_id: int):
    schedule = approval.reject(schedule_id, g.user.id)
    return jsonify(project_schedule(schedule, g.user)), 200


@schedules_bp.delete("/<int:schedule_id>")
@require_roles("ADMIN")
def delete(schedule_id: int):
    removed = approval.delete_schedule(schedule_id, g.user.id)
    return jsonify(message="Schedule deleted", removed_bookings=removed), 200
