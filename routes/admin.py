from flask import Blueprint, jsonify, g, request

from models import db
from models.audit_log import AuditLog
from models.user import User, Role
from security.rbac import require_roles
from utils.audit import log_event
from utils.roles import ROLE_ADMIN, ROLE_STUDENT, ROLE_PARENT, filter_role_names

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")


@admin_bp.get("/users")
@require_roles("ADMIN")
def list_users():
    role_filter = (request.args.get("role") or "").strip().upper()
    q = User.query
    if role_filter:
        q = q.join(User.roles).filter(Role.name == role_filter)

    users = q.order_by(User.created_at.desc()).limit(200).all()
    return jsonify([
        {
            "id": u.id,
            "email": u.email,
            "full_name": u.full_name,
            "student_number": u.student_number,
            "year_level": u.year_level,
            "roles": filter_role_names(u.roles),
            "linked_student_id": u.linked_student_id,
            "created_at": u.created_at.isoformat(),
        }
        for u in users
    ]), 200


@admin_bp.post("/users/<int:user_id>/roles")
@require_roles("ADMIN")
def update_user_roles(user_id: int):
    data = request.get_json(silent=True) or {}
    roles = data.get("roles")
    if not isinstance(roles, list) or not roles:
        return jsonify(error="roles must be a non-empty list"), 400

    role_names = [name.strip().upper() for name in roles if isinstance(name, str) and name.strip()]
    if not role_names:
        return jsonify(error="roles must include valid role names"), 400

    user = User.query.get(user_id)
    if not user:
        return jsonify(error="User not found"), 404

    available_roles = Role.query.filter(Role.name.in_(set(role_names))).all()
    missing = set(role_names) - {r.name for r in available_roles}
    if missing:
        return jsonify(error="Unknown role(s)", missing=sorted(missing)), 400

    if user.id == g.user.id and ROLE_ADMIN not in role_names:
        return jsonify(error="Cannot remove your own ADMIN role"), 403

    user.roles = available_roles
    db.session.commit()

    log_event("roles_updated", performed_by=g.user.id, target_user=user.id, metadata={"roles": role_names})
    return jsonify(message="Roles updated", roles=filter_role_names(role_names)), 200


@admin_bp.post("/users/<int:user_id>/link-student")
@require_roles("ADMIN")
def link_student(user_id: int):
    data = request.get_json(silent=True) or {}
    student_id = data.get("student_id")

    parent = User.query.get(user_id)
    if not parent or not parent.has_role(ROLE_PARENT):
        return jsonify(error="Parent not found"), 404

    student = User.query.get(student_id) if student_id else None
    if not student or not student.has_role(ROLE_STUDENT):
        return jsonify(error="Student not found"), 404

    parent.linked_student_id = student.id
    db.session.commit()

    log_event("parent_linked", performed_by=g.user.id, target_user=parent.id,
              metadata={"student_id": student.id})
    return jsonify(message="Parent linked", parent_id=parent.id, student_id=student.id), 200


@admin_bp.get("/audit-logs")
@require_roles("ADMIN")
def list_audit_logs():
    limit = request.args.get("limit", type=int) or 100
    limit = max(1, min(limit, 500))

    q = AuditLog.query
    if request.args.get("action"):
        q = q.filter(AuditLog.action == request.args["action"])
    schedule_id = request.args.get("schedule_id", type=int)
    if schedule_id is not None:
        q = q.filter(AuditLog.schedule_id == schedule_id)
    user_id = request.args.get("user_id", type=int)
    if user_id is not None:
        q = q.filter((AuditLog.performed_by == user_id) | (AuditLog.target_user == user_id))

    rows = q.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).limit(limit).all()
    return jsonify([
        {
            "id": r.id,
            "created_at": r.timestamp.isoformat(),
            "action": r.action,
            "schedule_id": r.schedule_id,
            "booking_id": r.booking_id,
            "performed_by": r.performed_by,
            "target_user": r.target_user,
            "notes": r.notes,
            "ip": r.ip,
            "metadata": r.metadata_json,
        }
        for r in rows
    ]), 200
