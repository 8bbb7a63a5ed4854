from flask import Blueprint, request, jsonify, current_app, g

from models import db
from models.user import User, Role
from security.password import hash_password, verify_password, validate_password
from security.session import create_session, revoke_session, cookie_name
from utils.audit import log_event
from utils.auth_context import login_required
from utils.roles import ROLE_STUDENT, ROLE_PARENT, filter_role_names


auth_bp = Blueprint("auth", __name__, url_prefix="/auth")

# roles a user may pick at sign-up; ADMIN is granted with `flask make-admin`
SELF_SERVICE_ROLES = {ROLE_STUDENT, ROLE_PARENT}


def _is_valid_email(email: str) -> bool:
    return isinstance(email, str) and "@" in email and len(email) <= 255


@auth_bp.post("/register")
def register():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    role_name = (data.get("role") or ROLE_STUDENT).strip().upper()

    if not _is_valid_email(email):
        return jsonify(error="Invalid email"), 400
    if role_name not in SELF_SERVICE_ROLES:
        return jsonify(error="role must be STUDENT or PARENT"), 400
    errors = validate_password(password, current_app.config.get("PASSWORD_MIN_LENGTH", 8))
    if errors:
        return jsonify(error="Password does not meet policy", details=errors), 400

    if User.query.filter_by(email=email).first():
        return jsonify(error="Email already registered"), 409

    user = User(
        email=email,
        password_hash=hash_password(password),
        full_name=(data.get("full_name") or "").strip() or None,
        student_number=(data.get("student_number") or "").strip() or None,
        year_level=(data.get("year_level") or "").strip() or None,
    )
    db.session.add(user)
    db.session.flush()

    role = Role.query.filter_by(name=role_name).first()
    if role:
        user.roles.append(role)

    db.session.commit()
    log_event("register", performed_by=user.id, target_user=user.id, notes=f"Registered as {role_name}")

    return jsonify(message="Registered successfully", id=user.id), 201


@auth_bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""

    user = User.query.filter_by(email=email).first()
    if not user or not verify_password(password, user.password_hash):
        return jsonify(error="Invalid credentials"), 401

    raw_token = create_session(user.id)

    resp = jsonify(message="Login OK", roles=filter_role_names(user.roles))
    resp.set_cookie(
        cookie_name(),
        raw_token,
        httponly=True,
        secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
        samesite=current_app.config.get("SESSION_COOKIE_SAMESITE", "Lax"),
        max_age=current_app.config.get("SESSION_LIFETIME_SECONDS", 8 * 60 * 60),
        path="/",
    )
    return resp, 200


@auth_bp.get("/me")
@login_required
def me():
    return jsonify(
        id=g.user.id,
        email=g.user.email,
        full_name=g.user.full_name,
        student_number=g.user.student_number,
        year_level=g.user.year_level,
        roles=filter_role_names(g.user.roles),
        linked_student_id=g.user.linked_student_id,
    ), 200


@auth_bp.post("/logout")
@login_required
def logout():
    revoke_session(request.cookies.get(cookie_name()))

    resp = jsonify(message="Logged out")
    resp.delete_cookie(cookie_name(), path="/")
    return resp, 200
