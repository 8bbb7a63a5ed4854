from flask import Blueprint, request, jsonify, g
from sqlalchemy.exc import IntegrityError

from models import db
from models.site import Site
from security.rbac import require_roles
from services.schedules import site_for_month, parse_date
from utils.auth_context import login_required
from utils.audit import log_event
from utils.clock import get_clock

sites_bp = Blueprint("sites", __name__, url_prefix="/sites")


def _site_json(s: Site) -> dict:
    return {
        "id": s.id,
        "name": s.name,
        "description": s.description,
        "capacity": s.capacity,
        "is_active": s.is_active,
    }


@sites_bp.get("")
@login_required
def list_sites():
    sites = Site.query.filter_by(is_active=True).order_by(Site.id.asc()).all()
    return jsonify([_site_json(s) for s in sites]), 200


@sites_bp.get("/rotation")
@login_required
def month_site():
    # ?date=YYYY-MM-DD, defaults to today
    day = parse_date(request.args["date"]) if request.args.get("date") else get_clock().today()
    site = site_for_month(day)
    if not site:
        return jsonify(error="No active sites"), 404
    return jsonify(date=day.isoformat(), site=_site_json(site)), 200


@sites_bp.post("")
@require_roles("ADMIN")
def create_site():
    data = request.get_json(silent=True) or {}
    name = (data.get("name") or "").strip()
    description = (data.get("description") or "").strip() or None
    try:
        capacity = int(data.get("capacity") or 4)
    except (TypeError, ValueError):
        return jsonify(error="capacity must be a positive integer"), 400

    if not name:
        return jsonify(error="Site name required"), 400
    if capacity <= 0:
        return jsonify(error="capacity must be a positive integer"), 400

    site = Site(name=name, description=description, capacity=capacity)
    db.session.add(site)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify(error="Site name already exists"), 409

    log_event("site_created", performed_by=g.user.id, notes=f"Site {name} created")
    return jsonify(_site_json(site)), 201


@sites_bp.post("/<int:site_id>/deactivate")
@require_roles("ADMIN")
def deactivate_site(site_id: int):
    site = Site.query.get(site_id)
    if not site:
        return jsonify(error="Site not found"), 404

    site.is_active = False
    db.session.commit()

    log_event("site_deactivated", performed_by=g.user.id, notes=f"Site {site.name} deactivated")
    return jsonify(message="Site deactivated"), 200
