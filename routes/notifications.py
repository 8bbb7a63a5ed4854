from datetime import datetime

from flask import Blueprint, request, jsonify, g

from models import db
from models.notification import Notification
from utils.auth_context import login_required

notifications_bp = Blueprint("notifications", __name__, url_prefix="/notifications")


@notifications_bp.get("")
@login_required
def list_notifications():
    limit = request.args.get("limit", type=int) or 50
    limit = max(1, min(limit, 200))

    q = Notification.query.filter_by(user_id=g.user.id)
    if request.args.get("unread") == "true":
        q = q.filter_by(read=False)

    rows = q.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()
    return jsonify([
        {
            "id": n.id,
            "title": n.title,
            "message": n.message,
            "severity": n.severity,
            "read": n.read,
            "created_at": n.created_at.isoformat(),
        }
        for n in rows
    ]), 200


@notifications_bp.post("/<int:notification_id>/read")
@login_required
def mark_read(notification_id: int):
    n = Notification.query.filter_by(id=notification_id, user_id=g.user.id).first()
    if not n:
        return jsonify(error="Notification not found"), 404

    if not n.read:
        n.read = True
        n.read_at = datetime.utcnow()
        db.session.commit()
    return jsonify(message="Marked as read"), 200
