"""
In-app notifications for duty events.

Delivery is fire-and-forget: callers invoke these after their own commit and a
failure never reaches them.
"""
import logging

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.notification import Notification
from models.user import User, Role
from utils.emailer import send_email, duty_mail_body

logger = logging.getLogger(__name__)

SEVERITIES = ("info", "success", "warning", "error")


def notify(user_id: int, title: str, message: str, severity: str = "info"):
    return notify_many([user_id], title, message, severity)


def notify_many(user_ids, title: str, message: str, severity: str = "info") -> int:
    """Create one notification per distinct user id. Returns how many were stored."""
    if severity not in SEVERITIES:
        severity = "info"
    recipients = sorted({uid for uid in user_ids if uid is not None})
    if not recipients:
        return 0

    try:
        for uid in recipients:
            db.session.add(Notification(user_id=uid, title=title, message=message, severity=severity))
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.warning("failed to store %d notification(s) '%s'", len(recipients), title, exc_info=True)
        return 0

    if current_app.config.get("NOTIFY_BY_EMAIL"):
        _mirror_to_email(recipients, title, message)
    return len(recipients)


def notify_admins(title: str, message: str, severity: str = "info") -> int:
    try:
        admin_ids = [
            u.id for u in User.query.join(User.roles).filter(Role.name == "ADMIN").all()
        ]
    except SQLAlchemyError:
        db.session.rollback()
        logger.warning("could not look up admins for notification '%s'", title, exc_info=True)
        return 0
    return notify_many(admin_ids, title, message, severity)


def _mirror_to_email(user_ids, title: str, message: str) -> None:
    users = User.query.filter(User.id.in_(user_ids)).all()
    for user in users:
        ok, error = send_email(user.email, title, duty_mail_body(user.full_name, message))
        if not ok:
            logger.warning("notification e-mail to user %s not sent: %s", user.id, error)
