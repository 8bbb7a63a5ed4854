import json
import logging

from flask import request, has_request_context
from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.audit_log import AuditLog

logger = logging.getLogger(__name__)


def log_event(action: str, schedule_id=None, booking_id=None, performed_by=None,
              target_user=None, notes=None, metadata=None):
    """
    Append a duty log row. Best-effort: the transition being logged has already
    committed, so a failure here is logged and swallowed.
    """
    ip = None
    user_agent = None
    if has_request_context():
        ip = request.headers.get("X-Forwarded-For", request.remote_addr)
        user_agent = request.headers.get("User-Agent", "")

    row = AuditLog(
        action=action,
        schedule_id=schedule_id,
        booking_id=booking_id,
        performed_by=performed_by,
        target_user=target_user,
        notes=notes[:255] if notes else None,
        ip=ip,
        user_agent=user_agent[:255] if user_agent else None,
        metadata_json=json.dumps(metadata, default=str) if metadata else None
    )
    try:
        db.session.add(row)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.warning("audit log write failed for action=%s schedule=%s", action, schedule_id, exc_info=True)
        return None
    return row
