import hashlib
import logging
import secrets
from datetime import datetime, timedelta
from flask import request, current_app

from models import db
from models.session import Session

logger = logging.getLogger(__name__)

# last_seen_at is only rewritten when it is older than this
TOUCH_INTERVAL = timedelta(seconds=60)


def _hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def cookie_name() -> str:
    return current_app.config.get("AUTH_COOKIE_NAME", "dutyslot_session")


def create_session(user_id: int) -> str:
    """Store a new session for the user and return the raw cookie token; only its hash is kept."""
    raw_token = secrets.token_urlsafe(32)
    now = datetime.utcnow()
    lifetime = timedelta(seconds=current_app.config.get("SESSION_LIFETIME_SECONDS", 8 * 60 * 60))

    db.session.add(Session(
        user_id=user_id,
        token_hash=_hash_token(raw_token),
        created_at=now,
        last_seen_at=now,
        expires_at=now + lifetime,
    ))
    db.session.commit()
    logger.info("session opened for user %s", user_id)
    return raw_token


def _is_live(sess: Session, now: datetime) -> bool:
    if sess.expires_at <= now:
        logger.debug("session %s expired", sess.id)
        return False
    idle = timedelta(seconds=current_app.config.get("IDLE_TIMEOUT_SECONDS", 20 * 60))
    if (sess.last_seen_at or sess.created_at) + idle <= now:
        logger.debug("session %s idle for too long", sess.id)
        return False
    return True


def get_session_from_request():
    raw_token = request.cookies.get(cookie_name())
    if not raw_token:
        return None

    sess = Session.query.filter_by(token_hash=_hash_token(raw_token), revoked=False).first()
    now = datetime.utcnow()
    if not sess or not _is_live(sess, now):
        return None

    if sess.last_seen_at is None or now - sess.last_seen_at >= TOUCH_INTERVAL:
        sess.last_seen_at = now
        db.session.commit()
    return sess


def revoke_session(raw_token: str) -> bool:
    if not raw_token:
        return False
    sess = Session.query.filter_by(token_hash=_hash_token(raw_token), revoked=False).first()
    if not sess:
        return False
    sess.revoked = True
    db.session.commit()
    logger.info("session %s revoked for user %s", sess.id, sess.user_id)
    return True
