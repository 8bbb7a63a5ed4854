from functools import wraps
from flask import g

from models.user import User
from security.rbac import current_user
from security.session import get_session_from_request
from services.cancellation import ROLE_ADMIN as ACTOR_ADMIN, ROLE_STUDENT as ACTOR_STUDENT
from utils.roles import ROLE_ADMIN


def load_current_user():
    # the test client can reuse one app context across requests
    g.user = None
    g.session = None
    sess = get_session_from_request()
    if sess:
        g.session = sess
        g.user = User.query.get(sess.user_id)


def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        current_user()
        return fn(*args, **kwargs)
    return wrapper


def actor_role() -> str:
    """Role name the cancellation rules expect for the current user."""
    if current_user().has_role(ROLE_ADMIN):
        return ACTOR_ADMIN
    return ACTOR_STUDENT
