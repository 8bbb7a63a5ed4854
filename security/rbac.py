from functools import wraps
from flask import g

from services.errors import AuthenticationRequiredError, UnauthorizedError


def current_user():
    user = getattr(g, "user", None)
    if user is None:
        raise AuthenticationRequiredError()
    return user


def require_roles(*role_names: str):
    """
    Usage: @require_roles("STUDENT", "ADMIN")

    Anonymous callers get 401; signed-in users holding none of the roles get 403.
    """
    allowed = set(role_names)

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = current_user()
            if not allowed.intersection(r.name for r in user.roles):
                raise UnauthorizedError(
                    "Your role is not allowed to do this",
                    details={"required": sorted(allowed)},
                )
            return fn(*args, **kwargs)
        return wrapper
    return decorator
