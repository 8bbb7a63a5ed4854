ROLE_ADMIN = "ADMIN"
ROLE_STUDENT = "STUDENT"
ROLE_PARENT = "PARENT"

ALLOWED_DISPLAY_ROLES = {ROLE_ADMIN, ROLE_STUDENT, ROLE_PARENT}

# highest first: a user holding several roles is viewed as the first match
_PRECEDENCE = (ROLE_ADMIN, ROLE_STUDENT, ROLE_PARENT)


def filter_role_names(roles):
    names = []
    for role in roles or []:
        name = role if isinstance(role, str) else getattr(role, "name", None)
        if name in ALLOWED_DISPLAY_ROLES:
            names.append(name)
    return names


def primary_role(user):
    names = set(filter_role_names(getattr(user, "roles", None)))
    for name in _PRECEDENCE:
        if name in names:
            return name
    return None
