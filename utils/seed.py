from flask import current_app

from models import db
from models.user import Role
from models.site import Site
from utils.roles import ROLE_ADMIN, ROLE_STUDENT, ROLE_PARENT

DEFAULT_ROLES = [ROLE_STUDENT, ROLE_PARENT, ROLE_ADMIN]

def seed_roles():
    existing = {r.name for r in Role.query.all()}
    for name in DEFAULT_ROLES:
        if name not in existing:
            db.session.add(Role(name=name))
    db.session.commit()

def seed_sites():
    existing = {s.name for s in Site.query.all()}
    for entry in current_app.config.get("DEFAULT_SITES", []):
        if entry["name"] not in existing:
            db.session.add(Site(
                name=entry["name"],
                capacity=entry.get("capacity", 4),
                description=entry.get("description"),
            ))
    db.session.commit()
