from datetime import datetime
from models.db import db

class Site(db.Model):
    """A hospital or rural health unit that hosts duty shifts."""
    __tablename__ = "sites"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), unique=True, nullable=False)
    description = db.Column(db.String(255), nullable=True)

    # seats per shift when a schedule is generated for this site
    capacity = db.Column(db.Integer, nullable=False, default=4)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.CheckConstraint("capacity > 0", name="ck_sites_capacity_positive"),
    )
