from datetime import datetime
from models.db import db

class AuditLog(db.Model):
    """Duty log: one row per booking or schedule transition."""
    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)
    action = db.Column(db.String(80), nullable=False)  # e.g. booked, cancelled, status_approved

    # plain ids, the log must outlive deleted schedules and bookings
    schedule_id = db.Column(db.Integer, nullable=True, index=True)
    booking_id = db.Column(db.Integer, nullable=True)
    performed_by = db.Column(db.Integer, nullable=True)  # nullable for system events
    target_user = db.Column(db.Integer, nullable=True)
    notes = db.Column(db.String(255), nullable=True)

    ip = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)
    metadata_json = db.Column(db.Text, nullable=True)

    timestamp = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
