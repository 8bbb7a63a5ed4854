from datetime import datetime
from models.db import db

SCHEDULE_PENDING = "pending"
SCHEDULE_APPROVED = "approved"
SCHEDULE_CANCELLED = "cancelled"

SCHEDULE_STATUSES = (SCHEDULE_PENDING, SCHEDULE_APPROVED, SCHEDULE_CANCELLED)

class Schedule(db.Model):
    __tablename__ = "schedules"

    id = db.Column(db.Integer, primary_key=True)

    date = db.Column(db.Date, nullable=False, index=True)
    location = db.Column(db.String(120), nullable=False)
    shift_start = db.Column(db.Time, nullable=False)
    shift_end = db.Column(db.Time, nullable=False)
    description = db.Column(db.String(255), nullable=True)

    max_students = db.Column(db.Integer, nullable=False, default=2)
    status = db.Column(db.String(20), nullable=False, default=SCHEDULE_PENDING, index=True)
    # status values: pending, approved, cancelled

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    approved_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    approved_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    bookings = db.relationship(
        "Booking",
        back_populates="schedule",
        cascade="all, delete-orphan",
        lazy="select",
    )

    __table_args__ = (
        # One schedule per site per day, so the calendar never has to pick between two
        db.UniqueConstraint("date", "location", name="uq_schedule_date_location"),
        db.CheckConstraint("max_students > 0", name="ck_schedule_capacity_positive"),
    )
