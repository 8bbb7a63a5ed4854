from datetime import datetime
from models.db import db

BOOKING_BOOKED = "booked"
BOOKING_CANCELLED = "cancelled"
BOOKING_COMPLETED = "completed"

_ACTIVE = db.text("status != 'cancelled'")
_BOOKED = db.text("status = 'booked'")

class Booking(db.Model):
    """A student's claim on a seat of a schedule (the schedule_student record)."""
    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)

    schedule_id = db.Column(
        db.Integer, db.ForeignKey("schedules.id", ondelete="CASCADE"), nullable=False, index=True
    )
    student_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    # copy of schedules.date so the one-duty-per-day rule can be a table constraint
    duty_date = db.Column(db.Date, nullable=False, index=True)
    # 1..max_students; unique among non-cancelled rows of a schedule
    seat_no = db.Column(db.Integer, nullable=False)

    status = db.Column(db.String(20), nullable=False, default=BOOKING_BOOKED)
    # status values: booked, cancelled, completed

    booking_time = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    cancelled_at = db.Column(db.DateTime, nullable=True)
    cancellation_reason = db.Column(db.String(120), nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)

    schedule = db.relationship("Schedule", back_populates="bookings")
    student = db.relationship("User", foreign_keys=[student_id])

    __table_args__ = (
        # Hard business rules, enforced by the database at write time
        db.Index(
            "uq_booking_active_seat", "schedule_id", "seat_no",
            unique=True, sqlite_where=_ACTIVE, postgresql_where=_ACTIVE,
        ),
        db.Index(
            "uq_booking_active_student", "schedule_id", "student_id",
            unique=True, sqlite_where=_ACTIVE, postgresql_where=_ACTIVE,
        ),
        db.Index(
            "uq_booking_student_day", "student_id", "duty_date",
            unique=True, sqlite_where=_BOOKED, postgresql_where=_BOOKED,
        ),
        db.CheckConstraint("seat_no > 0", name="ck_booking_seat_positive"),
    )
