from datetime import datetime
from models.db import db

class SameDayCancellation(db.Model):
    """
    Records that a student cancelled a duty for target_date on cancelled_on.
    While cancelled_on is still today, the student may not book target_date again.
    """
    __tablename__ = "same_day_cancellations"

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    target_date = db.Column(db.Date, nullable=False)
    cancelled_on = db.Column(db.Date, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint("student_id", "target_date", "cancelled_on", name="uq_same_day_cancellation"),
    )
