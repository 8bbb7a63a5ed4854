"""
Cancelling a booked duty, and the same-day rebooking block it leaves behind.
"""
import logging

from sqlalchemy.exc import IntegrityError

from models import db
from models.booking import Booking, BOOKING_BOOKED, BOOKING_CANCELLED
from models.cancellation_marker import SameDayCancellation
from services.errors import (
    NotFoundError,
    SameDayCancelForbiddenError,
    UnauthorizedError,
    InvalidStateTransitionError,
)
from utils.audit import log_event
from utils.clock import get_clock

logger = logging.getLogger(__name__)

ROLE_ADMIN = "admin"
ROLE_STUDENT = "student"


def is_rebook_blocked(student_id: int, target_date) -> bool:
    today = get_clock().today()
    marker = SameDayCancellation.query.filter_by(
        student_id=student_id,
        target_date=target_date,
        cancelled_on=today,
    ).first()
    return marker is not None


def _record_marker(student_id: int, target_date, today) -> None:
    exists = SameDayCancellation.query.filter_by(
        student_id=student_id, target_date=target_date, cancelled_on=today
    ).first()
    if not exists:
        db.session.add(SameDayCancellation(student_id=student_id, target_date=target_date, cancelled_on=today))


def _mark_cancelled(booking: Booking, reason: str, now) -> None:
    if booking.status != BOOKING_BOOKED:
        raise InvalidStateTransitionError(f"A {booking.status} booking cannot be cancelled")
    booking.status = BOOKING_CANCELLED
    booking.cancelled_at = now
    booking.cancellation_reason = reason[:120]


def cancel(booking_id: int, actor_id: int, actor_role: str, reason: str = None) -> Booking:
    clock = get_clock()
    today = clock.today()

    booking = Booking.query.get(booking_id)
    if not booking:
        raise NotFoundError("Booking not found")

    schedule = booking.schedule
    if schedule.date == today:
        raise SameDayCancelForbiddenError(
            "Cannot cancel duties on the same day. Cancellations must be done in advance."
        )

    if actor_role != ROLE_ADMIN and booking.student_id != actor_id:
        raise UnauthorizedError("You can only cancel your own duties")

    reason = reason or f"Cancelled by {actor_role}"
    _mark_cancelled(booking, reason, clock.now())
    _record_marker(booking.student_id, schedule.date, today)

    try:
        db.session.commit()
    except IntegrityError:
        # a concurrent cancel stored the same marker first
        db.session.rollback()
        booking = Booking.query.get(booking_id)
        _mark_cancelled(booking, reason, clock.now())
        db.session.commit()

    logger.info("booking %s cancelled by %s %s", booking.id, actor_role, actor_id)
    log_event(
        "cancelled",
        schedule_id=booking.schedule_id,
        booking_id=booking.id,
        performed_by=actor_id,
        target_user=booking.student_id,
        notes=f"Duty cancelled by {actor_role} on {today.isoformat()}",
    )
    return booking
