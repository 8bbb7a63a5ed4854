"""Student-side transitions after booking: completing a duty, withdrawing a pending one."""
import logging

from models import db
from models.booking import Booking, BOOKING_BOOKED, BOOKING_COMPLETED
from models.schedule import SCHEDULE_APPROVED, SCHEDULE_PENDING
from services.errors import NotFoundError, UnauthorizedError, InvalidStateTransitionError
from utils.audit import log_event
from utils.clock import get_clock

logger = logging.getLogger(__name__)


def _owned_booking(booking_id: int, student_id: int) -> Booking:
    booking = Booking.query.get(booking_id)
    if not booking:
        raise NotFoundError("Booking not found")
    if booking.student_id != student_id:
        raise UnauthorizedError("You can only manage your own duties")
    return booking


def complete(booking_id: int, student_id: int) -> Booking:
    booking = _owned_booking(booking_id, student_id)

    if booking.status != BOOKING_BOOKED:
        raise InvalidStateTransitionError(f"A {booking.status} booking cannot be completed")
    if booking.schedule.status != SCHEDULE_APPROVED:
        raise InvalidStateTransitionError("Only duties on an approved schedule can be completed")

    booking.status = BOOKING_COMPLETED
    booking.completed_at = get_clock().now()
    db.session.commit()

    logger.info("booking %s completed by student %s", booking.id, student_id)
    log_event(
        "completed",
        schedule_id=booking.schedule_id,
        booking_id=booking.id,
        performed_by=student_id,
        target_user=student_id,
        notes=f"Duty on {booking.duty_date.isoformat()} marked completed",
    )
    return booking


def delete_pending_booking(booking_id: int, student_id: int) -> None:
    booking = _owned_booking(booking_id, student_id)

    if booking.status != BOOKING_BOOKED or booking.schedule.status != SCHEDULE_PENDING:
        raise InvalidStateTransitionError(
            "Only bookings awaiting approval can be deleted; cancel approved duties instead"
        )

    schedule_id = booking.schedule_id
    duty_date = booking.duty_date
    db.session.delete(booking)
    db.session.commit()

    logger.info("booking %s deleted by student %s", booking_id, student_id)
    log_event(
        "deleted",
        schedule_id=schedule_id,
        booking_id=booking_id,
        performed_by=student_id,
        target_user=student_id,
        notes=f"Pending booking for {duty_date.isoformat()} withdrawn",
    )
