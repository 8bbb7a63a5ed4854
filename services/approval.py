"""
Admin transitions on a schedule: pending -> approved | cancelled, and deletion.

Rejection cancels the schedule's booked seats and the schedule itself in one
commit, so nobody can read a cancelled schedule that still has booked students.
"""
import logging

from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.schedule import Schedule, SCHEDULE_PENDING, SCHEDULE_APPROVED, SCHEDULE_CANCELLED
from models.booking import Booking, BOOKING_BOOKED, BOOKING_CANCELLED
from services.errors import NotFoundError, InvalidStateTransitionError
from utils.audit import log_event
from utils.clock import get_clock
from utils.notifier import notify_many

logger = logging.getLogger(__name__)

REJECTION_REASON = "Schedule rejected by admin"


def _pending_schedule(schedule_id: int) -> Schedule:
    schedule = Schedule.query.filter_by(id=schedule_id).with_for_update().first()
    if not schedule:
        db.session.rollback()
        raise NotFoundError("Schedule not found")
    if schedule.status != SCHEDULE_PENDING:
        status = schedule.status
        db.session.rollback()
        raise InvalidStateTransitionError(f"Schedule is already {status}")
    return schedule


def _booked_student_ids(schedule_id: int) -> list:
    rows = (
        db.session.query(Booking.student_id)
        .filter(Booking.schedule_id == schedule_id, Booking.status == BOOKING_BOOKED)
        .all()
    )
    return [r.student_id for r in rows]


def approve(schedule_id: int, admin_id: int) -> Schedule:
    schedule = _pending_schedule(schedule_id)

    schedule.status = SCHEDULE_APPROVED
    schedule.approved_by = admin_id
    schedule.approved_at = get_clock().now()
    student_ids = _booked_student_ids(schedule.id)
    db.session.commit()

    logger.info("schedule %s approved by %s (%d booked)", schedule.id, admin_id, len(student_ids))
    log_event(
        "status_approved",
        schedule_id=schedule.id,
        performed_by=admin_id,
        notes="Schedule status changed to approved",
        metadata={"notified": len(student_ids)},
    )
    notify_many(
        student_ids,
        "Duty Schedule Approved",
        f"Your duty booking for {schedule.date:%B %d, %Y} at {schedule.location} has been approved! "
        "You can now complete your duty on the scheduled date.",
        severity="success",
    )
    return schedule


def reject(schedule_id: int, admin_id: int) -> Schedule:
    schedule = _pending_schedule(schedule_id)
    now = get_clock().now()

    student_ids = _booked_student_ids(schedule.id)
    (
        Booking.query
        .filter(Booking.schedule_id == schedule.id, Booking.status == BOOKING_BOOKED)
        .update(
            {
                Booking.status: BOOKING_CANCELLED,
                Booking.cancelled_at: now,
                Booking.cancellation_reason: REJECTION_REASON,
            },
            synchronize_session="fetch",
        )
    )
    schedule.status = SCHEDULE_CANCELLED
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("rejecting schedule %s failed; nothing was changed", schedule_id)
        raise

    logger.info("schedule %s rejected by %s (%d bookings cancelled)", schedule.id, admin_id, len(student_ids))
    log_event(
        "status_cancelled",
        schedule_id=schedule.id,
        performed_by=admin_id,
        notes="Schedule rejected; all bookings cancelled",
        metadata={"cancelled_bookings": len(student_ids)},
    )
    notify_many(
        student_ids,
        "Duty Schedule Rejected",
        f"The duty schedule for {schedule.date:%B %d, %Y} at {schedule.location} was rejected "
        "and your booking has been cancelled.",
        severity="warning",
    )
    return schedule


def delete_schedule(schedule_id: int, admin_id: int) -> int:
    """Remove a schedule and every booking under it. Returns the number of bookings removed."""
    schedule = Schedule.query.get(schedule_id)
    if not schedule:
        raise NotFoundError("Schedule not found")

    removed = len(schedule.bookings)
    date_str = schedule.date.isoformat()
    db.session.delete(schedule)
    db.session.commit()

    logger.info("schedule %s deleted by %s (%d bookings removed)", schedule_id, admin_id, removed)
    log_event(
        "schedule_deleted",
        schedule_id=schedule_id,
        performed_by=admin_id,
        notes=f"Schedule for {date_str} deleted",
        metadata={"removed_bookings": removed},
    )
    return removed
