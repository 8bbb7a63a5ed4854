"""
Booking a duty seat.

The rules are checked up front so students get a specific reason, then the row
is written in one commit. The partial unique indexes on bookings are the final
word: if a concurrent request wins a seat (or the same student double-submits)
the insert fails, the transaction is rolled back and the rules are checked
again against the new state.
"""
import logging

from flask import current_app
from sqlalchemy.exc import IntegrityError

from models import db
from models.schedule import Schedule, SCHEDULE_CANCELLED
from models.booking import Booking, BOOKING_BOOKED, BOOKING_CANCELLED
from services import capacity
from services.cancellation import is_rebook_blocked
from services.errors import (
    DutyError,
    NotFoundError,
    ValidationError,
    CapacityExceededError,
    DuplicateBookingError,
    ConflictingDateBookingError,
    SameDayRebookBlockedError,
    InvalidStateTransitionError,
)
from utils.audit import log_event
from utils.clock import get_clock
from utils.notifier import notify_admins

logger = logging.getLogger(__name__)

CONFLICT_SEAT = "seat"
CONFLICT_DAY = "day"
CONFLICT_DUPLICATE = "duplicate"


def _load_schedule(schedule_id, lock: bool = False):
    q = Schedule.query.filter_by(id=schedule_id)
    if lock:
        # serialises with approve/reject on backends that support row locks
        q = q.with_for_update()
    return q.first()


def check_booking_rules(schedule, student_id: int, target_date) -> None:
    """Raise the first rule a new booking of `schedule` by `student_id` would break."""
    if schedule.status == SCHEDULE_CANCELLED:
        raise InvalidStateTransitionError("This duty schedule has been cancelled.")

    today = get_clock().today()
    if schedule.date == today:
        raise ValidationError("Cannot book duty for today. Duties must be booked in advance.")
    if schedule.date < today:
        raise ValidationError("Cannot book duty for past dates.")

    current = capacity.active_count(schedule)
    if current >= schedule.max_students:
        raise CapacityExceededError(current, schedule.max_students)

    duplicate = (
        Booking.query
        .filter(
            Booking.schedule_id == schedule.id,
            Booking.student_id == student_id,
            Booking.status != BOOKING_CANCELLED,
        )
        .first()
    )
    if duplicate:
        raise DuplicateBookingError("You have already booked this duty.")

    same_day = (
        Booking.query
        .filter(
            Booking.student_id == student_id,
            Booking.duty_date == target_date,
            Booking.status == BOOKING_BOOKED,
        )
        .first()
    )
    if same_day:
        raise ConflictingDateBookingError(
            "You already have a duty scheduled for this date at another hospital. "
            "Students can only have one duty per day."
        )

    if is_rebook_blocked(student_id, target_date):
        raise SameDayRebookBlockedError(
            "You cannot book again today because you already cancelled a booking "
            "for this date today. Please try again tomorrow."
        )


def _classify_conflict(exc: IntegrityError) -> str:
    text = str(getattr(exc, "orig", exc)).lower()
    if "seat_no" in text or "uq_booking_active_seat" in text:
        return CONFLICT_SEAT
    if "duty_date" in text or "uq_booking_student_day" in text:
        return CONFLICT_DAY
    return CONFLICT_DUPLICATE


def _raise_for_conflict(kind: str, schedule_id: int):
    schedule = Schedule.query.get(schedule_id)
    if schedule is None:
        raise NotFoundError("Schedule not found")
    if kind == CONFLICT_SEAT:
        raise CapacityExceededError(capacity.active_count(schedule), schedule.max_students)
    if kind == CONFLICT_DAY:
        raise ConflictingDateBookingError("You already have a duty scheduled for this date.")
    raise DuplicateBookingError("You have already booked this duty.")


def book(schedule_id: int, student_id: int, target_date=None) -> Booking:
    clock = get_clock()
    retries = current_app.config.get("SEAT_CONFLICT_RETRIES", 3)
    attempts = 0

    while True:
        schedule = _load_schedule(schedule_id, lock=True)
        if schedule is None:
            db.session.rollback()
            raise NotFoundError("Schedule not found")

        if target_date is None:
            target_date = schedule.date
        elif target_date != schedule.date:
            db.session.rollback()
            raise ValidationError("target_date does not match the schedule date")

        try:
            check_booking_rules(schedule, student_id, target_date)
        except DutyError as err:
            db.session.rollback()
            logger.info("booking refused schedule=%s student=%s: %s", schedule_id, student_id, err.code)
            raise

        seat = capacity.next_free_seat(schedule)
        if seat is None:
            current, maximum = capacity.active_count(schedule), schedule.max_students
            db.session.rollback()
            raise CapacityExceededError(current, maximum)

        booking = Booking(
            schedule_id=schedule.id,
            student_id=student_id,
            duty_date=schedule.date,
            seat_no=seat,
            status=BOOKING_BOOKED,
            booking_time=clock.now(),
        )
        db.session.add(booking)
        try:
            db.session.commit()
            break
        except IntegrityError as exc:
            db.session.rollback()
            kind = _classify_conflict(exc)
            attempts += 1
            logger.info(
                "booking write conflict (%s) schedule=%s student=%s attempt=%d",
                kind, schedule_id, student_id, attempts,
            )
            if attempts > retries:
                _raise_for_conflict(kind, schedule_id)

    logger.info("booking %s created schedule=%s student=%s seat=%s", booking.id, schedule_id, student_id, seat)
    _after_booking(booking, schedule)
    return booking


def _after_booking(booking: Booking, schedule: Schedule) -> None:
    log_event(
        "booked",
        schedule_id=schedule.id,
        booking_id=booking.id,
        performed_by=booking.student_id,
        target_user=booking.student_id,
        notes=f"Student booked duty for {schedule.date.isoformat()}",
    )
    notify_admins(
        "New Duty Booking",
        f"A student has booked duty for {schedule.date:%B %d, %Y} at {schedule.location}.",
    )
