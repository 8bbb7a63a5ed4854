from datetime import date

import pytest

from models import db
from models.audit_log import AuditLog
from models.booking import Booking, BOOKING_COMPLETED
from models.schedule import SCHEDULE_APPROVED
from services import approval, booking_policy, cancellation, capacity, lifecycle
from services.errors import NotFoundError, UnauthorizedError, InvalidStateTransitionError
from tests.helpers import active_bookings


def test_complete_requires_approved_schedule(schedule, student, admin, clock):
    booking = booking_policy.book(schedule.id, student.id)
    with pytest.raises(InvalidStateTransitionError):
        lifecycle.complete(booking.id, student.id)

    approval.approve(schedule.id, admin.id)
    done = lifecycle.complete(booking.id, student.id)

    assert done.status == BOOKING_COMPLETED
    assert done.completed_at == clock.now()
    assert capacity.active_count(schedule) == 1
    assert AuditLog.query.filter_by(action="completed", booking_id=booking.id).count() == 1


def test_complete_other_students_booking(make_schedule, student, make_user):
    schedule = make_schedule(status=SCHEDULE_APPROVED)
    booking = booking_policy.book(schedule.id, student.id)
    with pytest.raises(UnauthorizedError):
        lifecycle.complete(booking.id, make_user().id)


def test_complete_twice_or_after_cancel(make_schedule, student):
    schedule = make_schedule(status=SCHEDULE_APPROVED)
    booking = booking_policy.book(schedule.id, student.id)
    lifecycle.complete(booking.id, student.id)
    with pytest.raises(InvalidStateTransitionError):
        lifecycle.complete(booking.id, student.id)

    other = make_schedule(day=date(2025, 3, 11), status=SCHEDULE_APPROVED)
    cancelled = booking_policy.book(other.id, student.id)
    cancellation.cancel(cancelled.id, student.id, "student")
    with pytest.raises(InvalidStateTransitionError):
        lifecycle.complete(cancelled.id, student.id)


def test_complete_unknown_booking(student):
    with pytest.raises(NotFoundError):
        lifecycle.complete(404, student.id)


def test_delete_pending_booking_frees_seat(make_schedule, student, make_user):
    schedule = make_schedule(max_students=1)
    booking = booking_policy.book(schedule.id, student.id)

    lifecycle.delete_pending_booking(booking.id, student.id)

    assert Booking.query.get(booking.id) is None
    assert active_bookings(schedule.id) == 0
    assert booking_policy.book(schedule.id, make_user().id).seat_no == 1
    assert AuditLog.query.filter_by(action="deleted").count() == 1


def test_delete_pending_booking_does_not_leave_rebook_block(schedule, student):
    booking = booking_policy.book(schedule.id, student.id)
    lifecycle.delete_pending_booking(booking.id, student.id)

    assert not cancellation.is_rebook_blocked(student.id, schedule.date)
    assert booking_policy.book(schedule.id, student.id).seat_no == 1


def test_delete_refused_once_schedule_approved(schedule, student, admin):
    booking = booking_policy.book(schedule.id, student.id)
    approval.approve(schedule.id, admin.id)

    with pytest.raises(InvalidStateTransitionError):
        lifecycle.delete_pending_booking(booking.id, student.id)

    lifecycle.complete(booking.id, student.id)
    with pytest.raises(InvalidStateTransitionError):
        lifecycle.delete_pending_booking(booking.id, student.id)
    assert Booking.query.get(booking.id) is not None


def test_delete_refused_for_cancelled_booking(schedule, student):
    booking = booking_policy.book(schedule.id, student.id)
    cancellation.cancel(booking.id, student.id, "student")

    with pytest.raises(InvalidStateTransitionError):
        lifecycle.delete_pending_booking(booking.id, student.id)


def test_delete_refused_for_other_student(schedule, student, make_user):
    booking = booking_policy.book(schedule.id, student.id)
    with pytest.raises(UnauthorizedError):
        lifecycle.delete_pending_booking(booking.id, make_user().id)
    db.session.expire_all()
    assert Booking.query.get(booking.id) is not None
