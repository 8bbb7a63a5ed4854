from datetime import timedelta

import pytest

from models import db
from models.audit_log import AuditLog
from models.booking import BOOKING_CANCELLED, BOOKING_COMPLETED
from models.cancellation_marker import SameDayCancellation
from services import booking_policy, cancellation
from services.errors import (
    NotFoundError,
    SameDayCancelForbiddenError,
    UnauthorizedError,
    InvalidStateTransitionError,
    SameDayRebookBlockedError,
)
from tests.helpers import TODAY, DUTY_DAY, active_bookings


def test_student_cancels_own_booking(schedule, student, clock):
    booking = booking_policy.book(schedule.id, student.id)

    cancelled = cancellation.cancel(booking.id, student.id, "student")

    assert cancelled.status == BOOKING_CANCELLED
    assert cancelled.cancelled_at == clock.now()
    assert cancelled.cancellation_reason == "Cancelled by student"
    assert active_bookings(schedule.id) == 0

    marker = SameDayCancellation.query.one()
    assert (marker.student_id, marker.target_date, marker.cancelled_on) == (student.id, DUTY_DAY, TODAY)
    assert AuditLog.query.filter_by(action="cancelled", booking_id=booking.id).count() == 1


def test_custom_reason_is_kept(schedule, student):
    booking = booking_policy.book(schedule.id, student.id)
    cancelled = cancellation.cancel(booking.id, student.id, "student", reason="Sick leave")
    assert cancelled.cancellation_reason == "Sick leave"


def test_cancel_unknown_booking(student):
    with pytest.raises(NotFoundError):
        cancellation.cancel(12345, student.id, "student")


def test_no_cancellation_on_duty_day_even_for_admin(schedule, student, admin, clock):
    booking = booking_policy.book(schedule.id, student.id)
    clock.set_today(DUTY_DAY)

    with pytest.raises(SameDayCancelForbiddenError):
        cancellation.cancel(booking.id, student.id, "student")
    with pytest.raises(SameDayCancelForbiddenError):
        cancellation.cancel(booking.id, admin.id, "admin")


def test_student_cannot_cancel_someone_else(schedule, student, make_user):
    booking = booking_policy.book(schedule.id, student.id)
    other = make_user()

    with pytest.raises(UnauthorizedError):
        cancellation.cancel(booking.id, other.id, "student")


def test_admin_may_cancel_any_booking(schedule, student, admin):
    booking = booking_policy.book(schedule.id, student.id)
    cancelled = cancellation.cancel(booking.id, admin.id, "admin")

    assert cancelled.status == BOOKING_CANCELLED
    assert cancelled.cancellation_reason == "Cancelled by admin"
    log = AuditLog.query.filter_by(action="cancelled").one()
    assert log.performed_by == admin.id
    assert log.target_user == student.id


def test_cancelled_booking_cannot_be_cancelled_again(schedule, student):
    booking = booking_policy.book(schedule.id, student.id)
    cancellation.cancel(booking.id, student.id, "student")
    with pytest.raises(InvalidStateTransitionError):
        cancellation.cancel(booking.id, student.id, "student")


def test_completed_booking_cannot_be_cancelled(schedule, student):
    booking = booking_policy.book(schedule.id, student.id)
    booking.status = BOOKING_COMPLETED
    db.session.commit()

    with pytest.raises(InvalidStateTransitionError):
        cancellation.cancel(booking.id, student.id, "student")


def test_cancelling_frees_the_seat(make_schedule, student, make_user):
    schedule = make_schedule(max_students=1)
    booking = booking_policy.book(schedule.id, student.id)
    cancellation.cancel(booking.id, student.id, "student")

    replacement = booking_policy.book(schedule.id, make_user().id)
    assert replacement.seat_no == 1
    assert active_bookings(schedule.id) == 1


def test_marker_only_blocks_the_cancelled_date(make_schedule, student):
    duty = make_schedule(day=DUTY_DAY)
    later = make_schedule(day=DUTY_DAY + timedelta(days=2))
    booking = booking_policy.book(duty.id, student.id)
    cancellation.cancel(booking.id, student.id, "student")

    assert cancellation.is_rebook_blocked(student.id, DUTY_DAY)
    assert not cancellation.is_rebook_blocked(student.id, DUTY_DAY + timedelta(days=2))
    assert booking_policy.book(later.id, student.id).duty_date == DUTY_DAY + timedelta(days=2)


def test_cancel_and_rebook_elsewhere_same_date(make_schedule, student, clock):
    # today is five days before the duty
    s1 = make_schedule(location="ISDH - Magsingal")
    s2 = make_schedule(location="ISDH - Sinait")
    booking = booking_policy.book(s1.id, student.id)
    cancellation.cancel(booking.id, student.id, "student")

    # the first booking is cancelled, so the one-duty-per-day rule does not apply;
    # the same-day marker does
    with pytest.raises(SameDayRebookBlockedError):
        booking_policy.book(s2.id, student.id)

    clock.advance(days=1)
    assert not cancellation.is_rebook_blocked(student.id, DUTY_DAY)
    assert booking_policy.book(s2.id, student.id).schedule_id == s2.id


def test_each_cancellation_day_gets_its_own_marker(make_schedule, student, clock):
    s1 = make_schedule(location="ISDH - Magsingal")
    b1 = booking_policy.book(s1.id, student.id)
    cancellation.cancel(b1.id, student.id, "student")

    clock.advance(days=1)
    b2 = booking_policy.book(s1.id, student.id)
    clock.advance(hours=1)
    cancellation.cancel(b2.id, student.id, "student")

    assert SameDayCancellation.query.filter_by(student_id=student.id).count() == 2
