"""
Role-specific JSON views of schedules and bookings.

The projections only read the records they are handed; who sees what is
decided by the viewer's role, not by storing different shapes.
"""
from models.booking import Booking, BOOKING_BOOKED, BOOKING_CANCELLED
from models.cancellation_marker import SameDayCancellation
from models.schedule import SCHEDULE_CANCELLED
from utils.clock import get_clock
from utils.roles import ROLE_ADMIN, ROLE_STUDENT, ROLE_PARENT, primary_role


def _iso(value):
    return value.isoformat() if value else None


def _hhmm(value):
    return value.strftime("%H:%M") if value else None


def project_booking(booking: Booking) -> dict:
    schedule = booking.schedule
    return {
        "id": booking.id,
        "schedule_id": booking.schedule_id,
        "student_id": booking.student_id,
        "status": booking.status,
        "seat_no": booking.seat_no,
        "booking_time": _iso(booking.booking_time),
        "cancelled_at": _iso(booking.cancelled_at),
        "cancellation_reason": booking.cancellation_reason,
        "completed_at": _iso(booking.completed_at),
        "schedule": {
            "date": _iso(schedule.date),
            "location": schedule.location,
            "shift_start": _hhmm(schedule.shift_start),
            "shift_end": _hhmm(schedule.shift_end),
            "description": schedule.description,
            "status": schedule.status,
        } if schedule else None,
    }


def _roster_entry(booking: Booking) -> dict:
    student = booking.student
    return {
        "id": booking.id,
        "student_id": booking.student_id,
        "student_name": student.full_name if student else None,
        "student_email": student.email if student else None,
        "status": booking.status,
        "seat_no": booking.seat_no,
        "booking_time": _iso(booking.booking_time),
    }


def _brief(booking):
    if booking is None:
        return None
    return {"id": booking.id, "status": booking.status, "seat_no": booking.seat_no}


def project_schedule(schedule, viewer, blocked_dates=frozenset(), booked_dates=frozenset()) -> dict:
    """
    blocked_dates / booked_dates describe the viewing student: dates they may
    not rebook today, and dates they already hold a booked duty on.
    """
    active = [b for b in schedule.bookings if b.status != BOOKING_CANCELLED]
    count = len(active)

    out = {
        "id": schedule.id,
        "date": _iso(schedule.date),
        "location": schedule.location,
        "shift_start": _hhmm(schedule.shift_start),
        "shift_end": _hhmm(schedule.shift_end),
        "description": schedule.description,
        "max_students": schedule.max_students,
        "status": schedule.status,
        "active_count": count,
        "remaining": max(0, schedule.max_students - count),
        "is_full": count >= schedule.max_students,
    }

    role = primary_role(viewer)
    if role == ROLE_ADMIN:
        out["bookings"] = [_roster_entry(b) for b in schedule.bookings]
        out["created_by"] = schedule.created_by
        out["approved_by"] = schedule.approved_by
        out["approved_at"] = _iso(schedule.approved_at)
    elif role == ROLE_STUDENT:
        mine = next((b for b in active if b.student_id == viewer.id), None)
        blocked = schedule.date in blocked_dates
        out["my_booking"] = _brief(mine)
        out["rebook_blocked"] = blocked
        out["can_book"] = (
            mine is None
            and not blocked
            and not out["is_full"]
            and schedule.status != SCHEDULE_CANCELLED
            and schedule.date > get_clock().today()
            and schedule.date not in booked_dates
        )
    elif role == ROLE_PARENT:
        child_id = viewer.linked_student_id
        child = next((b for b in active if child_id and b.student_id == child_id), None)
        out["child_booking"] = _brief(child)
    return out


def student_context(student_id: int) -> dict:
    """The per-student facts project_schedule needs for a student viewer."""
    today = get_clock().today()
    blocked = {
        m.target_date
        for m in SameDayCancellation.query.filter_by(student_id=student_id, cancelled_on=today).all()
    }
    booked = {
        b.duty_date
        for b in Booking.query.filter_by(student_id=student_id, status=BOOKING_BOOKED).all()
    }
    return {"blocked_dates": frozenset(blocked), "booked_dates": frozenset(booked)}
