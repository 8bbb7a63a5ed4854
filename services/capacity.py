"""
Seat accounting for a schedule.

Counts are always read from the bookings table; nothing here is cached. A
booking holds its seat until it is cancelled or deleted, so completed duties
still count.
"""
from models import db
from models.booking import Booking, BOOKING_CANCELLED


def _active_query(schedule):
    return Booking.query.filter(
        Booking.schedule_id == schedule.id,
        Booking.status != BOOKING_CANCELLED,
    )


def active_count(schedule) -> int:
    return _active_query(schedule).count()


def is_full(schedule) -> bool:
    return active_count(schedule) >= schedule.max_students


def remaining(schedule) -> int:
    return max(0, schedule.max_students - active_count(schedule))


def occupied_seats(schedule) -> set:
    rows = (
        db.session.query(Booking.seat_no)
        .filter(Booking.schedule_id == schedule.id, Booking.status != BOOKING_CANCELLED)
        .all()
    )
    return {r.seat_no for r in rows}


def next_free_seat(schedule):
    """Lowest unused seat number in 1..max_students, or None when full."""
    taken = occupied_seats(schedule)
    for seat in range(1, schedule.max_students + 1):
        if seat not in taken:
            return seat
    return None


def counts_by_schedule(schedule_ids) -> dict:
    """Active booking counts for many schedules in one query (calendar views)."""
    if not schedule_ids:
        return {}
    rows = (
        db.session.query(Booking.schedule_id, db.func.count(Booking.id))
        .filter(Booking.schedule_id.in_(list(schedule_ids)), Booking.status != BOOKING_CANCELLED)
        .group_by(Booking.schedule_id)
        .all()
    )
    return {schedule_id: count for schedule_id, count in rows}
