"""
Creating duty schedules, one at a time or for a whole date range.

Sites rotate by calendar month: every generated schedule in a month goes to the
same site, and the site changes when the month does.
"""
import logging
from datetime import date, time, timedelta

from flask import current_app
from sqlalchemy.exc import IntegrityError

from models import db
from models.schedule import Schedule, SCHEDULE_PENDING, SCHEDULE_CANCELLED
from models.site import Site
from services import capacity
from services.errors import ValidationError, ScheduleConflictError
from utils.audit import log_event
from utils.clock import get_clock

logger = logging.getLogger(__name__)

WEEKDAYS = (0, 1, 2, 3, 4)  # Monday..Friday, date.weekday() numbering


def parse_date(value, field: str = "date") -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}. Use YYYY-MM-DD")


def parse_time(value, field: str) -> time:
    if isinstance(value, time):
        return value
    try:
        return time.fromisoformat(str(value))
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}. Use HH:MM")


def active_sites() -> list:
    return Site.query.filter_by(is_active=True).order_by(Site.id.asc()).all()


def site_for_month(day: date, sites=None):
    sites = sites if sites is not None else active_sites()
    if not sites:
        return None
    return sites[(day.month - 1) % len(sites)]


def _default_capacity(location: str) -> int:
    site = Site.query.filter_by(name=location).first()
    if site:
        return site.capacity
    return current_app.config.get("DEFAULT_MAX_STUDENTS", 2)


def create_schedule(day, location: str, created_by: int, shift_start=None, shift_end=None,
                    description: str = None, max_students=None) -> Schedule:
    cfg = current_app.config
    day = parse_date(day)
    location = (location or "").strip()
    if not location:
        raise ValidationError("location is required")

    if day < get_clock().today():
        raise ValidationError("Cannot create schedule for past dates")

    start = parse_time(shift_start or cfg["DEFAULT_SHIFT_START"], "shift_start")
    end = parse_time(shift_end or cfg["DEFAULT_SHIFT_END"], "shift_end")
    if end <= start:
        raise ValidationError("shift_end must be after shift_start")

    if max_students is None:
        max_students = _default_capacity(location)
    try:
        max_students = int(max_students)
    except (TypeError, ValueError):
        raise ValidationError("max_students must be a positive integer")
    if max_students <= 0:
        raise ValidationError("max_students must be a positive integer")

    schedule = Schedule(
        date=day,
        location=location,
        shift_start=start,
        shift_end=end,
        description=description or cfg["DEFAULT_DUTY_DESCRIPTION"],
        max_students=max_students,
        status=SCHEDULE_PENDING,
        created_by=created_by,
    )
    db.session.add(schedule)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ScheduleConflictError(f"A schedule already exists for {location} on {day.isoformat()}")

    logger.info("schedule %s created for %s at %s", schedule.id, day, location)
    log_event("schedule_created", schedule_id=schedule.id, performed_by=created_by,
              notes=f"Schedule created for {day.isoformat()} at {location}")
    return schedule


def generate_schedules(start, end, created_by: int, weekdays=WEEKDAYS, description: str = None) -> list:
    """
    Create one pending schedule per matching weekday between start and end
    (inclusive) at the month's rotation site. Days that already have a schedule
    at that site are skipped.
    """
    cfg = current_app.config
    start = parse_date(start, "start_date")
    end = parse_date(end, "end_date")
    if end < start:
        raise ValidationError("end_date must not be before start_date")
    if (end - start).days + 1 > cfg.get("BULK_MAX_DAYS", 366):
        raise ValidationError(f"Date range may span at most {cfg.get('BULK_MAX_DAYS', 366)} days")

    weekdays = set(weekdays)
    if not weekdays or not weekdays.issubset(range(7)):
        raise ValidationError("weekdays must be numbers 0 (Monday) to 6 (Sunday)")

    sites = active_sites()
    if not sites:
        raise ValidationError("No active sites to assign schedules to")

    existing = {
        (s.date, s.location)
        for s in Schedule.query.filter(Schedule.date >= start, Schedule.date <= end).all()
    }
    shift_start = parse_time(cfg["DEFAULT_SHIFT_START"], "shift_start")
    shift_end = parse_time(cfg["DEFAULT_SHIFT_END"], "shift_end")

    created = []
    day = start
    while day <= end:
        if day.weekday() in weekdays:
            site = site_for_month(day, sites)
            if (day, site.name) not in existing:
                created.append(Schedule(
                    date=day,
                    location=site.name,
                    shift_start=shift_start,
                    shift_end=shift_end,
                    description=description or cfg["DEFAULT_DUTY_DESCRIPTION"],
                    max_students=site.capacity,
                    status=SCHEDULE_PENDING,
                    created_by=created_by,
                ))
        day += timedelta(days=1)

    db.session.add_all(created)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ScheduleConflictError("Some of these schedules were created concurrently; please retry")

    logger.info("generated %d schedules between %s and %s", len(created), start, end)
    log_event(
        "schedules_generated",
        performed_by=created_by,
        notes=f"Generated {len(created)} schedules from {start.isoformat()} to {end.isoformat()}",
        metadata={"count": len(created)},
    )
    return created


def list_schedules(start=None, end=None, location: str = None) -> list:
    q = Schedule.query
    if start:
        q = q.filter(Schedule.date >= parse_date(start, "start"))
    if end:
        q = q.filter(Schedule.date <= parse_date(end, "end"))
    if location:
        q = q.filter(Schedule.location == location)
    return q.order_by(Schedule.date.asc(), Schedule.location.asc()).all()


def available_schedules(start=None) -> list:
    """Open schedules with a free seat, from `start` but never earlier than tomorrow."""
    first_bookable = get_clock().today() + timedelta(days=1)
    start = parse_date(start, "start") if start else first_bookable
    start = max(start, first_bookable)
    rows = (
        Schedule.query
        .filter(Schedule.date >= start, Schedule.status != SCHEDULE_CANCELLED)
        .order_by(Schedule.date.asc())
        .all()
    )
    counts = capacity.counts_by_schedule([s.id for s in rows])
    return [s for s in rows if counts.get(s.id, 0) < s.max_students]
