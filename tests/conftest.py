import itertools
from datetime import date, datetime, time, timedelta

import pytest

from app import create_app
from config import TestConfig
from models import db
from models.schedule import Schedule, SCHEDULE_PENDING
from models.user import User, Role
from security.password import hash_password
from utils.seed import seed_roles, seed_sites
from tests.helpers import PASSWORD, TODAY, DUTY_DAY

# bcrypt is slow on purpose; hash once for every fixture user
PASSWORD_HASH = hash_password(PASSWORD)


_seq = itertools.count(1)


class FixedClock:
    def __init__(self, current: datetime):
        self.current = current

    def now(self) -> datetime:
        return self.current

    def today(self) -> date:
        return self.current.date()

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)

    def set_today(self, day: date) -> None:
        self.current = datetime.combine(day, self.current.time())


@pytest.fixture
def clock():
    return FixedClock(datetime.combine(TODAY, time(9, 0)))


@pytest.fixture
def app(clock):
    app = create_app(TestConfig)
    app.extensions["clock"] = clock
    with app.app_context():
        db.create_all()
        seed_roles()
        seed_sites()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def make_user(app):
    def _make(role="STUDENT", email=None, full_name=None):
        n = next(_seq)
        user = User(
            email=email or f"{role.lower()}{n}@example.com",
            password_hash=PASSWORD_HASH,
            full_name=full_name or f"{role.title()} {n}",
        )
        user.roles.append(Role.query.filter_by(name=role).first())
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture
def admin(make_user):
    return make_user("ADMIN", full_name="Head Nurse")


@pytest.fixture
def student(make_user):
    return make_user("STUDENT", full_name="Student A")


@pytest.fixture
def make_schedule(app):
    def _make(day=DUTY_DAY, location="ISDH - Magsingal", max_students=2, status=SCHEDULE_PENDING):
        schedule = Schedule(
            date=day,
            location=location,
            shift_start=time(8, 0),
            shift_end=time(20, 0),
            description="Community Health Center Duty",
            max_students=max_students,
            status=status,
        )
        db.session.add(schedule)
        db.session.commit()
        return schedule
    return _make


@pytest.fixture
def schedule(make_schedule):
    return make_schedule()


