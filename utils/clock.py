from datetime import datetime
from zoneinfo import ZoneInfo

from flask import current_app


class SystemClock:
    """
    now() is naive UTC like every timestamp column; today() is the calendar
    day in the duty timezone, which is what the same-day rules compare against.
    """

    def __init__(self, tz_name: str = "UTC"):
        self.tz = ZoneInfo(tz_name)

    def now(self) -> datetime:
        return datetime.utcnow()

    def today(self):
        return datetime.now(self.tz).date()


def init_clock(app) -> None:
    app.extensions["clock"] = SystemClock(app.config.get("DUTY_TIMEZONE", "UTC"))


def get_clock():
    clock = current_app.extensions.get("clock")
    if clock is None:
        clock = SystemClock(current_app.config.get("DUTY_TIMEZONE", "UTC"))
        current_app.extensions["clock"] = clock
    return clock
