import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored beside this module as dutyslot.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "dutyslot.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Session cookie name for our auth token
    AUTH_COOKIE_NAME = "dutyslot_session"

    # 8 hours session lifetime
    SESSION_LIFETIME_SECONDS = 8 * 60 * 60

    # Idle timeout: 20 minutes
    IDLE_TIMEOUT_SECONDS = 20 * 60

    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "false").lower() == "true"

    PASSWORD_MIN_LENGTH = 8

    # "Today" for the same-day cancel/rebook rules is the calendar day here
    DUTY_TIMEZONE = os.getenv("DUTY_TIMEZONE", "Asia/Manila")

    # Schedule defaults
    DEFAULT_MAX_STUDENTS = 2
    DEFAULT_SHIFT_START = "08:00"
    DEFAULT_SHIFT_END = "20:00"
    DEFAULT_DUTY_DESCRIPTION = "Community Health Center Duty"
    BULK_MAX_DAYS = 366

    # How often a booking re-validates after losing a seat race
    SEAT_CONFLICT_RETRIES = 3

    # Duty sites, in monthly rotation order
    DEFAULT_SITES = [
        {"name": "ISDH - Magsingal", "capacity": 4, "description": "Ilocos Sur District Hospital - Magsingal"},
        {"name": "ISDH - Sinait", "capacity": 4, "description": "Ilocos Sur District Hospital - Sinait"},
        {"name": "ISDH - Narvacan", "capacity": 4, "description": "Ilocos Sur District Hospital - Narvacan"},
        {"name": "ISPH - Gab. Silang", "capacity": 2, "description": "Ilocos Sur Provincial Hospital - Gab. Silang"},
        {"name": "RHU - Sto. Domingo", "capacity": 4, "description": "Rural Health Unit - Sto. Domingo"},
        {"name": "RHU - Santa", "capacity": 4, "description": "Rural Health Unit - Santa"},
        {"name": "RHU - San Ildefonso", "capacity": 4, "description": "Rural Health Unit - San Ildefonso"},
        {"name": "RHU - Bantay", "capacity": 4, "description": "Rural Health Unit - Bantay"},
    ]

    # Mirror in-app notifications to e-mail
    NOTIFY_BY_EMAIL = os.getenv("NOTIFY_BY_EMAIL", "false").lower() == "true"

    # Email (SMTP)
    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME = os.getenv("SMTP_USERNAME")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
    SMTP_FROM_EMAIL = os.getenv("SMTP_FROM_EMAIL")
    SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "true").lower() == "true"
    MAIL_SUBJECT_PREFIX = "[DutySlot]"

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Basic app settings
    DEBUG = False


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    PASSWORD_MIN_LENGTH = 4
    NOTIFY_BY_EMAIL = False
    LOG_LEVEL = "DEBUG"
