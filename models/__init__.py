from .db import db
from .user import User, Role, user_roles
from .audit_log import AuditLog
from .session import Session
from .site import Site
from .schedule import Schedule
from .booking import Booking
from .cancellation_marker import SameDayCancellation
from .notification import Notification
