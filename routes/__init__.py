from .health import health_bp
from .auth import auth_bp
from .admin import admin_bp
from .sites import sites_bp
from .schedules import schedules_bp
from .bookings import bookings_bp
from .notifications import notifications_bp
