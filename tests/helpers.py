from datetime import date

from models.booking import Booking, BOOKING_CANCELLED

PASSWORD = "secret123"

# Wednesday; the worked examples use a duty date five days later
TODAY = date(2025, 3, 5)
DUTY_DAY = date(2025, 3, 10)


def active_bookings(schedule_id: int) -> int:
    """Ground truth straight from the table, independent of services.capacity."""
    return Booking.query.filter(
        Booking.schedule_id == schedule_id,
        Booking.status != BOOKING_CANCELLED,
    ).count()


def login(app, user):
    client = app.test_client()
    resp = client.post("/auth/login", json={"email": user.email, "password": PASSWORD})
    assert resp.status_code == 200, resp.get_json()
    return client
