from models import db
from models.booking import Booking
from models.schedule import SCHEDULE_APPROVED
from services import booking_policy
from tests.helpers import PASSWORD, login


def test_health(app):
    resp = app.test_client().get("/health")
    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok", "database": True}
    assert resp.headers["X-Frame-Options"] == "DENY"


def test_register_login_me_logout(app):
    client = app.test_client()
    resp = client.post("/auth/register", json={
        "email": "Ana@Example.com",
        "password": PASSWORD,
        "full_name": "Ana Cruz",
        "student_number": "2021-0042",
        "year_level": "3rd",
    })
    assert resp.status_code == 201

    resp = client.post("/auth/login", json={"email": "ana@example.com", "password": PASSWORD})
    assert resp.status_code == 200
    assert resp.get_json()["roles"] == ["STUDENT"]

    me = client.get("/auth/me").get_json()
    assert me["email"] == "ana@example.com"
    assert me["student_number"] == "2021-0042"

    assert client.post("/auth/logout").status_code == 200
    assert client.get("/auth/me").status_code == 401


def test_register_rejects_bad_input(app, student):
    client = app.test_client()
    assert client.post("/auth/register", json={"email": "nope", "password": PASSWORD}).status_code == 400
    assert client.post("/auth/register", json={"email": "x@example.com", "password": "abcdefgh"}).status_code == 400
    resp = client.post("/auth/register", json={"email": "x@example.com", "password": PASSWORD, "role": "ADMIN"})
    assert resp.status_code == 400
    resp = client.post("/auth/register", json={"email": student.email, "password": PASSWORD})
    assert resp.status_code == 409


def test_login_wrong_password(app, student):
    resp = app.test_client().post("/auth/login", json={"email": student.email, "password": "wrong1"})
    assert resp.status_code == 401


def test_auth_required_and_roles(app, student, schedule):
    anonymous = app.test_client()
    assert anonymous.get("/schedules").status_code == 401
    assert anonymous.post("/bookings", json={"schedule_id": schedule.id}).status_code == 401

    client = login(app, student)
    assert client.post(f"/schedules/{schedule.id}/approve").status_code == 403
    assert client.get("/admin/users").status_code == 403


def test_book_through_api_until_full(app, make_schedule, make_user):
    schedule = make_schedule(max_students=1)
    first = login(app, make_user())
    resp = first.post("/bookings", json={"schedule_id": schedule.id})
    assert resp.status_code == 201
    assert resp.get_json()["seat_no"] == 1

    second = login(app, make_user())
    resp = second.post("/bookings", json={"schedule_id": schedule.id, "date": "2025-03-10"})
    assert resp.status_code == 409
    body = resp.get_json()
    assert body["code"] == "CAPACITY_EXCEEDED"
    assert (body["current"], body["max"]) == (1, 1)

    resp = first.post("/bookings", json={"schedule_id": schedule.id})
    assert resp.status_code == 409


def test_book_validation_errors(app, student, schedule):
    client = login(app, student)
    assert client.post("/bookings", json={}).status_code == 400
    resp = client.post("/bookings", json={"schedule_id": schedule.id, "date": "10-03-2025"})
    assert resp.status_code == 400
    assert client.post("/bookings", json={"schedule_id": 9999}).status_code == 404

    for bad in ("abc", [1], "1.5"):
        resp = client.post("/bookings", json={"schedule_id": bad})
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "VALIDATION_ERROR"


def test_admin_cannot_book(app, admin, schedule):
    assert login(app, admin).post("/bookings", json={"schedule_id": schedule.id}).status_code == 403


def test_approve_then_notifications(app, admin, student, schedule):
    login(app, student).post("/bookings", json={"schedule_id": schedule.id})

    resp = login(app, admin).post(f"/schedules/{schedule.id}/approve")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == SCHEDULE_APPROVED
    assert len(body["bookings"]) == 1

    client = login(app, student)
    notes = client.get("/notifications?unread=true").get_json()
    assert [n["title"] for n in notes] == ["Duty Schedule Approved"]

    assert client.post(f"/notifications/{notes[0]['id']}/read").status_code == 200
    assert client.get("/notifications?unread=true").get_json() == []

    again = login(app, admin).post(f"/schedules/{schedule.id}/approve")
    assert again.status_code == 409
    assert again.get_json()["code"] == "INVALID_STATE_TRANSITION"


def test_cannot_read_someone_elses_notification(app, admin, student, schedule):
    booking_policy.book(schedule.id, student.id)
    [admin_note] = login(app, admin).get("/notifications").get_json()
    assert login(app, student).post(f"/notifications/{admin_note['id']}/read").status_code == 404


def test_cancel_routes(app, admin, student, schedule, clock):
    booking = booking_policy.book(schedule.id, student.id)
    client = login(app, student)

    resp = client.post(f"/bookings/{booking.id}/cancel", json={"reason": "Sick"})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "cancelled"
    assert body["cancellation_reason"] == "Sick"
    assert "message" in body

    resp = client.post("/bookings", json={"schedule_id": schedule.id})
    assert resp.status_code == 409
    assert resp.get_json()["code"] == "SAME_DAY_REBOOK_BLOCKED"


def test_same_day_cancel_forbidden(app, student, schedule, clock):
    booking = booking_policy.book(schedule.id, student.id)
    clock.set_today(schedule.date)

    resp = login(app, student).post(f"/bookings/{booking.id}/cancel")
    assert resp.status_code == 403
    assert resp.get_json()["code"] == "SAME_DAY_CANCEL_FORBIDDEN"


def test_schedule_listing_by_role(app, admin, student, make_user, schedule):
    booking_policy.book(schedule.id, student.id)

    [admin_view] = login(app, admin).get("/schedules").get_json()
    assert admin_view["bookings"][0]["student_id"] == student.id

    [student_view] = login(app, student).get("/schedules").get_json()
    assert student_view["my_booking"]["seat_no"] == 1
    assert "bookings" not in student_view

    parent = make_user("PARENT")
    parent.linked_student_id = student.id
    db.session.commit()
    [parent_view] = login(app, parent).get("/schedules?start=2025-03-01&end=2025-03-31").get_json()
    assert parent_view["child_booking"]["seat_no"] == 1


def test_available_listing(app, student, make_schedule, make_user):
    full = make_schedule(max_students=1)
    open_one = make_schedule(location="RHU - Santa")
    booking_policy.book(full.id, make_user().id)

    rows = login(app, student).get("/schedules/available").get_json()
    assert [r["id"] for r in rows] == [open_one.id]
    assert rows[0]["can_book"] is True


def test_admin_creates_and_generates_schedules(app, admin):
    client = login(app, admin)
    resp = client.post("/schedules", json={"date": "2025-03-20", "location": "RHU - Santa", "max_students": 3})
    assert resp.status_code == 201
    assert resp.get_json()["max_students"] == 3

    dup = client.post("/schedules", json={"date": "2025-03-20", "location": "RHU - Santa"})
    assert dup.status_code == 409
    assert dup.get_json()["code"] == "SCHEDULE_CONFLICT"

    past = client.post("/schedules", json={"date": "2025-03-01", "location": "RHU - Santa"})
    assert past.status_code == 400
    assert past.get_json()["code"] == "VALIDATION_ERROR"

    resp = client.post("/schedules/bulk", json={"start_date": "2025-03-10", "end_date": "2025-03-16"})
    assert resp.status_code == 201
    assert resp.get_json()["created"] == 5

    resp = client.post("/schedules/bulk", json={"start_date": "2025-03-10", "end_date": "2025-03-16",
                                                "weekdays": "weekends"})
    assert resp.status_code == 400


def test_reject_and_delete_routes(app, admin, student, make_schedule):
    rejected = make_schedule()
    deleted = make_schedule(location="RHU - Santa", day=rejected.date.replace(day=11))
    booking = booking_policy.book(rejected.id, student.id)
    booking_policy.book(deleted.id, student.id)
    client = login(app, admin)

    resp = client.post(f"/schedules/{rejected.id}/reject")
    assert resp.status_code == 200
    assert resp.get_json()["bookings"][0]["status"] == "cancelled"

    resp = client.delete(f"/schedules/{deleted.id}")
    assert resp.get_json()["removed_bookings"] == 1
    assert Booking.query.filter_by(student_id=student.id).count() == 1
    assert db.session.get(Booking, booking.id).status == "cancelled"


def test_complete_and_withdraw_routes(app, admin, student, make_schedule):
    approved = make_schedule(status=SCHEDULE_APPROVED)
    pending = make_schedule(location="RHU - Santa", day=approved.date.replace(day=12))
    done = booking_policy.book(approved.id, student.id)
    withdrawn = booking_policy.book(pending.id, student.id)
    client = login(app, student)

    assert client.post(f"/bookings/{done.id}/complete").get_json()["status"] == "completed"
    assert client.delete(f"/bookings/{withdrawn.id}").status_code == 200
    assert client.delete(f"/bookings/{done.id}").status_code == 409

    history = client.get("/bookings/me").get_json()
    assert [b["id"] for b in history] == [done.id]
    assert client.get("/bookings/me?status=cancelled").get_json() == []


def test_parent_child_bookings(app, admin, student, make_user, schedule):
    booking_policy.book(schedule.id, student.id)
    parent = make_user("PARENT")

    client = login(app, parent)
    assert client.get("/bookings/child").status_code == 404

    resp = login(app, admin).post(f"/admin/users/{parent.id}/link-student", json={"student_id": student.id})
    assert resp.status_code == 200

    client = login(app, parent)
    rows = client.get("/bookings/child").get_json()
    assert [r["student_id"] for r in rows] == [student.id]
    assert client.post("/bookings", json={"schedule_id": schedule.id}).status_code == 403


def test_link_student_requires_parent_and_student(app, admin, student, make_user):
    client = login(app, admin)
    other_student = make_user()
    resp = client.post(f"/admin/users/{other_student.id}/link-student", json={"student_id": student.id})
    assert resp.status_code == 404
    parent = make_user("PARENT")
    resp = client.post(f"/admin/users/{parent.id}/link-student", json={"student_id": admin.id})
    assert resp.status_code == 404


def test_admin_role_update(app, admin, student):
    client = login(app, admin)
    resp = client.post(f"/admin/users/{student.id}/roles", json={"roles": ["STUDENT", "PARENT"]})
    assert resp.status_code == 200
    assert set(resp.get_json()["roles"]) == {"STUDENT", "PARENT"}

    assert client.post(f"/admin/users/{admin.id}/roles", json={"roles": ["STUDENT"]}).status_code == 403
    assert client.post(f"/admin/users/{student.id}/roles", json={"roles": ["ROOT"]}).status_code == 400


def test_audit_log_listing(app, admin, student, schedule):
    booking_policy.book(schedule.id, student.id)
    client = login(app, admin)
    client.post(f"/schedules/{schedule.id}/approve")

    rows = client.get(f"/admin/audit-logs?schedule_id={schedule.id}").get_json()
    assert [r["action"] for r in rows][:2] == ["status_approved", "booked"]

    rows = client.get("/admin/audit-logs?action=booked").get_json()
    assert len(rows) == 1
    assert rows[0]["target_user"] == student.id


def test_sites_routes(app, admin, student):
    client = login(app, student)
    assert len(client.get("/sites").get_json()) == 8
    resp = client.get("/sites/rotation?date=2025-04-15").get_json()
    assert resp["site"]["name"] == "ISPH - Gab. Silang"
    assert client.post("/sites", json={"name": "RHU - Vigan"}).status_code == 403

    client = login(app, admin)
    created = client.post("/sites", json={"name": "RHU - Vigan", "capacity": 3})
    assert created.status_code == 201
    assert client.post("/sites", json={"name": "RHU - Vigan"}).status_code == 409
    site_id = created.get_json()["id"]
    assert client.post(f"/sites/{site_id}/deactivate").status_code == 200
    assert "RHU - Vigan" not in [s["name"] for s in client.get("/sites").get_json()]
