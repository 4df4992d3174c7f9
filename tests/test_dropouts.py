from extensions import db
from models import AuditLog, Student
from tests.helpers import make_student, this_month_day


def _request(client, headers, student_id, reason="Family moved away"):
    return client.post("/api/v1/dropout-requests", headers=headers,
                       json={"student_id": student_id, "reason": reason})


def test_pending_balance_blocks_request(client, center_h, world):
    s = make_student(client, center_h, world.class_id, enrollment_date=this_month_day(1))
    r = _request(client, center_h, s["id"])
    assert r.status_code == 400
    assert r.get_json() == {"error": "pending_balance", "pending_amount": 1500.0}


def test_only_own_students(client, center_h, other_center_h, world):
    s = make_student(client, center_h, world.class_id, course_type="yearly")
    r = _request(client, other_center_h, s["id"])
    assert r.status_code == 403
    assert r.get_json()["error"] == "student_not_in_center"


def test_one_pending_request_per_student(client, center_h, world):
    s = make_student(client, center_h, world.class_id, course_type="yearly")
    assert _request(client, center_h, s["id"]).status_code == 201
    r = _request(client, center_h, s["id"])
    assert r.status_code == 409
    assert r.get_json()["error"] == "request_already_pending"


def test_approval_deactivates_student(app, client, admin_h, center_h, world):
    s = make_student(client, center_h, world.class_id, course_type="yearly")
    rid = _request(client, center_h, s["id"]).get_json()["id"]

    listed = client.get("/api/v1/dropout-requests?status=pending", headers=center_h).get_json()
    assert [i["id"] for i in listed["items"]] == [rid]

    r = client.patch(f"/api/v1/dropout-requests/{rid}", headers=admin_h,
                     json={"status": "approved", "admin_notes": "ok"})
    assert r.status_code == 200
    assert r.get_json()["status"] == "approved"
    with app.app_context():
        assert db.session.get(Student, s["id"]).is_active is False
        assert AuditLog.query.filter_by(entity="dropout_request", action="approved").count() == 1

    r = client.patch(f"/api/v1/dropout-requests/{rid}", headers=admin_h, json={"status": "rejected"})
    assert r.status_code == 409
    assert r.get_json() == {"error": "already_processed", "status": "approved"}

    r = _request(client, center_h, s["id"])
    assert r.get_json()["error"] == "student_inactive"


def test_rejection_keeps_student(app, client, admin_h, center_h, world):
    s = make_student(client, center_h, world.class_id, course_type="yearly")
    rid = _request(client, center_h, s["id"]).get_json()["id"]
    client.patch(f"/api/v1/dropout-requests/{rid}", headers=admin_h, json={"status": "rejected"})
    with app.app_context():
        assert db.session.get(Student, s["id"]).is_active is True


def test_center_cannot_decide(client, center_h, world):
    s = make_student(client, center_h, world.class_id, course_type="yearly")
    rid = _request(client, center_h, s["id"]).get_json()["id"]
    assert client.patch(f"/api/v1/dropout-requests/{rid}", headers=center_h,
                        json={"status": "approved"}).status_code == 403


def test_other_center_does_not_see_requests(client, center_h, other_center_h, world):
    s = make_student(client, center_h, world.class_id, course_type="yearly")
    _request(client, center_h, s["id"])
    assert client.get("/api/v1/dropout-requests", headers=other_center_h).get_json()["meta"]["total"] == 0
