import io
from datetime import date

from extensions import db
from models import Student
from tests.helpers import make_student, this_month_day


def test_student_codes_are_per_center(client, center_h, other_center_h, world):
    a = make_student(client, center_h, world.class_id)
    b = make_student(client, center_h, world.class_id, name="Second")
    c = make_student(client, other_center_h, world.class_id)
    assert a["student_code"] == "NNASOC00001-0001"
    assert b["student_code"] == "NNASOC00001-0002"
    assert c["student_code"] == "NNASOC00002-0001"
    assert a["qr_code"] and a["qr_code"] != b["qr_code"]
    assert a["so_center_id"] == world.center_id


def test_enrollment_date_defaults_to_today(client, center_h, world):
    s = make_student(client, center_h, world.class_id)
    assert s["enrollment_date"] == date.today().isoformat()


def test_admin_must_name_a_center(client, admin_h, world):
    r = client.post("/api/v1/students", headers=admin_h,
                    json={"name": "X", "class_id": world.class_id, "parent_phone": "9876543210"})
    assert r.status_code == 400
    assert r.get_json()["error"] == "so_center_required"
    s = make_student(client, admin_h, world.class_id, so_center_id=world.other_center_id)
    assert s["so_center_id"] == world.other_center_id


def test_manager_cannot_enroll_into_other_center(client, center_h, world):
    r = client.post("/api/v1/students", headers=center_h, json={
        "name": "X", "class_id": world.class_id, "parent_phone": "9876543210",
        "so_center_id": world.other_center_id})
    assert r.status_code == 403
    assert r.get_json()["error"] == "center_forbidden"


def test_invalid_phone_and_aadhar(client, center_h, world):
    r = client.post("/api/v1/students", headers=center_h,
                    json={"name": "X", "class_id": world.class_id, "parent_phone": "12ab"})
    assert r.status_code == 422
    r = client.post("/api/v1/students", headers=center_h, json={
        "name": "X", "class_id": world.class_id, "parent_phone": "9876543210", "aadhar_number": "1234"})
    assert r.status_code == 422


def test_unknown_class(client, center_h, world):
    r = client.post("/api/v1/students", headers=center_h,
                    json={"name": "X", "class_id": 999, "parent_phone": "9876543210"})
    assert r.status_code == 404
    assert r.get_json()["error"] == "class_not_found"


def test_aadhar_uniqueness(client, center_h, world):
    make_student(client, center_h, world.class_id, aadhar_number="1234 5678 9012")
    r = client.post("/api/v1/students/validate-aadhar", headers=center_h, json={"aadhar_number": "123456789012"})
    assert r.get_json() == {"unique": False}
    r = client.post("/api/v1/students/validate-aadhar", headers=center_h, json={"aadhar_number": "111122223333"})
    assert r.get_json() == {"unique": True}

    r = client.post("/api/v1/students", headers=center_h, json={
        "name": "Copy", "class_id": world.class_id, "parent_phone": "9876543210", "aadhar_number": "123456789012"})
    assert r.status_code == 409
    assert r.get_json()["error"] == "aadhar_taken"


def test_list_is_scoped_to_center(client, center_h, other_center_h, admin_h, world):
    make_student(client, center_h, world.class_id, name="Mine")
    make_student(client, other_center_h, world.class_id, name="Theirs")
    mine = client.get("/api/v1/students", headers=center_h).get_json()
    assert [s["name"] for s in mine["items"]] == ["Mine"]
    everyone = client.get("/api/v1/students", headers=admin_h).get_json()
    assert everyone["meta"]["total"] == 2
    found = client.get("/api/v1/students?q=thei", headers=admin_h).get_json()
    assert [s["name"] for s in found["items"]] == ["Theirs"]


def test_other_center_student_is_forbidden(client, center_h, other_center_h, world):
    s = make_student(client, center_h, world.class_id)
    r = client.get(f"/api/v1/students/{s['id']}", headers=other_center_h)
    assert r.status_code == 403
    assert r.get_json()["error"] == "student_not_in_center"


def test_update_and_deactivate(app, client, center_h, world):
    s = make_student(client, center_h, world.class_id)
    r = client.put(f"/api/v1/students/{s['id']}", headers=center_h, json={"name": "Renamed", "father_name": "Dad"})
    assert r.status_code == 200
    assert r.get_json()["name"] == "Renamed"
    assert r.get_json()["father_name"] == "Dad"
    assert client.delete(f"/api/v1/students/{s['id']}", headers=center_h).status_code == 200
    with app.app_context():
        assert db.session.get(Student, s["id"]).is_active is False


def test_agent_cannot_manage_students(client, agent_h, world):
    assert client.get("/api/v1/students", headers=agent_h).status_code == 403


def test_import_csv(app, client, center_h, world):
    csv_text = (
        "student_name;class;phone;aadhar\n"
        "Asha;Class 8;9876543210;123412341234\n"
        "Ravi;Class 99;9876543211;\n"
        "Meera;class 8;bad-phone;\n"
        "Dup;Class 8;9876543212;123412341234\n"
    )
    r = client.post("/api/v1/students/import", headers=center_h,
                    data={"file": (io.BytesIO(csv_text.encode()), "students.csv")},
                    content_type="multipart/form-data")
    assert r.status_code == 200
    result = r.get_json()
    assert result["created"] == 1
    errors = {e["row"]: e["error"] for e in result["errors"]}
    assert errors == {3: "unknown_class", 4: "validation_error", 5: "aadhar_taken"}
    with app.app_context():
        assert Student.query.count() == 1


def test_import_requires_columns(client, center_h, world):
    r = client.post("/api/v1/students/import", headers=center_h,
                    data="name,phone\nA,9876543210\n", content_type="text/csv")
    assert r.status_code == 400
    assert r.get_json() == {"error": "missing_columns", "columns": ["class"]}


def test_balance_dues(client, center_h, world):
    make_student(client, center_h, world.class_id, name="Owes", enrollment_date=this_month_day(1))
    make_student(client, center_h, world.class_id, name="Clean", course_type="yearly")
    data = client.get("/api/v1/students/balance-dues", headers=center_h).get_json()
    assert data["count"] == 1
    assert data["items"][0]["name"] == "Owes"
