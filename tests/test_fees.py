from datetime import date
from decimal import Decimal

from extensions import db
from models import Student
from blueprints.fees.services import calculate_retroactive_fees
from tests.helpers import make_student, this_month_day

FEE = Decimal("1000")
ADM = Decimal("500")


def test_enrolled_early_in_month_pays_full_month():
    calc = calculate_retroactive_fees(date(2024, 3, 5), FEE, ADM, today=date(2024, 3, 28))
    assert calc.total_monthly_fees == Decimal("1000.00")
    assert calc.total_due == Decimal("1500.00")
    assert calc.monthly_breakdown[0].month == "March"


def test_enrolled_mid_month_pays_half():
    calc = calculate_retroactive_fees(date(2024, 3, 15), FEE, ADM, today=date(2024, 3, 28))
    assert calc.total_monthly_fees == Decimal("500.00")


def test_enrolled_late_in_month_pays_nothing_for_it():
    calc = calculate_retroactive_fees(date(2024, 3, 25), FEE, ADM, admission_fee_paid=True, today=date(2024, 3, 28))
    assert calc.total_due == Decimal("0.00")
    assert calc.admission_fee == Decimal("0.00")


def test_day_thresholds_are_inclusive():
    assert calculate_retroactive_fees(date(2024, 3, 10), FEE, 0, today=date(2024, 3, 31)).total_due == 1000
    assert calculate_retroactive_fees(date(2024, 3, 20), FEE, 0, today=date(2024, 3, 31)).total_due == 500
    assert calculate_retroactive_fees(date(2024, 3, 21), FEE, 0, today=date(2024, 3, 31)).total_due == 0


def test_retroactive_months_across_year_end():
    calc = calculate_retroactive_fees(date(2023, 11, 18), FEE, ADM, today=date(2024, 2, 3))
    months = [(r.month, r.year) for r in calc.monthly_breakdown]
    assert months == [("November", 2023), ("December", 2023), ("January", 2024), ("February", 2024)]
    assert calc.total_monthly_fees == Decimal("3500.00")
    assert calc.total_due == Decimal("4000.00")


def test_future_enrollment_has_no_monthly_charges():
    calc = calculate_retroactive_fees(date(2024, 5, 1), FEE, ADM, today=date(2024, 3, 1))
    assert calc.monthly_breakdown == []
    assert calc.total_due == Decimal("500.00")


def test_new_student_gets_dues(client, center_h, world):
    s = make_student(client, center_h, world.class_id, enrollment_date=this_month_day(1))
    assert s["total_fee_amount"] == 1500.0
    assert s["pending_amount"] == 1500.0
    assert s["payment_status"] == "pending"


def test_student_without_fee_structure_starts_clean(client, center_h, world):
    s = make_student(client, center_h, world.class_id, course_type="yearly")
    assert s["pending_amount"] == 0.0
    assert s["payment_status"] == "paid"


def test_class_fee_crud(client, admin_h, center_h, world):
    r = client.post("/api/v1/admin/class-fees", headers=admin_h,
                    json={"class_id": world.class_id, "course_type": "monthly", "monthly_fee": 10})
    assert r.status_code == 409
    assert r.get_json()["error"] == "fee_structure_exists"

    r = client.post("/api/v1/admin/class-fees", headers=admin_h,
                    json={"class_id": world.class_id, "course_type": "yearly",
                          "admission_fee": 500, "monthly_fee": 900, "yearly_fee": 10000})
    assert r.status_code == 201
    fee_id = r.get_json()["id"]

    items = client.get(f"/api/v1/admin/class-fees?class_id={world.class_id}", headers=center_h).get_json()["items"]
    assert {i["course_type"] for i in items} == {"monthly", "yearly"}

    r = client.put(f"/api/v1/admin/class-fees/{fee_id}", headers=admin_h, json={"monthly_fee": 950})
    assert r.get_json()["monthly_fee"] == 950.0
    assert client.post("/api/v1/admin/class-fees", headers=center_h,
                       json={"class_id": world.class_id}).status_code == 403
    assert client.delete(f"/api/v1/admin/class-fees/{fee_id}", headers=admin_h).status_code == 200


def test_recalculate_fees(app, client, center_h, world):
    s = make_student(client, center_h, world.class_id, enrollment_date=this_month_day(1), admission_fee_paid=True)
    with app.app_context():
        db.session.get(Student, s["id"]).pending_amount = Decimal("1")
        db.session.commit()
    r = client.post(f"/api/v1/students/{s['id']}/recalculate-fees", headers=center_h)
    assert r.status_code == 200
    body = r.get_json()
    assert body["calculation"]["total_due"] == 1000.0
    assert body["calculation"]["admission_fee"] == 0.0
    with app.app_context():
        assert db.session.get(Student, s["id"]).pending_amount == Decimal("1000.00")


def test_recalculate_requires_fee_structure(client, center_h, world):
    s = make_student(client, center_h, world.class_id, course_type="yearly")
    r = client.post(f"/api/v1/students/{s['id']}/recalculate-fees", headers=center_h)
    assert r.status_code == 400
    assert r.get_json()["error"] == "no_fee_structure"


def test_recalculate_other_center_student(client, center_h, other_center_h, world):
    s = make_student(client, center_h, world.class_id)
    r = client.post(f"/api/v1/students/{s['id']}/recalculate-fees", headers=other_center_h)
    assert r.status_code == 403


def test_monthly_fees_preview_then_run(app, client, admin_h, center_h, world):
    a = make_student(client, center_h, world.class_id, enrollment_date=this_month_day(1))
    make_student(client, center_h, world.class_id, name="Yearly Kid", course_type="yearly")

    preview = client.get("/api/v1/admin/monthly-fees/preview", headers=admin_h).get_json()
    assert preview["students_to_update"] == 1
    assert preview["skipped"] == 1
    assert preview["total_fees_to_add"] == 1000.0
    assert preview["student_details"][0]["new_pending"] == 2500.0
    with app.app_context():
        assert db.session.get(Student, a["id"]).pending_amount == Decimal("1500.00")

    r = client.post("/api/v1/admin/monthly-fees/run", headers=admin_h)
    assert r.get_json() == {"students_updated": 1, "total_fees_added": 1000.0, "skipped": 1}
    with app.app_context():
        s = db.session.get(Student, a["id"])
        assert s.pending_amount == Decimal("2500.00")
        assert s.total_fee_amount == Decimal("2500.00")
