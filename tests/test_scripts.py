from datetime import date
from decimal import Decimal

from extensions import db
import seed
from models import Attendance, Exam, Student, User
from scripts import clean_inactive, run_monthly_fees
from tests.helpers import make_student, this_month_day


def test_clean_inactive_dry_run_then_apply(app, client, center_h, world):
    gone = make_student(client, center_h, world.class_id, name="Gone")
    kept = make_student(client, center_h, world.class_id, name="Kept")
    for sid in (gone["id"], kept["id"]):
        client.post("/api/v1/attendance/submit", headers=center_h, json={
            "date": "2023-01-10", "class_id": world.class_id,
            "records": [{"student_id": sid, "status": "present"}]})
    client.delete(f"/api/v1/students/{gone['id']}", headers=center_h)

    with app.app_context():
        counts = clean_inactive.clean(days=30, dry_run=True, today=date(2024, 1, 1))
        assert counts == {"students": 1, "attendance": 1, "topic_progress": 0, "homework": 0}
        assert Attendance.query.count() == 2
        # recent attendance keeps an inactive student out of the clean-up
        assert clean_inactive.stale_student_ids(days=30, today=date(2023, 1, 20)) == []

        clean_inactive.clean(days=30, today=date(2024, 1, 1))
        assert [a.student_id for a in Attendance.query.all()] == [kept["id"]]


def test_run_monthly_fees_script(app, client, center_h, world, monkeypatch, capsys):
    s = make_student(client, center_h, world.class_id, enrollment_date=this_month_day(1))
    monkeypatch.setattr(run_monthly_fees, "create_app", lambda name=None: app)

    preview = run_monthly_fees.main(["--preview"])
    assert preview["students_to_update"] == 1
    assert '"students_to_update": 1' in capsys.readouterr().out

    result = run_monthly_fees.main([])
    assert result["students_updated"] == 1
    with app.app_context():
        assert db.session.get(Student, s["id"]).pending_amount == Decimal("2500.00")


def test_full_seed_is_idempotent(app):
    with app.app_context():
        seed.full_seed()
        seed.full_seed()
        assert User.query.filter_by(email=seed.ADMIN_EMAIL).count() == 1
        assert Student.query.count() == 3
        exam = Exam.query.one()
        assert [c.center_code for c in exam.centers] == ["NNASOC00001"]
        assert exam.total_marks == sum(q["marks"] for q in exam.questions)
