from extensions import db
from models import Chapter, ExamResult, Subject
from blueprints.exams.services import answer_state, exam_percentage
from tests.helpers import make_student


def _exam_payload(world, **extra):
    body = {
        "title": "Unit test 1",
        "class_id": world.class_id,
        "subject_id": world.subject_id,
        "chapter_ids": [world.chapter_id],
        "so_center_ids": [world.center_id],
        "exam_date": "2024-02-10",
        "duration": 60,
        "total_marks": 10,
        "passing_marks": 4,
        "questions": [
            {"question_number": 1, "marks": 6, "question_text": "Solve 2x + 3 = 9"},
            {"question_number": 2, "marks": 4, "question_text": "Ages word problem"},
        ],
    }
    body.update(extra)
    return body


def _create(client, admin_h, world, **extra):
    r = client.post("/api/v1/admin/exams", headers=admin_h, json=_exam_payload(world, **extra))
    assert r.status_code == 201, r.get_json()
    return r.get_json()


def _results(client, headers, eid, *entries):
    return client.post(f"/api/v1/exams/{eid}/results", headers=headers, json={"results": list(entries)})


def test_percentage_and_answer_state():
    assert exam_percentage(6, 10) == 60.0
    assert exam_percentage(1, 3) == 33.33
    assert exam_percentage(5, 0) == 0.0
    assert answer_state(None, 0, 4) == "fully_answered"
    assert answer_state(None, 0, 0) == "not_answered"
    assert answer_state([{"question_number": 1, "marks": 2}, {"question_number": 2, "marks": 0}], 2, 2) == "partially_answered"
    assert answer_state([{"question_number": 1, "marks": 0}], 2, 0) == "not_answered"


def test_admin_creates_exam(client, admin_h, world):
    exam = _create(client, admin_h, world)
    assert exam["total_questions"] == 2
    assert exam["status"] == "scheduled"
    assert exam["so_center_ids"] == [world.center_id]
    assert exam["class_name"] == "Class 8"
    assert [q["question_number"] for q in exam["questions"]] == [1, 2]

    listed = client.get("/api/v1/admin/exams", headers=admin_h).get_json()
    assert listed["meta"]["total"] == 1
    by_center = client.get(f"/api/v1/admin/exams?so_center_id={world.other_center_id}", headers=admin_h).get_json()
    assert by_center["meta"]["total"] == 0


def test_paper_rules(app, client, admin_h, world):
    r = client.post("/api/v1/admin/exams", headers=admin_h, json=_exam_payload(world, total_marks=12))
    assert r.status_code == 400
    assert r.get_json() == {"error": "question_marks_mismatch", "question_total": 10, "total_marks": 12}

    r = client.post("/api/v1/admin/exams", headers=admin_h, json=_exam_payload(world, passing_marks=11, questions=[]))
    assert r.get_json()["error"] == "passing_exceeds_total"

    with app.app_context():
        science = Subject(class_id=world.class_id, name="Science")
        db.session.add(science)
        db.session.flush()
        cells = Chapter(subject_id=science.id, name="Cells")
        db.session.add(cells)
        db.session.commit()
        cells_id = cells.id
    r = client.post("/api/v1/admin/exams", headers=admin_h, json=_exam_payload(world, chapter_ids=[cells_id]))
    assert r.status_code == 400
    assert r.get_json() == {"error": "invalid_chapters", "chapter_ids": [cells_id]}

    r = client.post("/api/v1/admin/exams", headers=admin_h, json=_exam_payload(world, so_center_ids=[999]))
    assert r.get_json()["error"] == "invalid_centers"


def test_update_rechecks_paper(client, admin_h, world):
    eid = _create(client, admin_h, world)["id"]
    r = client.put(f"/api/v1/admin/exams/{eid}", headers=admin_h, json={"total_marks": 20})
    assert r.status_code == 400
    assert r.get_json()["error"] == "question_marks_mismatch"

    r = client.put(f"/api/v1/admin/exams/{eid}", headers=admin_h,
                   json={"title": "Unit test 1 (revised)", "so_center_ids": [world.center_id, world.other_center_id]})
    assert r.status_code == 200
    assert r.get_json()["title"] == "Unit test 1 (revised)"
    assert sorted(r.get_json()["so_center_ids"]) == sorted([world.center_id, world.other_center_id])


def test_centers_see_only_assigned_exams(client, admin_h, center_h, other_center_h, world):
    eid = _create(client, admin_h, world)["id"]
    assert [e["id"] for e in client.get("/api/v1/exams", headers=center_h).get_json()] == [eid]
    assert client.get("/api/v1/exams", headers=other_center_h).get_json() == []

    r = client.get(f"/api/v1/exams/{eid}/questions", headers=other_center_h)
    assert r.status_code == 403
    assert r.get_json()["error"] == "exam_not_assigned"

    questions = client.get(f"/api/v1/exams/{eid}/questions", headers=center_h).get_json()
    assert questions["total_marks"] == 10
    assert len(questions["questions"]) == 2


def test_results_are_upserted_per_student(app, client, admin_h, center_h, world):
    eid = _create(client, admin_h, world)["id"]
    s = make_student(client, center_h, world.class_id)

    r = _results(client, center_h, eid, {"student_id": s["id"], "question_marks": [
        {"question_number": 1, "marks": 6}, {"question_number": 2, "marks": 0}]})
    assert r.status_code == 200
    saved = r.get_json()["results"][0]
    assert saved["marks_obtained"] == 6
    assert saved["percentage"] == 60.0
    assert saved["passed"] is True
    assert saved["answered_questions"] == "partially_answered"

    r = _results(client, center_h, eid, {"student_id": s["id"], "marks_obtained": 3, "remarks": "retest"})
    assert r.get_json()["results"][0]["passed"] is False
    with app.app_context():
        assert ExamResult.query.count() == 1
        assert ExamResult.query.one().question_marks is None

    report = client.get(f"/api/v1/exams/{eid}/results", headers=center_h).get_json()
    assert report["summary"] == {"count": 1, "passed": 0, "failed": 1, "average_percentage": 30.0}

    students = client.get(f"/api/v1/exams/{eid}/students", headers=center_h).get_json()
    assert [(x["id"], x["marks_obtained"]) for x in students] == [(s["id"], 3)]


def test_marks_are_checked_against_the_paper(client, admin_h, center_h, world):
    eid = _create(client, admin_h, world)["id"]
    s = make_student(client, center_h, world.class_id)

    r = _results(client, center_h, eid, {"student_id": s["id"], "question_marks": [{"question_number": 1, "marks": 7}]})
    assert r.status_code == 400
    assert r.get_json()["error"] == "question_marks_exceed"
    assert r.get_json()["max_marks"] == 6

    r = _results(client, center_h, eid, {"student_id": s["id"], "question_marks": [{"question_number": 3, "marks": 1}]})
    assert r.get_json()["error"] == "unknown_questions"

    r = _results(client, center_h, eid, {"student_id": s["id"], "marks_obtained": 11})
    assert r.get_json() == {"error": "marks_exceed_total", "student_id": s["id"], "total_marks": 10}

    r = _results(client, center_h, eid, {"student_id": s["id"]})
    assert r.get_json()["error"] == "marks_required"


def test_results_only_for_own_students(client, admin_h, center_h, other_center_h, world):
    eid = _create(client, admin_h, world)["id"]
    foreign = make_student(client, other_center_h, world.class_id)
    r = _results(client, center_h, eid, {"student_id": foreign["id"], "marks_obtained": 5})
    assert r.status_code == 400
    assert r.get_json() == {"error": "invalid_students", "student_ids": [foreign["id"]]}


def test_completion_locks_results(client, admin_h, center_h, world):
    eid = _create(client, admin_h, world)["id"]
    s = make_student(client, center_h, world.class_id)
    _results(client, center_h, eid, {"student_id": s["id"], "marks_obtained": 8})

    r = client.post(f"/api/v1/exams/{eid}/complete", headers=center_h)
    assert r.status_code == 200
    assert r.get_json()["status"] == "completed"
    assert client.post(f"/api/v1/exams/{eid}/complete", headers=center_h).get_json()["error"] == "already_completed"

    r = _results(client, center_h, eid, {"student_id": s["id"], "marks_obtained": 9})
    assert r.status_code == 409
    assert r.get_json()["error"] == "exam_completed"


def test_cancelled_exam_takes_no_results(client, admin_h, center_h, world):
    eid = _create(client, admin_h, world)["id"]
    client.put(f"/api/v1/admin/exams/{eid}", headers=admin_h, json={"status": "cancelled"})
    s = make_student(client, center_h, world.class_id)
    r = _results(client, center_h, eid, {"student_id": s["id"], "marks_obtained": 5})
    assert r.status_code == 409
    assert r.get_json()["error"] == "exam_cancelled"


def test_delete_exam_drops_results(app, client, admin_h, center_h, world):
    eid = _create(client, admin_h, world)["id"]
    s = make_student(client, center_h, world.class_id)
    _results(client, center_h, eid, {"student_id": s["id"], "marks_obtained": 5})

    assert client.delete(f"/api/v1/admin/exams/{eid}", headers=admin_h).status_code == 200
    assert client.get(f"/api/v1/admin/exams/{eid}", headers=admin_h).status_code == 404
    with app.app_context():
        assert ExamResult.query.count() == 0


def test_center_cannot_manage_exams(client, center_h, world):
    assert client.get("/api/v1/admin/exams", headers=center_h).status_code == 403
    assert client.post("/api/v1/admin/exams", headers=center_h, json=_exam_payload(world)).status_code == 403
