from datetime import date, timedelta

import pytest

from tests.helpers import make_student


@pytest.fixture()
def student(client, center_h, world):
    return make_student(client, center_h, world.class_id)


def _complete(client, headers, student_id, topic_id, **extra):
    return client.post("/api/v1/progress/topics/complete", headers=headers,
                       json={"student_id": student_id, "topic_id": topic_id, **extra})


def test_complete_topic_once(client, teacher_h, world, student):
    tid = world.topic_ids[0]
    r = _complete(client, teacher_h, student["id"], tid, teacher_feedback="Good")
    assert r.status_code == 200
    assert r.get_json()["status"] == "learned"
    assert r.get_json()["completed_date"] == date.today().isoformat()

    r = _complete(client, teacher_h, student["id"], tid)
    assert r.status_code == 400
    assert r.get_json() == {"error": "already_completed", "completed_date": date.today().isoformat()}


def test_reset_topic(client, center_h, world, student):
    tid = world.topic_ids[0]
    r = client.post("/api/v1/progress/topics/reset", headers=center_h,
                    json={"student_id": student["id"], "topic_id": tid})
    assert r.status_code == 404
    assert r.get_json()["error"] == "progress_not_found"

    _complete(client, center_h, student["id"], tid)
    r = client.post("/api/v1/progress/topics/reset", headers=center_h,
                    json={"student_id": student["id"], "topic_id": tid})
    assert r.get_json()["status"] == "pending"
    assert _complete(client, center_h, student["id"], tid).status_code == 200


def test_unknown_topic(client, center_h, student):
    r = _complete(client, center_h, student["id"], 999)
    assert r.status_code == 404
    assert r.get_json()["error"] == "topic_not_found"


def test_topics_status_and_subject_percentage(client, center_h, world, student):
    t1, t2 = world.topic_ids
    _complete(client, center_h, student["id"], t1)
    data = client.get(f"/api/v1/progress/topics/status?student_id={student['id']}&chapter_id={world.chapter_id}",
                      headers=center_h).get_json()
    assert data["completed"] == [t1]
    assert data["remaining"] == [t2]
    assert data["total"] == 2

    summary = client.get(f"/api/v1/progress/students/{student['id']}", headers=center_h).get_json()
    assert summary["subjects"] == [{
        "subject_id": world.subject_id, "name": "Mathematics",
        "total_topics": 2, "completed_topics": 1, "percentage": 50.0,
    }]


def test_homework_upsert_by_date(client, center_h, student):
    day = "2024-02-05"
    body = {"activities": [{"student_id": student["id"], "date": day, "status": "not_completed", "reason": "sick"}]}
    assert client.post("/api/v1/progress/homework", headers=center_h, json=body).get_json() == {"count": 1}
    body["activities"][0].update(status="completed", completion_type="self", reason=None)
    client.post("/api/v1/progress/homework", headers=center_h, json=body)

    items = client.get(f"/api/v1/progress/homework?student_id={student['id']}&month=2024-02",
                       headers=center_h).get_json()["items"]
    assert items == [{"date": day, "status": "completed", "completion_type": "self", "reason": None}]


def test_homework_in_future_is_rejected(client, center_h, student):
    tomorrow = (date.today() + timedelta(days=1)).isoformat()
    r = client.post("/api/v1/progress/homework", headers=center_h, json={
        "activities": [{"student_id": student["id"], "date": tomorrow, "status": "completed"}]})
    assert r.status_code == 422


def test_agent_cannot_track_progress(client, agent_h, world, student):
    assert _complete(client, agent_h, student["id"], world.topic_ids[0]).status_code == 403


def test_public_progress_by_qr_code(client, admin_h, center_h, world, student):
    _complete(client, center_h, student["id"], world.topic_ids[0])
    today = date.today().isoformat()
    client.post("/api/v1/admin/announcements", headers=admin_h, json={
        "title": "Exams", "description": "Exams next week", "from_date": today, "to_date": today,
        "show_on_qr_code": True})
    client.post("/api/v1/admin/announcements", headers=admin_h, json={
        "title": "Internal", "description": "Staff only", "from_date": today, "to_date": today})

    r = client.get(f"/api/v1/public/progress/{student['qr_code']}")
    assert r.status_code == 200
    data = r.get_json()
    assert data["student"]["student_code"] == student["student_code"]
    assert data["subjects"][0]["completed_topics"] == 1
    assert data["attendance"]["percentage"] == 0.0
    assert [a["title"] for a in data["announcements"]] == ["Exams"]
    assert "qr_code" not in data["student"]


def test_public_progress_unknown_code(client, world):
    assert client.get("/api/v1/public/progress/nope").status_code == 404
