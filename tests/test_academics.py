import pytest

from tests.helpers import bearer


@pytest.fixture()
def content_h(app, client, admin_h):
    client.post("/api/v1/admin/users", headers=admin_h, json={
        "name": "Content", "email": "content@example.com", "password": "secret1", "role": "academic_admin"})
    return bearer(app, "content@example.com", "secret1")


def test_build_hierarchy(client, content_h):
    r = client.post("/api/v1/classes", headers=content_h, json={"name": "Class 9"})
    assert r.status_code == 201
    class_id = r.get_json()["id"]
    subject_id = client.post("/api/v1/subjects", headers=content_h,
                             json={"class_id": class_id, "name": "Science"}).get_json()["id"]
    chapter_id = client.post("/api/v1/chapters", headers=content_h,
                             json={"subject_id": subject_id, "name": "Atoms", "order_index": 1}).get_json()["id"]
    for i, name in enumerate(["Electrons", "Protons"], start=1):
        r = client.post("/api/v1/topics", headers=content_h,
                        json={"chapter_id": chapter_id, "name": name, "order_index": i})
        assert r.status_code == 201

    tree = client.get(f"/api/v1/classes/{class_id}/tree", headers=content_h).get_json()
    assert tree["name"] == "Class 9"
    chapter = tree["subjects"][0]["chapters"][0]
    assert [t["name"] for t in chapter["topics"]] == ["Electrons", "Protons"]


def test_missing_parent_is_404(client, content_h):
    r = client.post("/api/v1/subjects", headers=content_h, json={"class_id": 999, "name": "Ghost"})
    assert r.status_code == 404
    assert r.get_json()["error"] == "class_not_found"


def test_duplicate_name_under_same_parent(client, content_h, world):
    r = client.post("/api/v1/subjects", headers=content_h, json={"class_id": world.class_id, "name": "mathematics"})
    assert r.status_code == 409
    assert r.get_json()["error"] == "duplicate_name"


def test_delete_with_children_is_refused(client, content_h, world):
    r = client.delete(f"/api/v1/chapters/{world.chapter_id}", headers=content_h)
    assert r.status_code == 409
    assert r.get_json()["error"] == "has_children"


def test_delete_leaf_topic(client, content_h, world):
    tid = world.topic_ids[1]
    assert client.delete(f"/api/v1/topics/{tid}", headers=content_h).status_code == 200
    assert client.get(f"/api/v1/topics/{tid}", headers=content_h).status_code == 404


def test_list_filters_by_parent(client, center_h, world):
    data = client.get(f"/api/v1/topics?chapter_id={world.chapter_id}", headers=center_h).get_json()
    assert [t["name"] for t in data["items"]] == ["One variable", "Word problems"]


def test_update_and_flags(client, content_h, world):
    tid = world.topic_ids[0]
    r = client.put(f"/api/v1/topics/{tid}", headers=content_h, json={"name": "Single variable"})
    assert r.get_json()["name"] == "Single variable"
    r = client.patch(f"/api/v1/topics/{tid}/flags", headers=content_h, json={"is_important": True})
    assert r.status_code == 200
    assert r.get_json()["is_important"] is True
    assert r.get_json()["is_moderate"] is False


def test_center_manager_cannot_edit_content(client, center_h, world):
    r = client.post("/api/v1/classes", headers=center_h, json={"name": "Class 10"})
    assert r.status_code == 403


def test_admin_passes_content_checks(client, admin_h):
    assert client.post("/api/v1/classes", headers=admin_h, json={"name": "Class 10"}).status_code == 201
