from datetime import date, timedelta


def _create(client, headers, title, **extra):
    today = date.today()
    payload = {"title": title, "description": title, "from_date": today.isoformat(),
               "to_date": (today + timedelta(days=7)).isoformat()}
    payload.update(extra)
    r = client.post("/api/v1/admin/announcements", headers=headers, json=payload)
    return r


def test_audience_and_priority_order(client, admin_h, center_h, teacher_h, agent_h):
    _create(client, admin_h, "For all")
    _create(client, admin_h, "Centers urgent", target_audience="so_centers", priority="urgent")
    _create(client, admin_h, "Teachers", target_audience="teachers", priority="high")
    _create(client, admin_h, "Centers low", target_audience="so_centers", priority="low")

    titles = lambda h: [a["title"] for a in client.get("/api/v1/announcements", headers=h).get_json()["items"]]
    assert titles(center_h) == ["Centers urgent", "For all", "Centers low"]
    assert titles(teacher_h) == ["Teachers", "For all"]
    assert titles(agent_h) == ["For all"]
    assert len(titles(admin_h)) == 4


def test_expired_and_inactive_are_hidden(client, admin_h, center_h):
    past = date.today() - timedelta(days=10)
    _create(client, admin_h, "Old", from_date=past.isoformat(), to_date=(past + timedelta(days=1)).isoformat())
    aid = _create(client, admin_h, "Switched off").get_json()["id"]
    client.put(f"/api/v1/admin/announcements/{aid}", headers=admin_h, json={"is_active": False})
    assert client.get("/api/v1/announcements", headers=center_h).get_json()["items"] == []


def test_invalid_date_range(client, admin_h):
    today = date.today()
    r = _create(client, admin_h, "Backwards", to_date=(today - timedelta(days=1)).isoformat())
    assert r.status_code == 400
    assert r.get_json()["error"] == "invalid_date_range"


def test_admin_crud(client, admin_h, center_h):
    r = _create(client, admin_h, "Hello", priority="high")
    assert r.status_code == 201
    aid = r.get_json()["id"]
    r = client.put(f"/api/v1/admin/announcements/{aid}", headers=admin_h, json={"title": "Hello again"})
    assert r.get_json()["title"] == "Hello again"
    assert client.get("/api/v1/admin/announcements", headers=admin_h).get_json()["meta"]["total"] == 1
    assert client.get("/api/v1/admin/announcements", headers=center_h).status_code == 403
    assert client.delete(f"/api/v1/admin/announcements/{aid}", headers=admin_h).status_code == 200
    assert client.delete(f"/api/v1/admin/announcements/{aid}", headers=admin_h).status_code == 404
