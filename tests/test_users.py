from extensions import db
from models import AuditLog, User


def test_list_users_filters_by_role(client, admin_h):
    r = client.get("/api/v1/admin/users?role=so_center", headers=admin_h)
    assert r.status_code == 200
    data = r.get_json()
    assert data["meta"]["total"] == 2
    assert {u["email"] for u in data["items"]} == {"center@example.com", "center2@example.com"}


def test_create_user_and_duplicate_email(app, client, admin_h):
    payload = {"name": "Staff", "email": "Staff@Example.com", "password": "secret1", "role": "office_staff"}
    r = client.post("/api/v1/admin/users", json=payload, headers=admin_h)
    assert r.status_code == 201
    body = r.get_json()
    assert body["email"] == "staff@example.com"
    assert r.headers["Location"].endswith(f"/admin/users/{body['id']}")

    r = client.post("/api/v1/admin/users", json=payload, headers=admin_h)
    assert r.status_code == 409
    assert r.get_json()["error"] == "email_taken"

    with app.app_context():
        assert AuditLog.query.filter_by(entity="user", action="create").count() == 1


def test_create_user_rejects_unknown_role(client, admin_h):
    r = client.post("/api/v1/admin/users", headers=admin_h,
                    json={"name": "X", "email": "x@example.com", "password": "secret1", "role": "janitor"})
    assert r.status_code == 422


def test_update_user_role_and_password(app, client, admin_h, world):
    r = client.put(f"/api/v1/admin/users/{world.agent_id}", headers=admin_h,
                   json={"role": "marketing_staff", "password": "another1"})
    assert r.status_code == 200
    assert r.get_json()["role"] == "marketing_staff"
    assert app.test_client().post("/api/v1/auth/login", json={
        "email": "agent@example.com", "password": "another1"}).status_code == 200


def test_admin_cannot_deactivate_self(client, admin_h, world):
    r = client.delete(f"/api/v1/admin/users/{world.admin_id}", headers=admin_h)
    assert r.status_code == 400
    assert r.get_json()["error"] == "cannot_deactivate_self"


def test_deactivate_user(app, client, admin_h, world):
    assert client.delete(f"/api/v1/admin/users/{world.agent_id}", headers=admin_h).status_code == 200
    with app.app_context():
        assert db.session.get(User, world.agent_id).is_active is False


def test_get_missing_user(client, admin_h):
    r = client.get("/api/v1/admin/users/9999", headers=admin_h)
    assert r.status_code == 404
    assert r.get_json()["error"] == "user_not_found"


def test_unassigned_managers(client, admin_h):
    r = client.post("/api/v1/admin/users", headers=admin_h,
                    json={"name": "Free", "email": "free@example.com", "password": "secret1", "role": "so_center"})
    assert r.status_code == 201
    items = client.get("/api/v1/admin/users/unassigned-managers", headers=admin_h).get_json()["items"]
    assert [u["email"] for u in items] == ["free@example.com"]
