from extensions import db
from models import User
from tests.helpers import PASSWORD, bearer


def test_login_returns_token_and_user(client, world):
    r = client.post("/api/v1/auth/login", json={"email": "ADMIN@example.com", "password": PASSWORD})
    assert r.status_code == 200
    data = r.get_json()
    assert data["ok"] is True
    assert data["token"]
    assert data["user"]["role"] == "admin"
    assert "password_hash" not in data["user"]


def test_login_missing_fields(client, world):
    r = client.post("/api/v1/auth/login", json={"email": "admin@example.com"})
    assert r.status_code == 400
    assert r.get_json()["error"] == "missing_credentials"


def test_login_wrong_password(client, world):
    r = client.post("/api/v1/auth/login", json={"email": "admin@example.com", "password": "nope"})
    assert r.status_code == 401
    assert r.get_json()["error"] == "invalid_credentials"


def test_login_inactive_user(app, client, world):
    with app.app_context():
        db.session.get(User, world.agent_id).is_active = False
        db.session.commit()
    r = client.post("/api/v1/auth/login", json={"email": "agent@example.com", "password": PASSWORD})
    assert r.status_code == 403
    assert r.get_json()["error"] == "inactive"


def test_rate_limit_counts_failures_only(app, client, world):
    app.config["AUTH_RL_MAX"] = 3
    for _ in range(3):
        r = client.post("/api/v1/auth/login", json={"email": "admin@example.com", "password": "bad"})
        assert r.status_code == 401
    r = client.post("/api/v1/auth/login", json={"email": "admin@example.com", "password": PASSWORD})
    assert r.status_code == 429
    assert r.get_json()["error"] == "too_many_attempts"


def test_successful_login_resets_failures(app, world):
    app.config["AUTH_RL_MAX"] = 2
    c = app.test_client()
    c.post("/api/v1/auth/login", json={"email": "admin@example.com", "password": "bad"})
    assert c.post("/api/v1/auth/login", json={"email": "admin@example.com", "password": PASSWORD}).status_code == 200
    c.post("/api/v1/auth/login", json={"email": "admin@example.com", "password": "bad"})
    assert c.post("/api/v1/auth/login", json={"email": "admin@example.com", "password": PASSWORD}).status_code == 200


def test_me_requires_auth(client, world):
    r = client.get("/api/v1/auth/me")
    assert r.status_code == 401
    assert r.get_json() == {"error": "unauthorized"}


def test_bad_bearer_token_is_unauthorized(client, world):
    r = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer garbage"})
    assert r.status_code == 401


def test_me_for_center_manager(client, center_h, world):
    r = client.get("/api/v1/auth/me", headers=center_h)
    assert r.status_code == 200
    data = r.get_json()
    assert data["role"] == "so_center"
    assert data["so_center"]["center_code"] == "NNASOC00001"
    assert data["teacher_id"] is None


def test_me_for_teacher(client, teacher_h, world):
    data = client.get("/api/v1/auth/me", headers=teacher_h).get_json()
    assert data["teacher_id"] == world.teacher_id
    assert data["so_center"] is None


def test_token_of_deactivated_user_is_rejected(app, client, agent_h, world):
    with app.app_context():
        db.session.get(User, world.agent_id).is_active = False
        db.session.commit()
    assert client.get("/api/v1/auth/me", headers=agent_h).status_code == 401


def test_role_check_forbids_other_roles(client, agent_h):
    r = client.get("/api/v1/admin/users", headers=agent_h)
    assert r.status_code == 403
    assert r.get_json()["error"] == "forbidden"


def test_change_password_flow(app, client, agent_h):
    r = client.post("/api/v1/auth/change-password", headers=agent_h,
                    json={"current_password": "wrong", "new_password": "secret99"})
    assert r.status_code == 400
    assert r.get_json()["error"] == "wrong_password"

    r = client.post("/api/v1/auth/change-password", headers=agent_h,
                    json={"current_password": PASSWORD, "new_password": PASSWORD})
    assert r.get_json()["error"] == "password_unchanged"

    r = client.post("/api/v1/auth/change-password", headers=agent_h,
                    json={"current_password": PASSWORD, "new_password": "secret99"})
    assert r.status_code == 200
    assert bearer(app, "agent@example.com", "secret99")


def test_session_login_and_logout(client, world):
    client.post("/api/v1/auth/login", json={"email": "admin@example.com", "password": PASSWORD})
    assert client.get("/api/v1/auth/me").status_code == 200
    assert client.post("/api/v1/auth/logout").status_code == 200
    assert client.get("/api/v1/auth/me").status_code == 401


def test_csrf_required_for_cookie_sessions(app, client, world):
    app.config["API_CSRF_ENABLED"] = True
    client.post("/api/v1/auth/login", json={"email": "admin@example.com", "password": PASSWORD})

    r = client.post("/api/v1/auth/logout")
    assert r.status_code == 400
    assert "CSRF" in r.get_json()["detail"]

    token = client.get("/api/v1/csrf").get_json()["csrf"]
    r = client.post("/api/v1/auth/logout", headers={"X-CSRF-Token": token})
    assert r.status_code == 200


def test_bearer_requests_skip_csrf(app, client, admin_h):
    app.config["API_CSRF_ENABLED"] = True
    r = client.post("/api/v1/admin/users", headers=admin_h,
                    json={"name": "Office", "email": "office@example.com", "password": "secret1", "role": "office_staff"})
    assert r.status_code == 201
