from datetime import date

PASSWORD = "pass123"


def bearer(app, email: str, password: str = PASSWORD) -> dict:
    # separate client: the login session cookie must not leak into the caller's client
    r = app.test_client().post("/api/v1/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.get_json()
    return {"Authorization": f"Bearer {r.get_json()['token']}"}


def make_student(client, headers, class_id, **extra) -> dict:
    payload = {"name": "Test Student", "class_id": class_id, "parent_phone": "9876543210"}
    payload.update(extra)
    r = client.post("/api/v1/students", json=payload, headers=headers)
    assert r.status_code == 201, r.get_json()
    return r.get_json()


def this_month_day(day: int) -> str:
    return date.today().replace(day=day).isoformat()
