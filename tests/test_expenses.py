from extensions import db
from models import AuditLog, CenterExpense
from tests.helpers import make_student, this_month_day


def _request(client, headers, **extra):
    body = {"expense_type": "rent", "amount": 4000, "description": "February rent"}
    body.update(extra)
    return client.post("/api/v1/expenses", headers=headers, json=body)


def _decide(client, admin_h, xid, action, notes=None):
    return client.post(f"/api/v1/admin/expenses/{xid}/decision", headers=admin_h,
                       json={"action": action, "admin_notes": notes})


def test_center_requests_expense(client, center_h, other_center_h, world):
    r = _request(client, center_h)
    assert r.status_code == 201
    body = r.get_json()
    assert body["status"] == "pending"
    assert body["amount"] == 4000.0
    assert body["center_code"] == "NNASOC00001"

    assert client.get("/api/v1/expenses", headers=center_h).get_json()["meta"]["total"] == 1
    assert client.get("/api/v1/expenses", headers=other_center_h).get_json()["meta"]["total"] == 0


def test_bill_details_required(client, center_h, world):
    r = _request(client, center_h, expense_type="electric_bill", amount=900)
    assert r.status_code == 422
    assert _request(client, center_h, expense_type="electric_bill", amount=900,
                    electric_bill_number="EB-4411").status_code == 201
    assert _request(client, center_h, expense_type="others", amount=300).status_code == 422
    assert _request(client, center_h, amount=0).status_code == 422


def test_approve_then_pay(app, client, admin_h, center_h, world):
    xid = _request(client, center_h).get_json()["id"]

    r = client.post(f"/api/v1/expenses/{xid}/pay", headers=center_h, json={"payment_method": "upi"})
    assert r.status_code == 409
    assert r.get_json() == {"error": "not_approved", "status": "pending"}

    r = _decide(client, admin_h, xid, "approve", "ok for February")
    assert r.status_code == 200
    assert r.get_json()["status"] == "approved"
    assert r.get_json()["approver_name"] == "Admin"

    r = _decide(client, admin_h, xid, "reject")
    assert r.status_code == 409
    assert r.get_json() == {"error": "already_processed", "status": "approved"}

    r = client.post(f"/api/v1/expenses/{xid}/pay", headers=center_h,
                    json={"payment_method": "upi", "payment_reference": "UPI-778"})
    assert r.status_code == 200
    paid = r.get_json()
    assert paid["status"] == "paid"
    assert paid["transaction_id"].startswith("EXP")
    assert paid["payment_reference"] == "UPI-778"
    with app.app_context():
        assert AuditLog.query.filter_by(entity="expense", action="pay").count() == 1


def test_rejected_expense_cannot_be_paid(client, admin_h, center_h, world):
    xid = _request(client, center_h).get_json()["id"]
    assert _decide(client, admin_h, xid, "reject", "duplicate").get_json()["status"] == "rejected"
    r = client.post(f"/api/v1/expenses/{xid}/pay", headers=center_h, json={"payment_method": "cash"})
    assert r.status_code == 409


def test_other_center_cannot_pay(client, admin_h, center_h, other_center_h, world):
    xid = _request(client, center_h).get_json()["id"]
    _decide(client, admin_h, xid, "approve")
    r = client.post(f"/api/v1/expenses/{xid}/pay", headers=other_center_h, json={"payment_method": "cash"})
    assert r.status_code == 403
    assert r.get_json()["error"] == "expense_not_in_center"


def test_expense_wallet(client, admin_h, center_h, world):
    s = make_student(client, center_h, world.class_id, enrollment_date=this_month_day(1))
    client.post("/api/v1/payments/process", headers=center_h, json={
        "student_id": s["id"], "amount": 1500, "receipt_number": "R-9", "fee_type": "monthly"})

    paid_id = _request(client, center_h, amount=600).get_json()["id"]
    _decide(client, admin_h, paid_id, "approve")
    client.post(f"/api/v1/expenses/{paid_id}/pay", headers=center_h, json={"payment_method": "cash"})
    _request(client, center_h, amount=200)

    wallet = client.get("/api/v1/expenses/wallet", headers=center_h).get_json()
    assert wallet == {"so_center_id": world.center_id, "total_collections": 1500.0,
                      "total_expenses": 600.0, "remaining_balance": 900.0}

    assert client.get("/api/v1/expenses/wallet", headers=admin_h).get_json()["error"] == "so_center_required"


def test_admin_listing_history_and_stats(app, client, admin_h, center_h, other_center_h, world):
    a = _request(client, center_h, amount=100).get_json()["id"]
    b = _request(client, center_h, amount=250).get_json()["id"]
    _request(client, other_center_h, amount=75)
    _decide(client, admin_h, a, "approve")
    client.post(f"/api/v1/expenses/{a}/pay", headers=center_h, json={"payment_method": "cash"})
    _decide(client, admin_h, b, "reject")

    assert client.get("/api/v1/expenses?status=pending", headers=admin_h).get_json()["meta"]["total"] == 1
    assert client.get("/api/v1/expenses?q=NNASOC00002", headers=admin_h).get_json()["meta"]["total"] == 1
    history = client.get("/api/v1/admin/expenses/history", headers=admin_h).get_json()
    assert {i["id"] for i in history["items"]} == {a, b}

    stats = client.get("/api/v1/admin/expenses/stats", headers=admin_h).get_json()
    assert stats == {"total_pending": 1, "total_approved": 0, "total_rejected": 1,
                     "total_paid": 1, "total_paid_amount": 100.0}
    with app.app_context():
        assert CenterExpense.query.count() == 3


def test_center_cannot_decide(client, center_h, world):
    xid = _request(client, center_h).get_json()["id"]
    assert _decide(client, center_h, xid, "approve").status_code == 403
    assert client.get("/api/v1/admin/expenses/stats", headers=center_h).status_code == 403
