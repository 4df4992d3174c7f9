from decimal import Decimal

import pytest

from extensions import db
from models import AdminNotification, Wallet, WalletTransaction
from blueprints.wallet.services import commission_for


@pytest.fixture()
def product_id(client, admin_h):
    r = client.post("/api/v1/admin/products", headers=admin_h, json={
        "name": "Foundation Course", "price": 12000, "commission_percentage": 12.5})
    assert r.status_code == 201
    return r.get_json()["id"]


def _buy(client, headers, product_id, name="Kiran"):
    return client.post("/api/v1/products/purchase", headers=headers, json={
        "product_id": product_id, "student_name": name, "student_class": "Class 8", "mobile_number": "9876543210"})


def test_commission_rounding():
    assert commission_for(Decimal("999"), Decimal("12.5")) == Decimal("124.88")
    assert commission_for(Decimal("1000"), Decimal("0")) == Decimal("0.00")


def test_new_wallet_is_empty(client, agent_h):
    data = client.get("/api/v1/wallet/balance", headers=agent_h).get_json()
    assert data["commission_wallet_balance"] == 0.0
    assert data["course_wallet_balance"] == 0.0


def test_purchase_credits_commission(app, client, agent_h, product_id):
    r = _buy(client, agent_h, product_id)
    assert r.status_code == 201
    body = r.get_json()
    assert body["invoice"]["commission_amount"] == 1500.0
    assert body["wallet"]["commission_wallet_balance"] == 1500.0
    assert body["wallet"]["course_wallet_balance"] == 12000.0
    assert body["wallet"]["total_earnings"] == 1500.0

    txs = client.get("/api/v1/wallet/transactions", headers=agent_h).get_json()["items"]
    assert {t["type"] for t in txs} == {"course_purchase", "commission_earned"}
    txn = body["invoice"]["transaction_id"]
    assert {t["transaction_id"] for t in txs} == {f"{txn}-C", f"{txn}-M"}
    with app.app_context():
        n = AdminNotification.query.one()
        assert n.type == "course_purchase"
        assert n.data["transaction_id"] == txn


def test_inactive_product_cannot_be_sold(client, admin_h, agent_h, product_id):
    client.delete(f"/api/v1/admin/products/{product_id}", headers=admin_h)
    assert client.get("/api/v1/products", headers=agent_h).get_json()["items"] == []
    r = _buy(client, agent_h, product_id)
    assert r.status_code == 404
    assert r.get_json()["error"] == "product_not_found"


def test_duplicate_product_name(client, admin_h, product_id):
    r = client.post("/api/v1/admin/products", headers=admin_h, json={"name": "foundation course", "price": 1})
    assert r.status_code == 409


def test_withdrawal_rules(client, agent_h, product_id):
    _buy(client, agent_h, product_id)

    r = client.post("/api/v1/wallet/withdraw", headers=agent_h, json={"amount": 999})
    assert r.status_code == 400
    assert r.get_json() == {"error": "minimum_withdrawal", "minimum_amount": 1000.0}

    r = client.post("/api/v1/wallet/withdraw", headers=agent_h, json={"amount": 1600})
    assert r.get_json() == {"error": "insufficient_balance", "available_balance": 1500.0}

    r = client.post("/api/v1/wallet/withdraw", headers=agent_h, json={"amount": 1000})
    assert r.status_code == 201
    assert r.get_json()["withdrawal_id"].startswith("WDR")
    assert r.get_json()["status"] == "pending"

    # the pending request is held back from the available balance
    r = client.post("/api/v1/wallet/withdraw", headers=agent_h, json={"amount": 1000})
    assert r.get_json() == {"error": "insufficient_balance", "available_balance": 500.0}


def test_approve_withdrawal(app, client, admin_h, agent_h, product_id, world):
    _buy(client, agent_h, product_id)
    rid = client.post("/api/v1/wallet/withdraw", headers=agent_h, json={"amount": 1000}).get_json()["id"]

    pending = client.get("/api/v1/admin/withdrawal-requests?status=pending", headers=admin_h).get_json()
    assert [r["id"] for r in pending["items"]] == [rid]

    r = client.post(f"/api/v1/admin/withdrawal-requests/{rid}/approve", headers=admin_h,
                    json={"payment_mode": "upi", "payment_details": "agent@upi"})
    assert r.status_code == 200
    assert r.get_json()["status"] == "approved"
    assert r.get_json()["processed_by"] == world.admin_id

    with app.app_context():
        w = Wallet.query.filter_by(user_id=world.agent_id).one()
        assert w.commission_wallet_balance == Decimal("500.00")
        assert w.total_earnings == Decimal("1500.00")
        paid = WalletTransaction.query.filter_by(type="withdrawal_completed").one()
        assert paid.transaction_id.startswith("PAY")

    r = client.post(f"/api/v1/admin/withdrawal-requests/{rid}/approve", headers=admin_h,
                    json={"payment_mode": "upi", "payment_details": "agent@upi"})
    assert r.status_code == 404
    assert r.get_json()["error"] == "request_not_found"


def test_approve_needs_valid_mode(client, admin_h, agent_h, product_id):
    _buy(client, agent_h, product_id)
    rid = client.post("/api/v1/wallet/withdraw", headers=agent_h, json={"amount": 1000}).get_json()["id"]
    r = client.post(f"/api/v1/admin/withdrawal-requests/{rid}/approve", headers=admin_h,
                    json={"payment_mode": "cheque", "payment_details": "x"})
    assert r.status_code == 422


def test_reject_withdrawal_frees_balance(app, client, admin_h, agent_h, product_id, world):
    _buy(client, agent_h, product_id)
    rid = client.post("/api/v1/wallet/withdraw", headers=agent_h, json={"amount": 1500}).get_json()["id"]
    r = client.post(f"/api/v1/admin/withdrawal-requests/{rid}/reject", headers=admin_h, json={"notes": "KYC"})
    assert r.get_json()["status"] == "rejected"
    with app.app_context():
        assert Wallet.query.filter_by(user_id=world.agent_id).one().commission_wallet_balance == Decimal("1500.00")
    assert client.post("/api/v1/wallet/withdraw", headers=agent_h, json={"amount": 1500}).status_code == 201


def test_notifications_and_purchase_listing(client, admin_h, agent_h, product_id, world):
    _buy(client, agent_h, product_id)
    notes = client.get("/api/v1/admin/notifications?unread=1", headers=admin_h).get_json()
    assert notes["meta"]["total"] == 1
    nid = notes["items"][0]["id"]
    assert client.patch(f"/api/v1/admin/notifications/{nid}/read", headers=admin_h).get_json()["is_read"] is True
    assert client.get("/api/v1/admin/notifications?unread=1", headers=admin_h).get_json()["meta"]["total"] == 0

    sales = client.get(f"/api/v1/admin/course-purchases?agent_id={world.agent_id}", headers=admin_h).get_json()
    assert sales["items"][0]["product_name"] == "Foundation Course"
    wallets = client.get("/api/v1/admin/wallets", headers=admin_h).get_json()["items"]
    assert wallets[0]["user_id"] == world.agent_id


def test_teacher_has_no_wallet(client, teacher_h):
    assert client.get("/api/v1/wallet/balance", headers=teacher_h).status_code == 403
