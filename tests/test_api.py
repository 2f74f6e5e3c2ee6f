"""Tests for the contract HTTP API."""

import pytest
from fastapi.testclient import TestClient

from shokulab.api.app import create_app
from shokulab.api.routes.contract import get_service

from conftest import FOOD_TRADING_FIELDS


@pytest.fixture
def client(service):
    app = create_app(init_db=False)
    app.dependency_overrides[get_service] = lambda: service
    with TestClient(app) as test_client:
        yield test_client


def _create_body(**overrides):
    body = {
        "template_type": "food_trading",
        "fields": dict(FOOD_TRADING_FIELDS),
        "contract_value": 50000,
        "payment_method": "shokulab_escrow",
        "created_by": "owner-a",
        "party_a": "八百屋みどり",
        "party_b": "レストラン青空",
        "receiver_id": "owner-b",
    }
    body.update(overrides)
    return body


class TestTemplatesApi:

    def test_list(self, client):
        resp = client.get("/api/contract/templates")
        assert resp.status_code == 200
        ids = [t["id"] for t in resp.json()["templates"]]
        assert ids == ["food_trading", "food_exchange", "event", "equipment"]

    def test_detail(self, client):
        resp = client.get("/api/contract/templates/food_trading")
        assert resp.status_code == 200
        data = resp.json()
        assert data["fields"][0]["key"] == "product"
        quality = next(f for f in data["fields"] if f["key"] == "qualityStandards")
        assert quality["type"] == "textarea"
        assert quality["required"] is False

    def test_unknown(self, client):
        assert client.get("/api/contract/templates/employment").status_code == 404

    def test_preview(self, client):
        resp = client.post("/api/contract/preview", json={
            "template_id": "food_trading",
            "field_values": {"product": "牛肉"},
            "party_a": "甲",
            "party_b": "乙",
        })
        assert resp.status_code == 200
        assert "商品名：牛肉" in resp.json()["content"]


class TestFeesApi:

    def test_fee_quote(self, client):
        resp = client.get("/api/fees", params={"amount": 50000})
        assert resp.status_code == 200
        assert resp.json() == {"amount": 50000, "fee": 1800, "percentage": 3.6, "net_amount": 48200}

    def test_negative_amount(self, client):
        assert client.get("/api/fees", params={"amount": -1}).status_code == 422


@pytest.mark.usefixtures("verified_users")
class TestContractApi:

    def _create(self, client, **overrides):
        resp = client.post("/api/contract", json=_create_body(**overrides))
        assert resp.status_code == 201, resp.text
        return resp.json()

    def test_create(self, client):
        data = self._create(client)
        assert data["contract"]["status"] == "pending"
        assert data["contract"]["content"]["contractValue"] == 50000
        assert data["fee"]["fee"] == 1800
        assert data["escrow_transaction"] is None

    def test_create_cash_has_no_fee(self, client):
        assert self._create(client, payment_method="cash")["fee"] is None

    def test_create_permission_denied(self, client):
        resp = client.post("/api/contract", json=_create_body(contract_value=100001))
        assert resp.status_code == 403
        assert resp.json()["detail"]["reason"] == "contract_value_exceeded"

    def test_create_validation_error(self, client):
        body = _create_body()
        del body["fields"]["product"]
        resp = client.post("/api/contract", json=body)
        assert resp.status_code == 422
        assert resp.json()["detail"]["fields"] == ["product"]

    def test_create_oversized_value(self, client):
        resp = client.post("/api/contract", json=_create_body(contract_value="9" * 5000))
        assert resp.status_code == 422
        assert resp.json()["detail"]["fields"] == ["contractValue"]

    def test_create_unknown_template(self, client):
        resp = client.post("/api/contract", json=_create_body(template_type="employment"))
        assert resp.status_code == 404

    def test_agree_flow(self, client):
        contract_id = self._create(client)["contract"]["id"]

        resp = client.post(f"/api/contract/{contract_id}/respond", json={"actor_id": "owner-a", "decision": "agree"})
        assert resp.status_code == 409

        resp = client.post(f"/api/contract/{contract_id}/respond", json={"actor_id": "owner-b", "decision": "agree"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["contract"]["status"] == "agreed"
        assert data["escrow_transaction"]["fee"] == 1800

        resp = client.post(f"/api/contract/{contract_id}/respond", json={"actor_id": "owner-b", "decision": "reject"})
        assert resp.status_code == 409

        detail = client.get(f"/api/contract/{contract_id}").json()
        assert detail["contract"]["agreed_by"] == "owner-b"
        assert detail["escrow_transaction"]["amount"] == 50000

    def test_invalid_decision(self, client):
        contract_id = self._create(client)["contract"]["id"]
        resp = client.post(f"/api/contract/{contract_id}/respond", json={"actor_id": "owner-b", "decision": "maybe"})
        assert resp.status_code == 422

    def test_unknown_contract(self, client):
        assert client.get("/api/contract/missing").status_code == 404
        resp = client.post("/api/contract/missing/respond", json={"actor_id": "owner-b", "decision": "agree"})
        assert resp.status_code == 404

    def test_payment_outcome(self, client):
        contract_id = self._create(client)["contract"]["id"]
        client.post(f"/api/contract/{contract_id}/respond", json={"actor_id": "owner-b", "decision": "agree"})

        resp = client.post(f"/api/contract/{contract_id}/payment", json={"succeeded": True})
        assert resp.status_code == 200
        assert resp.json()["status"] == "completed"

        resp = client.post(f"/api/contract/{contract_id}/payment", json={"succeeded": True})
        assert resp.status_code == 409

    def test_pdf(self, client):
        contract_id = self._create(client)["contract"]["id"]
        resp = client.get(f"/api/contract/{contract_id}/pdf")
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "application/pdf"
        assert resp.content.startswith(b"%PDF")


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
    assert resp.json()["db_mode"] == "sqlite"
