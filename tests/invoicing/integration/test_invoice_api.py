"""Integration tests for Invoice API endpoints."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from invoicing.api.routes import invoice_router
from invoicing.invoice.invoice import Invoice, InvoiceStatus
from protean import current_domain
from protean.exceptions import ValidationError

_CONSULTING = {
    "description": "Consulting (day)",
    "quantity": 2,
    "unit_price": 100,
    "tax_rate": 20,
    "discount": {"type": "percentage", "value": 10},
}


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(invoice_router)
    return TestClient(app)


def _generate(client, **overrides):
    payload = {
        "client_id": "client-001",
        "lines": [_CONSULTING, _CONSULTING],
        "global_discount": {"type": "fixed", "value": 50},
    }
    payload.update(overrides)
    return client.post("/invoices", json=payload)


class TestPreviewAPI:
    def test_preview_prices_draft(self, client):
        response = client.post(
            "/invoices/preview",
            json={"lines": [_CONSULTING, _CONSULTING], "global_discount": {"type": "fixed", "value": 50}},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["subtotal"] == pytest.approx(360.0)
        assert body["tax_total"] == pytest.approx(72.0)
        assert body["discount_amount"] == pytest.approx(50.0)
        assert body["total"] == pytest.approx(382.0)
        assert [line["discount_amount"] for line in body["lines"]] == [20.0, 20.0]
        assert [line["total"] for line in body["lines"]] == [180.0, 180.0]

    def test_preview_accepts_text_input(self, client):
        response = client.post(
            "/invoices/preview",
            json={"lines": [{"description": "Audit", "quantity": "3", "unit_price": "abc", "tax_rate": ""}]},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 0.0
        assert body["lines"][0]["quantity"] == 3.0

    def test_preview_clamps_global_discount(self, client):
        response = client.post(
            "/invoices/preview",
            json={
                "lines": [{"quantity": 1, "unit_price": 100, "tax_rate": 0}],
                "global_discount": {"type": "percentage", "value": 110},
            },
        )
        body = response.json()
        assert body["discount_amount"] == pytest.approx(100.0)
        assert body["total"] == 0.0


class TestGenerateInvoiceAPI:
    def test_generate_returns_201(self, client):
        response = _generate(client)
        assert response.status_code == 201
        assert "invoice_id" in response.json()

    def test_generate_persists_priced_invoice(self, client):
        invoice_id = _generate(client).json()["invoice_id"]
        invoice = current_domain.repository_for(Invoice).get(invoice_id)
        assert invoice.status == InvoiceStatus.DRAFT.value
        assert invoice.total == pytest.approx(382.0)

    def test_generate_requires_lines(self, client):
        response = _generate(client, lines=[])
        assert response.status_code == 422


class TestReviseInvoiceAPI:
    def test_revise_returns_status(self, client):
        invoice_id = _generate(client).json()["invoice_id"]
        response = client.put(f"/invoices/{invoice_id}/lines", json={"lines": [_CONSULTING]})
        assert response.status_code == 200
        assert response.json()["status"] == "revised"
        invoice = current_domain.repository_for(Invoice).get(invoice_id)
        assert invoice.total == pytest.approx(216.0)


class TestLifecycleAPI:
    def test_send_and_pay(self, client):
        invoice_id = _generate(client).json()["invoice_id"]

        response = client.put(f"/invoices/{invoice_id}/send")
        assert response.status_code == 200
        assert response.json()["status"] == "sent"

        response = client.put(f"/invoices/{invoice_id}/pay")
        assert response.json()["status"] == "paid"

    def test_overdue(self, client):
        invoice_id = _generate(client).json()["invoice_id"]
        client.put(f"/invoices/{invoice_id}/send")
        response = client.put(f"/invoices/{invoice_id}/overdue")
        assert response.json()["status"] == "overdue"

    def test_cancel(self, client):
        invoice_id = _generate(client).json()["invoice_id"]
        response = client.put(f"/invoices/{invoice_id}/cancel", json={"reason": "Client request"})
        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"

    def test_invalid_transition_is_rejected(self, client):
        invoice_id = _generate(client).json()["invoice_id"]
        with pytest.raises(ValidationError):
            client.put(f"/invoices/{invoice_id}/pay")
