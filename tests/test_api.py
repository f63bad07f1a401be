"""
Tests for the REST endpoints.
"""

import pytest
from fastapi.testclient import TestClient

from invoicing.api import app


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def schedule_record(client):
    response = client.post(
        "/payment-schedule",
        json={"grandTotal": 100000, "options": {"downPaymentPercentage": 30, "invoiceDate": "2026-01-15"}},
    )
    return response.json()["paymentSchedule"]


class TestCalculateEndpoints:

    def test_calculate(self, client, sample_items):
        response = client.post(
            "/calculate",
            json={"items": sample_items, "options": {"taxEnabled": True, "taxRate": 11, "shippingCost": 20000}},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["calculations"]["grandTotal"] == 297500.0

    def test_calculate_empty_items(self, client):
        response = client.post("/calculate", json={"items": []})

        assert response.status_code == 400
        assert response.json()["errorType"] == "VALIDATION_ERROR"

    def test_recalculate_mismatch_is_ok(self, client, sample_invoice):
        sample_invoice["calculations"]["grandTotal"] = 300000

        response = client.post("/recalculate", json=sample_invoice)

        assert response.status_code == 200
        assert response.json()["isAccurate"] is False
        assert response.json()["difference"] == 2500.0

    def test_process(self, client, sample_invoice):
        response = client.post(
            "/process",
            json={"invoice": sample_invoice, "catalog": [], "scheduleOptions": {"downPaymentPercentage": 30}},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["decision"] == "approve"
        assert data["paymentSchedule"]["downPayment"]["amount"] == 89250.0


class TestPaymentScheduleEndpoints:

    def test_create_schedule(self, schedule_record):
        assert schedule_record["downPayment"]["amount"] == 30000.0
        assert schedule_record["remainingBalance"]["amount"] == 70000.0
        assert schedule_record["downPayment"]["dueDate"] == "2026-01-30"

    def test_invalid_percentage(self, client):
        response = client.post(
            "/payment-schedule",
            json={"grandTotal": 100000, "options": {"downPaymentPercentage": 150}},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Down payment percentage cannot exceed 100%"

    def test_apply_payments(self, client, schedule_record):
        first = client.post(
            "/payment-schedule/payments",
            json={"schedule": schedule_record, "paymentAmount": 60000},
        )
        assert first.status_code == 200
        assert first.json()["updatedSchedule"]["paymentStatus"]["status"] == "partial"

        second = client.post(
            "/payment-schedule/payments",
            json={"schedule": first.json()["updatedSchedule"], "paymentAmount": 40000},
        )
        status = second.json()["updatedSchedule"]["paymentStatus"]
        assert status["status"] == "paid"
        assert len(status["paymentHistory"]) == 2

    def test_overpayment(self, client, schedule_record):
        response = client.post(
            "/payment-schedule/payments",
            json={"schedule": schedule_record, "paymentAmount": 150000},
        )

        assert response.status_code == 400
        assert response.json()["errorType"] == "CALCULATION_ERROR"


class TestUtilityEndpoints:

    def test_format_currency(self, client):
        response = client.get("/format-currency", params={"amount": 297500, "currency": "IDR"})

        assert response.status_code == 200
        assert response.json() == {"formatted": "Rp 297.500", "currency": "IDR"}

    def test_parse_currency(self, client):
        response = client.get("/parse-currency", params={"value": "Rp 297.500", "currency": "IDR"})

        assert response.status_code == 200
        assert response.json() == {"amount": 297500.0, "currency": "IDR"}

    def test_parse_unreadable_currency_is_zero(self, client):
        response = client.get("/parse-currency", params={"value": "n/a", "currency": "usd"})
        assert response.json() == {"amount": 0.0, "currency": "USD"}

    def test_format_breakdown(self, client, sample_invoice):
        response = client.post("/format-breakdown", json=sample_invoice["calculations"])

        data = response.json()
        assert response.status_code == 200
        assert data["grandTotal"] == "Rp 297.500"
        assert data["taxAmount"] == "Rp 27.500"
        assert data["discount"] == "Rp 0"
        assert data["currency"] == "IDR"

    def test_format_breakdown_currency_override(self, client, sample_invoice):
        response = client.post(
            "/format-breakdown", json=sample_invoice["calculations"], params={"currency": "USD"}
        )
        assert response.json()["grandTotal"] == "$297,500.00"

    def test_format_breakdown_invalid_amount(self, client):
        response = client.post("/format-breakdown", json={"subtotal": "lots"})

        assert response.status_code == 400
        assert response.json() == {"error": "amount must be a valid number"}

    def test_currencies(self, client):
        data = client.get("/currencies").json()

        assert len(data) == 5
        assert {"code": "IDR", "symbol": "Rp"} in data
        assert {"code": "EUR", "symbol": "€"} in data

    def test_due_date(self, client):
        response = client.get("/due-date", params={"invoice_date": "2026-01-01", "payment_terms": "NET_15"})

        assert response.status_code == 200
        assert response.json() == {"dueDate": "2026-01-16", "paymentTerms": "NET_15", "termsDays": 15}

    def test_due_date_unknown_terms(self, client):
        data = client.get("/due-date", params={"invoice_date": "2026-01-01", "payment_terms": "SOMETIME"}).json()

        assert data["dueDate"] == "2026-01-31"
        assert data["termsDays"] == 30

    def test_health(self, client):
        response = client.get("/health")
        assert response.json()["status"] == "healthy"

    def test_config(self, client):
        data = client.get("/config").json()

        assert data["default_currency"] == "IDR"
        assert data["recalculation_tolerance"] == 0.01


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
