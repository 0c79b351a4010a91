"""
Tests for the expenses module
"""

from datetime import date
from decimal import Decimal


DAY = date(2026, 5, 1)


def _expense(**overrides):
    payload = {
        "description": "Tea for customers",
        "amount": "150",
        "currency": "NPR",
        "expense_date": DAY.isoformat()
    }
    payload.update(overrides)
    return payload


class TestExpensesAPI:

    def test_create_defaults(self, client, staff_id, staff_headers):
        response = client.post("/api/v1/expenses/", json=_expense(), headers=staff_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["category"] == "general"
        assert data["staff_id"] == str(staff_id)
        assert Decimal(data["amount"]) == Decimal("150")

    def test_blank_description_rejected(self, client, staff_headers):
        response = client.post("/api/v1/expenses/", json=_expense(description="   "), headers=staff_headers)

        assert response.status_code == 422

    def test_filters(self, client, owner_headers):
        client.post("/api/v1/expenses/", json=_expense(), headers=owner_headers)
        client.post("/api/v1/expenses/", json=_expense(currency="INR", category="rent"), headers=owner_headers)
        client.post("/api/v1/expenses/", json=_expense(expense_date="2026-05-02"), headers=owner_headers)

        def total(**params):
            return client.get("/api/v1/expenses/", params=params, headers=owner_headers).json()["total"]

        assert total() == 3
        assert total(currency="INR") == 1
        assert total(category="rent") == 1
        assert total(start_date="2026-05-02") == 1
        assert total(end_date="2026-05-01") == 2

    def test_expense_counts_in_daily_ledger(self, client, staff_headers):
        client.post("/api/v1/expenses/", json=_expense(amount="500"), headers=staff_headers)

        response = client.get(
            "/api/v1/ledger/daily", params={"business_date": DAY.isoformat()}, headers=staff_headers
        )

        assert Decimal(response.json()["npr"]["expenses"]) == Decimal("500")
        assert Decimal(response.json()["npr"]["expected_balance"]) == Decimal("-500")

    def test_staff_cannot_delete_others(self, client, staff_headers, owner_headers):
        created = client.post("/api/v1/expenses/", json=_expense(), headers=owner_headers).json()

        assert client.delete(f"/api/v1/expenses/{created['id']}", headers=staff_headers).status_code == 403
        assert client.delete(f"/api/v1/expenses/{created['id']}", headers=owner_headers).status_code == 204
