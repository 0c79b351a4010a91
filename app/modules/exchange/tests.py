"""
Tests for the exchange module
"""

import pytest
from uuid import uuid4
from decimal import Decimal
from pydantic import ValidationError

from app.common.enums import Currency, TransactionType, CreditTransactionType
from app.modules.exchange.schemas import ExchangeTransactionCreate, CreditTransactionCreate
from app.modules.exchange.service import CreditService


@pytest.fixture
def sell_payload():
    return {
        "transaction_type": "sell",
        "from_currency": "NPR",
        "from_amount": "1600",
        "to_currency": "INR",
        "to_amount": "1000",
        "exchange_rate": "1.6",
        "payment_method": "cash"
    }


# ===== SCHEMAS =====

class TestExchangeSchemas:

    def test_sell_direction(self, sell_payload):
        transaction = ExchangeTransactionCreate(**sell_payload)

        assert transaction.transaction_type == TransactionType.SELL
        assert transaction.from_amount == Decimal("1600")

    def test_buy_must_go_inr_to_npr(self, sell_payload):
        with pytest.raises(ValidationError):
            ExchangeTransactionCreate(**{**sell_payload, "transaction_type": "buy"})

    def test_same_currency_rejected(self, sell_payload):
        with pytest.raises(ValidationError):
            ExchangeTransactionCreate(**{**sell_payload, "to_currency": "NPR"})

    @pytest.mark.parametrize("field", ["from_amount", "to_amount"])
    def test_amounts_must_be_positive(self, sell_payload, field):
        with pytest.raises(ValidationError):
            ExchangeTransactionCreate(**{**sell_payload, field: "0"})

    def test_credit_currency_defaults_to_npr(self):
        credit = CreditTransactionCreate(
            customer_id=uuid4(), transaction_type="credit_given", amount=Decimal("100")
        )

        assert credit.currency == Currency.NPR


# ===== API =====

class TestExchangeAPI:

    def test_create_and_get(self, client, staff_id, staff_headers, sell_payload):
        response = client.post("/api/v1/exchange/transactions", json=sell_payload, headers=staff_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["staff_id"] == str(staff_id)
        assert data["transaction_type"] == "sell"

        response = client.get(f"/api/v1/exchange/transactions/{data['id']}", headers=staff_headers)
        assert response.status_code == 200

    def test_wrong_direction_is_422(self, client, staff_headers, sell_payload):
        payload = {**sell_payload, "from_currency": "INR", "to_currency": "NPR"}

        response = client.post("/api/v1/exchange/transactions", json=payload, headers=staff_headers)

        assert response.status_code == 422

    def test_staff_only_lists_own(self, client, staff_headers, owner_headers, sell_payload):
        client.post("/api/v1/exchange/transactions", json=sell_payload, headers=staff_headers)
        client.post("/api/v1/exchange/transactions", json=sell_payload, headers=owner_headers)

        assert client.get("/api/v1/exchange/transactions", headers=staff_headers).json()["total"] == 1
        assert client.get("/api/v1/exchange/transactions", headers=owner_headers).json()["total"] == 2

    def test_staff_cannot_delete_others(self, client, staff_headers, owner_headers, sell_payload):
        created = client.post(
            "/api/v1/exchange/transactions", json=sell_payload, headers=owner_headers
        ).json()

        response = client.delete(f"/api/v1/exchange/transactions/{created['id']}", headers=staff_headers)
        assert response.status_code == 403

        response = client.delete(f"/api/v1/exchange/transactions/{created['id']}", headers=owner_headers)
        assert response.status_code == 204

    def test_missing_transaction(self, client, staff_headers):
        response = client.get(f"/api/v1/exchange/transactions/{uuid4()}", headers=staff_headers)

        assert response.status_code == 404

    def test_credit_transactions(self, client, staff_headers):
        customer = str(uuid4())
        for kind in ("credit_given", "payment_received"):
            response = client.post(
                "/api/v1/exchange/credit-transactions",
                json={"customer_id": customer, "transaction_type": kind, "amount": "1000"},
                headers=staff_headers
            )
            assert response.status_code == 201
            assert response.json()["currency"] == "NPR"

        response = client.get(
            "/api/v1/exchange/credit-transactions",
            params={"customer_id": customer, "transaction_type": "credit_given"},
            headers=staff_headers
        )
        assert response.json()["total"] == 1


# ===== CUSTOMER CREDIT =====

class TestCustomerCredit:

    def _credit(self, client, headers, customer, kind, amount, currency="NPR"):
        return client.post(
            "/api/v1/exchange/credit-transactions",
            json={"customer_id": customer, "transaction_type": kind,
                  "amount": amount, "currency": currency},
            headers=headers
        )

    def test_balance_after_partial_payment(self, db_session, staff_id):
        service = CreditService(db_session)
        customer = uuid4()
        service.create_credit(CreditTransactionCreate(
            customer_id=customer, transaction_type=CreditTransactionType.CREDIT_GIVEN,
            amount=Decimal("1500")
        ), staff_id)
        service.create_credit(CreditTransactionCreate(
            customer_id=customer, transaction_type=CreditTransactionType.PAYMENT_RECEIVED,
            amount=Decimal("400")
        ), staff_id)

        balance = service.get_customer_balance(customer)

        assert balance.npr == Decimal("1100")
        assert balance.inr == Decimal("0")

    def test_unknown_customer_owes_nothing(self, db_session):
        balance = CreditService(db_session).get_customer_balance(uuid4())

        assert balance.npr == Decimal("0")
        assert balance.inr == Decimal("0")

    def test_overpayment_rejected(self, client, staff_headers):
        customer = str(uuid4())
        assert self._credit(client, staff_headers, customer, "credit_given", "500").status_code == 201

        response = self._credit(client, staff_headers, customer, "payment_received", "600")

        assert response.status_code == 422
        assert "500" in response.json()["detail"]

    def test_payment_without_credit_rejected(self, client, staff_headers):
        response = self._credit(client, staff_headers, str(uuid4()), "payment_received", "10")

        assert response.status_code == 422

    def test_payment_checked_per_currency(self, client, staff_headers):
        customer = str(uuid4())
        self._credit(client, staff_headers, customer, "credit_given", "1000", "NPR")

        response = self._credit(client, staff_headers, customer, "payment_received", "100", "INR")

        assert response.status_code == 422

    def test_balance_endpoint(self, client, staff_headers, owner_headers):
        customer = str(uuid4())
        self._credit(client, staff_headers, customer, "credit_given", "1000", "NPR")
        self._credit(client, owner_headers, customer, "credit_given", "200", "INR")
        self._credit(client, staff_headers, customer, "payment_received", "1000", "NPR")

        response = client.get(
            f"/api/v1/exchange/customers/{customer}/credit-balance", headers=staff_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["npr"]) == Decimal("0")
        assert Decimal(data["inr"]) == Decimal("200")
