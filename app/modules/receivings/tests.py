"""
Tests for the receivings module

Covers settlement bookkeeping (staff owes, confirmation) and the
receivings API permissions.
"""

import pytest
from sqlalchemy.orm import Session
from uuid import uuid4
from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace

from app.common.enums import Currency
from app.modules.ledger.exceptions import LedgerIntegrityError, SettlementError
from app.modules.receivings.models import MoneyReceiving
from app.modules.receivings.service import ReceivingService
from app.modules.receivings.settlement import summarize_staff_owes, mark_confirmed


def _receiving(staff_id, amount, currency=Currency.NPR, is_confirmed=False):
    return SimpleNamespace(
        staff_id=staff_id, amount=Decimal(amount), currency=currency, is_confirmed=is_confirmed,
        confirmed_by=None, confirmed_at=None
    )


# ===== SETTLEMENT =====

class TestSettlement:

    def test_staff_owes_sums_unconfirmed_per_currency(self):
        staff = uuid4()
        owes = summarize_staff_owes([
            _receiving(staff, "1000"),
            _receiving(staff, "250.50"),
            _receiving(staff, "80", Currency.INR),
            _receiving(staff, "5000", is_confirmed=True),
            _receiving(uuid4(), "700"),
        ], staff)

        assert owes.npr == Decimal("1250.50")
        assert owes.inr == Decimal("80")
        assert owes.pending_count == 3

    def test_without_staff_sums_everyone(self):
        owes = summarize_staff_owes([_receiving(uuid4(), "10"), _receiving(uuid4(), "15")])

        assert owes.npr == Decimal("25")
        assert owes.staff_id is None

    def test_negative_amount_rejected(self):
        with pytest.raises(LedgerIntegrityError):
            summarize_staff_owes([_receiving(uuid4(), "-1")])

    def test_mark_confirmed(self):
        receiving = _receiving(uuid4(), "100")
        confirmer = uuid4()
        at = datetime(2026, 5, 1, 12, 0)

        mark_confirmed(receiving, confirmer, at)

        assert receiving.is_confirmed is True
        assert receiving.confirmed_by == confirmer
        assert receiving.confirmed_at == at

    def test_confirming_twice_fails(self):
        receiving = _receiving(uuid4(), "100", is_confirmed=True)

        with pytest.raises(SettlementError):
            mark_confirmed(receiving, uuid4(), datetime(2026, 5, 1))


# ===== SERVICE =====

class TestReceivingService:

    def test_staff_owes_across_days(self, db_session: Session, staff_id):
        db_session.add_all([
            MoneyReceiving(staff_id=staff_id, amount=Decimal("400"), currency=Currency.NPR,
                           method="esewa", created_at=datetime(2026, 3, 1, 10, 0)),
            MoneyReceiving(staff_id=staff_id, amount=Decimal("600"), currency=Currency.NPR,
                           method="bank", created_at=datetime(2026, 5, 1, 10, 0)),
            MoneyReceiving(staff_id=staff_id, amount=Decimal("900"), currency=Currency.NPR,
                           method="cash", is_confirmed=True, created_at=datetime(2026, 5, 1, 11, 0)),
        ])
        db_session.commit()

        owes = ReceivingService(db_session).get_staff_owes(staff_id)

        assert owes.npr == Decimal("1000")
        assert owes.pending_count == 2

    def test_list_by_business_days(self, db_session: Session, staff_id):
        db_session.add_all([
            MoneyReceiving(staff_id=staff_id, amount=Decimal("1"), method="cash",
                           created_at=datetime(2026, 4, 30, 23, 0)),
            MoneyReceiving(staff_id=staff_id, amount=Decimal("2"), method="cash",
                           created_at=datetime(2026, 5, 1, 9, 0)),
        ])
        db_session.commit()

        result = ReceivingService(db_session).list_receivings(
            start_date=datetime(2026, 5, 1).date(), end_date=datetime(2026, 5, 1).date()
        )

        assert result["total"] == 1
        assert result["receivings"][0].amount == Decimal("2")


# ===== API =====

class TestReceivingsAPI:

    def _create(self, client, headers, amount="500"):
        response = client.post(
            "/api/v1/receivings/",
            json={"amount": amount, "currency": "NPR", "method": "eSewa"},
            headers=headers
        )
        assert response.status_code == 201
        return response.json()

    def test_create_pending(self, client, staff_id, staff_headers):
        data = self._create(client, staff_headers)

        assert data["staff_id"] == str(staff_id)
        assert data["method"] == "esewa"
        assert data["is_confirmed"] is False

    def test_confirm_flow(self, client, staff_id, staff_headers, owner_id, owner_headers):
        receiving = self._create(client, staff_headers)
        url = f"/api/v1/receivings/{receiving['id']}/confirm"

        assert client.post(url, headers=staff_headers).status_code == 403

        response = client.post(url, headers=owner_headers)
        assert response.status_code == 200
        assert response.json()["is_confirmed"] is True
        assert response.json()["confirmed_by"] == str(owner_id)

        assert client.post(url, headers=owner_headers).status_code == 409

    def test_staff_owes_endpoint(self, client, staff_id, staff_headers, owner_headers):
        first = self._create(client, staff_headers, "300")
        self._create(client, staff_headers, "200")
        client.post(f"/api/v1/receivings/{first['id']}/confirm", headers=owner_headers)

        response = client.get(f"/api/v1/ledger/staff-owes/{staff_id}", headers=staff_headers)

        assert response.status_code == 200
        assert Decimal(response.json()["npr"]) == Decimal("200")
        assert response.json()["pending_count"] == 1

    def test_staff_cannot_delete_confirmed(self, client, staff_headers, owner_headers):
        receiving = self._create(client, staff_headers)
        client.post(f"/api/v1/receivings/{receiving['id']}/confirm", headers=owner_headers)

        response = client.delete(f"/api/v1/receivings/{receiving['id']}", headers=staff_headers)
        assert response.status_code == 403

        response = client.delete(f"/api/v1/receivings/{receiving['id']}", headers=owner_headers)
        assert response.status_code == 204

    def test_list_only_own_for_staff(self, client, staff_headers, owner_headers):
        self._create(client, staff_headers)
        self._create(client, owner_headers)

        assert client.get("/api/v1/receivings/", headers=staff_headers).json()["total"] == 1
        assert client.get("/api/v1/receivings/", headers=owner_headers).json()["total"] == 2

    def test_rejects_non_positive_amount(self, client, staff_headers):
        response = client.post(
            "/api/v1/receivings/",
            json={"amount": "0", "currency": "NPR"},
            headers=staff_headers
        )

        assert response.status_code == 422
