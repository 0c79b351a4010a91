"""
Tests for the cash tracker module

Covers:
- Denomination totals and validation
- Day lifecycle: open, close, start next day, delete
- Owner corrections
- API permissions and error paths
"""

import logging
import pytest
from sqlalchemy.orm import Session
from uuid import uuid4
from datetime import date, datetime
from decimal import Decimal
from fastapi import HTTPException
from pydantic import ValidationError

from app.common.enums import Currency, PaymentMethod, TransactionType
from app.modules.auth.schemas import AuthContext, UserRole
from app.modules.cash_tracker.denominations import (
    DenominationError, denomination_total, is_empty_count, validate_counts
)
from app.modules.cash_tracker.models import DayState
from app.modules.cash_tracker.schemas import DayOpen, DayClose, NextDayStart, BalanceCorrection
from app.modules.cash_tracker.service import CashTrackerService
from app.modules.exchange.models import ExchangeTransaction


DAY = date(2026, 5, 1)
NEXT_DAY = date(2026, 5, 2)


# ===== FIXTURES =====

@pytest.fixture
def service(db_session: Session):
    return CashTrackerService(db_session)


@pytest.fixture
def opened_day(service, staff_id):
    return service.open_day(
        DayOpen(business_date=DAY, npr_denominations={"1000": 10}, inr_denominations={"500": 2}),
        staff_id
    )


@pytest.fixture
def closed_day(service, staff_id, opened_day):
    service.close_day(
        DAY,
        DayClose(npr_denominations={"1000": 12, "100": 3}, inr_denominations={"500": 1, "coins": 25}),
        staff_id
    )
    return opened_day


def staff_context(user_id):
    return AuthContext(user_id=user_id, user_role=UserRole.STAFF)


def owner_context():
    return AuthContext(user_id=uuid4(), user_role=UserRole.OWNER)


# ===== DENOMINATIONS =====

class TestDenominations:

    def test_total(self):
        counts = {"1000": 2, "500": 1, "100": 3, "5": 4}
        assert denomination_total(counts) == Decimal("2820")

    def test_empty_total_is_zero(self):
        assert denomination_total({}) == Decimal("0")
        assert denomination_total(None) == Decimal("0")

    def test_total_is_linear(self):
        a = {"500": 3, "20": 7}
        b = {"500": 1, "10": 2}
        merged = {"500": 4, "20": 7, "10": 2}
        assert denomination_total(merged) == denomination_total(a) + denomination_total(b)

    def test_coins_count_by_value(self):
        assert denomination_total({"coins": 37, "200": 1}) == Decimal("237")

    def test_all_zero_is_empty(self):
        assert is_empty_count({"1000": 0, "500": 0})
        assert not is_empty_count({"5": 1})

    @pytest.mark.parametrize("counts", [
        {"1000": -1},
        {"1000": 1.5},
        {"1000": "2"},
        {"1000": True},
        {"abc": 1},
        {"²": 1},
        {"٥٠٠": 1},
    ])
    def test_invalid_counts(self, counts):
        with pytest.raises(DenominationError):
            validate_counts(counts)

    def test_currency_specific_labels(self):
        with pytest.raises(DenominationError):
            validate_counts({"1000": 1}, Currency.INR)
        with pytest.raises(DenominationError):
            validate_counts({"200": 1}, Currency.NPR)
        assert validate_counts({"Coins": 3}, Currency.INR) == {"coins": 3}

    def test_schema_rejects_bad_counts(self):
        with pytest.raises(ValidationError):
            DayOpen(business_date=DAY, npr_denominations={"1000": -2})

    def test_next_day_target_must_follow_source(self):
        with pytest.raises(ValidationError):
            NextDayStart(from_date=DAY, target_date=DAY)

    def test_correction_needs_one_source(self):
        with pytest.raises(ValidationError):
            BalanceCorrection()
        with pytest.raises(ValidationError):
            BalanceCorrection(npr_denominations={"100": 1}, npr_amount=Decimal("100"))


# ===== LIFECYCLE =====

class TestDayLifecycle:

    def test_not_started(self, service, staff_id):
        status = service.get_day(staff_id, DAY)

        assert status.state == DayState.NOT_STARTED
        assert status.record is None

    def test_open_day(self, service, staff_id, opened_day):
        assert opened_day.opening_npr == Decimal("10000")
        assert opened_day.opening_inr == Decimal("1000")
        assert opened_day.opening_npr_denoms == {"1000": 10}
        assert service.get_day(staff_id, DAY).state == DayState.OPENED

    def test_open_requires_a_count(self, service, staff_id):
        with pytest.raises(HTTPException) as exc:
            service.open_day(DayOpen(business_date=DAY, npr_denominations={"1000": 0}), staff_id)

        assert exc.value.status_code == 422
        assert exc.value.detail == "Please enter at least one denomination count"

    def test_open_twice_conflicts(self, service, staff_id, opened_day):
        with pytest.raises(HTTPException) as exc:
            service.open_day(DayOpen(business_date=DAY, npr_denominations={"5": 1}), staff_id)

        assert exc.value.status_code == 409

    def test_close_day_returns_summary(self, service, staff_id, opened_day):
        result = service.close_day(
            DAY, DayClose(npr_denominations={"1000": 9, "500": 1}, inr_denominations={"500": 2}), staff_id
        )

        assert result.record.is_closed is True
        assert result.record.closed_at is not None
        assert result.record.state == DayState.CLOSED
        assert result.summary.is_closed is True
        assert result.summary.npr.closing_balance == Decimal("9500")
        assert result.summary.npr.closing_variance == Decimal("500")
        assert result.summary.inr.closing_variance == Decimal("0")

    def test_close_without_opening(self, service, staff_id):
        with pytest.raises(HTTPException) as exc:
            service.close_day(DAY, DayClose(), staff_id)

        assert exc.value.status_code == 404

    def test_close_twice_conflicts(self, service, staff_id, closed_day):
        with pytest.raises(HTTPException) as exc:
            service.close_day(DAY, DayClose(), staff_id)

        assert exc.value.status_code == 409

    def test_next_day_seeded_from_closing(self, service, staff_id, closed_day):
        record = service.start_next_day(NextDayStart(from_date=DAY), staff_id)

        assert record.date == NEXT_DAY
        assert record.opening_npr == Decimal("12300")
        assert record.opening_inr == Decimal("525")
        assert record.opening_npr_denoms == {"1000": 12, "100": 3}
        assert record.opening_inr_denoms == {"500": 1, "coins": 25}
        assert record.is_closed is False

    def test_next_day_requires_closed_source(self, service, staff_id, opened_day):
        with pytest.raises(HTTPException) as exc:
            service.start_next_day(NextDayStart(from_date=DAY), staff_id)

        assert exc.value.status_code == 409

    def test_next_day_replaces_existing(self, service, staff_id, closed_day):
        service.open_day(DayOpen(business_date=NEXT_DAY, npr_denominations={"5": 1}), staff_id)

        record = service.start_next_day(NextDayStart(from_date=DAY), staff_id)

        assert record.opening_npr == Decimal("12300")
        assert service.list_days(staff_id=staff_id)["total"] == 2

    def test_next_day_without_replace_conflicts(self, service, staff_id, closed_day):
        service.open_day(DayOpen(business_date=NEXT_DAY, npr_denominations={"5": 1}), staff_id)

        with pytest.raises(HTTPException) as exc:
            service.start_next_day(NextDayStart(from_date=DAY, replace_existing=False), staff_id)

        assert exc.value.status_code == 409

    def test_staff_deletes_own_open_day(self, service, staff_id, opened_day):
        service.delete_day(staff_id, DAY, staff_context(staff_id))

        assert service.get_day(staff_id, DAY).state == DayState.NOT_STARTED

    def test_staff_cannot_delete_closed_day(self, service, staff_id, closed_day):
        with pytest.raises(HTTPException) as exc:
            service.delete_day(staff_id, DAY, staff_context(staff_id))

        assert exc.value.status_code == 403

    def test_owner_deletes_closed_day_keeps_following(self, service, staff_id, closed_day):
        service.start_next_day(NextDayStart(from_date=DAY), staff_id)

        service.delete_day(staff_id, DAY, owner_context())

        following = service.get_day(staff_id, NEXT_DAY)
        assert following.state == DayState.OPENED
        assert following.record.opening_npr == Decimal("12300")

    def test_delete_warns_about_later_carried_over_day(self, service, staff_id, closed_day, caplog):
        monday = date(2026, 5, 4)
        service.start_next_day(NextDayStart(from_date=DAY, target_date=monday), staff_id)

        with caplog.at_level(logging.WARNING, logger="app.modules.cash_tracker.service"):
            service.delete_day(staff_id, DAY, owner_context())

        assert "day 2026-05-04" in caplog.text
        assert service.get_day(staff_id, monday).state == DayState.OPENED

    def test_rejected_ledger_leaves_day_open(self, service, db_session, staff_id, opened_day):
        db_session.add(ExchangeTransaction(
            staff_id=staff_id, transaction_type=TransactionType.SELL,
            from_currency=Currency.NPR, from_amount=Decimal("100"),
            to_currency=Currency.NPR, to_amount=Decimal("100"),
            payment_method=PaymentMethod.CASH, created_at=datetime(2026, 5, 1, 10, 0)
        ))
        db_session.commit()

        with pytest.raises(HTTPException) as exc:
            service.close_day(DAY, DayClose(npr_denominations={"1000": 10}), staff_id)

        assert exc.value.status_code == 422
        day = service.get_day(staff_id, DAY)
        assert day.state == DayState.OPENED
        assert day.record.closing_npr is None

    def test_correct_opening_with_denominations(self, service, staff_id, opened_day):
        owner = owner_context()
        record = service.correct_opening(
            staff_id, DAY, BalanceCorrection(npr_denominations={"1000": 11}, notes="miscounted"),
            owner.user_id
        )

        assert record.opening_npr == Decimal("11000")
        assert record.opening_inr == Decimal("1000")
        assert "miscounted" in record.notes

    def test_correct_closing_with_amount(self, service, staff_id, closed_day):
        record = service.correct_closing(
            staff_id, DAY, BalanceCorrection(inr_amount=Decimal("600")), uuid4()
        )

        assert record.closing_inr == Decimal("600")
        assert record.closing_inr_denoms == {}
        assert record.closing_npr == Decimal("12300")

    def test_correct_closing_of_open_day_conflicts(self, service, staff_id, opened_day):
        with pytest.raises(HTTPException) as exc:
            service.correct_closing(staff_id, DAY, BalanceCorrection(npr_amount=Decimal("1")), uuid4())

        assert exc.value.status_code == 409

    def test_list_days_filters(self, service, staff_id, closed_day):
        service.start_next_day(NextDayStart(from_date=DAY), staff_id)

        assert service.list_days(staff_id=staff_id, is_closed=True)["total"] == 1
        assert service.list_days(start_date=NEXT_DAY)["total"] == 1
        assert service.list_days(staff_id=uuid4())["total"] == 0


# ===== API =====

class TestCashTrackerAPI:

    def test_open_and_close(self, client, staff_headers):
        response = client.post(
            "/api/v1/cash-tracker/open",
            json={"business_date": DAY.isoformat(), "npr_denominations": {"500": 4}},
            headers=staff_headers
        )
        assert response.status_code == 201
        assert response.json()["state"] == "opened"

        response = client.post(
            f"/api/v1/cash-tracker/days/{DAY.isoformat()}/close",
            json={"npr_denominations": {"500": 3, "100": 6}},
            headers=staff_headers
        )
        assert response.status_code == 200
        data = response.json()
        assert data["record"]["state"] == "closed"
        assert Decimal(data["summary"]["npr"]["closing_variance"]) == Decimal("-100")
        assert data["summary"]["npr"]["closing_variance_status"] == "surplus"

    def test_open_empty_count(self, client, staff_headers):
        response = client.post(
            "/api/v1/cash-tracker/open",
            json={"business_date": DAY.isoformat()},
            headers=staff_headers
        )

        assert response.status_code == 422

    def test_open_unknown_denomination(self, client, staff_headers):
        response = client.post(
            "/api/v1/cash-tracker/open",
            json={"business_date": DAY.isoformat(), "inr_denominations": {"1000": 1}},
            headers=staff_headers
        )

        assert response.status_code == 422

    def test_open_non_ascii_digit_denomination(self, client, staff_headers):
        response = client.post(
            "/api/v1/cash-tracker/open",
            json={"business_date": DAY.isoformat(), "npr_denominations": {"²": 1}},
            headers=staff_headers
        )

        assert response.status_code == 422

    def test_get_day_state(self, client, staff_headers):
        response = client.get(f"/api/v1/cash-tracker/days/{DAY.isoformat()}", headers=staff_headers)

        assert response.status_code == 200
        assert response.json()["state"] == "not_started"

    def test_staff_cannot_view_other_staff(self, client, staff_headers):
        response = client.get(
            f"/api/v1/cash-tracker/days/{DAY.isoformat()}",
            params={"staff_id": str(uuid4())},
            headers=staff_headers
        )

        assert response.status_code == 403

    def test_corrections_need_owner_or_manager(self, client, staff_id, staff_headers, manager_headers):
        client.post(
            "/api/v1/cash-tracker/open",
            json={"business_date": DAY.isoformat(), "npr_denominations": {"500": 4}},
            headers=staff_headers
        )
        url = f"/api/v1/cash-tracker/days/{DAY.isoformat()}/opening"
        body = {"npr_amount": "2500"}

        denied = client.put(url, params={"staff_id": str(staff_id)}, json=body, headers=staff_headers)
        allowed = client.put(url, params={"staff_id": str(staff_id)}, json=body, headers=manager_headers)

        assert denied.status_code == 403
        assert allowed.status_code == 200
        assert Decimal(allowed.json()["opening_npr"]) == Decimal("2500")

    def test_next_day_endpoint(self, client, staff_headers):
        client.post(
            "/api/v1/cash-tracker/open",
            json={"business_date": DAY.isoformat(), "npr_denominations": {"500": 4}},
            headers=staff_headers
        )
        client.post(
            f"/api/v1/cash-tracker/days/{DAY.isoformat()}/close",
            json={"npr_denominations": {"1000": 3}},
            headers=staff_headers
        )

        response = client.post(
            "/api/v1/cash-tracker/next-day",
            json={"from_date": DAY.isoformat()},
            headers=staff_headers
        )

        assert response.status_code == 201
        assert response.json()["date"] == NEXT_DAY.isoformat()
        assert Decimal(response.json()["opening_npr"]) == Decimal("3000")

    def test_delete_endpoint(self, client, staff_headers):
        client.post(
            "/api/v1/cash-tracker/open",
            json={"business_date": DAY.isoformat(), "npr_denominations": {"500": 4}},
            headers=staff_headers
        )

        response = client.delete(f"/api/v1/cash-tracker/days/{DAY.isoformat()}", headers=staff_headers)

        assert response.status_code == 204
