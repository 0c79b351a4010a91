"""
Tests for the ledger module

Covers:
- Reconciliation engine formulas for both currency sides
- Variance sign and presentation
- Integrity rejections (same-currency exchanges, negative amounts)
- Business day bucketing with a cutoff
- LedgerService loading a day from the database, and the API
"""

import jwt
import pytest
from sqlalchemy.orm import Session
from uuid import uuid4
from datetime import date, datetime, timezone, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

from app.common.enums import Currency, PaymentMethod, TransactionType, CreditTransactionType
from app.core.config import settings
from app.modules.cash_tracker.models import CashCountRecord
from app.modules.exchange.models import ExchangeTransaction, CreditTransaction
from app.modules.expenses.models import Expense
from app.modules.ledger.business_day import bucket_date, day_window
from app.modules.ledger.calculator import compute_ledger_summary, variance_status
from app.modules.ledger.exceptions import LedgerIntegrityError
from app.modules.ledger.schemas import (
    CashBalances, ExchangeRow, CreditRow, ExpenseRow, ReceivingRow, VarianceStatus
)
from app.modules.ledger.service import LedgerService
from app.modules.receivings.models import MoneyReceiving
from app.modules.settings.models import SystemSettings


# ===== FIXTURES =====

@pytest.fixture
def sell_5000_npr():
    """Customer pays NPR 5,000 cash and receives INR 3,125"""
    return ExchangeRow(
        transaction_type=TransactionType.SELL,
        from_currency=Currency.NPR, from_amount=Decimal("5000"),
        to_currency=Currency.INR, to_amount=Decimal("3125"),
        payment_method=PaymentMethod.CASH
    )


@pytest.fixture
def buy_2000_npr():
    """Customer pays INR 1,250 and receives NPR 2,000"""
    return ExchangeRow(
        transaction_type=TransactionType.BUY,
        from_currency=Currency.INR, from_amount=Decimal("1250"),
        to_currency=Currency.NPR, to_amount=Decimal("2000"),
        payment_method=PaymentMethod.CASH
    )


@pytest.fixture
def expense_500_npr():
    return ExpenseRow(amount=Decimal("500"), currency=Currency.NPR, category="tea")


# ===== ENGINE =====

class TestLedgerCalculator:
    """Reconciliation engine"""

    def test_expected_balance_example(self, sell_5000_npr, buy_2000_npr, expense_500_npr):
        summary = compute_ledger_summary(
            opening=CashBalances(npr=Decimal("10000"), inr=Decimal("0")),
            transactions=[sell_5000_npr, buy_2000_npr],
            expenses=[expense_500_npr],
            closing=CashBalances(npr=Decimal("12300"), inr=Decimal("0"))
        )

        assert summary.npr.received_total == Decimal("5000")
        assert summary.npr.paid_out == Decimal("2000")
        assert summary.npr.expenses == Decimal("500")
        assert summary.npr.credit_given == Decimal("0")
        assert summary.npr.expected_balance == Decimal("12500")
        assert summary.npr.closing_variance == Decimal("200")
        assert summary.npr.closing_variance_status == VarianceStatus.SHORTFALL
        assert summary.npr.closing_variance_style == "danger"

    def test_inr_side_mirrors_buy_and_sell(self, sell_5000_npr, buy_2000_npr):
        summary = compute_ledger_summary(
            opening=CashBalances(npr=Decimal("0"), inr=Decimal("5000")),
            transactions=[sell_5000_npr, buy_2000_npr]
        )

        assert summary.inr.received_total == Decimal("1250")
        assert summary.inr.paid_out == Decimal("3125")
        assert summary.inr.expected_balance == Decimal("3125")

    def test_credit_movements_cancel_in_variance(self):
        summary = compute_ledger_summary(
            opening=CashBalances(),
            credit_transactions=[
                CreditRow(transaction_type=CreditTransactionType.CREDIT_GIVEN, amount=Decimal("1000")),
                CreditRow(transaction_type=CreditTransactionType.PAYMENT_RECEIVED, amount=Decimal("1000")),
            ]
        )

        assert summary.npr.expected_balance == Decimal("-1000")
        assert summary.npr.total_in == Decimal("1000")
        assert summary.npr.total_out == Decimal("1000")
        assert summary.npr.variance == Decimal("0")
        assert summary.npr.variance_status == VarianceStatus.BALANCED
        assert summary.npr.variance_style == "neutral"

    def test_actual_total_omits_credit_given(self):
        summary = compute_ledger_summary(
            opening=CashBalances(npr=Decimal("100")),
            credit_transactions=[
                CreditRow(transaction_type=CreditTransactionType.CREDIT_GIVEN, amount=Decimal("40")),
                CreditRow(transaction_type=CreditTransactionType.PAYMENT_RECEIVED, amount=Decimal("10")),
            ]
        )

        assert summary.npr.actual_total == Decimal("110")
        assert summary.npr.expected_balance == Decimal("60")

    def test_cash_and_online_split(self):
        online_sell = ExchangeRow(
            transaction_type=TransactionType.SELL,
            from_currency=Currency.NPR, from_amount=Decimal("800"),
            to_currency=Currency.INR, to_amount=Decimal("500"),
            payment_method=PaymentMethod.ONLINE
        )
        cash_sell = online_sell.model_copy(update={
            "from_amount": Decimal("160"), "to_amount": Decimal("100"),
            "payment_method": PaymentMethod.CASH
        })

        summary = compute_ledger_summary(opening=CashBalances(), transactions=[online_sell, cash_sell])

        assert summary.npr.online_received == Decimal("800")
        assert summary.npr.cash_received == Decimal("160")
        assert summary.npr.received_total == Decimal("960")

    def test_inr_credit_feeds_inr_side(self):
        summary = compute_ledger_summary(
            opening=CashBalances(),
            credit_transactions=[
                CreditRow(transaction_type=CreditTransactionType.CREDIT_GIVEN,
                          amount=Decimal("300"), currency=Currency.INR)
            ]
        )

        assert summary.inr.credit_given == Decimal("300")
        assert summary.npr.credit_given == Decimal("0")

    def test_no_closing_means_no_closing_variance(self, sell_5000_npr):
        summary = compute_ledger_summary(opening=CashBalances(), transactions=[sell_5000_npr])

        assert summary.npr.closing_balance is None
        assert summary.npr.closing_variance is None
        assert summary.npr.closing_variance_status is None

    def test_idempotent(self, sell_5000_npr, buy_2000_npr, expense_500_npr):
        kwargs = dict(
            opening=CashBalances(npr=Decimal("10000"), inr=Decimal("2000")),
            transactions=[sell_5000_npr, buy_2000_npr],
            expenses=[expense_500_npr],
            receivings=[ReceivingRow(amount=Decimal("700"))]
        )

        assert compute_ledger_summary(**kwargs) == compute_ledger_summary(**kwargs)

    def test_staff_owes_only_counts_unconfirmed(self):
        staff = uuid4()
        summary = compute_ledger_summary(
            opening=CashBalances(),
            receivings=[
                ReceivingRow(amount=Decimal("700"), staff_id=staff),
                ReceivingRow(amount=Decimal("50"), currency=Currency.INR, staff_id=staff),
                ReceivingRow(amount=Decimal("900"), staff_id=staff, is_confirmed=True),
                ReceivingRow(amount=Decimal("400"), staff_id=uuid4()),
            ],
            staff_id=staff
        )

        assert summary.staff_owes_npr == Decimal("700")
        assert summary.staff_owes_inr == Decimal("50")
        # Never part of the cash variance
        assert summary.npr.variance == Decimal("0")

    def test_same_currency_exchange_rejected(self):
        bad = ExchangeRow(
            transaction_type=TransactionType.SELL,
            from_currency=Currency.NPR, from_amount=Decimal("100"),
            to_currency=Currency.NPR, to_amount=Decimal("100")
        )

        with pytest.raises(LedgerIntegrityError) as exc:
            compute_ledger_summary(opening=CashBalances(), transactions=[bad])
        assert exc.value.row_kind == "transaction"
        assert exc.value.row_index == 0

    @pytest.mark.parametrize("kwargs", [
        {"transactions": [ExchangeRow(transaction_type=TransactionType.SELL,
                                      from_currency=Currency.NPR, from_amount=Decimal("-1"),
                                      to_currency=Currency.INR, to_amount=Decimal("1"))]},
        {"transactions": [ExchangeRow(transaction_type=TransactionType.BUY,
                                      from_currency=Currency.INR, from_amount=Decimal("1"),
                                      to_currency=Currency.NPR, to_amount=Decimal("-1"))]},
        {"expenses": [ExpenseRow(amount=Decimal("-1"))]},
        {"credit_transactions": [CreditRow(transaction_type=CreditTransactionType.CREDIT_GIVEN,
                                           amount=Decimal("-5"))]},
        {"receivings": [ReceivingRow(amount=Decimal("-10"))]},
        {"closing": CashBalances(npr=Decimal("-1"))},
    ])
    def test_negative_amounts_rejected(self, kwargs):
        with pytest.raises(LedgerIntegrityError):
            compute_ledger_summary(opening=CashBalances(), **kwargs)

    def test_integrity_error_is_value_error(self):
        with pytest.raises(ValueError):
            compute_ledger_summary(opening=CashBalances(inr=Decimal("-1")))

    @pytest.mark.parametrize("value,expected", [
        (Decimal("0.01"), VarianceStatus.SHORTFALL),
        (Decimal("-0.01"), VarianceStatus.SURPLUS),
        (Decimal("0"), VarianceStatus.BALANCED),
    ])
    def test_variance_status(self, value, expected):
        assert variance_status(value) == expected

    def test_surplus_is_success(self):
        assert VarianceStatus.SURPLUS.style == "success"


# ===== BUSINESS DAY =====

class TestBusinessDay:
    """Cutoff bucketing"""

    def test_midnight_cutoff_is_calendar_day(self):
        assert bucket_date(datetime(2026, 3, 10, 23, 59)) == date(2026, 3, 10)
        assert bucket_date(datetime(2026, 3, 11, 0, 0)) == date(2026, 3, 11)

    def test_after_cutoff_counts_for_next_day(self):
        assert bucket_date(datetime(2026, 3, 10, 14, 59), 15, 0) == date(2026, 3, 10)
        assert bucket_date(datetime(2026, 3, 10, 15, 0), 15, 0) == date(2026, 3, 11)
        assert bucket_date(datetime(2026, 3, 10, 18, 30), 15, 0) == date(2026, 3, 11)

    def test_aware_timestamp_converted_to_shop_timezone(self):
        kathmandu = ZoneInfo("Asia/Kathmandu")
        # 18:20 UTC is 00:05 next day in Kathmandu (UTC+05:45)
        ts = datetime(2026, 3, 10, 18, 20, tzinfo=timezone.utc)
        assert bucket_date(ts, tz=kathmandu) == date(2026, 3, 11)

    def test_invalid_cutoff(self):
        with pytest.raises(ValueError):
            bucket_date(datetime(2026, 3, 10), 24, 0)

    @pytest.mark.parametrize("hour,minute", [(0, 0), (15, 0), (3, 30)])
    def test_window_matches_bucket(self, hour, minute):
        utc = ZoneInfo("UTC")
        start, end = day_window(date(2026, 3, 10), hour, minute, tz=utc)

        assert end - start == timedelta(days=1)
        assert bucket_date(start, hour, minute, tz=utc) == date(2026, 3, 10)
        assert bucket_date(end - timedelta(microseconds=1), hour, minute, tz=utc) == date(2026, 3, 10)
        assert bucket_date(end, hour, minute, tz=utc) == date(2026, 3, 11)


# ===== SERVICE =====

DAY = date(2026, 5, 1)


def _add_day_rows(db: Session, staff_id, at: datetime):
    db.add_all([
        CashCountRecord(
            staff_id=staff_id, date=DAY,
            opening_npr=Decimal("10000"), opening_inr=Decimal("0"),
            opening_npr_denoms={"1000": 10}, opening_inr_denoms={}
        ),
        ExchangeTransaction(
            staff_id=staff_id, transaction_type=TransactionType.SELL,
            from_currency=Currency.NPR, from_amount=Decimal("5000"),
            to_currency=Currency.INR, to_amount=Decimal("3125"),
            payment_method=PaymentMethod.CASH, created_at=at
        ),
        ExchangeTransaction(
            staff_id=staff_id, transaction_type=TransactionType.BUY,
            from_currency=Currency.INR, from_amount=Decimal("1250"),
            to_currency=Currency.NPR, to_amount=Decimal("2000"),
            payment_method=PaymentMethod.CASH, created_at=at
        ),
        Expense(
            staff_id=staff_id, description="Tea", amount=Decimal("500"),
            currency=Currency.NPR, category="general", expense_date=DAY
        ),
    ])
    db.commit()


class TestLedgerService:
    """Daily summary loaded from the database"""

    def test_daily_summary_for_staff(self, db_session: Session, staff_id):
        _add_day_rows(db_session, staff_id, datetime(2026, 5, 1, 10, 0))

        summary = LedgerService(db_session).get_daily_summary(DAY, staff_id)

        assert summary.npr.opening == Decimal("10000")
        assert summary.npr.expected_balance == Decimal("12500")
        assert summary.transaction_count == 2
        assert summary.expense_count == 1
        assert summary.is_closed is False
        assert summary.npr.closing_variance is None

    def test_other_staff_rows_excluded(self, db_session: Session, staff_id):
        _add_day_rows(db_session, staff_id, datetime(2026, 5, 1, 10, 0))

        summary = LedgerService(db_session).get_daily_summary(DAY, uuid4())

        assert summary.transaction_count == 0
        assert summary.npr.expected_balance == Decimal("0")

    def test_shop_wide_sums_all_staff(self, db_session: Session, staff_id):
        other = uuid4()
        _add_day_rows(db_session, staff_id, datetime(2026, 5, 1, 10, 0))
        db_session.add(CashCountRecord(
            staff_id=other, date=DAY,
            opening_npr=Decimal("1000"), opening_inr=Decimal("500"),
            opening_npr_denoms={"1000": 1}, opening_inr_denoms={"500": 1}
        ))
        db_session.commit()

        summary = LedgerService(db_session).get_daily_summary(DAY)

        assert summary.staff_id is None
        assert summary.npr.opening == Decimal("11000")
        assert summary.inr.opening == Decimal("500")

    def test_closing_variance_once_closed(self, db_session: Session, staff_id):
        _add_day_rows(db_session, staff_id, datetime(2026, 5, 1, 10, 0))
        record = db_session.query(CashCountRecord).filter_by(staff_id=staff_id).one()
        record.closing_npr = Decimal("12300")
        record.closing_inr = Decimal("1875")
        record.is_closed = True
        db_session.commit()

        summary = LedgerService(db_session).get_daily_summary(DAY, staff_id)

        assert summary.is_closed is True
        assert summary.npr.closing_variance == Decimal("200")
        assert summary.npr.closing_variance_status == VarianceStatus.SHORTFALL
        # INR: 0 + 1250 - 3125 = -1875 expected
        assert summary.inr.expected_balance == Decimal("-1875")

    def test_cutoff_moves_late_rows_to_next_day(self, db_session: Session, staff_id):
        db_session.add(SystemSettings(id=1, day_end_hour=15, day_end_minute=0))
        _add_day_rows(db_session, staff_id, datetime(2026, 5, 1, 16, 0))

        service = LedgerService(db_session)
        today = service.get_daily_summary(DAY, staff_id)
        tomorrow = service.get_daily_summary(DAY + timedelta(days=1), staff_id)

        assert today.transaction_count == 0
        assert tomorrow.transaction_count == 2

    def test_unconfirmed_receivings_from_any_day(self, db_session: Session, staff_id):
        db_session.add_all([
            MoneyReceiving(staff_id=staff_id, amount=Decimal("300"), currency=Currency.NPR,
                           method="esewa", created_at=datetime(2026, 4, 1, 9, 0)),
            MoneyReceiving(staff_id=staff_id, amount=Decimal("200"), currency=Currency.NPR,
                           method="esewa", created_at=datetime(2026, 5, 1, 9, 0)),
        ])
        db_session.commit()

        summary = LedgerService(db_session).get_daily_summary(DAY, staff_id)

        assert summary.staff_owes_npr == Decimal("500")

    def test_credit_rows_in_window(self, db_session: Session, staff_id):
        db_session.add(CreditTransaction(
            staff_id=staff_id, customer_id=uuid4(),
            transaction_type=CreditTransactionType.CREDIT_GIVEN,
            amount=Decimal("1000"), currency=Currency.NPR,
            payment_method=PaymentMethod.CASH, created_at=datetime(2026, 5, 1, 11, 0)
        ))
        db_session.commit()

        summary = LedgerService(db_session).get_daily_summary(DAY, staff_id)

        assert summary.credit_transaction_count == 1
        assert summary.npr.credit_given == Decimal("1000")
        assert summary.npr.expected_balance == Decimal("-1000")


# ===== API =====

class TestLedgerAPI:

    def test_daily_ledger_endpoint(self, client, db_session: Session, staff_id, staff_headers):
        _add_day_rows(db_session, staff_id, datetime(2026, 5, 1, 10, 0))

        response = client.get(
            "/api/v1/ledger/daily",
            params={"business_date": DAY.isoformat()},
            headers=staff_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["staff_id"] == str(staff_id)
        assert Decimal(data["npr"]["expected_balance"]) == Decimal("12500")
        assert data["npr"]["variance_status"] == "shortfall"

    def test_staff_cannot_read_other_ledger(self, client, staff_headers):
        response = client.get(
            "/api/v1/ledger/daily",
            params={"business_date": DAY.isoformat(), "staff_id": str(uuid4())},
            headers=staff_headers
        )

        assert response.status_code == 403

    def test_owner_reads_shop_wide(self, client, owner_headers):
        response = client.get(
            "/api/v1/ledger/daily",
            params={"business_date": DAY.isoformat()},
            headers=owner_headers
        )

        assert response.status_code == 200
        assert response.json()["staff_id"] is None

    def test_requires_token(self, client):
        response = client.get("/api/v1/ledger/daily", params={"business_date": DAY.isoformat()})

        assert response.status_code in (401, 403)

    def test_token_without_role_forbidden(self, client, staff_id):
        token = jwt.encode(
            {"sub": str(staff_id)},
            settings.APP_SECRET_STRING,
            algorithm=settings.ALGORITHM
        )

        response = client.get(
            f"/api/v1/ledger/staff-owes/{staff_id}",
            headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 403
        assert "owner, manager, staff" in response.json()["detail"]

    def test_invalid_token(self, client):
        response = client.get(
            "/api/v1/ledger/daily",
            params={"business_date": DAY.isoformat()},
            headers={"Authorization": "Bearer not-a-token"}
        )

        assert response.status_code == 401
