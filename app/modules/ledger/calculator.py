"""
Daily Ledger Reconciliation engine

Turns one business day of raw rows (exchanges, credit movements, expenses,
money receivings) plus the counted opening/closing cash into the two-currency
LedgerSummary. Every screen that shows a reconciliation (daily report, cash
tracker close, ledger summary) goes through `compute_ledger_summary`.

NPR side:
    received_total  = Σ Sell.from_amount   (from NPR, cash + online)
    paid_out        = Σ Buy.to_amount      (to NPR)
INR side mirrors it:
    received_total  = Σ Buy.from_amount    (from INR, cash + online)
    paid_out        = Σ Sell.to_amount     (to INR)

Both sides then apply:
    expected_balance = opening + received_total - paid_out - expenses - credit_given
    actual_total     = opening + received_total + credit_received - paid_out - expenses
    variance         = (opening + received_total + credit_received)
                       - (paid_out + expenses + credit_given)
    closing_variance = expected_balance - closing        (only with a closing count)

A positive variance is a shortfall, a negative one a surplus.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence
from uuid import UUID
import logging

from app.common.enums import Currency, PaymentMethod, TransactionType, CreditTransactionType
from app.modules.ledger.exceptions import LedgerIntegrityError
from app.modules.ledger.schemas import (
    CashBalances, CreditRow, CurrencyLedger, ExchangeRow, ExpenseRow,
    LedgerSummary, ReceivingRow, VarianceStatus
)
from app.modules.receivings.settlement import summarize_staff_owes

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def variance_status(value: Decimal) -> VarianceStatus:
    """Map a signed variance to its presentation: positive is a shortfall"""
    if value > 0:
        return VarianceStatus.SHORTFALL
    if value < 0:
        return VarianceStatus.SURPLUS
    return VarianceStatus.BALANCED


def _as_rows(rows: Optional[Iterable], schema) -> List:
    if not rows:
        return []
    return [row if isinstance(row, schema) else schema.model_validate(row) for row in rows]


def _reject(message: str, row_kind: str, row_index: int = None):
    logger.warning(f"Ledger input rejected: {message}")
    raise LedgerIntegrityError(message, row_kind=row_kind, row_index=row_index)


def validate_inputs(
    opening: CashBalances,
    transactions: Sequence[ExchangeRow],
    credit_transactions: Sequence[CreditRow],
    expenses: Sequence[ExpenseRow],
    receivings: Sequence[ReceivingRow],
    closing: Optional[CashBalances] = None
) -> None:
    """
    Reject the day when any row is malformed.

    Raises:
        LedgerIntegrityError: same-currency exchange or negative amount
    """
    for label, balances in (("opening", opening), ("closing", closing)):
        if balances is None:
            continue
        if balances.npr < 0 or balances.inr < 0:
            _reject(f"The {label} cash count cannot be negative", label)

    for i, t in enumerate(transactions):
        if t.from_currency == t.to_currency:
            _reject(
                f"Exchange transaction #{i} converts {t.from_currency.value} into itself",
                "transaction", i
            )
        if t.from_amount < 0 or t.to_amount < 0:
            _reject(f"Exchange transaction #{i} has a negative amount", "transaction", i)

    for i, c in enumerate(credit_transactions):
        if c.amount < 0:
            _reject(f"Credit transaction #{i} has a negative amount", "credit_transaction", i)

    for i, e in enumerate(expenses):
        if e.amount < 0:
            _reject(f"Expense #{i} has a negative amount", "expense", i)

    for i, r in enumerate(receivings):
        if r.amount < 0:
            _reject(f"Money receiving #{i} has a negative amount", "receiving", i)


def _currency_ledger(
    currency: Currency,
    opening: Decimal,
    transactions: Sequence[ExchangeRow],
    credit_transactions: Sequence[CreditRow],
    expenses: Sequence[ExpenseRow],
    closing: Optional[Decimal]
) -> CurrencyLedger:
    # The side that brings this currency into the till, and the one paying it out
    if currency == Currency.NPR:
        inflow_type, outflow_type = TransactionType.SELL, TransactionType.BUY
    else:
        inflow_type, outflow_type = TransactionType.BUY, TransactionType.SELL

    cash_received = ZERO
    online_received = ZERO
    paid_out = ZERO
    for t in transactions:
        if t.transaction_type == inflow_type and t.from_currency == currency:
            if t.payment_method == PaymentMethod.ONLINE:
                online_received += t.from_amount
            else:
                cash_received += t.from_amount
        elif t.transaction_type == outflow_type and t.to_currency == currency:
            paid_out += t.to_amount

    received_total = cash_received + online_received

    expense_total = sum((e.amount for e in expenses if e.currency == currency), ZERO)

    credit_given = sum(
        (c.amount for c in credit_transactions
         if c.currency == currency and c.transaction_type == CreditTransactionType.CREDIT_GIVEN),
        ZERO
    )
    credit_received = sum(
        (c.amount for c in credit_transactions
         if c.currency == currency and c.transaction_type == CreditTransactionType.PAYMENT_RECEIVED),
        ZERO
    )

    expected_balance = opening + received_total - paid_out - expense_total - credit_given
    actual_total = opening + received_total + credit_received - paid_out - expense_total
    total_in = opening + received_total + credit_received
    total_out = paid_out + expense_total + credit_given
    variance = total_in - total_out
    status = variance_status(variance)

    closing_variance = None
    closing_status = None
    if closing is not None:
        closing_variance = expected_balance - closing
        closing_status = variance_status(closing_variance)

    return CurrencyLedger(
        currency=currency,
        opening=opening,
        cash_received=cash_received,
        online_received=online_received,
        received_total=received_total,
        paid_out=paid_out,
        expenses=expense_total,
        credit_given=credit_given,
        credit_received=credit_received,
        expected_balance=expected_balance,
        actual_total=actual_total,
        total_in=total_in,
        total_out=total_out,
        variance=variance,
        variance_status=status,
        variance_style=status.style,
        closing_balance=closing,
        closing_variance=closing_variance,
        closing_variance_status=closing_status,
        closing_variance_style=closing_status.style if closing_status else None
    )


def compute_ledger_summary(
    opening: CashBalances,
    transactions: Optional[Iterable] = None,
    credit_transactions: Optional[Iterable] = None,
    expenses: Optional[Iterable] = None,
    receivings: Optional[Iterable] = None,
    closing: Optional[CashBalances] = None,
    staff_id: Optional[UUID] = None,
    business_date: Optional[date] = None,
    is_closed: bool = False
) -> LedgerSummary:
    """
    Compute the two-currency ledger summary for one staff member and day.

    Args:
        opening: Opening counted cash
        transactions: Exchange rows already bucketed into the business day
        credit_transactions: Credit rows for the day
        expenses: Expense rows for the day
        receivings: Money receivings, not limited to the day; only the
            unconfirmed ones of `staff_id` (or everyone when None) count
        closing: Closing counted cash, when the day has been counted
        staff_id: Staff member the summary belongs to
        business_date: Informational, copied to the summary

    Returns:
        LedgerSummary

    Raises:
        LedgerIntegrityError: when any input row is malformed
    """
    transactions = _as_rows(transactions, ExchangeRow)
    credit_transactions = _as_rows(credit_transactions, CreditRow)
    expenses = _as_rows(expenses, ExpenseRow)
    receivings = _as_rows(receivings, ReceivingRow)

    validate_inputs(opening, transactions, credit_transactions, expenses, receivings, closing)

    npr = _currency_ledger(
        Currency.NPR, opening.npr, transactions, credit_transactions, expenses,
        closing.npr if closing is not None else None
    )
    inr = _currency_ledger(
        Currency.INR, opening.inr, transactions, credit_transactions, expenses,
        closing.inr if closing is not None else None
    )
    owes = summarize_staff_owes(receivings, staff_id)

    return LedgerSummary(
        staff_id=staff_id,
        business_date=business_date,
        npr=npr,
        inr=inr,
        staff_owes_npr=owes.npr,
        staff_owes_inr=owes.inr,
        transaction_count=len(transactions),
        credit_transaction_count=len(credit_transactions),
        expense_count=len(expenses),
        is_closed=is_closed
    )
