"""
Pydantic schemas for the ledger module

Input rows are the read-only views the reconciliation engine works on; they
load straight from ORM objects (`from_attributes`). Amounts carry no
constraints here; the engine checks row integrity and rejects the whole day
with a LedgerIntegrityError.
"""

from pydantic import BaseModel, Field
from decimal import Decimal
from typing import Optional
from uuid import UUID
from datetime import date, datetime
from enum import Enum

from app.common.enums import Currency, PaymentMethod, TransactionType, CreditTransactionType


# ===== ENGINE INPUT ROWS =====

class ExchangeRow(BaseModel):
    transaction_type: TransactionType
    from_currency: Currency
    from_amount: Decimal
    to_currency: Currency
    to_amount: Decimal
    payment_method: PaymentMethod = PaymentMethod.CASH
    customer_id: Optional[UUID] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CreditRow(BaseModel):
    transaction_type: CreditTransactionType
    amount: Decimal
    currency: Currency = Currency.NPR
    customer_id: Optional[UUID] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ExpenseRow(BaseModel):
    amount: Decimal
    currency: Currency = Currency.NPR
    category: Optional[str] = None
    expense_date: Optional[date] = None

    model_config = {"from_attributes": True}


class ReceivingRow(BaseModel):
    amount: Decimal
    currency: Currency = Currency.NPR
    staff_id: Optional[UUID] = None
    is_confirmed: bool = False

    model_config = {"from_attributes": True}


class CashBalances(BaseModel):
    """Counted cash per currency (opening or closing)"""
    npr: Decimal = Field(default=Decimal("0"), description="NPR cash")
    inr: Decimal = Field(default=Decimal("0"), description="INR cash")


# ===== ENGINE OUTPUT =====

class VarianceStatus(str, Enum):
    """How a variance is presented: more cash owed back to reconcile is bad"""
    SHORTFALL = "shortfall"
    SURPLUS = "surplus"
    BALANCED = "balanced"

    @property
    def style(self) -> str:
        return {
            VarianceStatus.SHORTFALL: "danger",
            VarianceStatus.SURPLUS: "success",
            VarianceStatus.BALANCED: "neutral",
        }[self]


class CurrencyLedger(BaseModel):
    """Reconciliation of one currency side of the till"""
    currency: Currency
    opening: Decimal = Field(description="Opening counted cash")
    cash_received: Decimal = Field(description="Inflow paid in cash")
    online_received: Decimal = Field(description="Inflow paid online")
    received_total: Decimal = Field(description="All inflow from exchanges")
    paid_out: Decimal = Field(description="Outflow to customers from exchanges")
    expenses: Decimal = Field(description="Expenses in this currency")
    credit_given: Decimal = Field(description="Credit extended to customers")
    credit_received: Decimal = Field(description="Credit recovered from customers")
    expected_balance: Decimal = Field(description="opening + received - paid out - expenses - credit given")
    actual_total: Decimal = Field(description="opening + received + credit received - paid out - expenses")
    total_in: Decimal = Field(description="opening + received + credit received")
    total_out: Decimal = Field(description="paid out + expenses + credit given")
    variance: Decimal = Field(description="total_in - total_out; positive is a shortfall")
    variance_status: VarianceStatus
    variance_style: str
    closing_balance: Optional[Decimal] = Field(None, description="Closing counted cash")
    closing_variance: Optional[Decimal] = Field(None, description="expected_balance - closing_balance")
    closing_variance_status: Optional[VarianceStatus] = None
    closing_variance_style: Optional[str] = None

    model_config = {"frozen": True}


class LedgerSummary(BaseModel):
    """Two-currency daily ledger; recomputed on every read, never stored"""
    staff_id: Optional[UUID] = Field(None, description="Staff member, None for shop-wide")
    business_date: Optional[date] = Field(None, description="Business day")
    npr: CurrencyLedger
    inr: CurrencyLedger
    staff_owes_npr: Decimal = Field(description="Unconfirmed NPR receivings held by staff")
    staff_owes_inr: Decimal = Field(description="Unconfirmed INR receivings held by staff")
    transaction_count: int = 0
    credit_transaction_count: int = 0
    expense_count: int = 0
    is_closed: bool = False

    model_config = {"frozen": True}


class StaffOwes(BaseModel):
    staff_id: Optional[UUID] = None
    npr: Decimal = Decimal("0")
    inr: Decimal = Decimal("0")
    pending_count: int = 0
