"""
Pydantic schemas for the exchange module
"""

from pydantic import BaseModel, Field, model_validator
from decimal import Decimal
from typing import Optional, List
from uuid import UUID
from datetime import datetime

from app.common.enums import Currency, PaymentMethod, TransactionType, CreditTransactionType


# Direction is fixed by convention, not chosen per row
EXCHANGE_DIRECTIONS = {
    TransactionType.SELL: (Currency.NPR, Currency.INR),
    TransactionType.BUY: (Currency.INR, Currency.NPR),
}


# ===== EXCHANGE TRANSACTIONS =====

class ExchangeTransactionCreate(BaseModel):
    """Record a buy or sell at the counter"""
    transaction_type: TransactionType = Field(..., description="sell: NPR in, INR out; buy: INR in, NPR out")
    from_currency: Currency = Field(..., description="Currency the customer hands over")
    from_amount: Decimal = Field(..., gt=0, description="Amount the customer hands over")
    to_currency: Currency = Field(..., description="Currency the customer receives")
    to_amount: Decimal = Field(..., gt=0, description="Amount the customer receives")
    exchange_rate: Optional[Decimal] = Field(None, gt=0)
    payment_method: PaymentMethod = Field(default=PaymentMethod.CASH)
    customer_id: Optional[UUID] = None
    notes: Optional[str] = Field(None, max_length=500)

    @model_validator(mode="after")
    def validate_direction(self):
        if self.from_currency == self.to_currency:
            raise ValueError("from_currency and to_currency must differ")
        expected = EXCHANGE_DIRECTIONS[self.transaction_type]
        if (self.from_currency, self.to_currency) != expected:
            raise ValueError(
                f"A {self.transaction_type.value} goes from {expected[0].value} "
                f"to {expected[1].value}"
            )
        return self


class ExchangeTransactionOut(BaseModel):
    id: UUID
    staff_id: UUID
    customer_id: Optional[UUID] = None
    transaction_type: TransactionType
    from_currency: Currency
    from_amount: Decimal
    to_currency: Currency
    to_amount: Decimal
    exchange_rate: Optional[Decimal] = None
    payment_method: PaymentMethod
    notes: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class ExchangeTransactionList(BaseModel):
    transactions: List[ExchangeTransactionOut]
    total: int
    limit: int
    offset: int


# ===== CREDIT TRANSACTIONS =====

class CreditTransactionCreate(BaseModel):
    customer_id: UUID
    transaction_type: CreditTransactionType
    amount: Decimal = Field(..., gt=0)
    currency: Currency = Field(default=Currency.NPR)
    payment_method: PaymentMethod = Field(default=PaymentMethod.CASH)
    notes: Optional[str] = Field(None, max_length=500)


class CreditTransactionOut(BaseModel):
    id: UUID
    staff_id: UUID
    customer_id: UUID
    transaction_type: CreditTransactionType
    amount: Decimal
    currency: Currency
    payment_method: PaymentMethod
    notes: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class CreditTransactionList(BaseModel):
    credit_transactions: List[CreditTransactionOut]
    total: int
    limit: int
    offset: int


class CustomerCreditBalance(BaseModel):
    """Credit still owed by a customer: credit given minus payments received"""
    customer_id: UUID
    npr: Decimal = Field(default=Decimal("0"), description="Outstanding NPR credit")
    inr: Decimal = Field(default=Decimal("0"), description="Outstanding INR credit")
