"""
SQLAlchemy models for the exchange module

- ExchangeTransaction: NPR⇄INR buy/sell at the counter
- CreditTransaction: credit extended to a customer or recovered from one

Customers and staff live in external systems; only their ids are stored.
"""

from app.database.database import Base
from sqlalchemy import Column, Numeric, Enum, Text, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from app.common.enums import Currency, PaymentMethod, TransactionType, CreditTransactionType
from app.common.mixins import IdMixin, StaffOwnedMixin, TimestampMixin


class ExchangeTransaction(Base, IdMixin, StaffOwnedMixin, TimestampMixin):
    """
    Currency exchange with a customer

    sell: customer pays NPR, receives INR
    buy:  customer pays INR, receives NPR
    """
    __tablename__ = "exchange_transactions"

    customer_id = Column(UUID(as_uuid=True), nullable=True, index=True)
    transaction_type = Column(Enum(TransactionType), nullable=False, index=True)
    from_currency = Column(Enum(Currency), nullable=False)
    from_amount = Column(Numeric(15, 2), nullable=False)
    to_currency = Column(Enum(Currency), nullable=False)
    to_amount = Column(Numeric(15, 2), nullable=False)
    exchange_rate = Column(Numeric(10, 4), nullable=True)
    payment_method = Column(Enum(PaymentMethod), nullable=False, default=PaymentMethod.CASH)
    notes = Column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint("from_amount >= 0", name="ck_exchange_from_amount_positive"),
        CheckConstraint("to_amount >= 0", name="ck_exchange_to_amount_positive"),
    )


class CreditTransaction(Base, IdMixin, StaffOwnedMixin, TimestampMixin):
    """Credit movement with a customer"""
    __tablename__ = "credit_transactions"

    customer_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    transaction_type = Column(Enum(CreditTransactionType), nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False)
    currency = Column(Enum(Currency), nullable=False, default=Currency.NPR)
    payment_method = Column(Enum(PaymentMethod), nullable=False, default=PaymentMethod.CASH)
    notes = Column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_credit_amount_positive"),
    )
