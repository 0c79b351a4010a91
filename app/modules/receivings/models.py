"""
SQLAlchemy models for the receivings module
"""

from app.database.database import Base
from sqlalchemy import Column, String, Numeric, Enum, Text, Boolean, DateTime, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from app.common.enums import Currency
from app.common.mixins import IdMixin, StaffOwnedMixin, TimestampMixin


class MoneyReceiving(Base, IdMixin, StaffOwnedMixin, TimestampMixin):
    """
    Money a staff member collected outside the till (eSewa, bank, cash in hand)

    Stays "owed" by the staff member until an owner or manager confirms the
    hand-over.
    """
    __tablename__ = "money_receivings"

    amount = Column(Numeric(15, 2), nullable=False)
    currency = Column(Enum(Currency), nullable=False, default=Currency.NPR)
    method = Column(String(30), nullable=False, default="cash")
    notes = Column(Text, nullable=True)

    is_confirmed = Column(Boolean, nullable=False, default=False, index=True)
    confirmed_by = Column(UUID(as_uuid=True), nullable=True)
    confirmed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_receiving_amount_positive"),
    )
