"""
SQLAlchemy models for the expenses module
"""

from app.database.database import Base
from sqlalchemy import Column, String, Numeric, Enum, Text, Date, CheckConstraint
from app.common.enums import Currency
from app.common.mixins import IdMixin, StaffOwnedMixin, TimestampMixin


class Expense(Base, IdMixin, StaffOwnedMixin, TimestampMixin):
    """Shop expense paid out of the till; dated by business day, not timestamp"""
    __tablename__ = "expenses"

    description = Column(String(255), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    currency = Column(Enum(Currency), nullable=False, default=Currency.NPR)
    category = Column(String(50), nullable=False, default="general", index=True)
    expense_date = Column(Date, nullable=False, index=True)
    notes = Column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_expense_amount_positive"),
    )
