"""
SQLAlchemy models for the cash tracker module

CashCountRecord: one row per staff member and business day holding the
counted opening cash and, once the day is closed, the counted closing cash.
Denomination breakdowns are kept next to the totals so a following day can
be seeded from them.
"""

from app.database.database import Base
from sqlalchemy import Column, Date, Boolean, DateTime, Numeric, Text, JSON, UniqueConstraint
from app.common.mixins import IdMixin, StaffOwnedMixin, TimestampMixin
import enum


class DayState(str, enum.Enum):
    """Lifecycle of a staff member's business day"""
    NOT_STARTED = "not_started"
    OPENED = "opened"
    CLOSED = "closed"


class CashCountRecord(Base, IdMixin, StaffOwnedMixin, TimestampMixin):
    """
    Daily cash count of a staff member

    Created when the day is opened; closing fields are filled when the day
    is closed and stay frozen afterwards except through owner corrections.
    """
    __tablename__ = "staff_cash_tracker"

    date = Column(Date, nullable=False, index=True)

    # Opening count
    opening_npr = Column(Numeric(15, 2), nullable=False, default=0)
    opening_inr = Column(Numeric(15, 2), nullable=False, default=0)
    opening_npr_denoms = Column(JSON, nullable=False, default=dict)
    opening_inr_denoms = Column(JSON, nullable=False, default=dict)

    # Closing count (only once closed)
    closing_npr = Column(Numeric(15, 2), nullable=True)
    closing_inr = Column(Numeric(15, 2), nullable=True)
    closing_npr_denoms = Column(JSON, nullable=True)
    closing_inr_denoms = Column(JSON, nullable=True)

    is_closed = Column(Boolean, nullable=False, default=False, index=True)
    closed_at = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("staff_id", "date", name="uq_cash_tracker_staff_date"),
    )

    @property
    def state(self) -> DayState:
        return DayState.CLOSED if self.is_closed else DayState.OPENED

    def append_note(self, note: str) -> None:
        if not note:
            return
        self.notes = f"{self.notes}\n{note}" if self.notes else note
