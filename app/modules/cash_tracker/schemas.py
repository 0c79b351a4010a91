"""
Pydantic schemas for the cash tracker module

Opening and closing counts are submitted as denomination maps; totals are
always derived server-side from the maps.
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from decimal import Decimal
from typing import Optional, List, Dict
from uuid import UUID
from datetime import date, datetime
from app.common.enums import Currency
from app.modules.cash_tracker.models import DayState
from app.modules.cash_tracker.denominations import validate_counts
from app.modules.ledger.schemas import LedgerSummary


def _npr_counts(v):
    return validate_counts(v, Currency.NPR)


def _inr_counts(v):
    return validate_counts(v, Currency.INR)


class DayOpen(BaseModel):
    """Opening count for a business day"""
    business_date: date = Field(..., description="Business date being opened")
    npr_denominations: Dict[str, int] = Field(default_factory=dict, description="NPR notes counted")
    inr_denominations: Dict[str, int] = Field(default_factory=dict, description="INR notes counted")
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("npr_denominations")
    @classmethod
    def validate_npr(cls, v):
        return _npr_counts(v)

    @field_validator("inr_denominations")
    @classmethod
    def validate_inr(cls, v):
        return _inr_counts(v)


class DayClose(BaseModel):
    """Closing count for a business day"""
    npr_denominations: Dict[str, int] = Field(default_factory=dict, description="NPR notes counted")
    inr_denominations: Dict[str, int] = Field(default_factory=dict, description="INR notes counted")
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("npr_denominations")
    @classmethod
    def validate_npr(cls, v):
        return _npr_counts(v)

    @field_validator("inr_denominations")
    @classmethod
    def validate_inr(cls, v):
        return _inr_counts(v)


class NextDayStart(BaseModel):
    """Seed the next business day from a closed one"""
    from_date: date = Field(..., description="Closed day to carry the cash from")
    target_date: Optional[date] = Field(None, description="Day to open, defaults to the following date")
    replace_existing: bool = Field(True, description="Delete and replace an existing record on the target date")

    @model_validator(mode="after")
    def validate_dates(self):
        if self.target_date is not None and self.target_date <= self.from_date:
            raise ValueError("target_date must be after from_date")
        return self


class BalanceCorrection(BaseModel):
    """
    Owner-level correction of an opening or closing count.

    Send either denomination maps (totals are recomputed) or direct amounts.
    """
    npr_denominations: Optional[Dict[str, int]] = None
    inr_denominations: Optional[Dict[str, int]] = None
    npr_amount: Optional[Decimal] = Field(None, ge=0)
    inr_amount: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("npr_denominations")
    @classmethod
    def validate_npr(cls, v):
        return None if v is None else _npr_counts(v)

    @field_validator("inr_denominations")
    @classmethod
    def validate_inr(cls, v):
        return None if v is None else _inr_counts(v)

    @model_validator(mode="after")
    def validate_one_source(self):
        if self.npr_denominations is not None and self.npr_amount is not None:
            raise ValueError("Send either npr_denominations or npr_amount, not both")
        if self.inr_denominations is not None and self.inr_amount is not None:
            raise ValueError("Send either inr_denominations or inr_amount, not both")
        if all(v is None for v in (self.npr_denominations, self.inr_denominations,
                                   self.npr_amount, self.inr_amount)):
            raise ValueError("Nothing to correct")
        return self


class CashCountOut(BaseModel):
    id: UUID
    staff_id: UUID
    date: date
    opening_npr: Decimal
    opening_inr: Decimal
    opening_npr_denoms: Dict[str, int] = {}
    opening_inr_denoms: Dict[str, int] = {}
    closing_npr: Optional[Decimal] = None
    closing_inr: Optional[Decimal] = None
    closing_npr_denoms: Optional[Dict[str, int]] = None
    closing_inr_denoms: Optional[Dict[str, int]] = None
    is_closed: bool
    closed_at: Optional[datetime] = None
    notes: Optional[str] = None
    state: DayState
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class DayStatus(BaseModel):
    """State of a staff member's day, with the record when one exists"""
    staff_id: UUID
    date: date
    state: DayState
    record: Optional[CashCountOut] = None


class DayCloseResult(BaseModel):
    record: CashCountOut
    summary: LedgerSummary


class CashCountList(BaseModel):
    records: List[CashCountOut]
    total: int
    limit: int
    offset: int
