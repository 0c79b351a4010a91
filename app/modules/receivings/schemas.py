from pydantic import BaseModel, Field, field_validator
from decimal import Decimal
from typing import Optional, List
from uuid import UUID
from datetime import datetime

from app.common.enums import Currency


class MoneyReceivingCreate(BaseModel):
    """Money collected by the current staff member outside the till"""
    amount: Decimal = Field(..., gt=0)
    currency: Currency = Field(default=Currency.NPR)
    method: str = Field(default="cash", max_length=30, description="cash, esewa, bank, ...")
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("method")
    @classmethod
    def normalize_method(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            raise ValueError("method cannot be blank")
        return v


class MoneyReceivingOut(BaseModel):
    id: UUID
    staff_id: UUID
    amount: Decimal
    currency: Currency
    method: str
    notes: Optional[str] = None
    is_confirmed: bool
    confirmed_by: Optional[UUID] = None
    confirmed_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class MoneyReceivingList(BaseModel):
    receivings: List[MoneyReceivingOut]
    total: int
    limit: int
    offset: int
