from pydantic import BaseModel, Field, field_validator
from decimal import Decimal
from typing import Optional, List
from uuid import UUID
from datetime import date, datetime

from app.common.enums import Currency


class ExpenseCreate(BaseModel):
    description: str = Field(..., min_length=1, max_length=255)
    amount: Decimal = Field(..., gt=0)
    currency: Currency = Field(default=Currency.NPR)
    category: str = Field(default="general", max_length=50)
    expense_date: date = Field(..., description="Business day the expense belongs to")
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("description", "category")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field cannot be blank")
        return v


class ExpenseOut(BaseModel):
    id: UUID
    staff_id: UUID
    description: str
    amount: Decimal
    currency: Currency
    category: str
    expense_date: date
    notes: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class ExpenseList(BaseModel):
    expenses: List[ExpenseOut]
    total: int
    limit: int
    offset: int
