"""
Pydantic schemas for the settings module
"""

from pydantic import BaseModel, Field
from typing import Optional
from uuid import UUID
from datetime import datetime


class BusinessDayUpdate(BaseModel):
    """New end-of-day cutoff, shop-local time"""
    day_end_hour: int = Field(..., ge=0, le=23, description="Hour the business day ends")
    day_end_minute: int = Field(0, ge=0, le=59, description="Minute the business day ends")


class BusinessDaySettings(BaseModel):
    day_end_hour: int
    day_end_minute: int
    timezone: str
    is_default: bool = Field(description="True when no cutoff has been saved yet")
    updated_by: Optional[UUID] = None
    updated_at: Optional[datetime] = None
