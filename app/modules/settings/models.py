"""
SQLAlchemy models for the settings module
"""

from app.database.database import Base
from sqlalchemy import Column, Integer, DateTime, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func


class SystemSettings(Base):
    """Shop-wide settings; a single row with id 1"""
    __tablename__ = "system_settings"

    id = Column(Integer, primary_key=True, default=1)
    day_end_hour = Column(Integer, nullable=False, default=0)
    day_end_minute = Column(Integer, nullable=False, default=0)
    updated_by = Column(UUID(as_uuid=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("day_end_hour BETWEEN 0 AND 23", name="ck_settings_day_end_hour"),
        CheckConstraint("day_end_minute BETWEEN 0 AND 59", name="ck_settings_day_end_minute"),
    )
