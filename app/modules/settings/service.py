from fastapi import HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from typing import Tuple
from uuid import UUID
import logging

from app.core.config import settings
from app.modules.settings.models import SystemSettings
from app.modules.settings.schemas import BusinessDayUpdate, BusinessDaySettings

logger = logging.getLogger(__name__)

SETTINGS_ROW_ID = 1


class SettingsService:
    """Shop-wide settings (business day cutoff)"""

    def __init__(self, db: Session):
        self.db = db

    def _get_row(self):
        return self.db.query(SystemSettings).filter(SystemSettings.id == SETTINGS_ROW_ID).first()

    def get_cutoff(self) -> Tuple[int, int]:
        """Saved (hour, minute) cutoff, or the configured default"""
        row = self._get_row()
        if row is None:
            return settings.DAY_END_HOUR, settings.DAY_END_MINUTE
        return row.day_end_hour, row.day_end_minute

    def get_business_day(self) -> BusinessDaySettings:
        row = self._get_row()
        if row is None:
            return BusinessDaySettings(
                day_end_hour=settings.DAY_END_HOUR,
                day_end_minute=settings.DAY_END_MINUTE,
                timezone=settings.BUSINESS_TIMEZONE,
                is_default=True
            )
        return BusinessDaySettings(
            day_end_hour=row.day_end_hour,
            day_end_minute=row.day_end_minute,
            timezone=settings.BUSINESS_TIMEZONE,
            is_default=False,
            updated_by=row.updated_by,
            updated_at=row.updated_at
        )

    def update_business_day(self, data: BusinessDayUpdate, user_id: UUID) -> BusinessDaySettings:
        """Save the cutoff; rows already recorded are re-bucketed on the next read"""
        try:
            row = self._get_row()
            if row is None:
                row = SystemSettings(id=SETTINGS_ROW_ID)
                self.db.add(row)

            row.day_end_hour = data.day_end_hour
            row.day_end_minute = data.day_end_minute
            row.updated_by = user_id

            self.db.commit()
            self.db.refresh(row)
            logger.info(
                f"Business day cutoff set to {data.day_end_hour:02d}:{data.day_end_minute:02d} by {user_id}"
            )
            return self.get_business_day()

        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error saving business day settings: {e}")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=f"Database unavailable: {str(e)}"
            )
