"""
Business logic for money receivings and staff settlement
"""

from fastapi import HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy import desc
from typing import Optional, Dict, Any
from uuid import UUID
from datetime import date
import logging

from app.modules.auth.schemas import AuthContext
from app.modules.ledger.business_day import day_window, now_local
from app.modules.ledger.exceptions import LedgerIntegrityError, SettlementError
from app.modules.ledger.schemas import StaffOwes
from app.modules.receivings.models import MoneyReceiving
from app.modules.receivings.schemas import MoneyReceivingCreate
from app.modules.receivings.settlement import summarize_staff_owes, mark_confirmed
from app.modules.settings.service import SettingsService

logger = logging.getLogger(__name__)


class ReceivingService:
    """Money receivings held by staff until confirmed"""

    def __init__(self, db: Session):
        self.db = db

    def create_receiving(self, data: MoneyReceivingCreate, staff_id: UUID) -> MoneyReceiving:
        try:
            receiving = MoneyReceiving(
                staff_id=staff_id,
                amount=data.amount,
                currency=data.currency,
                method=data.method,
                notes=data.notes,
                is_confirmed=False,
                created_at=now_local()
            )
            self.db.add(receiving)
            self.db.commit()
            self.db.refresh(receiving)
            logger.info(
                f"Receiving {receiving.id}: {data.amount} {data.currency.value} "
                f"via {data.method} held by {staff_id}"
            )
            return receiving

        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Integrity error while saving the receiving"
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error saving receiving: {e}")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=f"Database unavailable: {str(e)}"
            )

    def list_receivings(self, staff_id: Optional[UUID] = None,
                        is_confirmed: Optional[bool] = None,
                        start_date: Optional[date] = None, end_date: Optional[date] = None,
                        limit: int = 100, offset: int = 0) -> Dict[str, Any]:
        """List receivings; the date range is in business days"""
        query = self.db.query(MoneyReceiving)

        if staff_id:
            query = query.filter(MoneyReceiving.staff_id == staff_id)
        if is_confirmed is not None:
            query = query.filter(MoneyReceiving.is_confirmed == is_confirmed)
        if start_date or end_date:
            hour, minute = SettingsService(self.db).get_cutoff()
            if start_date:
                start, _ = day_window(start_date, hour, minute)
                query = query.filter(MoneyReceiving.created_at >= start)
            if end_date:
                _, end = day_window(end_date, hour, minute)
                query = query.filter(MoneyReceiving.created_at < end)

        query = query.order_by(desc(MoneyReceiving.created_at))

        total = query.count()
        receivings = query.offset(offset).limit(limit).all()

        return {
            "receivings": receivings,
            "total": total,
            "limit": limit,
            "offset": offset
        }

    def get_receiving(self, receiving_id: UUID) -> MoneyReceiving:
        receiving = self.db.query(MoneyReceiving).filter(MoneyReceiving.id == receiving_id).first()
        if not receiving:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Receiving not found"
            )
        return receiving

    def confirm_receiving(self, receiving_id: UUID, confirmer_id: UUID) -> MoneyReceiving:
        """Confirm a hand-over; the amount stops counting as owed by the staff member"""
        receiving = self.get_receiving(receiving_id)

        try:
            mark_confirmed(receiving, confirmer_id, now_local())
        except SettlementError as e:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=str(e)
            )

        try:
            self.db.commit()
            self.db.refresh(receiving)
            logger.info(
                f"Receiving {receiving_id} ({receiving.amount} {receiving.currency.value}) "
                f"of staff {receiving.staff_id} confirmed by {confirmer_id}"
            )
            return receiving
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error confirming receiving {receiving_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=f"Database unavailable: {str(e)}"
            )

    def delete_receiving(self, receiving_id: UUID, auth_context: AuthContext) -> None:
        """Owner/manager may delete any receiving; staff only their own unconfirmed ones"""
        receiving = self.get_receiving(receiving_id)

        if not auth_context.is_admin:
            if receiving.staff_id != auth_context.user_id:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="You can only delete your own receivings"
                )
            if receiving.is_confirmed:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="Confirmed receivings can only be deleted by an owner or manager"
                )

        try:
            self.db.delete(receiving)
            self.db.commit()
            logger.info(f"Receiving {receiving_id} deleted by {auth_context.user_id}")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error deleting receiving {receiving_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=f"Database unavailable: {str(e)}"
            )

    def get_staff_owes(self, staff_id: UUID) -> StaffOwes:
        """Pending totals across every day, not only the current one"""
        pending = self.db.query(MoneyReceiving).filter(
            MoneyReceiving.staff_id == staff_id,
            MoneyReceiving.is_confirmed.is_(False)
        ).all()

        try:
            return summarize_staff_owes(pending, staff_id)
        except LedgerIntegrityError as e:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=str(e)
            )
