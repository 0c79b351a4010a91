"""
Day lifecycle of the staff cash tracker

A staff member's business day moves not_started -> opened -> closed:
- open_day: counted opening cash (denomination maps) creates the record
- close_day: counted closing cash freezes the day and returns the ledger
- start_next_day: seeds the following day's opening from a closed day

Owners and managers may correct the counted figures afterwards; no summary
is stored, so every read after a correction reflects it.
"""

from fastapi import HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy import desc, or_
from typing import Optional, Dict, Any
from uuid import UUID
from datetime import date, timedelta
import logging

from app.modules.auth.schemas import AuthContext
from app.modules.cash_tracker.denominations import denomination_total, is_empty_count
from app.modules.cash_tracker.models import CashCountRecord, DayState
from app.modules.cash_tracker.schemas import (
    DayOpen, DayClose, NextDayStart, BalanceCorrection, CashCountOut, DayStatus, DayCloseResult
)
from app.modules.ledger.business_day import now_local
from app.modules.ledger.service import LedgerService

logger = logging.getLogger(__name__)


class CashTrackerService:
    """Opening/closing cash counts per staff member and business day"""

    def __init__(self, db: Session):
        self.db = db

    def _find(self, staff_id: UUID, business_date: date) -> Optional[CashCountRecord]:
        return self.db.query(CashCountRecord).filter(
            CashCountRecord.staff_id == staff_id,
            CashCountRecord.date == business_date
        ).first()

    def _get_or_404(self, staff_id: UUID, business_date: date) -> CashCountRecord:
        record = self._find(staff_id, business_date)
        if not record:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"No cash count found for {business_date}"
            )
        return record

    def _database_error(self, action: str, e: Exception) -> HTTPException:
        self.db.rollback()
        logger.error(f"Error {action}: {e}")
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Database unavailable: {str(e)}"
        )

    def get_day(self, staff_id: UUID, business_date: date) -> DayStatus:
        """State of the day, with the record once it has been opened"""
        record = self._find(staff_id, business_date)
        return DayStatus(
            staff_id=staff_id,
            date=business_date,
            state=record.state if record else DayState.NOT_STARTED,
            record=CashCountOut.model_validate(record) if record else None
        )

    def list_days(self, start_date: Optional[date] = None, end_date: Optional[date] = None,
                  staff_id: Optional[UUID] = None, is_closed: Optional[bool] = None,
                  limit: int = 100, offset: int = 0) -> Dict[str, Any]:
        query = self.db.query(CashCountRecord)

        if start_date:
            query = query.filter(CashCountRecord.date >= start_date)
        if end_date:
            query = query.filter(CashCountRecord.date <= end_date)
        if staff_id:
            query = query.filter(CashCountRecord.staff_id == staff_id)
        if is_closed is not None:
            query = query.filter(CashCountRecord.is_closed == is_closed)

        query = query.order_by(desc(CashCountRecord.date))

        total = query.count()
        records = query.offset(offset).limit(limit).all()

        return {
            "records": records,
            "total": total,
            "limit": limit,
            "offset": offset
        }

    def open_day(self, data: DayOpen, staff_id: UUID) -> CashCountRecord:
        """Open the business day with the counted opening cash"""
        try:
            if is_empty_count(data.npr_denominations) and is_empty_count(data.inr_denominations):
                raise HTTPException(
                    status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                    detail="Please enter at least one denomination count"
                )

            if self._find(staff_id, data.business_date):
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail=f"The day {data.business_date} has already been started"
                )

            record = CashCountRecord(
                staff_id=staff_id,
                date=data.business_date,
                opening_npr=denomination_total(data.npr_denominations),
                opening_inr=denomination_total(data.inr_denominations),
                opening_npr_denoms=data.npr_denominations,
                opening_inr_denoms=data.inr_denominations,
                is_closed=False,
                notes=data.notes,
                created_at=now_local()
            )
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)

            logger.info(
                f"Day {data.business_date} opened for staff {staff_id}: "
                f"NPR {record.opening_npr}, INR {record.opening_inr}"
            )
            return record

        except HTTPException:
            raise
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"The day {data.business_date} has already been started"
            )
        except SQLAlchemyError as e:
            raise self._database_error(f"opening day {data.business_date}", e)

    def close_day(self, business_date: date, data: DayClose, staff_id: UUID) -> DayCloseResult:
        """Close the day with the counted closing cash and return its ledger"""
        try:
            record = self._find(staff_id, business_date)
            if not record:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail=f"The day {business_date} has not been started"
                )
            if record.is_closed:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail=f"The day {business_date} is already closed"
                )

            record.closing_npr = denomination_total(data.npr_denominations)
            record.closing_inr = denomination_total(data.inr_denominations)
            record.closing_npr_denoms = data.npr_denominations
            record.closing_inr_denoms = data.inr_denominations
            record.is_closed = True
            record.closed_at = now_local()
            record.append_note(data.notes)
            self.db.flush()

            # The day stays open when its rows fail the integrity checks
            summary = LedgerService(self.db).get_daily_summary(business_date, staff_id)

            self.db.commit()
            self.db.refresh(record)

        except HTTPException:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            raise self._database_error(f"closing day {business_date}", e)

        logger.info(
            f"Day {business_date} closed for staff {staff_id}: "
            f"NPR closing {record.closing_npr} (variance {summary.npr.closing_variance}), "
            f"INR closing {record.closing_inr} (variance {summary.inr.closing_variance})"
        )
        return DayCloseResult(record=CashCountOut.model_validate(record), summary=summary)

    def start_next_day(self, data: NextDayStart, staff_id: UUID) -> CashCountRecord:
        """
        Open the following day with the closing cash of a closed day.

        An existing record on the target date is replaced when
        `replace_existing` is set, otherwise the request is rejected.
        """
        target_date = data.target_date or data.from_date + timedelta(days=1)

        try:
            source = self._find(staff_id, data.from_date)
            if not source:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail=f"No cash count found for {data.from_date}"
                )
            if not source.is_closed:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail=f"The day {data.from_date} must be closed before starting the next one"
                )

            existing = self._find(staff_id, target_date)
            if existing:
                if not data.replace_existing:
                    raise HTTPException(
                        status_code=status.HTTP_409_CONFLICT,
                        detail=f"The day {target_date} has already been started"
                    )
                logger.info(f"Replacing existing cash count {existing.id} on {target_date} for staff {staff_id}")
                self.db.delete(existing)
                self.db.flush()

            record = CashCountRecord(
                staff_id=staff_id,
                date=target_date,
                opening_npr=source.closing_npr or 0,
                opening_inr=source.closing_inr or 0,
                opening_npr_denoms=dict(source.closing_npr_denoms or {}),
                opening_inr_denoms=dict(source.closing_inr_denoms or {}),
                is_closed=False,
                notes=f"Carried over from {data.from_date}",
                created_at=now_local()
            )
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)

            logger.info(
                f"Day {target_date} started for staff {staff_id} from {data.from_date}: "
                f"NPR {record.opening_npr}, INR {record.opening_inr}"
            )
            return record

        except HTTPException:
            raise
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"The day {target_date} has already been started"
            )
        except SQLAlchemyError as e:
            raise self._database_error(f"starting day {target_date}", e)

    def delete_day(self, staff_id: UUID, business_date: date, auth_context: AuthContext) -> None:
        """
        Delete a cash count.

        Staff may only delete their own unclosed day; owner/manager any day.
        A following day seeded from this one keeps its opening figures.
        """
        record = self._get_or_404(staff_id, business_date)

        if not auth_context.is_admin:
            if record.staff_id != auth_context.user_id:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="You can only delete your own cash count"
                )
            if record.is_closed:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="A closed day can only be deleted by an owner or manager"
                )

        try:
            following = self.db.query(CashCountRecord).filter(
                CashCountRecord.staff_id == staff_id,
                CashCountRecord.date > business_date,
                or_(
                    CashCountRecord.date == business_date + timedelta(days=1),
                    CashCountRecord.notes.like(f"%Carried over from {business_date}%")
                )
            ).order_by(CashCountRecord.date).all()
            for day in following:
                logger.warning(
                    f"Deleting day {business_date} of staff {staff_id}; "
                    f"day {day.date} ({day.id}) keeps its opening figures"
                )

            self.db.delete(record)
            self.db.commit()
            logger.info(f"Day {business_date} of staff {staff_id} deleted by {auth_context.user_id}")
        except SQLAlchemyError as e:
            raise self._database_error(f"deleting day {business_date}", e)

    def _apply_correction(self, record: CashCountRecord, prefix: str,
                          data: BalanceCorrection, user_id: UUID) -> None:
        for currency, counts, amount in (
            ("npr", data.npr_denominations, data.npr_amount),
            ("inr", data.inr_denominations, data.inr_amount),
        ):
            if counts is not None:
                setattr(record, f"{prefix}_{currency}", denomination_total(counts))
                setattr(record, f"{prefix}_{currency}_denoms", counts)
            elif amount is not None:
                setattr(record, f"{prefix}_{currency}", amount)
                # The old breakdown no longer adds up to the corrected amount
                setattr(record, f"{prefix}_{currency}_denoms", {})

        note = f"{prefix.capitalize()} corrected by {user_id}"
        record.append_note(f"{note}: {data.notes}" if data.notes else note)

    def correct_opening(self, staff_id: UUID, business_date: date,
                        data: BalanceCorrection, user_id: UUID) -> CashCountRecord:
        """Overwrite the opening count (owner/manager)"""
        try:
            record = self._get_or_404(staff_id, business_date)
            self._apply_correction(record, "opening", data, user_id)

            self.db.commit()
            self.db.refresh(record)

            logger.info(
                f"Opening of {business_date} for staff {staff_id} corrected by {user_id}: "
                f"NPR {record.opening_npr}, INR {record.opening_inr}"
            )
            return record

        except HTTPException:
            raise
        except SQLAlchemyError as e:
            raise self._database_error(f"correcting opening of {business_date}", e)

    def correct_closing(self, staff_id: UUID, business_date: date,
                        data: BalanceCorrection, user_id: UUID) -> CashCountRecord:
        """Overwrite the closing count of a closed day (owner/manager)"""
        try:
            record = self._get_or_404(staff_id, business_date)
            if not record.is_closed:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail=f"The day {business_date} is not closed yet"
                )
            self._apply_correction(record, "closing", data, user_id)

            self.db.commit()
            self.db.refresh(record)

            logger.info(
                f"Closing of {business_date} for staff {staff_id} corrected by {user_id}: "
                f"NPR {record.closing_npr}, INR {record.closing_inr}"
            )
            return record

        except HTTPException:
            raise
        except SQLAlchemyError as e:
            raise self._database_error(f"correcting closing of {business_date}", e)
