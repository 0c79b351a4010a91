from fastapi import APIRouter, Depends, HTTPException, status, Query, Path
from typing import Optional
from uuid import UUID
from datetime import date

from app.core.config import settings
from app.dependencies.dbDependecies import db_dependency
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.schemas import AuthContext
from app.modules.cash_tracker.schemas import (
    DayOpen, DayClose, NextDayStart, BalanceCorrection,
    CashCountOut, CashCountList, DayStatus, DayCloseResult
)
from app.modules.cash_tracker.service import CashTrackerService

cash_tracker_router = APIRouter(prefix="/cash-tracker", tags=["Cash Tracker"])


def _resolve_staff(auth_context: AuthContext, staff_id: Optional[UUID]) -> UUID:
    """Staff act on their own day; owner/manager may name another staff member"""
    if staff_id is None or staff_id == auth_context.user_id:
        return auth_context.user_id
    if not auth_context.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Staff can only access their own cash count"
        )
    return staff_id


@cash_tracker_router.post("/open", response_model=CashCountOut, status_code=status.HTTP_201_CREATED)
def open_day(
    day: DayOpen,
    db: db_dependency,
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    """
    Start the business day with the counted opening cash.

    - At least one denomination must be counted
    - 409 when the day has already been started
    """
    return CashTrackerService(db).open_day(day, auth_context.user_id)


@cash_tracker_router.post("/days/{business_date}/close", response_model=DayCloseResult)
def close_day(
    close: DayClose,
    db: db_dependency,
    business_date: date = Path(...),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    """
    Close the business day with the counted closing cash.

    Returns the closed record together with the recomputed ledger summary
    (closing variance = expected balance - closing count).
    """
    return CashTrackerService(db).close_day(business_date, close, auth_context.user_id)


@cash_tracker_router.post("/next-day", response_model=CashCountOut, status_code=status.HTTP_201_CREATED)
def start_next_day(
    data: NextDayStart,
    db: db_dependency,
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    """
    Open the next day using the closing count of a closed day as its opening.

    With `replace_existing` (default) an existing record on the target day is replaced.
    """
    return CashTrackerService(db).start_next_day(data, auth_context.user_id)


@cash_tracker_router.get("/days", response_model=CashCountList)
def list_days(
    db: db_dependency,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    staff_id: Optional[UUID] = Query(None),
    is_closed: Optional[bool] = Query(None),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    """List cash counts; staff only see their own"""
    if not auth_context.is_admin:
        staff_id = auth_context.user_id
    return CashTrackerService(db).list_days(start_date, end_date, staff_id, is_closed, limit, offset)


@cash_tracker_router.get("/days/{business_date}", response_model=DayStatus)
def get_day(
    db: db_dependency,
    business_date: date = Path(...),
    staff_id: Optional[UUID] = Query(None, description="Owner/manager only; defaults to the caller"),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    """State of a day: not_started, opened or closed"""
    staff_id = _resolve_staff(auth_context, staff_id)
    return CashTrackerService(db).get_day(staff_id, business_date)


@cash_tracker_router.delete("/days/{business_date}", status_code=status.HTTP_204_NO_CONTENT)
def delete_day(
    db: db_dependency,
    business_date: date = Path(...),
    staff_id: Optional[UUID] = Query(None, description="Owner/manager only; defaults to the caller"),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    """
    Delete a cash count.

    - Staff: only their own day, and only while it is not closed
    - Owner/manager: any day
    """
    staff_id = _resolve_staff(auth_context, staff_id)
    CashTrackerService(db).delete_day(staff_id, business_date, auth_context)


@cash_tracker_router.put("/days/{business_date}/opening", response_model=CashCountOut)
def correct_opening(
    correction: BalanceCorrection,
    db: db_dependency,
    business_date: date = Path(...),
    staff_id: UUID = Query(..., description="Staff member whose count is corrected"),
    auth_context: AuthContext = Depends(AuthDependencies.require_owner_or_manager())
):
    """Correct the opening count (owner/manager)"""
    return CashTrackerService(db).correct_opening(staff_id, business_date, correction, auth_context.user_id)


@cash_tracker_router.put("/days/{business_date}/closing", response_model=CashCountOut)
def correct_closing(
    correction: BalanceCorrection,
    db: db_dependency,
    business_date: date = Path(...),
    staff_id: UUID = Query(..., description="Staff member whose count is corrected"),
    auth_context: AuthContext = Depends(AuthDependencies.require_owner_or_manager())
):
    """Correct the closing count of a closed day (owner/manager)"""
    return CashTrackerService(db).correct_closing(staff_id, business_date, correction, auth_context.user_id)
