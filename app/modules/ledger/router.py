from fastapi import APIRouter, Depends, HTTPException, status, Query, Path
from typing import Optional
from uuid import UUID
from datetime import date

from app.dependencies.dbDependecies import db_dependency
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.schemas import AuthContext
from app.modules.ledger.schemas import LedgerSummary, StaffOwes
from app.modules.ledger.service import LedgerService

ledger_router = APIRouter(prefix="/ledger", tags=["Ledger"])


def _check_staff_scope(auth_context: AuthContext, staff_id: Optional[UUID]) -> None:
    if not auth_context.is_admin and staff_id != auth_context.user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Staff can only view their own ledger"
        )


@ledger_router.get("/daily", response_model=LedgerSummary)
def get_daily_ledger(
    db: db_dependency,
    business_date: date = Query(..., description="Business day to reconcile"),
    staff_id: Optional[UUID] = Query(None, description="Staff member; omit for the whole shop"),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    """
    Daily ledger reconciliation for NPR and INR.

    Per currency:
    - **received_total** / **paid_out** from the day's exchanges
    - **expected_balance**: opening + received - paid out - expenses - credit given
    - **variance**: total in - total out; positive is a shortfall, negative a surplus
    - **closing_variance**: expected balance - closing count, once the day is closed

    Staff may only request their own ledger. Figures are recomputed on every call.
    """
    if not auth_context.is_admin and staff_id is None:
        staff_id = auth_context.user_id
    _check_staff_scope(auth_context, staff_id)
    return LedgerService(db).get_daily_summary(business_date, staff_id)


@ledger_router.get("/staff-owes/{staff_id}", response_model=StaffOwes)
def get_staff_owes(
    db: db_dependency,
    staff_id: UUID = Path(...),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    """
    Unconfirmed receivings held by a staff member, across all days.
    """
    _check_staff_scope(auth_context, staff_id)
    return LedgerService(db).get_staff_owes(staff_id)
