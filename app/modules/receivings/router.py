from fastapi import APIRouter, Depends, status, Query, Path
from typing import Optional
from uuid import UUID
from datetime import date

from app.core.config import settings
from app.dependencies.dbDependecies import db_dependency
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.schemas import AuthContext
from app.modules.receivings.schemas import MoneyReceivingCreate, MoneyReceivingOut, MoneyReceivingList
from app.modules.receivings.service import ReceivingService

receivings_router = APIRouter(prefix="/receivings", tags=["Money Receivings"])


@receivings_router.post("/", response_model=MoneyReceivingOut, status_code=status.HTTP_201_CREATED)
def create_receiving(
    receiving: MoneyReceivingCreate,
    db: db_dependency,
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    """
    Record money the current user collected outside the till.

    It counts as owed by that user until an owner or manager confirms it.
    """
    return ReceivingService(db).create_receiving(receiving, auth_context.user_id)


@receivings_router.get("/", response_model=MoneyReceivingList)
def list_receivings(
    db: db_dependency,
    staff_id: Optional[UUID] = Query(None),
    is_confirmed: Optional[bool] = Query(None),
    start_date: Optional[date] = Query(None, description="First business day"),
    end_date: Optional[date] = Query(None, description="Last business day"),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    """List receivings (staff: own receivings only)"""
    if not auth_context.is_admin:
        staff_id = auth_context.user_id
    return ReceivingService(db).list_receivings(
        staff_id, is_confirmed, start_date, end_date, limit, offset
    )


@receivings_router.post("/{receiving_id}/confirm", response_model=MoneyReceivingOut)
def confirm_receiving(
    db: db_dependency,
    receiving_id: UUID = Path(...),
    auth_context: AuthContext = Depends(AuthDependencies.require_owner_or_manager())
):
    """
    Confirm that the staff member handed the money over.

    - Only owner or manager
    - 409 when the receiving is already confirmed
    """
    return ReceivingService(db).confirm_receiving(receiving_id, auth_context.user_id)


@receivings_router.delete("/{receiving_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_receiving(
    db: db_dependency,
    receiving_id: UUID = Path(...),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    """Delete a receiving (staff: own unconfirmed receivings only)"""
    ReceivingService(db).delete_receiving(receiving_id, auth_context)
