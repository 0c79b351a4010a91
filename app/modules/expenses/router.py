from fastapi import APIRouter, Depends, status, Query, Path
from typing import Optional
from uuid import UUID
from datetime import date

from app.common.enums import Currency
from app.core.config import settings
from app.dependencies.dbDependecies import db_dependency
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.schemas import AuthContext
from app.modules.expenses.schemas import ExpenseCreate, ExpenseOut, ExpenseList
from app.modules.expenses.service import ExpenseService

expenses_router = APIRouter(prefix="/expenses", tags=["Expenses"])


@expenses_router.post("/", response_model=ExpenseOut, status_code=status.HTTP_201_CREATED)
def create_expense(
    expense: ExpenseCreate,
    db: db_dependency,
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    """
    Record an expense paid from the till.

    The expense counts against the business day given in `expense_date`.
    """
    return ExpenseService(db).create_expense(expense, auth_context.user_id)


@expenses_router.get("/", response_model=ExpenseList)
def list_expenses(
    db: db_dependency,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    staff_id: Optional[UUID] = Query(None),
    currency: Optional[Currency] = Query(None),
    category: Optional[str] = Query(None),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    """
    List expenses.

    - Staff only see their own expenses
    - Owner/manager may filter by any staff member
    """
    if not auth_context.is_admin:
        staff_id = auth_context.user_id
    return ExpenseService(db).list_expenses(
        start_date, end_date, staff_id, currency, category, limit, offset
    )


@expenses_router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_expense(
    db: db_dependency,
    expense_id: UUID = Path(...),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    """Delete an expense (staff: own expenses only)"""
    ExpenseService(db).delete_expense(expense_id, auth_context)
