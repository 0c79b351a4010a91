"""
Business logic for shop expenses
"""

from fastapi import HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy import desc
from typing import Optional, Dict, Any
from uuid import UUID
from datetime import date
import logging

from app.common.enums import Currency
from app.modules.auth.schemas import AuthContext
from app.modules.expenses.models import Expense
from app.modules.expenses.schemas import ExpenseCreate
from app.modules.ledger.business_day import now_local

logger = logging.getLogger(__name__)


class ExpenseService:
    """Record and query expenses paid out of the till"""

    def __init__(self, db: Session):
        self.db = db

    def create_expense(self, data: ExpenseCreate, staff_id: UUID) -> Expense:
        try:
            expense = Expense(
                staff_id=staff_id,
                description=data.description,
                amount=data.amount,
                currency=data.currency,
                category=data.category,
                expense_date=data.expense_date,
                notes=data.notes,
                created_at=now_local()
            )
            self.db.add(expense)
            self.db.commit()
            self.db.refresh(expense)
            logger.info(
                f"Expense {expense.id} recorded: {data.amount} {data.currency.value} "
                f"on {data.expense_date} by {staff_id}"
            )
            return expense

        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Integrity error while saving the expense"
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error saving expense: {e}")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=f"Database unavailable: {str(e)}"
            )

    def list_expenses(self, start_date: Optional[date] = None, end_date: Optional[date] = None,
                      staff_id: Optional[UUID] = None, currency: Optional[Currency] = None,
                      category: Optional[str] = None,
                      limit: int = 100, offset: int = 0) -> Dict[str, Any]:
        query = self.db.query(Expense)

        if start_date:
            query = query.filter(Expense.expense_date >= start_date)
        if end_date:
            query = query.filter(Expense.expense_date <= end_date)
        if staff_id:
            query = query.filter(Expense.staff_id == staff_id)
        if currency:
            query = query.filter(Expense.currency == currency)
        if category:
            query = query.filter(Expense.category == category)

        query = query.order_by(desc(Expense.expense_date), desc(Expense.created_at))

        total = query.count()
        expenses = query.offset(offset).limit(limit).all()

        return {
            "expenses": expenses,
            "total": total,
            "limit": limit,
            "offset": offset
        }

    def get_expense(self, expense_id: UUID) -> Expense:
        expense = self.db.query(Expense).filter(Expense.id == expense_id).first()
        if not expense:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Expense not found"
            )
        return expense

    def delete_expense(self, expense_id: UUID, auth_context: AuthContext) -> None:
        """Owner/manager may delete any expense; staff only their own"""
        expense = self.get_expense(expense_id)

        if not auth_context.is_admin and expense.staff_id != auth_context.user_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You can only delete your own expenses"
            )

        try:
            self.db.delete(expense)
            self.db.commit()
            logger.info(f"Expense {expense_id} deleted by {auth_context.user_id}")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error deleting expense {expense_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=f"Database unavailable: {str(e)}"
            )
