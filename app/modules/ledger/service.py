"""
Ledger service

Loads one business day of rows and hands them to the reconciliation engine.
The daily report, the cash tracker close response and the ledger endpoint
all read their figures from `LedgerService.get_daily_summary`.
"""

from fastapi import HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from decimal import Decimal
from typing import List, Optional
from uuid import UUID
from datetime import date
import logging

from app.modules.cash_tracker.models import CashCountRecord
from app.modules.exchange.models import ExchangeTransaction, CreditTransaction
from app.modules.expenses.models import Expense
from app.modules.ledger.business_day import day_window
from app.modules.ledger.calculator import compute_ledger_summary
from app.modules.ledger.exceptions import LedgerIntegrityError
from app.modules.ledger.schemas import CashBalances, LedgerSummary, StaffOwes
from app.modules.receivings.models import MoneyReceiving
from app.modules.receivings.service import ReceivingService
from app.modules.settings.service import SettingsService

logger = logging.getLogger(__name__)


def _sum_balances(records: List[CashCountRecord], prefix: str) -> CashBalances:
    return CashBalances(
        npr=sum((Decimal(getattr(r, f"{prefix}_npr") or 0) for r in records), Decimal("0")),
        inr=sum((Decimal(getattr(r, f"{prefix}_inr") or 0) for r in records), Decimal("0")),
    )


class LedgerService:
    """Daily reconciliation per staff member or for the whole shop"""

    def __init__(self, db: Session):
        self.db = db

    def get_daily_summary(self, business_date: date, staff_id: Optional[UUID] = None) -> LedgerSummary:
        """
        Recompute the ledger summary of a business day.

        Args:
            business_date: Business day (bucketed with the saved cutoff)
            staff_id: Staff member; None gives the shop-wide summary, summing
                every staff member's opening and closing counts

        The closing count is only used once every cash count of the day is
        closed; until then the summary carries no closing variance.
        """
        try:
            hour, minute = SettingsService(self.db).get_cutoff()
            start, end = day_window(business_date, hour, minute)

            transactions = self.db.query(ExchangeTransaction).filter(
                ExchangeTransaction.created_at >= start,
                ExchangeTransaction.created_at < end
            )
            credits = self.db.query(CreditTransaction).filter(
                CreditTransaction.created_at >= start,
                CreditTransaction.created_at < end
            )
            expenses = self.db.query(Expense).filter(Expense.expense_date == business_date)
            records = self.db.query(CashCountRecord).filter(CashCountRecord.date == business_date)
            receivings = self.db.query(MoneyReceiving).filter(MoneyReceiving.is_confirmed.is_(False))

            if staff_id:
                transactions = transactions.filter(ExchangeTransaction.staff_id == staff_id)
                credits = credits.filter(CreditTransaction.staff_id == staff_id)
                expenses = expenses.filter(Expense.staff_id == staff_id)
                records = records.filter(CashCountRecord.staff_id == staff_id)
                receivings = receivings.filter(MoneyReceiving.staff_id == staff_id)

            records = records.all()
            is_closed = bool(records) and all(r.is_closed for r in records)

            summary = compute_ledger_summary(
                opening=_sum_balances(records, "opening"),
                transactions=transactions.all(),
                credit_transactions=credits.all(),
                expenses=expenses.all(),
                receivings=receivings.all(),
                closing=_sum_balances(records, "closing") if is_closed else None,
                staff_id=staff_id,
                business_date=business_date,
                is_closed=is_closed
            )

        except LedgerIntegrityError as e:
            logger.warning(
                f"Ledger for {business_date} (staff {staff_id or 'all'}) rejected: {e}"
            )
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=str(e)
            )
        except SQLAlchemyError as e:
            logger.error(f"Error loading ledger for {business_date}: {e}")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=f"Database unavailable: {str(e)}"
            )

        logger.debug(
            f"Ledger {business_date} (staff {staff_id or 'all'}): "
            f"NPR variance {summary.npr.variance}, INR variance {summary.inr.variance}"
        )
        return summary

    def get_staff_owes(self, staff_id: UUID) -> StaffOwes:
        return ReceivingService(self.db).get_staff_owes(staff_id)
