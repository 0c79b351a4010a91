"""
Business logic for the exchange module

- ExchangeService: buy/sell transactions at the counter
- CreditService: customer credit given and recovered

Both list by business day: the day window comes from the saved cutoff, so a
row recorded after the cutoff shows up on the following day.
"""

from fastapi import HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy import desc, func
from typing import Optional, Dict, Any
from uuid import UUID
from datetime import date
from decimal import Decimal
import logging

from app.common.enums import Currency, TransactionType, CreditTransactionType
from app.modules.auth.schemas import AuthContext
from app.modules.exchange.models import ExchangeTransaction, CreditTransaction
from app.modules.exchange.schemas import (
    ExchangeTransactionCreate, CreditTransactionCreate, CustomerCreditBalance
)
from app.modules.ledger.business_day import day_window, now_local
from app.modules.settings.service import SettingsService

logger = logging.getLogger(__name__)


def _business_day_bounds(db: Session, business_date: date):
    hour, minute = SettingsService(db).get_cutoff()
    return day_window(business_date, hour, minute)


def _check_owner(row, auth_context: AuthContext, what: str) -> None:
    if not auth_context.is_admin and row.staff_id != auth_context.user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"You can only delete your own {what}"
        )


def _database_error(db: Session, action: str, e: Exception) -> HTTPException:
    db.rollback()
    logger.error(f"Error {action}: {e}")
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=f"Database unavailable: {str(e)}"
    )


class ExchangeService:
    """Exchange transactions recorded by staff"""

    def __init__(self, db: Session):
        self.db = db

    def create_transaction(self, data: ExchangeTransactionCreate, staff_id: UUID) -> ExchangeTransaction:
        try:
            transaction = ExchangeTransaction(
                staff_id=staff_id,
                customer_id=data.customer_id,
                transaction_type=data.transaction_type,
                from_currency=data.from_currency,
                from_amount=data.from_amount,
                to_currency=data.to_currency,
                to_amount=data.to_amount,
                exchange_rate=data.exchange_rate,
                payment_method=data.payment_method,
                notes=data.notes,
                created_at=now_local()
            )
            self.db.add(transaction)
            self.db.commit()
            self.db.refresh(transaction)
            logger.info(
                f"Exchange {transaction.id} ({data.transaction_type.value}): "
                f"{data.from_amount} {data.from_currency.value} -> "
                f"{data.to_amount} {data.to_currency.value} by {staff_id}"
            )
            return transaction

        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Integrity error while saving the transaction"
            )
        except SQLAlchemyError as e:
            raise _database_error(self.db, "saving exchange transaction", e)

    def list_transactions(self, business_date: Optional[date] = None,
                          staff_id: Optional[UUID] = None,
                          transaction_type: Optional[TransactionType] = None,
                          customer_id: Optional[UUID] = None,
                          limit: int = 100, offset: int = 0) -> Dict[str, Any]:
        query = self.db.query(ExchangeTransaction)

        if business_date:
            start, end = _business_day_bounds(self.db, business_date)
            query = query.filter(
                ExchangeTransaction.created_at >= start,
                ExchangeTransaction.created_at < end
            )
        if staff_id:
            query = query.filter(ExchangeTransaction.staff_id == staff_id)
        if transaction_type:
            query = query.filter(ExchangeTransaction.transaction_type == transaction_type)
        if customer_id:
            query = query.filter(ExchangeTransaction.customer_id == customer_id)

        query = query.order_by(desc(ExchangeTransaction.created_at))

        total = query.count()
        transactions = query.offset(offset).limit(limit).all()

        return {
            "transactions": transactions,
            "total": total,
            "limit": limit,
            "offset": offset
        }

    def get_transaction(self, transaction_id: UUID) -> ExchangeTransaction:
        transaction = self.db.query(ExchangeTransaction).filter(
            ExchangeTransaction.id == transaction_id
        ).first()
        if not transaction:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Exchange transaction not found"
            )
        return transaction

    def delete_transaction(self, transaction_id: UUID, auth_context: AuthContext) -> None:
        transaction = self.get_transaction(transaction_id)
        _check_owner(transaction, auth_context, "transactions")

        try:
            self.db.delete(transaction)
            self.db.commit()
            logger.info(f"Exchange transaction {transaction_id} deleted by {auth_context.user_id}")
        except SQLAlchemyError as e:
            raise _database_error(self.db, f"deleting exchange transaction {transaction_id}", e)


class CreditService:
    """Customer credit movements"""

    def __init__(self, db: Session):
        self.db = db

    def get_customer_balance(self, customer_id: UUID) -> CustomerCreditBalance:
        """Outstanding credit of a customer per currency, across all days"""
        try:
            rows = self.db.query(
                CreditTransaction.currency,
                CreditTransaction.transaction_type,
                func.sum(CreditTransaction.amount).label("total")
            ).filter(
                CreditTransaction.customer_id == customer_id
            ).group_by(
                CreditTransaction.currency, CreditTransaction.transaction_type
            ).all()
        except SQLAlchemyError as e:
            raise _database_error(self.db, f"loading credit balance of customer {customer_id}", e)

        outstanding = {Currency.NPR: Decimal("0"), Currency.INR: Decimal("0")}
        for currency, transaction_type, total in rows:
            amount = Decimal(str(total or 0))
            if transaction_type == CreditTransactionType.CREDIT_GIVEN:
                outstanding[currency] += amount
            else:
                outstanding[currency] -= amount

        return CustomerCreditBalance(
            customer_id=customer_id,
            npr=outstanding[Currency.NPR],
            inr=outstanding[Currency.INR]
        )

    def create_credit(self, data: CreditTransactionCreate, staff_id: UUID) -> CreditTransaction:
        """
        Record a credit movement.

        A payment may not exceed what the customer still owes in that currency.
        """
        if data.transaction_type == CreditTransactionType.PAYMENT_RECEIVED:
            balance = self.get_customer_balance(data.customer_id)
            owed = balance.npr if data.currency == Currency.NPR else balance.inr
            if data.amount > owed:
                raise HTTPException(
                    status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                    detail=f"Payment exceeds the outstanding credit of {owed} {data.currency.value}"
                )

        try:
            credit = CreditTransaction(
                staff_id=staff_id,
                customer_id=data.customer_id,
                transaction_type=data.transaction_type,
                amount=data.amount,
                currency=data.currency,
                payment_method=data.payment_method,
                notes=data.notes,
                created_at=now_local()
            )
            self.db.add(credit)
            self.db.commit()
            self.db.refresh(credit)
            logger.info(
                f"Credit {credit.id} ({data.transaction_type.value}): "
                f"{data.amount} {data.currency.value} for customer {data.customer_id} by {staff_id}"
            )
            return credit

        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Integrity error while saving the credit transaction"
            )
        except SQLAlchemyError as e:
            raise _database_error(self.db, "saving credit transaction", e)

    def list_credits(self, business_date: Optional[date] = None,
                     staff_id: Optional[UUID] = None,
                     customer_id: Optional[UUID] = None,
                     transaction_type: Optional[CreditTransactionType] = None,
                     currency: Optional[Currency] = None,
                     limit: int = 100, offset: int = 0) -> Dict[str, Any]:
        query = self.db.query(CreditTransaction)

        if business_date:
            start, end = _business_day_bounds(self.db, business_date)
            query = query.filter(
                CreditTransaction.created_at >= start,
                CreditTransaction.created_at < end
            )
        if staff_id:
            query = query.filter(CreditTransaction.staff_id == staff_id)
        if customer_id:
            query = query.filter(CreditTransaction.customer_id == customer_id)
        if transaction_type:
            query = query.filter(CreditTransaction.transaction_type == transaction_type)
        if currency:
            query = query.filter(CreditTransaction.currency == currency)

        query = query.order_by(desc(CreditTransaction.created_at))

        total = query.count()
        credits = query.offset(offset).limit(limit).all()

        return {
            "credit_transactions": credits,
            "total": total,
            "limit": limit,
            "offset": offset
        }

    def get_credit(self, credit_id: UUID) -> CreditTransaction:
        credit = self.db.query(CreditTransaction).filter(CreditTransaction.id == credit_id).first()
        if not credit:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Credit transaction not found"
            )
        return credit

    def delete_credit(self, credit_id: UUID, auth_context: AuthContext) -> None:
        credit = self.get_credit(credit_id)
        _check_owner(credit, auth_context, "credit transactions")

        try:
            self.db.delete(credit)
            self.db.commit()
            logger.info(f"Credit transaction {credit_id} deleted by {auth_context.user_id}")
        except SQLAlchemyError as e:
            raise _database_error(self.db, f"deleting credit transaction {credit_id}", e)
