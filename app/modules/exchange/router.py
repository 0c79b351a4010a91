from fastapi import APIRouter, Depends, status, Query, Path
from typing import Optional
from uuid import UUID
from datetime import date

from app.common.enums import Currency, TransactionType, CreditTransactionType
from app.core.config import settings
from app.dependencies.dbDependecies import db_dependency
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.schemas import AuthContext
from app.modules.exchange.schemas import (
    ExchangeTransactionCreate, ExchangeTransactionOut, ExchangeTransactionList,
    CreditTransactionCreate, CreditTransactionOut, CreditTransactionList, CustomerCreditBalance
)
from app.modules.exchange.service import ExchangeService, CreditService

exchange_router = APIRouter(prefix="/exchange", tags=["Exchange"])


# ===== EXCHANGE TRANSACTIONS =====

@exchange_router.post("/transactions", response_model=ExchangeTransactionOut,
                      status_code=status.HTTP_201_CREATED)
def create_transaction(
    transaction: ExchangeTransactionCreate,
    db: db_dependency,
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    """
    Record an exchange at the counter.

    - **sell**: customer pays NPR and receives INR
    - **buy**: customer pays INR and receives NPR
    - Amounts must be positive and the direction must match the type
    """
    return ExchangeService(db).create_transaction(transaction, auth_context.user_id)


@exchange_router.get("/transactions", response_model=ExchangeTransactionList)
def list_transactions(
    db: db_dependency,
    business_date: Optional[date] = Query(None, description="Business day, bucketed by the cutoff"),
    staff_id: Optional[UUID] = Query(None),
    transaction_type: Optional[TransactionType] = Query(None),
    customer_id: Optional[UUID] = Query(None),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    """List exchange transactions (staff: own transactions only)"""
    if not auth_context.is_admin:
        staff_id = auth_context.user_id
    return ExchangeService(db).list_transactions(
        business_date, staff_id, transaction_type, customer_id, limit, offset
    )


@exchange_router.get("/transactions/{transaction_id}", response_model=ExchangeTransactionOut)
def get_transaction(
    db: db_dependency,
    transaction_id: UUID = Path(...),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    return ExchangeService(db).get_transaction(transaction_id)


@exchange_router.delete("/transactions/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_transaction(
    db: db_dependency,
    transaction_id: UUID = Path(...),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    """Delete an exchange transaction (staff: own transactions only)"""
    ExchangeService(db).delete_transaction(transaction_id, auth_context)


# ===== CREDIT TRANSACTIONS =====

@exchange_router.post("/credit-transactions", response_model=CreditTransactionOut,
                      status_code=status.HTTP_201_CREATED)
def create_credit(
    credit: CreditTransactionCreate,
    db: db_dependency,
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    """
    Record credit given to a customer or a credit payment received.

    Currency defaults to NPR.
    """
    return CreditService(db).create_credit(credit, auth_context.user_id)


@exchange_router.get("/credit-transactions", response_model=CreditTransactionList)
def list_credits(
    db: db_dependency,
    business_date: Optional[date] = Query(None),
    staff_id: Optional[UUID] = Query(None),
    customer_id: Optional[UUID] = Query(None),
    transaction_type: Optional[CreditTransactionType] = Query(None),
    currency: Optional[Currency] = Query(None),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    """List credit transactions (staff: own entries only)"""
    if not auth_context.is_admin:
        staff_id = auth_context.user_id
    return CreditService(db).list_credits(
        business_date, staff_id, customer_id, transaction_type, currency, limit, offset
    )


@exchange_router.get("/credit-transactions/{credit_id}", response_model=CreditTransactionOut)
def get_credit(
    db: db_dependency,
    credit_id: UUID = Path(...),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    return CreditService(db).get_credit(credit_id)


@exchange_router.delete("/credit-transactions/{credit_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_credit(
    db: db_dependency,
    credit_id: UUID = Path(...),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    """Delete a credit transaction (staff: own entries only)"""
    CreditService(db).delete_credit(credit_id, auth_context)


@exchange_router.get("/customers/{customer_id}/credit-balance", response_model=CustomerCreditBalance)
def get_customer_credit_balance(
    db: db_dependency,
    customer_id: UUID = Path(...),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    """
    Credit a customer still owes, per currency.

    Credit given minus payments received, across all days and staff.
    """
    return CreditService(db).get_customer_balance(customer_id)
