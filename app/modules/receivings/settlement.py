"""
Settlement bookkeeping for money receivings

Staff sometimes collect money into a personal channel (e.g. eSewa) and hand
it over later. Until an owner or manager confirms the hand-over, the amount
counts as "staff owes". These figures sit outside the counted cash and are
never part of a day's variance.
"""

from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

from app.common.enums import Currency
from app.modules.ledger.exceptions import LedgerIntegrityError, SettlementError
from app.modules.ledger.schemas import StaffOwes


def summarize_staff_owes(receivings: Iterable, staff_id: Optional[UUID] = None) -> StaffOwes:
    """
    Sum pending (unconfirmed) receivings per currency.

    Args:
        receivings: Rows exposing amount, currency, staff_id and is_confirmed
        staff_id: Restrict to one staff member; None sums everybody

    Returns:
        StaffOwes with NPR and INR totals, independent of the day each
        receiving was recorded
    """
    totals = {Currency.NPR: Decimal("0"), Currency.INR: Decimal("0")}
    pending_count = 0

    for index, receiving in enumerate(receivings):
        amount = Decimal(receiving.amount)
        if amount < 0:
            raise LedgerIntegrityError(
                f"Money receiving #{index} has a negative amount ({amount})",
                row_kind="receiving", row_index=index
            )
        if staff_id is not None and receiving.staff_id != staff_id:
            continue
        if receiving.is_confirmed:
            continue
        totals[Currency(receiving.currency)] += amount
        pending_count += 1

    return StaffOwes(
        staff_id=staff_id,
        npr=totals[Currency.NPR],
        inr=totals[Currency.INR],
        pending_count=pending_count
    )


def mark_confirmed(receiving, confirmer_id: UUID, at: datetime):
    """
    Record the owner/manager confirmation of a hand-over.

    Only the receiving itself changes; recorded cash counts of past days
    stay as they are.
    """
    if receiving.is_confirmed:
        raise SettlementError("This receiving has already been confirmed")

    receiving.is_confirmed = True
    receiving.confirmed_by = confirmer_id
    receiving.confirmed_at = at
    return receiving
