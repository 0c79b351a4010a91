"""
Denomination counting for the opening/closing cash count

A count maps a denomination label ("1000", "500", ..., "coins") to how many
notes of it are in the drawer. Coins are counted by value, so "coins" is
worth 1 per unit.
"""

from decimal import Decimal
from typing import Dict, Mapping, Optional, Tuple

from app.common.enums import Currency

COINS = "coins"

NPR_DENOMINATIONS: Tuple[str, ...] = ("1000", "500", "100", "50", "20", "10", "5")
INR_DENOMINATIONS: Tuple[str, ...] = ("500", "200", "100", "50", "20", "10", COINS)

DENOMINATIONS_BY_CURRENCY = {
    Currency.NPR: NPR_DENOMINATIONS,
    Currency.INR: INR_DENOMINATIONS,
}


class DenominationError(ValueError):
    """Invalid denomination label or count"""


def denomination_value(label: str) -> Decimal:
    """Face value of a denomination label"""
    if label == COINS:
        return Decimal("1")
    label = str(label)
    if not (label.isascii() and label.isdecimal()):
        raise DenominationError(f"Unknown denomination '{label}'")
    return Decimal(label)


def validate_counts(counts: Optional[Mapping[str, int]],
                    currency: Optional[Currency] = None) -> Dict[str, int]:
    """
    Check a denomination count and return it as a clean dict.

    Args:
        counts: label -> number of notes
        currency: When given, labels must belong to that currency's set

    Raises:
        DenominationError: unknown label, non-integer or negative count
    """
    if not counts:
        return {}

    allowed = DENOMINATIONS_BY_CURRENCY.get(Currency(currency)) if currency else None
    cleaned = {}
    for label, count in counts.items():
        label = str(label).strip().lower()
        denomination_value(label)
        if allowed is not None and label not in allowed:
            raise DenominationError(
                f"Denomination '{label}' is not used for {Currency(currency).value}"
            )
        # bool is an int subclass; reject it along with floats and strings
        if isinstance(count, bool) or not isinstance(count, int):
            raise DenominationError(f"Count for '{label}' must be a whole number, got {count!r}")
        if count < 0:
            raise DenominationError(f"Count for '{label}' cannot be negative")
        cleaned[label] = count
    return cleaned


def denomination_total(counts: Optional[Mapping[str, int]]) -> Decimal:
    """
    Monetary total of a count: Σ value(label) × count.

    An empty or all-zero count totals 0.
    """
    counts = validate_counts(counts)
    return sum(
        (denomination_value(label) * count for label, count in counts.items()),
        Decimal("0")
    )


def is_empty_count(counts: Optional[Mapping[str, int]]) -> bool:
    """True when no denomination has a non-zero count"""
    return not any(count for count in validate_counts(counts).values())
