"""
Enums shared by the ledger modules
"""
import enum


class Currency(str, enum.Enum):
    """Currencies handled at the counter"""
    NPR = "NPR"
    INR = "INR"


class PaymentMethod(str, enum.Enum):
    """How the customer settled an exchange or credit movement"""
    CASH = "cash"
    ONLINE = "online"


class TransactionType(str, enum.Enum):
    """Exchange direction, fixed by convention"""
    SELL = "sell"   # shop receives NPR, pays out INR
    BUY = "buy"     # shop receives INR, pays out NPR


class CreditTransactionType(str, enum.Enum):
    """Customer credit movements"""
    CREDIT_GIVEN = "credit_given"           # money lent to a customer
    PAYMENT_RECEIVED = "payment_received"   # money recovered from a customer
