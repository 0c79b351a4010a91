"""
Ledger errors

Raised by the pure ledger helpers; services translate them into HTTP
responses.
"""


class LedgerError(ValueError):
    """Base class for ledger rule violations"""


class LedgerIntegrityError(LedgerError):
    """A malformed row would corrupt the day's totals"""

    def __init__(self, message: str, row_kind: str = None, row_index: int = None):
        self.row_kind = row_kind
        self.row_index = row_index
        super().__init__(message)


class SettlementError(LedgerError):
    """Invalid state change on a money receiving"""
