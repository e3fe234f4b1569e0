"""Ledger engine: balances, overdue detection and customer record mutation."""

from fiado.ledger.balance import (
    ZERO_TOLERANCE,
    calculate_balance,
    can_delete,
    coerce_value,
    is_settled,
)
from fiado.ledger.editor import TransactionEditor
from fiado.ledger.errors import (
    CustomerNotSettledError,
    InvalidTransactionError,
    LedgerError,
)
from fiado.ledger.overdue import OVERDUE_AFTER_DAYS, detect_overdue
from fiado.ledger.store import LedgerStore

__all__ = [
    "OVERDUE_AFTER_DAYS",
    "ZERO_TOLERANCE",
    "CustomerNotSettledError",
    "InvalidTransactionError",
    "LedgerError",
    "LedgerStore",
    "TransactionEditor",
    "calculate_balance",
    "can_delete",
    "coerce_value",
    "detect_overdue",
    "is_settled",
]
