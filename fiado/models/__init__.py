"""
Data Models Package

All data flowing through the ledger must conform to these Pydantic schemas.
"""

from fiado.models.accounts import (
    AuthFailure,
    AuthResult,
    Expense,
    ExpenseStatus,
    User,
    UserRole,
)
from fiado.models.backup import (
    BackupDocument,
    ImportResult,
)
from fiado.models.ledger import (
    BatchResult,
    Customer,
    OverdueStatus,
    ScannedEntry,
    Transaction,
    TransactionType,
)

__all__ = [
    # Ledger models
    "BatchResult",
    "Customer",
    "OverdueStatus",
    "ScannedEntry",
    "Transaction",
    "TransactionType",
    # Account models
    "AuthFailure",
    "AuthResult",
    "Expense",
    "ExpenseStatus",
    "User",
    "UserRole",
    # Backup models
    "BackupDocument",
    "ImportResult",
]
