"""Ledger exceptions: broken business rules, as opposed to storage failures."""

from decimal import Decimal


class LedgerError(Exception):
    """Base exception for ledger rule violations."""
    pass


class InvalidTransactionError(LedgerError):
    """A transaction could not be built from the given input."""
    pass


class CustomerNotSettledError(LedgerError):
    """Deleting a customer who still owes (or is owed) money."""

    def __init__(self, customer_id: str, balance: Decimal):
        self.customer_id = customer_id
        self.balance = balance
        super().__init__(
            f"Customer {customer_id} has balance {balance}; "
            "it must be settled before the customer can be deleted"
        )
