"""Builders shared by the test modules."""

from datetime import date
from decimal import Decimal

from fiado.models import Transaction, TransactionType


def make_transaction(
    value,
    type=TransactionType.SALE,
    on=date(2025, 1, 10),
    id=None,
    description="Anel",
) -> Transaction:
    return Transaction(
        id=id or f"t-{type.value.lower()}-{value}-{on.isoformat()}",
        date=on,
        description=description,
        value=Decimal(str(value)),
        type=type,
    )
