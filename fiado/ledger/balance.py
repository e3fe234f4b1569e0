"""
Balance Calculator

A customer's balance is the sum of SALE values minus the sum of PAYMENT
values, rounded to cents. Magnitudes below ZERO_TOLERANCE are clamped to
exactly zero.

ZERO_TOLERANCE is ten cents, not one. It absorbs the floating-point drift
of values typed on a phone keyboard and the shop's habit of forgiving
small change. The same band decides whether an account counts as
settled, so the delete rule and the displayed balance always agree.

The calculator never raises: a value that cannot be read as a number,
or whose magnitude exceeds MAX_AMOUNT, counts as zero. That bound also
keeps the rounded total inside the default decimal precision.
It accepts validated Transaction models and raw stored mappings alike.
"""

from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional, Union

from fiado.models.ledger import Transaction, TransactionType, coerce_value


ZERO_TOLERANCE = Decimal("0.10")

CENTS = Decimal("0.01")

TransactionLike = Union[Transaction, Mapping[str, Any]]


def _fields(transaction: TransactionLike) -> tuple[Any, Any]:
    if isinstance(transaction, Mapping):
        return transaction.get("value"), transaction.get("type")
    return (
        getattr(transaction, "value", None),
        getattr(transaction, "type", None),
    )


def _is_sale(kind: Any) -> bool:
    if isinstance(kind, TransactionType):
        return kind is TransactionType.SALE
    return kind == TransactionType.SALE.value


def calculate_balance(
    transactions: Optional[Iterable[TransactionLike]],
    tolerance: Decimal = ZERO_TOLERANCE,
) -> Decimal:
    """
    Net amount owed: SALE values minus everything else.

    Pure and order-independent. Rounded half-up to cents, then clamped
    to zero when the magnitude is below `tolerance`.
    """
    total = Decimal("0")
    for transaction in transactions or ():
        raw_value, kind = _fields(transaction)
        value = coerce_value(raw_value)
        total = total + value if _is_sale(kind) else total - value

    balance = total.quantize(CENTS, rounding=ROUND_HALF_UP)
    if abs(balance) < tolerance:
        return Decimal("0.00")
    return balance


def is_settled(balance: Decimal, tolerance: Decimal = ZERO_TOLERANCE) -> bool:
    """True when a balance sits inside the zero band."""
    return abs(balance) < tolerance


def can_delete(
    transactions: Optional[Iterable[TransactionLike]],
    tolerance: Decimal = ZERO_TOLERANCE,
) -> bool:
    """
    A customer may be deleted when it has no history or owes nothing.

    Uses the same tolerance as calculate_balance.
    """
    transactions = list(transactions or ())
    if not transactions:
        return True
    return is_settled(calculate_balance(transactions, tolerance), tolerance)
