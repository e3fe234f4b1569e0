"""
Overdue Detector

A coarse signal for "this debt has been sitting too long", not an aging
report. The reference point is the most recent SALE, moved forward to
the most recent PAYMENT if the customer has paid something since. The
customer is overdue when that reference is more than
OVERDUE_AFTER_DAYS days before today.

Settled accounts (balance at or below the zero tolerance) are never
overdue, whatever their dates say.
"""

import datetime as dt
import math
from collections.abc import Sequence
from decimal import Decimal
from typing import Optional, Union

from fiado.ledger.balance import ZERO_TOLERANCE, calculate_balance
from fiado.models.ledger import Customer, OverdueStatus, Transaction, TransactionType


OVERDUE_AFTER_DAYS = 60

SECONDS_PER_DAY = 86400

NOT_OVERDUE = OverdueStatus(is_overdue=False, days=0)


def _reference_date(transactions: Sequence[Transaction]) -> Optional[dt.date]:
    # sorted() is stable with reverse=True: same-day entries keep list order
    newest_first = sorted(transactions, key=lambda t: t.date, reverse=True)

    last_sale = next(
        (t for t in newest_first if t.type == TransactionType.SALE),
        None,
    )
    if last_sale is None:
        return None

    later_payment = next(
        (
            t for t in newest_first
            if t.type == TransactionType.PAYMENT and t.date > last_sale.date
        ),
        None,
    )
    return later_payment.date if later_payment else last_sale.date


def _elapsed_days(today: Union[dt.date, dt.datetime], reference: dt.date) -> int:
    if isinstance(today, dt.datetime):
        start = dt.datetime.combine(reference, dt.time.min, tzinfo=today.tzinfo)
        seconds = abs((today - start).total_seconds())
        return math.ceil(seconds / SECONDS_PER_DAY)
    return abs((today - reference).days)


def detect_overdue(
    customer: Union[Customer, Sequence[Transaction]],
    today: Optional[Union[dt.date, dt.datetime]] = None,
    overdue_after_days: int = OVERDUE_AFTER_DAYS,
    tolerance: Decimal = ZERO_TOLERANCE,
) -> OverdueStatus:
    """
    Decide whether a customer's debt is overdue.

    Args:
        customer: A Customer, or its transaction list
        today: Reference day; a datetime counts partial days as whole ones
        overdue_after_days: Days allowed before the debt is overdue

    Returns:
        OverdueStatus with the flag and the elapsed whole days
    """
    transactions = (
        customer.transactions if isinstance(customer, Customer) else list(customer)
    )
    if not transactions:
        return NOT_OVERDUE

    # Recomputed rather than read from the cached projection
    balance = calculate_balance(transactions, tolerance)
    if balance <= tolerance:
        return NOT_OVERDUE

    reference = _reference_date(transactions)
    if reference is None:
        return NOT_OVERDUE

    days = _elapsed_days(today or dt.date.today(), reference)
    return OverdueStatus(is_overdue=days > overdue_after_days, days=days)
