"""
Customer document <-> model conversion.

This is where stored documents meet the schema. A document that fails
validation raises MalformedRecordError; balances are recomputed from
the transactions every time a record is read.
"""

from decimal import Decimal
from typing import Any

from pydantic import ValidationError

from fiado.ledger.balance import ZERO_TOLERANCE, calculate_balance
from fiado.models.ledger import Customer
from fiado.services.storage import MalformedRecordError


def with_fresh_balance(customer: Customer, tolerance: Decimal = ZERO_TOLERANCE) -> Customer:
    """Copy of the customer with its balance recomputed."""
    return customer.model_copy(
        update={"balance": calculate_balance(customer.transactions, tolerance)}
    )


def customer_from_document(
    document: dict[str, Any],
    tolerance: Decimal = ZERO_TOLERANCE,
) -> Customer:
    try:
        customer = Customer.model_validate(document)
    except ValidationError as e:
        raise MalformedRecordError(
            f"Customer record {document.get('id')!r} does not match the schema: {e}"
        ) from e
    return with_fresh_balance(customer, tolerance)
