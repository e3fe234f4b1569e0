"""
Transaction id generation.

Manual entries get a fresh id: the creation time in milliseconds plus a
random suffix. Collisions are negligible, not impossible.

Scanned entries get an id derived from their content, so a batch that
is retried after a partial failure produces the same ids again and the
entries already written can be recognized and skipped.
"""

import hashlib
import secrets
import time
from datetime import date
from decimal import Decimal
from typing import Optional

from fiado.ledger.balance import CENTS, coerce_value


def new_transaction_id() -> str:
    millis = int(time.time() * 1000)
    return f"{millis}-{secrets.token_hex(3)}"


def content_transaction_id(
    customer_id: str,
    entry_date: date,
    description: str,
    value: Decimal,
    ordinal: int = 0,
    batch_token: Optional[str] = None,
) -> str:
    """
    Deterministic id for an entry.

    `ordinal` tells apart identical entries on the same page (two equal
    sales on the same day); `batch_token` scopes ids to one upload when
    the caller wants the same page scanned twice to count twice.
    """
    amount = coerce_value(value).quantize(CENTS)
    key = "|".join([
        customer_id,
        entry_date.isoformat(),
        " ".join(description.split()).lower(),
        str(amount),
        str(ordinal),
        batch_token or "",
    ])
    digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
    return f"scan-{digest[:24]}"
