"""
Ledger Data Models

Schemas for everything that carries money on a customer's account.

DESIGN DECISION: Stored documents use the camelCase field names of the
shop's existing data (phonePrimary, createdAt, ...). Models expose
snake_case attributes and accept either spelling, so old documents and
backups load without a migration step.

Validation here is the storage boundary. Required fields, dates and
types are enforced; a document missing them does not become a
Transaction. Stored amounts are the exception: older records hold
values such as "" or "abc", and those read as zero (StoredMoney) so
the customer still lists, exports and restores. New entries are
checked strictly by the transaction editor before they reach a model.
"""

import datetime as dt
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Annotated, Any, ClassVar, Literal, Optional

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
)
from pydantic.alias_generators import to_camel


# Largest magnitude a single amount may have; anything bigger is a typo
MAX_AMOUNT = Decimal("1000000000000")


def coerce_value(value: Any) -> Decimal:
    """Read an amount as a Decimal; anything unreadable or out of range is zero."""
    if isinstance(value, bool) or value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return Decimal("0")
    if not result.is_finite() or result.copy_abs() > MAX_AMOUNT:
        return Decimal("0")
    return result


# Decimals go out as JSON numbers, like the documents they came from
Money = Annotated[
    Decimal,
    PlainSerializer(float, return_type=float, when_used="json"),
]

# Amounts read from stored documents and backups
StoredMoney = Annotated[Money, BeforeValidator(coerce_value)]


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class DocumentModel(BaseModel):
    """Base for models persisted as documents in the store."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    # Fields owned by the store, never written into the document body
    store_fields: ClassVar[frozenset[str]] = frozenset({"id"})

    def to_document(self) -> dict[str, Any]:
        """Serialize for the document store (camelCase, JSON-safe)."""
        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude=set(self.store_fields),
        )


# =============================================================================
# ENUMS
# =============================================================================

class TransactionType(str, Enum):
    """
    Direction of a ledger entry.

    SALE increases what the customer owes, PAYMENT decreases it.
    """
    SALE = "SALE"
    PAYMENT = "PAYMENT"


# =============================================================================
# TRANSACTIONS & CUSTOMERS
# =============================================================================

class Transaction(BaseModel):
    """A single SALE or PAYMENT on a customer's account."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str = Field(
        ...,
        min_length=1,
        description="Opaque id, unique within the owning customer"
    )
    date: dt.date = Field(
        ...,
        description="Calendar day of the entry (YYYY-MM-DD)"
    )
    description: str = Field(
        default="",
        max_length=500,
    )
    value: StoredMoney = Field(
        ...,
        description="Amount; intended non-negative"
    )
    type: TransactionType
    created_at: dt.datetime = Field(
        default_factory=utc_now,
        description="When the entry was recorded"
    )

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v: Any) -> Any:
        """Accept 'sale'/'payment' as written by the scanner."""
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("date", mode="before")
    @classmethod
    def strip_time_component(cls, v: Any) -> Any:
        """Older documents carry full ISO timestamps; keep the day."""
        if isinstance(v, dt.datetime):
            return v.date()
        if isinstance(v, str) and "T" in v:
            return v.split("T", 1)[0]
        return v


class Customer(DocumentModel):
    """
    A customer account.

    `balance` is a cached projection of `transactions` and is recomputed
    on every read and write; never trust the stored value.
    `version` is the store's optimistic-concurrency stamp.
    """

    store_fields: ClassVar[frozenset[str]] = frozenset({"id", "version"})

    id: Optional[str] = Field(
        default=None,
        description="Store id; None until first saved"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
    )
    phone_primary: str = Field(
        ...,
        max_length=40,
    )
    phone_secondary: Optional[str] = Field(default=None, max_length=40)
    cpf: Optional[str] = Field(default=None, max_length=20)
    address: Optional[str] = Field(default=None, max_length=500)
    notes: Optional[str] = Field(default=None, max_length=2000)

    transactions: list[Transaction] = Field(
        default_factory=list,
        description="Entries in insertion order, not date order"
    )
    balance: StoredMoney = Field(
        default=Decimal("0"),
        description="Derived: SALE total minus PAYMENT total"
    )
    version: int = Field(
        default=0,
        ge=0,
        description="Document version the record was read at"
    )

    def find_transaction(self, transaction_id: str) -> Optional[Transaction]:
        for transaction in self.transactions:
            if transaction.id == transaction_id:
                return transaction
        return None


class OverdueStatus(BaseModel):
    """Result of the overdue check for one customer."""

    is_overdue: bool
    days: int = Field(
        ge=0,
        description="Whole days since the reference activity"
    )


# =============================================================================
# SCANNER INPUT & BATCH RESULTS
# =============================================================================

class ScannedEntry(BaseModel):
    """
    A candidate entry read from a photographed ledger page.

    This is PROPOSED data. It becomes a Transaction only when the
    caller hands it to the transaction editor.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    date: dt.date
    description: str = Field(default="", max_length=500)
    value: Decimal
    type: Literal["sale", "payment"]

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @property
    def transaction_type(self) -> TransactionType:
        return TransactionType.SALE if self.type == "sale" else TransactionType.PAYMENT


class BatchResult(BaseModel):
    """
    Outcome of a sequential batch ingest.

    Batches are not atomic: entries before a failure stay committed.
    """

    customer_found: bool = True
    committed: list[Transaction] = Field(default_factory=list)
    skipped: int = Field(
        default=0,
        ge=0,
        description="Entries already present from an earlier attempt"
    )
    failed_index: Optional[int] = Field(
        default=None,
        description="Index of the entry whose write failed"
    )
    error_message: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.customer_found and self.failed_index is None
