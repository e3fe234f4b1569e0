"""
Transaction Editor

Add, edit and delete entries on one customer's account.

There is no per-transaction storage: every operation reads the whole
customer record, changes its transaction list, recomputes the balance
and writes the whole record back. The write carries the version that
was read, so a concurrent change made in between makes the write fail
with VersionConflictError instead of being silently discarded. Nothing
here retries; the caller decides whether to reload and try again.

Not-found is not an error: operations on an unknown customer or
transaction return None/False. Storage failures propagate.
"""

import datetime as dt
from collections import Counter
from collections.abc import Iterable
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union

from pydantic import ValidationError

from fiado.config import LedgerSettings, get_settings
from fiado.ledger.errors import InvalidTransactionError, LedgerError
from fiado.ledger.ids import content_transaction_id, new_transaction_id
from fiado.ledger.records import customer_from_document, with_fresh_balance
from fiado.logger import get_logger
from fiado.models.ledger import (
    MAX_AMOUNT,
    BatchResult,
    Customer,
    ScannedEntry,
    Transaction,
    TransactionType,
)
from fiado.services.storage import CUSTOMERS, DocumentStoreInterface, StorageError


logger = get_logger(__name__)


class TransactionEditor:
    """
    Read-modify-write operations on a customer's transaction list.

    Every successful operation leaves the stored record with
    balance == calculate_balance(transactions).
    """

    def __init__(
        self,
        store: DocumentStoreInterface,
        settings: Optional[LedgerSettings] = None,
    ):
        self._store = store
        self._settings = settings or get_settings().ledger

    async def _load(self, customer_id: str) -> Optional[Customer]:
        document = await self._store.get_document(CUSTOMERS, customer_id)
        if document is None:
            return None
        return customer_from_document(document, self._settings.zero_tolerance)

    async def _write(self, customer: Customer) -> Customer:
        """Persist the whole record, guarded by the version it was read at."""
        customer = with_fresh_balance(customer, self._settings.zero_tolerance)
        new_version = await self._store.set_document(
            CUSTOMERS,
            customer.id,
            customer.to_document(),
            expected_version=customer.version,
        )
        return customer.model_copy(update={"version": new_version})

    def _parse_value(self, raw: Any) -> Decimal:
        """Read an amount typed by the user. Unlike stored values, nothing is coerced."""
        if isinstance(raw, bool) or raw is None:
            raise InvalidTransactionError(f"Value {raw!r} is not a number")
        try:
            value = raw if isinstance(raw, Decimal) else Decimal(str(raw).strip())
        except (InvalidOperation, ValueError) as e:
            raise InvalidTransactionError(f"Value {raw!r} is not a number") from e
        if not value.is_finite() or value.copy_abs() > MAX_AMOUNT:
            raise InvalidTransactionError(f"Value {raw!r} is out of range")
        return value

    def _check_value(self, transaction: Transaction) -> None:
        value = self._parse_value(transaction.value)
        if value < 0 and not self._settings.allow_negative_values:
            raise InvalidTransactionError(f"Negative value {value} is not allowed")

    def _build(self, **fields) -> Transaction:
        fields["value"] = self._parse_value(fields.get("value"))
        try:
            transaction = Transaction(**fields)
        except ValidationError as e:
            raise InvalidTransactionError(f"Invalid transaction: {e}") from e
        self._check_value(transaction)
        return transaction

    async def add_transaction(
        self,
        customer_id: str,
        description: str,
        value: Union[Decimal, float, str],
        type: Union[TransactionType, str],
        date: Union[dt.date, str],
    ) -> Optional[Transaction]:
        """
        Append a new entry to the customer's list (no re-sort).

        Returns:
            The stored Transaction, or None if the customer does not exist

        Raises:
            InvalidTransactionError: If value/type/date cannot be parsed
            VersionConflictError: If the record changed while we wrote
            StorageError: If the store call fails
        """
        customer = await self._load(customer_id)
        if customer is None:
            logger.info("transaction_add_skipped", customer_id=customer_id, reason="customer_not_found")
            return None

        transaction = self._build(
            id=new_transaction_id(),
            date=date,
            description=description,
            value=value,
            type=type,
        )
        customer.transactions.append(transaction)
        saved = await self._write(customer)

        logger.info(
            "transaction_added",
            customer_id=customer_id,
            transaction_id=transaction.id,
            type=transaction.type.value,
            value=str(transaction.value),
            balance=str(saved.balance),
        )
        return transaction

    async def edit_transaction(self, customer_id: str, transaction: Transaction) -> bool:
        """
        Replace an entry in place, keeping its position in the list.

        Returns:
            True if replaced; False (and nothing written) if the customer
            or the transaction id does not exist
        """
        customer = await self._load(customer_id)
        if customer is None:
            return False

        index = next(
            (i for i, t in enumerate(customer.transactions) if t.id == transaction.id),
            None,
        )
        if index is None:
            logger.info(
                "transaction_edit_skipped",
                customer_id=customer_id,
                transaction_id=transaction.id,
                reason="transaction_not_found",
            )
            return False

        self._check_value(transaction)
        customer.transactions[index] = transaction
        saved = await self._write(customer)

        logger.info(
            "transaction_edited",
            customer_id=customer_id,
            transaction_id=transaction.id,
            balance=str(saved.balance),
        )
        return True

    async def delete_transaction(self, customer_id: str, transaction_id: str) -> bool:
        """
        Remove the entry with the given id.

        Returns:
            True once the filtered list is written back (also when no
            entry matched); False if the customer does not exist
        """
        customer = await self._load(customer_id)
        if customer is None:
            return False

        remaining = [t for t in customer.transactions if t.id != transaction_id]
        removed = len(customer.transactions) - len(remaining)
        customer.transactions = remaining
        saved = await self._write(customer)

        logger.info(
            "transaction_deleted",
            customer_id=customer_id,
            transaction_id=transaction_id,
            removed=removed,
            balance=str(saved.balance),
        )
        return True

    async def add_scanned_entries(
        self,
        customer_id: str,
        entries: Iterable[ScannedEntry],
        batch_token: Optional[str] = None,
    ) -> BatchResult:
        """
        Ingest candidate entries read from a ledger page.

        One read and one write per entry, in order. Ids are derived from
        the entry content, so running the same batch again skips the
        entries a previous attempt already committed. The batch is not
        atomic: on failure, earlier entries stay and the result records
        where it stopped.
        """
        result = BatchResult()
        seen: Counter = Counter()

        for index, entry in enumerate(entries):
            base_id = content_transaction_id(
                customer_id,
                entry.date,
                entry.description,
                entry.value,
                batch_token=batch_token,
            )
            ordinal = seen[base_id]
            seen[base_id] += 1
            transaction_id = base_id if ordinal == 0 else content_transaction_id(
                customer_id,
                entry.date,
                entry.description,
                entry.value,
                ordinal=ordinal,
                batch_token=batch_token,
            )

            try:
                customer = await self._load(customer_id)
                if customer is None:
                    if index == 0:
                        result.customer_found = False
                        return result
                    raise LookupError(f"Customer {customer_id} disappeared mid-batch")

                if customer.find_transaction(transaction_id) is not None:
                    result.skipped += 1
                    continue

                transaction = self._build(
                    id=transaction_id,
                    date=entry.date,
                    description=entry.description,
                    value=entry.value,
                    type=entry.transaction_type,
                )
                customer.transactions.append(transaction)
                await self._write(customer)
                result.committed.append(transaction)
            except (LedgerError, LookupError, StorageError) as e:
                result.failed_index = index
                result.error_message = str(e)
                logger.error(
                    "scan_batch_failed",
                    customer_id=customer_id,
                    failed_index=index,
                    committed=len(result.committed),
                    error=str(e),
                )
                return result

        logger.info(
            "scan_batch_committed",
            customer_id=customer_id,
            committed=len(result.committed),
            skipped=result.skipped,
        )
        return result
