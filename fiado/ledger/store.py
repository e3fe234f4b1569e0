"""
Ledger Store Facade

The single entry point the presentation layer uses for customer records.

GUARANTEES:
- Balances are recomputed on every read; a stored balance is never trusted
- Upsert replaces the whole document at its id (not a field merge), or
  creates a new document when the customer has no id
- A customer can only be deleted when its balance is inside the zero
  band or it has no transactions; the rule is checked here so no caller
  can skip it

Transaction-level operations are delegated to the TransactionEditor.
"""

import datetime as dt
from typing import Optional, Union

from fiado.config import LedgerSettings, get_settings
from fiado.ledger.balance import can_delete
from fiado.ledger.editor import TransactionEditor
from fiado.ledger.errors import CustomerNotSettledError
from fiado.ledger.overdue import detect_overdue
from fiado.ledger.records import customer_from_document, with_fresh_balance
from fiado.logger import get_logger
from fiado.models.ledger import Customer, OverdueStatus
from fiado.services.storage import (
    CUSTOMERS,
    DocumentStoreInterface,
    MalformedRecordError,
)


logger = get_logger(__name__)


class LedgerStore:
    """Read/write access to customer records, guarded by ledger rules."""

    def __init__(
        self,
        store: DocumentStoreInterface,
        settings: Optional[LedgerSettings] = None,
        editor: Optional[TransactionEditor] = None,
    ):
        self._store = store
        self._settings = settings or get_settings().ledger
        self.editor = editor or TransactionEditor(store, self._settings)

    async def list_customers(self, skip_malformed: bool = True) -> list[Customer]:
        """
        All customers, each with a freshly computed balance.

        Args:
            skip_malformed: Leave out (and log) records that fail schema
                validation. With False the first such record raises, for
                callers that must not silently lose data, such as export.

        Raises:
            MalformedRecordError: If skip_malformed is False and a record
                fails validation
        """
        customers = []
        for document in await self._store.list_documents(CUSTOMERS):
            try:
                customers.append(
                    customer_from_document(document, self._settings.zero_tolerance)
                )
            except MalformedRecordError as e:
                if not skip_malformed:
                    raise
                logger.error(
                    "customer_record_malformed",
                    customer_id=document.get("id"),
                    error=str(e),
                )
        return customers

    async def get_customer(self, customer_id: str) -> Optional[Customer]:
        """
        One customer with a freshly computed balance, or None.

        Raises:
            MalformedRecordError: If the stored record fails validation
        """
        document = await self._store.get_document(CUSTOMERS, customer_id)
        if document is None:
            return None
        return customer_from_document(document, self._settings.zero_tolerance)

    async def upsert_customer(
        self,
        customer: Customer,
        overwrite: bool = False,
    ) -> Customer:
        """
        Save a customer record.

        With an id, the stored document at that id is fully replaced (or
        created if the id is unknown). Without one, a new document is
        created. The balance is recomputed before writing.

        Args:
            overwrite: Skip the version check (last writer wins). Used by
                backup import, whose records carry versions from another
                store.

        Returns:
            The saved customer, with id and version filled in

        Raises:
            VersionConflictError: If the record changed since it was read
            StorageError: If the store call fails
        """
        customer = with_fresh_balance(customer, self._settings.zero_tolerance)
        document = customer.to_document()

        if customer.id:
            version = await self._store.set_document(
                CUSTOMERS,
                customer.id,
                document,
                expected_version=None if overwrite else customer.version,
            )
            saved = customer.model_copy(update={"version": version})
        else:
            new_id = await self._store.create_document(CUSTOMERS, document)
            saved = customer.model_copy(update={"id": new_id, "version": 1})

        logger.info(
            "customer_saved",
            customer_id=saved.id,
            created=not customer.id,
            transactions=len(saved.transactions),
            balance=str(saved.balance),
        )
        return saved

    async def delete_customer(self, customer_id: str) -> bool:
        """
        Delete a customer whose account is settled.

        Returns:
            True if deleted, False if the customer does not exist

        Raises:
            CustomerNotSettledError: If the balance is outside the zero band
        """
        customer = await self.get_customer(customer_id)
        if customer is None:
            return False

        if not can_delete(customer.transactions, self._settings.zero_tolerance):
            logger.warning(
                "customer_delete_refused",
                customer_id=customer_id,
                balance=str(customer.balance),
            )
            raise CustomerNotSettledError(customer_id, customer.balance)

        deleted = await self._store.delete_document(CUSTOMERS, customer_id)
        logger.info("customer_deleted", customer_id=customer_id, deleted=deleted)
        return deleted

    def overdue_status(
        self,
        customer: Customer,
        today: Optional[Union[dt.date, dt.datetime]] = None,
    ) -> OverdueStatus:
        """Overdue flag for a customer, using the configured window."""
        return detect_overdue(
            customer,
            today=today,
            overdue_after_days=self._settings.overdue_after_days,
            tolerance=self._settings.zero_tolerance,
        )

    async def list_overdue(
        self,
        today: Optional[Union[dt.date, dt.datetime]] = None,
    ) -> list[tuple[Customer, OverdueStatus]]:
        """Customers whose debt is overdue, longest-waiting first."""
        flagged = []
        for customer in await self.list_customers():
            status = self.overdue_status(customer, today)
            if status.is_overdue:
                flagged.append((customer, status))
        flagged.sort(key=lambda pair: pair[1].days, reverse=True)
        return flagged
