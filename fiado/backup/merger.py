"""
Backup Merger

Exports the whole store into one portable document and merges such a
document back in.

IMPORT SEMANTICS:
- Customers and expenses are upserted: replaced at their id, inserted
  when they have no id or an id the store does not know
- Writes are last-writer-wins; versions from another store mean nothing here
- Users are never imported
- Id-less customers are inserted anew on every import unless
  deduplicate=True, which matches them by (name, phonePrimary) and
  unions transactions by transaction id
- Import is sequential; a storage failure stops it and the result says
  how far it got
"""

import json
from typing import Any, Optional, Union

from pydantic import ValidationError

from fiado.accounts import ExpenseBook, UserDirectory
from fiado.config import BackupSettings, get_settings
from fiado.ledger import LedgerStore
from fiado.logger import get_logger
from fiado.models.backup import BackupDocument, ImportResult
from fiado.models.ledger import Customer, utc_now
from fiado.services.storage import StorageError


logger = get_logger(__name__)


class BackupFormatError(Exception):
    """The backup text or document is not a valid backup."""
    pass


def _identity(customer: Customer) -> tuple[str, str]:
    return (customer.name, customer.phone_primary)


def _union_transactions(existing: Customer, incoming: Customer) -> Customer:
    known = {t.id for t in existing.transactions}
    added = [t for t in incoming.transactions if t.id not in known]
    return existing.model_copy(
        update={"transactions": [*existing.transactions, *added]}
    )


class BackupMerger:
    """Backup export and import across customers, users and expenses."""

    def __init__(
        self,
        ledger: LedgerStore,
        users: UserDirectory,
        expenses: ExpenseBook,
        settings: Optional[BackupSettings] = None,
    ):
        self._ledger = ledger
        self._users = users
        self._expenses = expenses
        self._settings = settings or get_settings().backup

    # =========================================================================
    # EXPORT
    # =========================================================================

    async def export_document(self) -> BackupDocument:
        """
        Snapshot of every customer, user and expense.

        Raises:
            MalformedRecordError: If any stored record fails validation
        """
        users = await self._users.list_users()
        if not self._settings.include_user_secrets:
            users = [u.model_copy(update={"password": None}) for u in users]

        document = BackupDocument(
            users=users,
            customers=await self._ledger.list_customers(skip_malformed=False),
            expenses=await self._expenses.list_expenses(skip_malformed=False),
            version=self._settings.format_version,
            exported_at=utc_now().isoformat(),
        )

        logger.info(
            "export_finished",
            users=len(document.users),
            customers=len(document.customers),
            expenses=len(document.expenses),
        )
        return document

    async def export_json(self) -> str:
        document = await self.export_document()
        return json.dumps(
            document.to_export(self._settings.include_user_secrets),
            indent=2,
            ensure_ascii=False,
        )

    # =========================================================================
    # IMPORT
    # =========================================================================

    async def import_json(self, text: str, deduplicate: bool = False) -> ImportResult:
        """
        Parse backup text and import it.

        Raises:
            BackupFormatError: If the text is not JSON or not a backup object
        """
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise BackupFormatError(f"Backup is not valid JSON: {e}") from e
        return await self.import_document(data, deduplicate=deduplicate)

    async def import_document(
        self,
        document: Union[BackupDocument, dict[str, Any]],
        deduplicate: bool = False,
    ) -> ImportResult:
        """
        Merge a backup document into the store.

        Args:
            document: A BackupDocument or its raw dict form
            deduplicate: Merge id-less customers into existing ones with
                the same name and primary phone

        Returns:
            ImportResult with counts; success is False if a write failed

        Raises:
            BackupFormatError: If the document does not have the backup shape
        """
        if not isinstance(document, BackupDocument):
            if not isinstance(document, dict):
                raise BackupFormatError("Backup must be a JSON object")
            try:
                document = BackupDocument.model_validate(document)
            except ValidationError as e:
                raise BackupFormatError(f"Backup does not match the expected shape: {e}") from e

        logger.info(
            "import_started",
            customers=len(document.customers),
            expenses=len(document.expenses),
            version=document.version,
            deduplicate=deduplicate,
        )

        result = ImportResult(success=True)
        try:
            await self._import_customers(document.customers, deduplicate, result)
            for expense in document.expenses:
                await self._expenses.save_expense(expense)
                result.expenses_written += 1
        except StorageError as e:
            result.success = False
            result.error_message = str(e)
            logger.error(
                "import_failed",
                customers_written=result.customers_written,
                customers_merged=result.customers_merged,
                expenses_written=result.expenses_written,
                error=str(e),
            )
            return result

        logger.info(
            "import_finished",
            customers_written=result.customers_written,
            customers_merged=result.customers_merged,
            expenses_written=result.expenses_written,
        )
        return result

    async def _import_customers(
        self,
        customers: list[Customer],
        deduplicate: bool,
        result: ImportResult,
    ) -> None:
        index: dict[tuple[str, str], Customer] = {}
        if deduplicate:
            index = {_identity(c): c for c in await self._ledger.list_customers()}

        for customer in customers:
            match = index.get(_identity(customer)) if deduplicate and not customer.id else None
            if match is not None:
                saved = await self._ledger.upsert_customer(
                    _union_transactions(match, customer),
                    overwrite=True,
                )
                result.customers_merged += 1
            else:
                saved = await self._ledger.upsert_customer(customer, overwrite=True)
                result.customers_written += 1

            if deduplicate:
                index[_identity(saved)] = saved
