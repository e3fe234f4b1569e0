"""
Main Orchestrator for Fiado Ledger

Ties the components together and defines the end-to-end flow for
importing a photographed ledger page:

    image → scanner → candidate entries → review → editor batch ingest

DESIGN DECISION: The orchestrator enforces the boundaries:
- Scanned entries are proposals; nothing is written until commit()
- Commits go through the transaction editor, so batch ids, version
  checks and balance recomputation apply exactly as for manual entries
"""

from typing import NamedTuple, Optional

from fiado.accounts import ExpenseBook, UserDirectory
from fiado.backup import BackupMerger
from fiado.config import get_settings
from fiado.ledger import LedgerStore, TransactionEditor
from fiado.logger import configure_logging, get_logger
from fiado.models.accounts import User
from fiado.models.ledger import BatchResult, ScannedEntry
from fiado.services.ocr import GeminiLedgerScanner
from fiado.services.storage import (
    DocumentStoreInterface,
    GoogleSheetsDocumentStore,
    InMemoryDocumentStore,
)


logger = get_logger(__name__)


class ScanImportFlow:
    """
    Orchestrates the ledger page import flow.

    Flow:
    1. Scan → Send the photo to the scanner, get candidate entries
    2. Review → Caller shows the entries and lets the user fix or drop them
    3. Commit → Editor ingests the accepted entries one by one

    Passing the same batch_token when retrying a commit makes the retry
    skip entries that were already written.
    """

    def __init__(
        self,
        scanner: GeminiLedgerScanner,
        editor: TransactionEditor,
    ):
        self._scanner = scanner
        self._editor = editor

    async def scan(
        self,
        image_bytes: bytes,
        mime_type: str = "image/jpeg",
    ) -> list[ScannedEntry]:
        """Read a page into candidate entries. Writes nothing."""
        return await self._scanner.scan_ledger_image(image_bytes, mime_type)

    async def commit(
        self,
        customer_id: str,
        entries: list[ScannedEntry],
        batch_token: Optional[str] = None,
    ) -> BatchResult:
        """Write reviewed entries to the customer's account."""
        result = await self._editor.add_scanned_entries(
            customer_id,
            entries,
            batch_token=batch_token,
        )
        logger.info(
            "scan_import_committed",
            customer_id=customer_id,
            committed=len(result.committed),
            skipped=result.skipped,
            success=result.success,
        )
        return result

    async def scan_and_import(
        self,
        customer_id: str,
        image_bytes: bytes,
        mime_type: str = "image/jpeg",
        batch_token: Optional[str] = None,
    ) -> BatchResult:
        """
        Scan and commit in one step, for callers that review elsewhere.

        Raises:
            ScannerError: If the scan fails; nothing is written
        """
        entries = await self.scan(image_bytes, mime_type)
        return await self.commit(customer_id, entries, batch_token)


class AppComponents(NamedTuple):
    store: DocumentStoreInterface
    ledger: LedgerStore
    users: UserDirectory
    expenses: ExpenseBook
    backup: BackupMerger
    scan_import: ScanImportFlow


def create_app_components(use_storage: bool = True) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to use the configured storage backend.
                    Set to False to run on the in-memory store.

    Returns:
        AppComponents sharing one document store
    """
    settings = get_settings()
    app_settings = settings.app
    configure_logging(app_settings.log_level)

    store: DocumentStoreInterface
    if use_storage and app_settings.storage_backend == "google_sheets":
        store = GoogleSheetsDocumentStore()
    else:
        store = InMemoryDocumentStore()

    ledger = LedgerStore(store, settings.ledger)
    users = UserDirectory(store)
    expenses = ExpenseBook(store)
    backup = BackupMerger(ledger, users, expenses, settings.backup)
    scan_import = ScanImportFlow(GeminiLedgerScanner(settings.gemini), ledger.editor)

    logger.info(
        "app_components_created",
        storage=type(store).__name__,
        environment=app_settings.app_environment,
    )
    return AppComponents(
        store=store,
        ledger=ledger,
        users=users,
        expenses=expenses,
        backup=backup,
        scan_import=scan_import,
    )


async def bootstrap(components: AppComponents) -> Optional[User]:
    """Startup work that needs the store: seed the admin account."""
    return await components.users.ensure_admin(get_settings().admin)
