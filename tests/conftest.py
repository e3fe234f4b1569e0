"""
Shared fixtures.

Everything runs against the in-memory document store; external services
(Gemini, Google Sheets) are mocked in the tests that touch them.
"""

from decimal import Decimal

import pytest

from fiado.accounts import ExpenseBook, UserDirectory
from fiado.backup import BackupMerger
from fiado.config import BackupSettings, LedgerSettings
from fiado.ledger import LedgerStore, TransactionEditor
from fiado.models import Customer
from fiado.services.storage import InMemoryDocumentStore


@pytest.fixture
def ledger_settings():
    return LedgerSettings(
        zero_tolerance=Decimal("0.10"),
        overdue_after_days=60,
        allow_negative_values=True,
    )


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def editor(store, ledger_settings):
    return TransactionEditor(store, ledger_settings)


@pytest.fixture
def ledger(store, ledger_settings, editor):
    return LedgerStore(store, ledger_settings, editor=editor)


@pytest.fixture
def users(store):
    return UserDirectory(store)


@pytest.fixture
def expenses(store):
    return ExpenseBook(store)


@pytest.fixture
def merger(ledger, users, expenses):
    return BackupMerger(
        ledger,
        users,
        expenses,
        BackupSettings(format_version="2.5", include_user_secrets=False),
    )


@pytest.fixture
async def customer(ledger):
    """A saved customer with no transactions."""
    return await ledger.upsert_customer(
        Customer(name="Maria Souza", phone_primary="11 98888-0000")
    )
