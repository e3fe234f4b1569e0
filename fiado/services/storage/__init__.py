"""
Storage Services Package

Provides the abstract document store interface and its implementations.
Google Sheets is the production backend; the in-memory store backs tests.
"""

from fiado.services.storage.interface import (
    COLLECTIONS,
    CUSTOMERS,
    EXPENSES,
    USERS,
    ConnectionError,
    DocumentStoreInterface,
    MalformedRecordError,
    NotFoundError,
    StorageError,
    VersionConflictError,
)
from fiado.services.storage.memory import InMemoryDocumentStore
from fiado.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
)

__all__ = [
    # Interface
    "DocumentStoreInterface",
    # Collections
    "COLLECTIONS",
    "CUSTOMERS",
    "EXPENSES",
    "USERS",
    # Exceptions
    "ConnectionError",
    "MalformedRecordError",
    "NotFoundError",
    "StorageError",
    "VersionConflictError",
    # Implementations
    "InMemoryDocumentStore",
    "GoogleSheetsClient",
    "GoogleSheetsDocumentStore",
]
