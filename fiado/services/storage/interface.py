"""
Abstract Document Store Interface

DESIGN DECISION: The ledger talks to a document store through this
interface only. This allows us to:
1. Keep Google Sheets as the shop's storage today
2. Use in-memory storage for testing
3. Swap to a real database later without touching ledger logic

The interface is deliberately the shape of a document database:
collections of loosely-typed documents addressed by id. Schemas are
applied one level up, where documents become models.

Every stored document carries a `version` integer maintained by the
store. Writers that pass `expected_version` get a VersionConflictError
instead of silently overwriting a concurrent change.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


CUSTOMERS = "customers"
USERS = "users"
EXPENSES = "expenses"

COLLECTIONS = (CUSTOMERS, USERS, EXPENSES)


class DocumentStoreInterface(ABC):
    """
    Abstract interface for document storage operations.

    Returned documents are plain dicts that always include the
    store-managed keys "id" and "version".
    """

    @abstractmethod
    async def list_documents(self, collection: str) -> list[dict[str, Any]]:
        """
        List every document in a collection.

        Raises:
            StorageError: If the backend call fails
        """
        pass

    @abstractmethod
    async def get_document(
        self,
        collection: str,
        doc_id: str,
    ) -> Optional[dict[str, Any]]:
        """
        Retrieve a document by id.

        Returns:
            The document if found, None otherwise
        """
        pass

    @abstractmethod
    async def create_document(
        self,
        collection: str,
        data: dict[str, Any],
    ) -> str:
        """
        Create a document under a store-generated id.

        Returns:
            The new document's id
        """
        pass

    @abstractmethod
    async def set_document(
        self,
        collection: str,
        doc_id: str,
        data: dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> int:
        """
        Write a document at a given id, replacing it entirely.

        Creates the document if the id is unknown. Fields absent from
        `data` are removed; this is not a merge.

        Args:
            expected_version: If given and the stored document exists
                with a different version, nothing is written.

        Returns:
            The version now stored

        Raises:
            VersionConflictError: On a stale expected_version
            StorageError: If the backend call fails
        """
        pass

    @abstractmethod
    async def delete_document(self, collection: str, doc_id: str) -> bool:
        """
        Delete a document by id.

        Returns:
            True if a document was removed, False if none existed
        """
        pass

    @abstractmethod
    async def find_by_field(
        self,
        collection: str,
        field: str,
        value: Any,
    ) -> list[dict[str, Any]]:
        """Return documents whose top-level `field` equals `value`."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass


class VersionConflictError(StorageError):
    """A write was based on a version that is no longer current."""

    def __init__(self, collection: str, doc_id: str, expected: int, actual: int):
        self.collection = collection
        self.doc_id = doc_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{collection}/{doc_id} is at version {actual}, write expected {expected}"
        )


class MalformedRecordError(StorageError):
    """A stored or incoming document does not match its schema."""
    pass
