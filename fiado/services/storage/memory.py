"""
In-Memory Document Store

Used by the test suite and for running the ledger without credentials
(STORAGE_BACKEND=memory). Documents are deep-copied on the way in
and out so callers can never mutate stored state by accident.
"""

import copy
from typing import Any, Optional
from uuid import uuid4

from fiado.services.storage.interface import (
    DocumentStoreInterface,
    VersionConflictError,
)


class InMemoryDocumentStore(DocumentStoreInterface):
    """Dict-backed implementation of the document store."""

    def __init__(self, initial: Optional[dict[str, dict[str, dict]]] = None):
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        for collection, documents in (initial or {}).items():
            for doc_id, data in documents.items():
                self._write(collection, doc_id, data, version=1)

    def _bucket(self, collection: str) -> dict[str, dict[str, Any]]:
        return self._collections.setdefault(collection, {})

    def _write(self, collection: str, doc_id: str, data: dict, version: int) -> None:
        body = copy.deepcopy(data)
        body.pop("id", None)
        body["version"] = version
        self._bucket(collection)[doc_id] = body

    def _read(self, doc_id: str, body: dict) -> dict[str, Any]:
        return {"id": doc_id, **copy.deepcopy(body)}

    async def list_documents(self, collection: str) -> list[dict[str, Any]]:
        return [
            self._read(doc_id, body)
            for doc_id, body in self._bucket(collection).items()
        ]

    async def get_document(
        self,
        collection: str,
        doc_id: str,
    ) -> Optional[dict[str, Any]]:
        body = self._bucket(collection).get(doc_id)
        return self._read(doc_id, body) if body is not None else None

    async def create_document(
        self,
        collection: str,
        data: dict[str, Any],
    ) -> str:
        doc_id = uuid4().hex
        self._write(collection, doc_id, data, version=1)
        return doc_id

    async def set_document(
        self,
        collection: str,
        doc_id: str,
        data: dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> int:
        current = self._bucket(collection).get(doc_id)
        current_version = current.get("version", 0) if current else 0
        if (
            current is not None
            and expected_version is not None
            and current_version != expected_version
        ):
            raise VersionConflictError(
                collection, doc_id, expected_version, current_version
            )
        new_version = current_version + 1
        self._write(collection, doc_id, data, version=new_version)
        return new_version

    async def delete_document(self, collection: str, doc_id: str) -> bool:
        return self._bucket(collection).pop(doc_id, None) is not None

    async def find_by_field(
        self,
        collection: str,
        field: str,
        value: Any,
    ) -> list[dict[str, Any]]:
        return [
            self._read(doc_id, body)
            for doc_id, body in self._bucket(collection).items()
            if body.get(field) == value
        ]
