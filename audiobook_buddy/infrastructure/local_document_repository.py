"""Local in-memory implementation of Document Repository."""

import logging
from typing import Callable, Dict

from ..domain.entities.document import DocumentRecord
from ..domain.entities.errors import DocumentAccessError, DocumentNotFoundError
from ..domain.interfaces.document_repository import DocumentRepository, SnapshotListener

logger = logging.getLogger(__name__)


class LocalDocumentRepository(DocumentRepository):
    """Local in-memory implementation of the Document Repository.

    Stores records in a dictionary for testing and development purposes.
    Every subscriber of an owner receives a fresh snapshot after each change
    to that owner's records.
    """

    def __init__(self):
        """Initialize the local document repository with an empty dictionary."""
        self._documents: Dict[str, DocumentRecord] = {}
        self._subscribers: Dict[str, list[SnapshotListener]] = {}

    async def subscribe(self, owner_id: str, listener: SnapshotListener) -> Callable[[], None]:
        """Register a live query for an owner's records.

        Args:
            owner_id: The owner whose records are watched.
            listener: Coroutine receiving each full snapshot.

        Returns:
            A function that closes the subscription.
        """
        listeners = self._subscribers.setdefault(owner_id, [])
        listeners.append(listener)
        await listener(self._snapshot(owner_id))

        def unsubscribe() -> None:
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    async def list_for_owner(self, owner_id: str) -> list[DocumentRecord]:
        return self._snapshot(owner_id)

    async def get(self, owner_id: str, document_id: str) -> DocumentRecord:
        """Retrieve a record by ID.

        Raises:
            DocumentNotFoundError: If the record is not found.
            DocumentAccessError: If the record belongs to another owner.
        """
        if document_id not in self._documents:
            raise DocumentNotFoundError(f"Document with id {document_id} not found")

        record = self._documents[document_id]
        self._check_owner(owner_id, record)
        return record

    async def create(self, record: DocumentRecord) -> None:
        self._documents[record.id] = record
        await self._publish(record.owner_id)

    async def update(self, owner_id: str, record: DocumentRecord) -> None:
        existing = await self.get(owner_id, record.id)
        self._check_owner(owner_id, record)
        self._documents[existing.id] = record
        await self._publish(owner_id)

    async def delete(self, owner_id: str, document_id: str) -> None:
        await self.get(owner_id, document_id)
        del self._documents[document_id]
        await self._publish(owner_id)

    def clear(self) -> None:
        """Clear all records from the dictionary."""
        self._documents.clear()

    def _snapshot(self, owner_id: str) -> list[DocumentRecord]:
        records = [r for r in self._documents.values() if r.owner_id == owner_id]
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    async def _publish(self, owner_id: str) -> None:
        snapshot = self._snapshot(owner_id)
        for listener in list(self._subscribers.get(owner_id, [])):
            await listener(list(snapshot))

    @staticmethod
    def _check_owner(owner_id: str, record: DocumentRecord) -> None:
        if record.owner_id != owner_id:
            logger.warning(f"Owner {owner_id} attempted to access document {record.id}")
            raise DocumentAccessError("You do not have access to this document.")
