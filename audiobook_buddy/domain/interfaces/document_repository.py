"""Document repository interface."""

from typing import Awaitable, Callable, Protocol, runtime_checkable

from ..entities.document import DocumentRecord

SnapshotListener = Callable[[list[DocumentRecord]], Awaitable[None]]


@runtime_checkable
class DocumentRepository(Protocol):
    """Protocol defining the persistence collaborator for document records.

    Implementations enforce owner scoping themselves: reads and writes on a
    record owned by somebody else raise ``DocumentAccessError`` regardless of
    any filtering the caller does.
    """

    async def subscribe(self, owner_id: str, listener: SnapshotListener) -> Callable[[], None]:
        """Open a live query of an owner's records, newest first.

        The listener receives the full current snapshot once before this
        method returns and again after every change.

        Returns:
            A function that closes the subscription.
        """
        ...

    async def list_for_owner(self, owner_id: str) -> list[DocumentRecord]:
        """Return an owner's records ordered by creation time, newest first."""
        ...

    async def get(self, owner_id: str, document_id: str) -> DocumentRecord:
        """Retrieve a record.

        Raises:
            DocumentNotFoundError: If the record does not exist.
            DocumentAccessError: If the record belongs to another owner.
        """
        ...

    async def create(self, record: DocumentRecord) -> None:
        """Persist a new record."""
        ...

    async def update(self, owner_id: str, record: DocumentRecord) -> None:
        """Replace an existing record.

        Raises:
            DocumentNotFoundError: If the record does not exist.
            DocumentAccessError: If the record belongs to another owner.
        """
        ...

    async def delete(self, owner_id: str, document_id: str) -> None:
        """Delete a record.

        Raises:
            DocumentNotFoundError: If the record does not exist.
            DocumentAccessError: If the record belongs to another owner.
        """
        ...
