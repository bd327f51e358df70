"""Live, owner-scoped catalog of document records."""

import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from ..entities.document import (
    MAX_DISPLAY_NAME_LENGTH,
    UPLOADABLE_MEDIA_TYPES,
    DocumentRecord,
    generated_audio_key,
    upload_key,
)
from ..entities.errors import AudiobookError, AuthorizationError, UnsupportedMediaTypeError, ValidationError
from ..entities.identity import Identity
from ..interfaces.blob_storage import BlobStorage, ProgressCallback
from ..interfaces.document_repository import DocumentRepository

logger = logging.getLogger(__name__)

CatalogListener = Callable[[list[DocumentRecord]], Awaitable[None]]


class DocumentCatalog:
    """
    Ordered collection of the current identity's documents.

    The local copy is replaced only by subscription snapshots. Mutations are
    requests to the repository; the catalog waits for the live query to
    reflect them.
    """

    def __init__(self, repository: DocumentRepository, storage: BlobStorage):
        self._repository = repository
        self._storage = storage
        self._documents: list[DocumentRecord] = []
        self._owner_id: Optional[str] = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._token = 0
        self._error: Optional[AudiobookError] = None
        self._listeners: list[CatalogListener] = []

    @property
    def documents(self) -> list[DocumentRecord]:
        return list(self._documents)

    @property
    def owner_id(self) -> Optional[str]:
        return self._owner_id

    @property
    def error(self) -> Optional[AudiobookError]:
        """Why the last subscription could not be opened, if it failed."""
        return self._error

    def add_listener(self, listener: CatalogListener) -> None:
        self._listeners.append(listener)

    def find(self, document_id: str) -> Optional[DocumentRecord]:
        return next((d for d in self._documents if d.id == document_id), None)

    async def bind(self, identity: Optional[Identity]) -> None:
        """
        Scope the catalog to an identity, or empty it when there is none.

        A subscription that cannot be opened leaves the catalog empty with
        ``error`` set; calling ``bind`` again with the same identity retries.
        """
        new_owner = identity.subject_id if identity else None
        if new_owner == self._owner_id and (new_owner is None or self._unsubscribe is not None):
            return

        self.unbind()
        if new_owner is None:
            await self._notify()
            return

        self._owner_id = new_owner
        token = self._token

        async def on_snapshot(records: list[DocumentRecord]) -> None:
            await self._apply_snapshot(token, new_owner, records)

        try:
            unsubscribe = await self._repository.subscribe(new_owner, on_snapshot)
        except AudiobookError as e:
            if token != self._token:
                return
            logger.error(f"DocumentCatalog could not subscribe for owner {new_owner}: {e}")
            self._error = e
            await self._notify()
            return

        if token != self._token:
            # Identity changed again while the subscription was opening.
            unsubscribe()
            return
        self._unsubscribe = unsubscribe
        logger.info(f"DocumentCatalog subscribed for owner {new_owner}")

    def unbind(self) -> None:
        """Close the subscription and clear the local copy synchronously."""
        self._token += 1
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
            logger.info(f"DocumentCatalog unsubscribed for owner {self._owner_id}")
        self._owner_id = None
        self._documents = []
        self._error = None

    async def _apply_snapshot(self, token: int, owner_id: str, records: list[DocumentRecord]) -> None:
        if token != self._token:
            logger.debug(f"Dropping snapshot from superseded subscription for owner {owner_id}")
            return

        foreign = [r.id for r in records if r.owner_id != owner_id]
        if foreign:
            logger.warning(f"Dropping {len(foreign)} records not owned by {owner_id}")

        owned = [r for r in records if r.owner_id == owner_id]
        self._documents = sorted(owned, key=lambda r: r.created_at, reverse=True)
        await self._notify()

    async def _notify(self) -> None:
        for listener in list(self._listeners):
            await listener(self.documents)

    # ===== Mutation requests =====

    def _require_owner(self, identity: Optional[Identity]) -> str:
        if identity is None:
            raise AuthorizationError("User not authenticated. Cannot modify documents.")
        return identity.subject_id

    async def upload(
        self,
        identity: Optional[Identity],
        filename: str,
        data: bytes,
        media_type: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> DocumentRecord:
        """
        Upload a file and create its record.

        Raises:
            AuthorizationError: If there is no identity.
            UnsupportedMediaTypeError: If the file is not a PDF or ePUB.
            ValidationError: If the file name is empty or too long.
        """
        owner_id = self._require_owner(identity)
        if media_type not in UPLOADABLE_MEDIA_TYPES:
            raise UnsupportedMediaTypeError(media_type)
        if not filename or len(filename) > MAX_DISPLAY_NAME_LENGTH:
            raise ValidationError(f"File names must be 1 to {MAX_DISPLAY_NAME_LENGTH} characters long.")

        now = datetime.now(timezone.utc)
        key = upload_key(owner_id, filename, now)
        logger.info(f"Uploading {filename} ({len(data)} bytes) to {key}")
        location = await self._storage.upload(key, data, media_type, on_progress)

        try:
            record = DocumentRecord(
                owner_id=owner_id,
                display_name=filename,
                media_type=media_type,
                byte_size=len(data),
                source_location=location,
                created_at=now,
            )
            await self._repository.create(record)
        except Exception:
            logger.error(f"Creating record for {key} failed, removing uploaded blob", exc_info=True)
            await self._storage.delete(location)
            raise
        return record

    async def delete(self, identity: Optional[Identity], document_id: str) -> None:
        """Delete a record together with its source file and generated audio."""
        owner_id = self._require_owner(identity)
        record = await self._repository.get(owner_id, document_id)
        await self._repository.delete(owner_id, document_id)

        await self._storage.delete(record.source_location)
        if record.generated_audio_location:
            await self._storage.delete(self._storage.location_for(generated_audio_key(owner_id, document_id)))
        logger.info(f"Deleted document {document_id} for owner {owner_id}")
