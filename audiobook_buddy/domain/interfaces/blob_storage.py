"""Blob storage protocol."""

from typing import Callable, Optional, Protocol, runtime_checkable

ProgressCallback = Callable[[float], None]


@runtime_checkable
class BlobStorage(Protocol):
    """Protocol for binary storage of uploads and generated audio."""

    async def upload(
        self,
        key: str,
        data: bytes,
        content_type: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        """Store bytes under a key.

        Args:
            key: Storage key, e.g. ``uploads/{owner}/{name}``.
            data: The bytes to store.
            content_type: MIME type of the data.
            on_progress: Called with the percentage transferred.

        Returns:
            The location of the stored blob.
        """
        ...

    async def fetch(self, location: str) -> bytes:
        """Read the bytes at a location.

        Raises:
            BlobNotFoundError: If nothing can be read from the location.
        """
        ...

    async def delete(self, location: str) -> None:
        """Delete the blob at a location. Missing blobs are ignored."""
        ...

    async def public_location(self, location: str) -> str:
        """Return a location the browser can fetch directly."""
        ...

    def location_for(self, key: str) -> str:
        """Return the location a key is (or would be) stored at."""
        ...
