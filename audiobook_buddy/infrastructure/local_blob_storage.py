"""Local filesystem implementation of Blob Storage."""

import asyncio
import logging
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlparse

from ..domain.entities.errors import BlobNotFoundError, ValidationError
from ..domain.interfaces.blob_storage import BlobStorage, ProgressCallback

logger = logging.getLogger(__name__)

CHUNK_SIZE = 256 * 1024


class LocalBlobStorage(BlobStorage):
    """Stores blobs as files under a base directory.

    Locations are ``file://`` URIs. Public locations are paths under
    ``public_prefix`` that the API serves from the same directory.
    """

    def __init__(self, base_dir: str = "storage", public_prefix: str = "/media"):
        self.base_dir = Path(base_dir).resolve()
        self.public_prefix = public_prefix.rstrip("/")
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def location_for(self, key: str) -> str:
        return self.path_for(key).as_uri()

    def path_for(self, key: str) -> Path:
        """Resolve a key to a path inside the base directory.

        Raises:
            ValidationError: If the key escapes the base directory.
        """
        path = (self.base_dir / key).resolve()
        if not path.is_relative_to(self.base_dir):
            raise ValidationError(f"Invalid storage key: {key}")
        return path

    def key_for(self, location: str) -> str:
        parsed = urlparse(location)
        if parsed.scheme != "file":
            raise BlobNotFoundError(f"Not a local storage location: {location}")
        path = Path(unquote(parsed.path)).resolve()
        if not path.is_relative_to(self.base_dir):
            raise BlobNotFoundError(f"Location outside storage directory: {location}")
        return path.relative_to(self.base_dir).as_posix()

    async def upload(
        self,
        key: str,
        data: bytes,
        content_type: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        path = self.path_for(key)
        await asyncio.to_thread(self._write, path, data, on_progress)
        logger.info(f"Stored {len(data)} bytes ({content_type}) at {path}")
        return path.as_uri()

    @staticmethod
    def _write(path: Path, data: bytes, on_progress: Optional[ProgressCallback]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        total = len(data) or 1
        with open(path, "wb") as f:
            for offset in range(0, len(data), CHUNK_SIZE):
                f.write(data[offset:offset + CHUNK_SIZE])
                if on_progress:
                    on_progress(min(100.0, 100.0 * (offset + CHUNK_SIZE) / total))
        if on_progress and not data:
            on_progress(100.0)

    async def fetch(self, location: str) -> bytes:
        path = self.path_for(self.key_for(location))
        if not path.is_file():
            raise BlobNotFoundError(f"No blob at {location}")
        return await asyncio.to_thread(path.read_bytes)

    async def delete(self, location: str) -> None:
        path = self.path_for(self.key_for(location))
        if path.is_file():
            await asyncio.to_thread(path.unlink)
            logger.info(f"Deleted blob {path}")
        else:
            logger.debug(f"Blob already absent: {path}")

    async def public_location(self, location: str) -> str:
        return f"{self.public_prefix}/{self.key_for(location)}"
