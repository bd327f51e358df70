"""Document entities for the audiobook application."""

import re
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

PDF_MEDIA_TYPE = "application/pdf"
EPUB_MEDIA_TYPE = "application/epub+zip"
UPLOADABLE_MEDIA_TYPES = (PDF_MEDIA_TYPE, EPUB_MEDIA_TYPE)
MAX_DISPLAY_NAME_LENGTH = 255


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DocumentRecord(BaseModel):
    """Persisted metadata for one uploaded source file.

    Records are immutable; attaching generated audio produces a copy via
    ``with_generated_audio``.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    owner_id: str = Field(min_length=1, description="Subject id of the owning identity")
    display_name: str = Field(min_length=1, max_length=MAX_DISPLAY_NAME_LENGTH)
    media_type: str
    byte_size: int = Field(ge=0)
    source_location: str = Field(min_length=1, description="Blob storage location of the uploaded file")
    created_at: datetime = Field(default_factory=_utcnow)
    generated_audio_location: Optional[str] = None

    def with_generated_audio(self, location: str) -> "DocumentRecord":
        return self.model_copy(update={"generated_audio_location": location})

    def to_public_dict(self) -> dict:
        data = self.model_dump(mode="json")
        data.pop("owner_id")
        return data


def sanitize_filename(filename: str) -> str:
    """Replace anything outside ``[A-Za-z0-9._-]`` with an underscore."""
    return re.sub(r"[^a-zA-Z0-9._-]", "_", filename)


def upload_key(owner_id: str, filename: str, uploaded_at: datetime) -> str:
    """Storage key of an uploaded source file."""
    epoch_ms = int(uploaded_at.timestamp() * 1000)
    return f"uploads/{owner_id}/{epoch_ms}_{sanitize_filename(filename)}"


def generated_audio_key(owner_id: str, document_id: str) -> str:
    """Storage key of the server-rendered audio for a document."""
    return f"audiobooks_generated/{owner_id}/{document_id}_audio.mp3"
