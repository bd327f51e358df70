"""Extraction result entities."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ExtractionStatus(str, Enum):
    """Outcome of a text extraction."""

    SUCCESS = "success"
    UNSUPPORTED = "unsupported"
    FAILED = "failed"


class ExtractionErrorKind(str, Enum):
    """Why an extraction failed as a whole."""

    NOT_FOUND = "not-found"
    ENCRYPTED = "encrypted"
    INVALID = "invalid"
    RUNTIME = "runtime"


class ExtractionResult(BaseModel):
    """Plain text derived from a document's bytes, or why there is none.

    Callers must branch on ``status``; ``text`` is only meaningful for
    ``SUCCESS`` and may legitimately be empty.
    """

    model_config = ConfigDict(frozen=True)

    document_id: str
    status: ExtractionStatus
    text: str = ""
    media_type: Optional[str] = None
    error_kind: Optional[ExtractionErrorKind] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, document_id: str, text: str) -> "ExtractionResult":
        return cls(document_id=document_id, status=ExtractionStatus.SUCCESS, text=text)

    @classmethod
    def unsupported(cls, document_id: str, media_type: str) -> "ExtractionResult":
        return cls(
            document_id=document_id,
            status=ExtractionStatus.UNSUPPORTED,
            media_type=media_type,
            message=f"File type ({media_type}) not currently supported for text extraction. Only PDF is implemented.",
        )

    @classmethod
    def failure(cls, document_id: str, kind: ExtractionErrorKind, message: str) -> "ExtractionResult":
        return cls(document_id=document_id, status=ExtractionStatus.FAILED, error_kind=kind, message=message)

    @property
    def ok(self) -> bool:
        return self.status == ExtractionStatus.SUCCESS

    @property
    def is_empty(self) -> bool:
        return self.ok and not self.text.strip()

    @property
    def retryable(self) -> bool:
        """Runtime failures are configuration problems; retrying will not help."""
        return self.status == ExtractionStatus.FAILED and self.error_kind != ExtractionErrorKind.RUNTIME
