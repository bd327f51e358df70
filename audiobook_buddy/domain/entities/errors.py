"""Error taxonomy shared by every layer of the application."""

from enum import Enum
from typing import Optional


class ErrorCategory(str, Enum):
    """How an error should be surfaced and whether retrying can help."""

    CONFIGURATION = "configuration"
    AUTHORIZATION = "authorization"
    TRANSIENT = "transient"
    VALIDATION = "validation"


class AudiobookError(Exception):
    """Base class for application errors."""

    category: ErrorCategory = ErrorCategory.TRANSIENT

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"category": self.category.value, "message": self.message}


class ConfigurationError(AudiobookError):
    """A collaborator is missing or misconfigured. Not retryable until fixed."""

    category = ErrorCategory.CONFIGURATION


class AuthorizationError(AudiobookError):
    """The caller has no identity or its credential was rejected."""

    category = ErrorCategory.AUTHORIZATION

    def __init__(self, message: str = "Please sign in again."):
        super().__init__(message)


class TransientError(AudiobookError):
    """Network failures, rate limiting and other I/O hiccups."""

    category = ErrorCategory.TRANSIENT


class ValidationError(AudiobookError):
    """Input or a collaborator response failed validation."""

    category = ErrorCategory.VALIDATION


class UnsupportedMediaTypeError(ValidationError):
    """The uploaded file type is not accepted."""

    def __init__(self, media_type: str):
        super().__init__(f"File type ({media_type}) is not supported. Please upload a PDF or ePUB file.")
        self.media_type = media_type


class DocumentNotFoundError(ValueError):
    """Raised by repositories when a document id is unknown."""


class DocumentAccessError(AudiobookError):
    """A caller tried to read or mutate a document it does not own."""

    category = ErrorCategory.AUTHORIZATION


class BlobNotFoundError(TransientError):
    """Raised by blob storage when a location cannot be fetched."""


class AuthErrorCode(str, Enum):
    """Classified identity provider failures."""

    INVALID_CREDENTIAL = "invalid-credential"
    EMAIL_IN_USE = "email-in-use"
    WEAK_PASSWORD = "weak-password"
    INVALID_EMAIL = "invalid-email"
    NETWORK = "network"
    RATE_LIMITED = "rate-limited"
    CONFIGURATION_INVALID = "configuration-invalid"


AUTH_ERROR_MESSAGES = {
    AuthErrorCode.INVALID_CREDENTIAL: "Invalid email or password.",
    AuthErrorCode.EMAIL_IN_USE: "This email address is already in use.",
    AuthErrorCode.WEAK_PASSWORD: "Password is too weak. Please use at least 6 characters.",
    AuthErrorCode.INVALID_EMAIL: "Invalid email address format.",
    AuthErrorCode.NETWORK: "Network error. Please check your connection and try again.",
    AuthErrorCode.RATE_LIMITED: "Too many attempts. Please wait and try again.",
    AuthErrorCode.CONFIGURATION_INVALID: "Authentication is not configured correctly.",
}

_AUTH_CATEGORIES = {
    AuthErrorCode.NETWORK: ErrorCategory.TRANSIENT,
    AuthErrorCode.RATE_LIMITED: ErrorCategory.TRANSIENT,
    AuthErrorCode.CONFIGURATION_INVALID: ErrorCategory.CONFIGURATION,
    AuthErrorCode.WEAK_PASSWORD: ErrorCategory.VALIDATION,
    AuthErrorCode.INVALID_EMAIL: ErrorCategory.VALIDATION,
    AuthErrorCode.EMAIL_IN_USE: ErrorCategory.VALIDATION,
}


class AuthError(AudiobookError):
    """Identity provider failure with a user-facing message."""

    def __init__(self, code: AuthErrorCode, detail: Optional[str] = None):
        super().__init__(AUTH_ERROR_MESSAGES[code])
        self.code = code
        self.detail = detail
        self.category = _AUTH_CATEGORIES.get(code, ErrorCategory.AUTHORIZATION)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["code"] = self.code.value
        return data


def error_payload(error: Exception, fallback: str = "Something went wrong. Please try again.") -> dict:
    """The ``{category, message}`` dictionary a controller stores for a failure."""
    if isinstance(error, AudiobookError):
        return error.to_dict()
    return {"category": ErrorCategory.TRANSIENT.value, "message": fallback}
