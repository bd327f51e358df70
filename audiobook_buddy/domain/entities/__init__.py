"""Domain entities for the audiobook application."""

from .document import (
    EPUB_MEDIA_TYPE,
    PDF_MEDIA_TYPE,
    UPLOADABLE_MEDIA_TYPES,
    DocumentRecord,
)
from .errors import (
    AudiobookError,
    AuthError,
    AuthErrorCode,
    AuthorizationError,
    BlobNotFoundError,
    ConfigurationError,
    DocumentAccessError,
    DocumentNotFoundError,
    ErrorCategory,
    TransientError,
    UnsupportedMediaTypeError,
    ValidationError,
    error_payload,
)
from .events import (
    AnswerQuizEvent,
    CloseEvent,
    GenerateAudioEvent,
    GenerateQuizEvent,
    GenerateSummaryEvent,
    InboundEvent,
    PauseSpeechEvent,
    PlaySpeechEvent,
    RetakeQuizEvent,
    RetryLibraryEvent,
    SelectDocumentEvent,
    ShowLibraryEvent,
    SignInEvent,
    SignOutEvent,
    StopSpeechEvent,
    SubmitQuizEvent,
)
from .extraction import ExtractionErrorKind, ExtractionResult, ExtractionStatus
from .identity import Identity, SessionStatus
from .insights import (
    AudioGenerationTask,
    InsightState,
    Quiz,
    QuizAttempt,
    QuizQuestion,
    Summary,
    TaskStatus,
    score_quiz,
)
from .messages import (
    ErrorOutMessage,
    NoticeMessage,
    OutboundMessage,
    SpeechCommandMessage,
    StateMessage,
)
from .playback import PlaybackState, PlaybackStatus, SpeechEventType, UtteranceSession
from .websocket_messages import ClientMessage, ErrorCode, ErrorMessage
from .view import ViewMode

__all__ = [
    # Identity entities
    "Identity",
    "SessionStatus",
    # Document entities
    "DocumentRecord",
    "PDF_MEDIA_TYPE",
    "EPUB_MEDIA_TYPE",
    "UPLOADABLE_MEDIA_TYPES",
    # Extraction entities
    "ExtractionResult",
    "ExtractionStatus",
    "ExtractionErrorKind",
    # Playback entities
    "PlaybackState",
    "PlaybackStatus",
    "SpeechEventType",
    "UtteranceSession",
    # View entities
    "ViewMode",
    # Insight entities
    "AudioGenerationTask",
    "InsightState",
    "Quiz",
    "QuizAttempt",
    "QuizQuestion",
    "Summary",
    "TaskStatus",
    "score_quiz",
    # Errors
    "AudiobookError",
    "AuthError",
    "AuthErrorCode",
    "AuthorizationError",
    "BlobNotFoundError",
    "ConfigurationError",
    "DocumentAccessError",
    "DocumentNotFoundError",
    "ErrorCategory",
    "TransientError",
    "UnsupportedMediaTypeError",
    "ValidationError",
    "error_payload",
    # Event entities
    "InboundEvent",
    "SelectDocumentEvent",
    "ShowLibraryEvent",
    "PlaySpeechEvent",
    "PauseSpeechEvent",
    "StopSpeechEvent",
    "GenerateAudioEvent",
    "GenerateSummaryEvent",
    "GenerateQuizEvent",
    "AnswerQuizEvent",
    "SubmitQuizEvent",
    "RetakeQuizEvent",
    "RetryLibraryEvent",
    "SignInEvent",
    "SignOutEvent",
    "CloseEvent",
    # Message entities
    "OutboundMessage",
    "StateMessage",
    "SpeechCommandMessage",
    "NoticeMessage",
    "ErrorOutMessage",
    # WebSocket message entities
    "ClientMessage",
    "ErrorMessage",
    "ErrorCode",
]
