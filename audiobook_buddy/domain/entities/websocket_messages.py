"""WebSocket message models for the audiobook application."""

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from .playback import SpeechEventType


# ===== Client → Server Messages =====


class SelectDocument(BaseModel):
    """Open a document in the reader view."""

    type: Literal["document.select"] = "document.select"
    document_id: str = Field(min_length=1)


class ShowLibrary(BaseModel):
    """Return from the reader to the document list."""

    type: Literal["view.library"] = "view.library"


class RetryLibrary(BaseModel):
    """Reopen the document list after it failed to load."""

    type: Literal["library.retry"] = "library.retry"


class SpeechPlay(BaseModel):
    type: Literal["speech.play"] = "speech.play"


class SpeechPause(BaseModel):
    type: Literal["speech.pause"] = "speech.pause"


class SpeechStop(BaseModel):
    type: Literal["speech.stop"] = "speech.stop"


class SpeechEngineCallback(BaseModel):
    """A lifecycle callback fired by the browser's speech engine."""

    type: Literal["speech.event"] = "speech.event"
    utterance_id: str
    event: SpeechEventType
    reason: Optional[str] = None


class AudioGenerate(BaseModel):
    type: Literal["audio.generate"] = "audio.generate"


class SummaryGenerate(BaseModel):
    type: Literal["summary.generate"] = "summary.generate"


class QuizGenerate(BaseModel):
    type: Literal["quiz.generate"] = "quiz.generate"
    num_questions: int = Field(default=3, ge=1, le=20)


class QuizAnswer(BaseModel):
    type: Literal["quiz.answer"] = "quiz.answer"
    index: int = Field(ge=0)
    option: str


class QuizSubmit(BaseModel):
    type: Literal["quiz.submit"] = "quiz.submit"


class QuizRetake(BaseModel):
    type: Literal["quiz.retake"] = "quiz.retake"


class SignIn(BaseModel):
    type: Literal["auth.sign_in"] = "auth.sign_in"
    email: str
    password: str


class SignOut(BaseModel):
    type: Literal["auth.sign_out"] = "auth.sign_out"


# Union type for all client messages
ClientMessage = Annotated[
    Union[
        SelectDocument,
        ShowLibrary,
        RetryLibrary,
        SpeechPlay,
        SpeechPause,
        SpeechStop,
        SpeechEngineCallback,
        AudioGenerate,
        SummaryGenerate,
        QuizGenerate,
        QuizAnswer,
        QuizSubmit,
        QuizRetake,
        SignIn,
        SignOut,
    ],
    Field(discriminator="type"),
]

client_message_adapter: TypeAdapter[ClientMessage] = TypeAdapter(ClientMessage)


# ===== Server → Client Messages =====


class StateUpdate(BaseModel):
    """Full snapshot of the viewer's state."""

    type: Literal["state"] = "state"
    state: dict


class SpeechCommand(BaseModel):
    """Instruction for the browser's speech engine."""

    type: Literal["speech.command"] = "speech.command"
    command: Literal["speak", "pause", "resume", "cancel"]
    utterance_id: Optional[str] = None
    text: Optional[str] = None


class ServerNotice(BaseModel):
    """Server notice message."""

    type: Literal["notice"] = "notice"
    message: str


class ErrorCode(str, Enum):
    """Error codes for WebSocket errors."""

    INVALID_MESSAGE = "INVALID_MESSAGE"
    AUTH_FAILED = "AUTH_FAILED"
    DOCUMENT_NOT_FOUND = "DOCUMENT_NOT_FOUND"
    CONFIGURATION = "CONFIGURATION"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorMessage(BaseModel):
    """Error message from server."""

    type: Literal["error"] = "error"
    code: ErrorCode
    message: str
