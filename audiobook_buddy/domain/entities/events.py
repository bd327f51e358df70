"""Inbound event entities for viewer sessions."""

from dataclasses import dataclass


class InboundEvent:
    """Base class for inbound events."""

    pass


@dataclass
class SelectDocumentEvent(InboundEvent):
    """Event to open a document in the reader view."""

    document_id: str


@dataclass
class ShowLibraryEvent(InboundEvent):
    """Event to return to the document list."""

    pass


@dataclass
class RetryLibraryEvent(InboundEvent):
    """Event to reopen the document list subscription."""

    pass


@dataclass
class PlaySpeechEvent(InboundEvent):
    pass


@dataclass
class PauseSpeechEvent(InboundEvent):
    pass


@dataclass
class StopSpeechEvent(InboundEvent):
    pass


@dataclass
class GenerateAudioEvent(InboundEvent):
    pass


@dataclass
class GenerateSummaryEvent(InboundEvent):
    pass


@dataclass
class GenerateQuizEvent(InboundEvent):
    """Event to generate a quiz from the current extraction."""

    num_questions: int = 3


@dataclass
class AnswerQuizEvent(InboundEvent):
    """Event to record an answer for one quiz question."""

    index: int
    option: str


@dataclass
class SubmitQuizEvent(InboundEvent):
    pass


@dataclass
class RetakeQuizEvent(InboundEvent):
    pass


@dataclass
class SignInEvent(InboundEvent):
    """Event to switch the viewer to another account."""

    email: str
    password: str


@dataclass
class SignOutEvent(InboundEvent):
    pass


@dataclass
class CloseEvent(InboundEvent):
    """Event to close the viewer session."""

    pass
