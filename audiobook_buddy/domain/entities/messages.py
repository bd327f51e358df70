"""Outbound message entities."""

from dataclasses import dataclass, field
from typing import Literal, Optional

from .websocket_messages import (
    ErrorCode,
    ErrorMessage,
    ServerNotice,
    SpeechCommand,
    StateUpdate,
)


class OutboundMessage:
    """Base class for outbound messages."""

    pass


@dataclass
class StateMessage(OutboundMessage):
    """Message containing a full view-state snapshot."""

    state: dict
    update: StateUpdate = field(init=False)

    def __post_init__(self):
        self.update = StateUpdate(state=self.state)


@dataclass
class SpeechCommandMessage(OutboundMessage):
    """Message driving the browser's speech engine."""

    command: Literal["speak", "pause", "resume", "cancel"]
    utterance_id: Optional[str] = None
    text: Optional[str] = None
    speech_command: SpeechCommand = field(init=False)

    def __post_init__(self):
        self.speech_command = SpeechCommand(
            command=self.command,
            utterance_id=self.utterance_id,
            text=self.text,
        )


@dataclass
class NoticeMessage(OutboundMessage):
    """Message containing a notice."""

    message: str
    notice: ServerNotice = field(init=False)

    def __post_init__(self):
        self.notice = ServerNotice(message=self.message)


@dataclass
class ErrorOutMessage(OutboundMessage):
    """Message containing an error."""

    code: ErrorCode
    message: str
    error: ErrorMessage = field(init=False)

    def __post_init__(self):
        self.error = ErrorMessage(code=self.code, message=self.message)
