"""Speech playback entities."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class PlaybackStatus(str, Enum):
    """States of the speech playback state machine."""

    IDLE = "idle"
    SPEAKING = "speaking"
    PAUSED = "paused"


class SpeechEventType(str, Enum):
    """Lifecycle callbacks reported by a speech engine."""

    START = "start"
    END = "end"
    PAUSE = "pause"
    RESUME = "resume"
    ERROR = "error"


# Reasons produced by our own stop/preemption; never shown to the user.
EXPECTED_SPEECH_ERRORS = frozenset({"interrupted", "canceled"})
NOT_SUPPORTED_REASON = "not-supported"


@dataclass
class UtteranceSession:
    """The single utterance currently registered with the speech engine."""

    utterance_id: str
    text: str
    status: PlaybackStatus = PlaybackStatus.SPEAKING


@dataclass(frozen=True)
class PlaybackState:
    """Read-only view of the playback controller for the UI."""

    status: PlaybackStatus
    text: Optional[str] = None
    available: bool = True

    def to_dict(self) -> dict:
        return {"status": self.status.value, "has_text": self.text is not None, "available": self.available}
