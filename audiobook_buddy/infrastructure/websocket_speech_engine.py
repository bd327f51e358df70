"""Speech engines driven over the viewer's WebSocket."""

import asyncio
import logging
from typing import Optional

from ..domain.entities.messages import OutboundMessage, SpeechCommandMessage
from ..domain.entities.playback import SpeechEventType
from ..domain.interfaces.speech_engine import SpeechEngine, UtteranceListener

logger = logging.getLogger(__name__)


class WebSocketSpeechEngine(SpeechEngine):
    """
    Relays speech commands to the browser's speech synthesizer.

    Commands are queued as ``speech.command`` messages on the viewer's
    outbound queue. The browser reports lifecycle callbacks as
    ``speech.event`` messages, which the WebSocket handler passes to
    ``dispatch``.
    """

    def __init__(self, outbound_queue: asyncio.Queue, supported: bool = True):
        self._outbound_queue: asyncio.Queue[OutboundMessage] = outbound_queue
        self._supported = supported
        self._listeners: dict[str, UtteranceListener] = {}
        self._current: Optional[str] = None

    @property
    def supported(self) -> bool:
        return self._supported

    @property
    def registered_utterances(self) -> list[str]:
        return list(self._listeners)

    async def speak(self, utterance_id: str, text: str, listener: UtteranceListener) -> None:
        # One registration at a time; a new utterance replaces any leftover.
        self._listeners = {utterance_id: listener}
        self._current = utterance_id
        await self._outbound_queue.put(SpeechCommandMessage("speak", utterance_id=utterance_id, text=text))

    async def pause(self) -> None:
        await self._outbound_queue.put(SpeechCommandMessage("pause", utterance_id=self._current))

    async def resume(self) -> None:
        await self._outbound_queue.put(SpeechCommandMessage("resume", utterance_id=self._current))

    async def cancel(self) -> None:
        await self._outbound_queue.put(SpeechCommandMessage("cancel", utterance_id=self._current))
        if self._current is not None:
            self._listeners.pop(self._current, None)
        self._current = None

    async def dispatch(self, utterance_id: str, event: SpeechEventType, reason: Optional[str] = None) -> None:
        """Deliver a browser callback to the listener registered for the utterance."""
        listener = self._listeners.get(utterance_id)
        if listener is None:
            logger.debug(f"No listener for {event.value} of utterance {utterance_id}")
            return

        if event in (SpeechEventType.END, SpeechEventType.ERROR):
            del self._listeners[utterance_id]

        match event:
            case SpeechEventType.START:
                await listener.on_start()
            case SpeechEventType.END:
                await listener.on_end()
            case SpeechEventType.PAUSE:
                await listener.on_pause()
            case SpeechEventType.RESUME:
                await listener.on_resume()
            case SpeechEventType.ERROR:
                await listener.on_error(reason)


class UnsupportedSpeechEngine(SpeechEngine):
    """Engine for viewers whose browser has no speech synthesis."""

    @property
    def supported(self) -> bool:
        return False

    async def speak(self, utterance_id: str, text: str, listener: UtteranceListener) -> None:
        logger.warning("speak() called on an unsupported speech engine")

    async def pause(self) -> None:
        pass

    async def resume(self) -> None:
        pass

    async def cancel(self) -> None:
        pass
