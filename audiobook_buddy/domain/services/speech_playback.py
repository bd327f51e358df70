"""Speech playback state machine wrapping the platform speech engine."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from ..entities.playback import (
    EXPECTED_SPEECH_ERRORS,
    NOT_SUPPORTED_REASON,
    PlaybackState,
    PlaybackStatus,
    SpeechEventType,
    UtteranceSession,
)
from ..interfaces.speech_engine import SpeechEngine

logger = logging.getLogger(__name__)

EndCallback = Callable[[], Awaitable[None]]
ErrorCallback = Callable[[str], Awaitable[None]]
ChangeListener = Callable[[PlaybackState], Awaitable[None]]


class _BoundListener:
    """Engine callbacks for one utterance, routed back with its id."""

    def __init__(self, controller: "SpeechPlaybackController", utterance_id: str):
        self._controller = controller
        self._utterance_id = utterance_id

    async def on_start(self) -> None:
        await self._controller._handle_engine_event(self._utterance_id, SpeechEventType.START)

    async def on_end(self) -> None:
        await self._controller._handle_engine_event(self._utterance_id, SpeechEventType.END)

    async def on_pause(self) -> None:
        await self._controller._handle_engine_event(self._utterance_id, SpeechEventType.PAUSE)

    async def on_resume(self) -> None:
        await self._controller._handle_engine_event(self._utterance_id, SpeechEventType.RESUME)

    async def on_error(self, reason: Optional[str]) -> None:
        await self._controller._handle_engine_event(self._utterance_id, SpeechEventType.ERROR, reason)


class SpeechPlaybackController:
    """
    Single owner of the speech engine for one viewer.

    States are ``IDLE``, ``SPEAKING(text)`` and ``PAUSED(text)``. At most one
    utterance is registered with the engine at a time: every utterance gets a
    fresh id, and engine callbacks carrying any other id are discarded. That
    is how a preempted or stopped utterance is kept from firing ``on_end`` or
    ``on_error``.

    Commands are serialized with a lock. Engine callbacks never take the
    lock, since engines may fire them from inside ``cancel`` or ``speak``.
    """

    def __init__(self, engine: SpeechEngine):
        self._engine = engine
        self._session: Optional[UtteranceSession] = None
        self._lock = asyncio.Lock()
        self._counter = 0
        self._on_end: Optional[EndCallback] = None
        self._on_error: Optional[ErrorCallback] = None
        self._on_start: Optional[EndCallback] = None
        self._listeners: list[ChangeListener] = []

    @property
    def available(self) -> bool:
        return self._engine.supported

    @property
    def status(self) -> PlaybackStatus:
        return self._session.status if self._session else PlaybackStatus.IDLE

    @property
    def text(self) -> Optional[str]:
        return self._session.text if self._session else None

    @property
    def active(self) -> bool:
        return self._session is not None

    def state(self) -> PlaybackState:
        return PlaybackState(status=self.status, text=self.text, available=self.available)

    def add_listener(self, listener: ChangeListener) -> None:
        """Register a coroutine awaited after every state transition."""
        self._listeners.append(listener)

    # ===== Commands =====

    async def play(
        self,
        text: str,
        on_end: Optional[EndCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        on_start: Optional[EndCallback] = None,
    ) -> None:
        """
        Speak ``text``, resuming if the same text is paused.

        Anything else that is active is preempted: its callbacks are
        discarded and it is cancelled before the new utterance starts.
        """
        if not self.available:
            logger.error("Speech synthesis is not supported in this runtime")
            if on_error:
                await on_error(NOT_SUPPORTED_REASON)
            return

        async with self._lock:
            session = self._session
            if session and session.status == PlaybackStatus.PAUSED and session.text == text:
                session.status = PlaybackStatus.SPEAKING
                self._on_end, self._on_error = on_end or self._on_end, on_error or self._on_error
                logger.info(f"Resuming utterance {session.utterance_id}")
                await self._engine.resume()
                await self._notify()
                return

            if session is not None:
                logger.info(f"Preempting utterance {session.utterance_id}")
                self._session = None
                await self._engine.cancel()

            self._counter += 1
            utterance_id = f"utt-{self._counter}"
            self._session = UtteranceSession(utterance_id=utterance_id, text=text)
            self._on_end, self._on_error, self._on_start = on_end, on_error, on_start
            logger.info(f"Speaking utterance {utterance_id} ({len(text)} chars)")
            await self._engine.speak(utterance_id, text, _BoundListener(self, utterance_id))
            await self._notify()

    async def pause(self) -> None:
        """Pause the speaking utterance; no-op otherwise."""
        async with self._lock:
            session = self._session
            if session is None or session.status != PlaybackStatus.SPEAKING:
                return
            session.status = PlaybackStatus.PAUSED
            logger.info(f"Pausing utterance {session.utterance_id}")
            await self._engine.pause()
            await self._notify()

    async def stop(self) -> None:
        """Cancel any active utterance and go idle immediately."""
        async with self._lock:
            session = self._session
            if session is None:
                return
            # Cleared before the engine acknowledges, so the UI never waits on it.
            self._session = None
            self._clear_callbacks()
            logger.info(f"Speech stopped (utterance {session.utterance_id})")
            await self._engine.cancel()
            await self._notify()

    # ===== Engine callbacks =====

    async def _handle_engine_event(
        self,
        utterance_id: str,
        event: SpeechEventType,
        reason: Optional[str] = None,
    ) -> None:
        session = self._session
        if session is None or session.utterance_id != utterance_id:
            logger.debug(f"Discarding {event.value} for retired utterance {utterance_id}")
            return

        if event == SpeechEventType.START:
            logger.info(f"Speech started ({utterance_id})")
            if self._on_start:
                await self._on_start()

        elif event == SpeechEventType.PAUSE:
            session.status = PlaybackStatus.PAUSED
            await self._notify()

        elif event == SpeechEventType.RESUME:
            session.status = PlaybackStatus.SPEAKING
            await self._notify()

        elif event == SpeechEventType.END:
            on_end = self._on_end
            self._session = None
            self._clear_callbacks()
            logger.info(f"Speech finished ({utterance_id})")
            await self._notify()
            if on_end:
                await on_end()

        elif event == SpeechEventType.ERROR:
            on_error = self._on_error
            self._session = None
            self._clear_callbacks()
            await self._notify()
            if reason in EXPECTED_SPEECH_ERRORS:
                logger.debug(f"Speech {reason} ({utterance_id})")
                return
            logger.error(f"Speech synthesis error ({utterance_id}): {reason}")
            if on_error:
                await on_error(reason or "unknown")

    def _clear_callbacks(self) -> None:
        self._on_end = self._on_error = self._on_start = None

    async def _notify(self) -> None:
        state = self.state()
        for listener in list(self._listeners):
            await listener(state)
