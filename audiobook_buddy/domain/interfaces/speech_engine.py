"""Speech engine protocol."""

from typing import Optional, Protocol, runtime_checkable


class UtteranceListener(Protocol):
    """Callbacks an engine fires for one registered utterance."""

    async def on_start(self) -> None: ...

    async def on_end(self) -> None: ...

    async def on_pause(self) -> None: ...

    async def on_resume(self) -> None: ...

    async def on_error(self, reason: Optional[str]) -> None: ...


@runtime_checkable
class SpeechEngine(Protocol):
    """The platform speech synthesizer.

    Only ``SpeechPlaybackController`` may call an engine. Engines report
    lifecycle callbacks asynchronously through the listener registered with
    ``speak``.
    """

    @property
    def supported(self) -> bool:
        """Whether speech synthesis exists in this runtime."""
        ...

    async def speak(self, utterance_id: str, text: str, listener: UtteranceListener) -> None: ...

    async def pause(self) -> None: ...

    async def resume(self) -> None: ...

    async def cancel(self) -> None: ...
