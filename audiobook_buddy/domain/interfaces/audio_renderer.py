"""Audio rendering protocols."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class AudioRenderer(Protocol):
    """Client side of the remote audio render endpoint."""

    async def render(self, document_id: str, text: str, credential: str) -> str:
        """Render text to an audio artifact.

        Args:
            document_id: The document the audio belongs to.
            text: The text to render.
            credential: Bearer credential of the requesting identity.

        Returns:
            A fetchable location of the rendered audio.

        Raises:
            AuthorizationError: If the credential is rejected.
            ValidationError: If the input is rejected.
            TransientError: For any other failure.
        """
        ...


@runtime_checkable
class AudioSynthesizer(Protocol):
    """Server-side text-to-speech engine."""

    def synthesize(self, text: str) -> bytes:
        """Return MP3 bytes for the text. Blocking."""
        ...
