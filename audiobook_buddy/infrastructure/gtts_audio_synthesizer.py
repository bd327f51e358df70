"""Google Translate TTS implementation of the audio synthesizer."""

import logging
from io import BytesIO

from gtts import gTTS
from gtts.tts import gTTSError

from ..domain.entities.errors import TransientError
from ..domain.interfaces.audio_renderer import AudioSynthesizer

logger = logging.getLogger(__name__)


class GTTSAudioSynthesizer(AudioSynthesizer):
    """Synthesizes MP3 audio with gTTS. Calls are blocking network requests."""

    def __init__(self, language: str = "en", slow: bool = False):
        self.language = language
        self.slow = slow

    def synthesize(self, text: str) -> bytes:
        """Generate MP3 bytes for the text.

        Raises:
            TransientError: If the TTS service cannot be reached.
        """
        audio_buffer = BytesIO()
        try:
            tts = gTTS(text=text, lang=self.language, slow=self.slow)
            tts.write_to_fp(audio_buffer)
        except gTTSError as e:
            logger.error(f"gTTS synthesis failed: {e}")
            raise TransientError("Failed to generate audio. Please try again.") from e

        data = audio_buffer.getvalue()
        logger.info(f"Synthesized {len(data)} bytes of audio for {len(text)} chars")
        return data
