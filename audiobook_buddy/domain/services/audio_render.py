"""Server side of the remote audio render endpoint."""

import asyncio
import logging

from ..entities.document import generated_audio_key
from ..entities.errors import ValidationError
from ..interfaces.audio_renderer import AudioSynthesizer
from ..interfaces.blob_storage import BlobStorage
from ..interfaces.identity_provider import CredentialVerifier

logger = logging.getLogger(__name__)

AUDIO_CONTENT_TYPE = "audio/mpeg"


class AudioRenderService:
    """
    Verifies the caller, synthesizes MP3 audio and stores it.

    The artifact for a document always lives at the same key, so rendering
    again overwrites the previous file.
    """

    def __init__(
        self,
        verifier: CredentialVerifier,
        synthesizer: AudioSynthesizer,
        storage: BlobStorage,
        min_text_length: int = 10,
        max_text_length: int = 100_000,
    ):
        self.verifier = verifier
        self.synthesizer = synthesizer
        self.storage = storage
        self.min_text_length = min_text_length
        self.max_text_length = max_text_length

    def validate(self, document_id: str, text: str) -> str:
        """Return the stripped text.

        Raises:
            ValidationError: If the document id is missing or the text length is out of bounds.
        """
        if not document_id or not document_id.strip():
            raise ValidationError("Document ID is required.")
        text = (text or "").strip()
        if len(text) < self.min_text_length:
            raise ValidationError(f"Text must be at least {self.min_text_length} characters.")
        if len(text) > self.max_text_length:
            raise ValidationError(f"Text must be at most {self.max_text_length} characters.")
        return text

    async def render(self, credential: str, document_id: str, text: str) -> str:
        """
        Render text for a document owned by the credential's identity.

        Returns:
            A location the browser can fetch the MP3 from.

        Raises:
            AuthorizationError: If the credential is rejected.
            ValidationError: If the input is invalid.
        """
        identity = await self.verifier.verify(credential)
        text = self.validate(document_id, text)

        logger.info(f"Rendering audio for document {document_id} ({len(text)} chars) for {identity.subject_id}")
        audio = await asyncio.to_thread(self.synthesizer.synthesize, text)

        key = generated_audio_key(identity.subject_id, document_id)
        location = await self.storage.upload(key, audio, AUDIO_CONTENT_TYPE)
        public = await self.storage.public_location(location)
        logger.info(f"Stored generated audio at {location}")
        return public
