"""Clients of the remote audio render endpoint."""

import logging
from typing import Optional

import httpx

from ..domain.entities.errors import AuthorizationError, TransientError, ValidationError
from ..domain.interfaces.audio_renderer import AudioRenderer
from ..domain.services.audio_render import AudioRenderService

logger = logging.getLogger(__name__)


class HttpAudioRenderer(AudioRenderer):
    """Calls ``POST /api/generate-audio`` over HTTP with a bearer credential."""

    def __init__(self, endpoint_url: str, timeout: float = 120.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.endpoint_url = endpoint_url
        self.timeout = timeout
        self.transport = transport

    async def render(self, document_id: str, text: str, credential: str) -> str:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    self.endpoint_url,
                    json={"text": text, "documentId": document_id},
                    headers={"Authorization": f"Bearer {credential}"},
                )
        except httpx.HTTPError as e:
            logger.error(f"Audio render request failed: {e}")
            raise TransientError("Failed to generate audio. Please check your connection and try again.") from e

        if response.status_code == 401:
            raise AuthorizationError()
        if response.status_code == 400:
            raise ValidationError(self._detail(response, "Invalid audio generation request."))
        if response.status_code != 200:
            logger.error(f"Audio render endpoint returned {response.status_code}: {response.text}")
            raise TransientError(self._detail(response, "Failed to generate audio. Please try again."))

        audio_url = response.json().get("audioUrl")
        if not audio_url:
            raise TransientError("Audio generation returned no location.")
        return audio_url

    @staticmethod
    def _detail(response: httpx.Response, fallback: str) -> str:
        try:
            return response.json().get("detail") or fallback
        except ValueError:
            return fallback


class LocalAudioRenderer(AudioRenderer):
    """Calls the render service in process; used when API and viewers share a process."""

    def __init__(self, service: AudioRenderService):
        self.service = service

    async def render(self, document_id: str, text: str, credential: str) -> str:
        return await self.service.render(credential, document_id, text)
