"""Tests for the audio render service and its clients."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from gtts.tts import gTTSError

from audiobook_buddy.domain.entities import AuthorizationError, TransientError, ValidationError
from audiobook_buddy.domain.services.audio_render import AudioRenderService
from audiobook_buddy.infrastructure.audio_renderers import HttpAudioRenderer, LocalAudioRenderer
from audiobook_buddy.infrastructure.gtts_audio_synthesizer import GTTSAudioSynthesizer

TEXT = "Once upon a time there was a reader."


@pytest.fixture
def verifier(alice):
    verifier = AsyncMock()
    verifier.verify.return_value = alice
    return verifier


@pytest.fixture
def synthesizer():
    synthesizer = MagicMock()
    synthesizer.synthesize.return_value = b"ID3 fake mp3"
    return synthesizer


@pytest.fixture
def storage():
    storage = AsyncMock()
    storage.upload.return_value = "s3://bucket/audiobooks_generated/alice-sub/doc-1_audio.mp3"
    storage.public_location.return_value = "https://signed.example.com/doc-1_audio.mp3"
    return storage


@pytest.fixture
def service(verifier, synthesizer, storage):
    return AudioRenderService(verifier, synthesizer, storage)


class TestAudioRenderService:
    """Tests for AudioRenderService."""

    @pytest.mark.asyncio
    async def test_render_stores_under_owner_key(self, service, synthesizer, storage):
        location = await service.render("token", "doc-1", f"  {TEXT}  ")

        assert location == "https://signed.example.com/doc-1_audio.mp3"
        synthesizer.synthesize.assert_called_once_with(TEXT)
        storage.upload.assert_awaited_once_with(
            "audiobooks_generated/alice-sub/doc-1_audio.mp3", b"ID3 fake mp3", "audio/mpeg"
        )

    @pytest.mark.asyncio
    async def test_rejected_credential(self, service, verifier, synthesizer):
        verifier.verify.side_effect = AuthorizationError()

        with pytest.raises(AuthorizationError):
            await service.render("bad", "doc-1", TEXT)
        synthesizer.synthesize.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "document_id, text, message",
        [
            ("", TEXT, "Document ID is required."),
            ("doc-1", "short", "Text must be at least 10 characters."),
            ("doc-1", "x" * 100_001, "Text must be at most 100000 characters."),
        ],
    )
    async def test_validation(self, service, document_id, text, message):
        with pytest.raises(ValidationError, match=message):
            await service.render("token", document_id, text)


class TestHttpAudioRenderer:
    """Tests for HttpAudioRenderer against a mock transport."""

    @staticmethod
    def renderer(handler) -> HttpAudioRenderer:
        return HttpAudioRenderer("https://api.example.com/api/generate-audio", transport=httpx.MockTransport(handler))

    @pytest.mark.asyncio
    async def test_success(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"audioUrl": "https://cdn/audio.mp3"})

        location = await self.renderer(handler).render("doc-1", TEXT, "token-123")

        assert location == "https://cdn/audio.mp3"
        assert seen == {"auth": "Bearer token-123", "body": {"text": TEXT, "documentId": "doc-1"}}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status, body, expected",
        [
            (401, {"detail": "Unauthorized"}, AuthorizationError),
            (400, {"detail": "Text must be at least 10 characters."}, ValidationError),
            (500, {"detail": "Internal server error"}, TransientError),
            (200, {}, TransientError),
        ],
    )
    async def test_error_statuses(self, status, body, expected):
        renderer = self.renderer(lambda request: httpx.Response(status, json=body))

        with pytest.raises(expected):
            await renderer.render("doc-1", TEXT, "token")

    @pytest.mark.asyncio
    async def test_bad_request_detail_is_surfaced(self):
        renderer = self.renderer(lambda request: httpx.Response(400, json={"detail": "Document ID is required."}))

        with pytest.raises(ValidationError, match="Document ID is required."):
            await renderer.render("", TEXT, "token")

    @pytest.mark.asyncio
    async def test_connection_failure_is_transient(self):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        with pytest.raises(TransientError):
            await self.renderer(handler).render("doc-1", TEXT, "token")


@pytest.mark.asyncio
async def test_local_renderer_calls_service(service):
    location = await LocalAudioRenderer(service).render("doc-1", TEXT, "token")

    assert location == "https://signed.example.com/doc-1_audio.mp3"


class TestGTTSAudioSynthesizer:
    """Tests for GTTSAudioSynthesizer with gTTS patched out."""

    def test_synthesize_returns_mp3_bytes(self):
        with patch("audiobook_buddy.infrastructure.gtts_audio_synthesizer.gTTS") as mock_gtts:
            mock_gtts.return_value.write_to_fp.side_effect = lambda fp: fp.write(b"ID3 data")

            data = GTTSAudioSynthesizer(language="en").synthesize(TEXT)

        assert data == b"ID3 data"
        mock_gtts.assert_called_once_with(text=TEXT, lang="en", slow=False)

    def test_service_failure_is_transient(self):
        with patch("audiobook_buddy.infrastructure.gtts_audio_synthesizer.gTTS") as mock_gtts:
            mock_gtts.return_value.write_to_fp.side_effect = gTTSError("503 from TTS API")

            with pytest.raises(TransientError):
                GTTSAudioSynthesizer().synthesize(TEXT)
