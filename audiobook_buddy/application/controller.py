"""Audiobook Controller for handling business logic and coordination."""

import asyncio
import logging
import uuid
from typing import Callable, Optional

from fastapi import WebSocket

from ..domain.entities import Identity, Quiz, Summary
from ..domain.entities.errors import ConfigurationError, ValidationError
from ..domain.interfaces.audio_renderer import AudioRenderer
from ..domain.interfaces.blob_storage import BlobStorage
from ..domain.interfaces.document_repository import DocumentRepository
from ..domain.interfaces.identity_provider import CredentialVerifier, IdentityProvider
from ..domain.interfaces.insight_client import InsightClient
from ..domain.services.audio_generation import AudioGenerationController
from ..domain.services.audio_render import AudioRenderService
from ..domain.services.document_catalog import DocumentCatalog
from ..domain.services.insights import MIN_SUMMARY_TEXT_LENGTH, QuizController, SummaryController
from ..domain.services.session_store import SessionStore
from ..domain.services.speech_playback import SpeechPlaybackController
from ..domain.services.text_extraction import TextExtractionPipeline
from ..domain.services.view_coordinator import ViewCoordinator
from ..infrastructure.websocket_speech_engine import UnsupportedSpeechEngine, WebSocketSpeechEngine
from .websocket_handler import WebSocketHandler

logger = logging.getLogger(__name__)

IdentityProviderFactory = Callable[[], IdentityProvider]


class AudiobookController:
    """
    Controller for coordinating audiobook operations.

    This controller is injected with all necessary providers and handles
    the business logic for each endpoint, keeping the API layer thin. Each
    WebSocket connection gets its own identity provider and view coordinator.
    """

    def __init__(
        self,
        identity_provider_factory: IdentityProviderFactory,
        credential_verifier: CredentialVerifier,
        document_repository: DocumentRepository,
        blob_storage: BlobStorage,
        insight_client: InsightClient,
        audio_renderer: AudioRenderer,
        render_service: AudioRenderService,
    ):
        """
        Initialize the controller with injected dependencies.

        Args:
            identity_provider_factory: Creates one identity provider per viewer
            credential_verifier: Verifies bearer credentials on REST calls
            document_repository: Repository for document records
            blob_storage: Storage for uploads and generated audio
            insight_client: AI collaborator for summaries and quizzes
            audio_renderer: Client of the audio render endpoint
            render_service: Server side of the audio render endpoint
        """
        self.identity_provider_factory = identity_provider_factory
        self.credential_verifier = credential_verifier
        self.document_repository = document_repository
        self.blob_storage = blob_storage
        self.insight_client = insight_client
        self.audio_renderer = audio_renderer
        self.render_service = render_service

        logger.info("AudiobookController initialized with providers")

    # ===== Viewer sessions =====

    def create_coordinator(
        self,
        identity_provider: IdentityProvider,
        speech_supported: bool = True,
    ) -> tuple[ViewCoordinator, Optional[WebSocketSpeechEngine]]:
        """Build the per-viewer service graph."""
        outbound_queue: asyncio.Queue = asyncio.Queue()
        engine = WebSocketSpeechEngine(outbound_queue) if speech_supported else None
        session_store = SessionStore(identity_provider)

        coordinator = ViewCoordinator(
            viewer_id=str(uuid.uuid4()),
            session_store=session_store,
            catalog=DocumentCatalog(self.document_repository, self.blob_storage),
            extraction=TextExtractionPipeline(self.blob_storage),
            playback=SpeechPlaybackController(engine or UnsupportedSpeechEngine()),
            audio=AudioGenerationController(self.audio_renderer, self.document_repository, identity_provider),
            summary=SummaryController(self.insight_client, session_store),
            quiz=QuizController(self.insight_client, session_store),
            outbound_queue=outbound_queue,
        )
        return coordinator, engine

    async def handle_websocket_connection(
        self,
        websocket: WebSocket,
        token: Optional[str] = None,
        speech_supported: bool = True,
    ) -> None:
        logger.info(f"Handling new WebSocket connection from {websocket.client}")

        identity_provider = self.identity_provider_factory()
        if token:
            try:
                identity = await identity_provider.resume(token)
                logger.info(f"Resumed session for {identity.subject_id if identity else 'nobody'}")
            except ConfigurationError as e:
                # Surfaces through the session store's error state.
                logger.error(f"Identity provider misconfigured: {e}")

        coordinator, engine = self.create_coordinator(identity_provider, speech_supported)
        handler = WebSocketHandler(coordinator, engine)

        await coordinator.start()
        await handler.handle_websocket(websocket)

    # ===== REST operations =====

    async def authenticate(self, credential: Optional[str]) -> Identity:
        """
        Resolve a bearer credential.

        Raises:
            AuthorizationError: If the credential is missing or invalid.
        """
        return await self.credential_verifier.verify(credential or "")

    async def sign_up(self, email: str, password: str) -> dict:
        provider = self.identity_provider_factory()
        identity = await provider.sign_up(email, password)
        return {"token": await provider.issue_credential(), "identity": identity.model_dump()}

    async def sign_in(self, email: str, password: str) -> dict:
        provider = self.identity_provider_factory()
        identity = await provider.sign_in(email, password)
        return {"token": await provider.issue_credential(), "identity": identity.model_dump()}

    async def list_documents(self, credential: Optional[str]) -> list[dict]:
        identity = await self.authenticate(credential)
        records = await self.document_repository.list_for_owner(identity.subject_id)
        return [record.to_public_dict() for record in records]

    async def upload_document(
        self,
        credential: Optional[str],
        filename: str,
        data: bytes,
        media_type: str,
    ) -> dict:
        identity = await self.authenticate(credential)
        catalog = DocumentCatalog(self.document_repository, self.blob_storage)

        def on_progress(percent: float) -> None:
            logger.debug(f"Upload of {filename}: {percent:.0f}%")

        record = await catalog.upload(identity, filename, data, media_type, on_progress)
        return record.to_public_dict()

    async def delete_document(self, credential: Optional[str], document_id: str) -> None:
        identity = await self.authenticate(credential)
        catalog = DocumentCatalog(self.document_repository, self.blob_storage)
        await catalog.delete(identity, document_id)

    async def generate_audio(self, credential: Optional[str], document_id: str, text: str) -> dict:
        audio_url = await self.render_service.render(credential or "", document_id, text)
        return {"audioUrl": audio_url}

    async def summarize(self, credential: Optional[str], text: str) -> dict:
        await self.authenticate(credential)
        if len((text or "").strip()) < MIN_SUMMARY_TEXT_LENGTH:
            raise ValidationError(
                f"Chapter text must be at least {MIN_SUMMARY_TEXT_LENGTH} characters long for summarization."
            )
        response = await self.insight_client.summarize(text)
        return Summary.model_validate(response).model_dump()

    async def generate_quiz(self, credential: Optional[str], text: str, num_questions: int = 3) -> dict:
        await self.authenticate(credential)
        if not (text or "").strip():
            raise ValidationError("Text is required to generate a quiz.")
        response = await self.insight_client.generate_quiz(text, num_questions)
        return Quiz.model_validate(response).model_dump()

    def get_health_status(self) -> dict:
        """
        Get application health status.

        Returns:
            Dict containing health status information
        """
        return {
            "status": "healthy",
            "providers": {
                "credential_verifier": type(self.credential_verifier).__name__,
                "document_repository": type(self.document_repository).__name__,
                "blob_storage": type(self.blob_storage).__name__,
                "insight_client": type(self.insight_client).__name__,
                "audio_renderer": type(self.audio_renderer).__name__,
            },
        }
