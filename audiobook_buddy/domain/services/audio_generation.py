"""Controller for server-rendered audio of the selected document."""

import logging
from typing import Awaitable, Callable

from ..entities.errors import AuthorizationError, error_payload
from ..entities.insights import AudioGenerationTask, TaskStatus
from ..interfaces.audio_renderer import AudioRenderer
from ..interfaces.document_repository import DocumentRepository
from ..interfaces.identity_provider import IdentityProvider

logger = logging.getLogger(__name__)

ChangeListener = Callable[[], Awaitable[None]]


class AudioGenerationController:
    """
    Requests an MP3 rendering of extracted text and attaches it to the record.

    Results are last-writer-wins: ``reset`` retires whatever request is in
    flight, and its completion is discarded when it eventually arrives.
    """

    def __init__(
        self,
        renderer: AudioRenderer,
        repository: DocumentRepository,
        identity_provider: IdentityProvider,
    ):
        self._renderer = renderer
        self._repository = repository
        self._identity_provider = identity_provider
        self._task = AudioGenerationTask()
        self._generation = 0
        self._listeners: list[ChangeListener] = []

    @property
    def task(self) -> AudioGenerationTask:
        return self._task

    def add_listener(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def reset(self) -> None:
        self._generation += 1
        self._task = AudioGenerationTask()

    async def generate(self, document_id: str, text: str) -> AudioGenerationTask:
        """
        Render ``text`` for a document and persist the resulting location.

        Re-triggering while a request is pending returns the current task.
        Without an identity the task moves to an authorization error.
        """
        identity = self._identity_provider.current_identity
        if identity is None:
            self._generation += 1
            logger.warning(f"Rejected audio generation for {document_id} without an identity")
            return await self._fail(document_id, AuthorizationError("Please sign in to generate audio."))

        if self._task.status == TaskStatus.PENDING:
            logger.info(f"Audio generation already pending for {self._task.document_id}")
            return self._task

        self._generation += 1
        generation = self._generation
        self._task = AudioGenerationTask(status=TaskStatus.PENDING, document_id=document_id)
        await self._notify()

        try:
            credential = await self._identity_provider.issue_credential()
            location = await self._renderer.render(document_id, text, credential)
            if generation != self._generation:
                logger.info(f"Discarding stale audio for document {document_id}")
                return self._task

            record = await self._repository.get(identity.subject_id, document_id)
            await self._repository.update(identity.subject_id, record.with_generated_audio(location))
        except Exception as e:
            if generation != self._generation:
                logger.info(f"Discarding stale audio failure for document {document_id}: {e}")
                return self._task
            logger.error(f"Audio generation failed for document {document_id}: {e}", exc_info=True)
            return await self._fail(document_id, e)

        if generation != self._generation:
            return self._task

        logger.info(f"Audio generated for document {document_id}: {location}")
        self._task = AudioGenerationTask(
            status=TaskStatus.READY,
            document_id=document_id,
            result_location=location,
        )
        await self._notify()
        return self._task

    async def _fail(self, document_id: str, error: Exception) -> AudioGenerationTask:
        payload = error_payload(error, "Failed to generate audio. Please try again.")
        self._task = AudioGenerationTask(
            status=TaskStatus.ERROR,
            document_id=document_id,
            error_category=payload["category"],
            error_message=payload["message"],
        )
        await self._notify()
        return self._task

    async def _notify(self) -> None:
        for listener in list(self._listeners):
            await listener()
