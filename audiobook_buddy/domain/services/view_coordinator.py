"""Per-viewer coordinator tying the selected document to every controller."""

import asyncio
import logging
from typing import Awaitable, Optional

from ..entities.document import DocumentRecord
from ..entities.errors import AudiobookError, AuthError, ErrorCategory
from ..entities.events import (
    AnswerQuizEvent,
    CloseEvent,
    GenerateAudioEvent,
    GenerateQuizEvent,
    GenerateSummaryEvent,
    InboundEvent,
    PauseSpeechEvent,
    PlaySpeechEvent,
    RetakeQuizEvent,
    RetryLibraryEvent,
    SelectDocumentEvent,
    ShowLibraryEvent,
    SignInEvent,
    SignOutEvent,
    StopSpeechEvent,
    SubmitQuizEvent,
)
from ..entities.extraction import ExtractionErrorKind, ExtractionResult
from ..entities.identity import Identity
from ..entities.messages import ErrorOutMessage, NoticeMessage, OutboundMessage, StateMessage
from ..entities.playback import PlaybackState
from ..entities.view import ViewMode
from ..entities.websocket_messages import ErrorCode
from .audio_generation import AudioGenerationController
from .document_catalog import DocumentCatalog
from .insights import QuizController, SummaryController
from .session_store import SessionStore
from .speech_playback import SpeechPlaybackController
from .text_extraction import TextExtractionPipeline

logger = logging.getLogger(__name__)

_CATEGORY_CODES = {
    ErrorCategory.AUTHORIZATION: ErrorCode.AUTH_FAILED,
    ErrorCategory.CONFIGURATION: ErrorCode.CONFIGURATION,
    ErrorCategory.VALIDATION: ErrorCode.INVALID_MESSAGE,
    ErrorCategory.TRANSIENT: ErrorCode.INTERNAL_ERROR,
}


class ViewCoordinator:
    """
    Per-viewer service that owns the selected document and the view mode.

    This service owns:
    - The current selection and a selection token that every long-running
      operation captures; completions are applied only while it is current
    - The reset sequence run on selection change, logout and account switch
    - Routing of inbound viewer events to the playback, audio, summary and
      quiz controllers
    - Emitting full state snapshots to the WebSocket layer via async queue

    The service is unit-testable without sockets.
    """

    def __init__(
        self,
        viewer_id: str,
        session_store: SessionStore,
        catalog: DocumentCatalog,
        extraction: TextExtractionPipeline,
        playback: SpeechPlaybackController,
        audio: AudioGenerationController,
        summary: SummaryController,
        quiz: QuizController,
        outbound_queue: Optional[asyncio.Queue] = None,
    ):
        self.viewer_id = viewer_id
        self.session_store = session_store
        self.catalog = catalog
        self.extraction = extraction
        self.playback = playback
        self.audio = audio
        self.summary = summary
        self.quiz = quiz

        # Asyncio queues for communication
        self.inbound_queue: asyncio.Queue[InboundEvent] = asyncio.Queue()
        self.outbound_queue: asyncio.Queue[OutboundMessage] = outbound_queue or asyncio.Queue()

        # Selection state
        self.view_mode = ViewMode.LIBRARY
        self.selected_document_id: Optional[str] = None
        self.extraction_result: Optional[ExtractionResult] = None
        self.extracting = False
        self.speech_error: Optional[str] = None
        self._selection_token = 0

        # Service state
        self._running = False
        self._closed = False
        self._task: Optional[asyncio.Task] = None
        self._tasks: set[asyncio.Task] = set()

        self.session_store.add_listener(self._on_identity_change)
        self.catalog.add_listener(self._on_catalog_change)
        self.playback.add_listener(self._on_playback_change)
        self.audio.add_listener(self._emit_state)
        self.summary.add_listener(self._emit_state)
        self.quiz.add_listener(self._emit_state)

        logger.info(f"ViewCoordinator created for viewer {viewer_id}")

    @property
    def selection_token(self) -> int:
        return self._selection_token

    @property
    def selected_document(self) -> Optional[DocumentRecord]:
        if self.selected_document_id is None:
            return None
        return self.catalog.find(self.selected_document_id)

    async def start(self):
        """Resolve the identity, start the event loop and emit the first snapshot."""
        if self._running:
            logger.warning(f"Coordinator {self.viewer_id} already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._process_inbound_events())
        await self.session_store.start()
        await self._emit_state()

        logger.info(f"ViewCoordinator {self.viewer_id} started")

    async def stop(self):
        """Tear down and stop the event loop."""
        await self.teardown()
        if not self._running:
            return

        self._running = False
        if self._task and self._task is not asyncio.current_task():
            self._task.cancel()
            await asyncio.wait({self._task})

        logger.info(f"ViewCoordinator {self.viewer_id} stopped")

    async def teardown(self):
        """
        Stop speech and release every subscription.

        In-flight extraction, AI and audio work is not cancelled; it resolves
        against a retired selection token and is discarded.
        """
        if self._closed:
            return
        self._closed = True
        self._selection_token += 1
        self.session_store.stop()
        self.catalog.unbind()
        await self.playback.stop()
        logger.info(f"ViewCoordinator {self.viewer_id} torn down ({len(self._tasks)} tasks in flight)")

    async def _process_inbound_events(self):
        """Main event processing loop."""
        logger.info(f"Event processing started for viewer {self.viewer_id}")

        try:
            while self._running:
                try:
                    event = await asyncio.wait_for(self.inbound_queue.get(), timeout=1.0)
                    await self._handle_event(event)
                except asyncio.TimeoutError:
                    continue
                except Exception as e:
                    logger.error(f"Error processing event: {e}", exc_info=True)
                    await self._emit_error(ErrorCode.INTERNAL_ERROR, f"Internal processing error: {str(e)}")
        finally:
            logger.info(f"Event processing ended for viewer {self.viewer_id}")

    async def _handle_event(self, event: InboundEvent):
        """Route event to appropriate handler based on type."""
        if isinstance(event, SelectDocumentEvent):
            await self.select_document(event.document_id)
        elif isinstance(event, ShowLibraryEvent):
            await self.show_library()
        elif isinstance(event, RetryLibraryEvent):
            await self.retry_library()
        elif isinstance(event, PlaySpeechEvent):
            await self.play_speech()
        elif isinstance(event, PauseSpeechEvent):
            await self.playback.pause()
        elif isinstance(event, StopSpeechEvent):
            await self.playback.stop()
        elif isinstance(event, GenerateAudioEvent):
            await self.generate_audio()
        elif isinstance(event, GenerateSummaryEvent):
            await self.generate_summary()
        elif isinstance(event, GenerateQuizEvent):
            await self.generate_quiz(event.num_questions)
        elif isinstance(event, AnswerQuizEvent):
            await self.answer_quiz(event.index, event.option)
        elif isinstance(event, SubmitQuizEvent):
            await self.submit_quiz()
        elif isinstance(event, RetakeQuizEvent):
            await self.retake_quiz()
        elif isinstance(event, SignInEvent):
            await self.sign_in(event.email, event.password)
        elif isinstance(event, SignOutEvent):
            await self.sign_out()
        elif isinstance(event, CloseEvent):
            await self._handle_close()
        else:
            logger.warning(f"Unknown event type: {type(event)}")

    async def _handle_close(self):
        logger.info(f"Closing viewer {self.viewer_id}")
        await self.stop()

    # ===== Selection =====

    async def select_document(self, document_id: str):
        """Open a document in the reader, resetting everything tied to the old one."""
        record = self.catalog.find(document_id)
        if record is None:
            logger.warning(f"Viewer {self.viewer_id} selected unknown document {document_id}")
            await self._emit_error(ErrorCode.DOCUMENT_NOT_FOUND, "Document not found.")
            return

        await self._reset_selection()
        self.selected_document_id = record.id
        self.view_mode = ViewMode.READER
        logger.info(f"Viewer {self.viewer_id} selected document {record.id} ({record.display_name})")

        if self.extraction_result is None:
            self._start_extraction(record)
        await self._emit_state()

    async def show_library(self):
        """Return to the document list."""
        await self._clear_selection()
        await self._emit_state()

    async def retry_library(self):
        """Reopen the document subscription after it failed."""
        if self.catalog.error is None:
            return
        logger.info(f"Viewer {self.viewer_id} retrying the document list")
        await self.catalog.bind(self.session_store.identity)
        await self._emit_state()

    async def _reset_selection(self):
        """Stop playback, reset controllers and drop the extraction, in that order."""
        self._selection_token += 1
        await self.playback.stop()
        self.audio.reset()
        self.summary.reset()
        self.quiz.reset()
        self.extraction_result = None
        self.extracting = False
        self.speech_error = None

    async def _clear_selection(self):
        await self._reset_selection()
        self.selected_document_id = None
        self.view_mode = ViewMode.LIBRARY

    def _start_extraction(self, record: DocumentRecord):
        token = self._selection_token
        self.extracting = True
        self._spawn(self._run_extraction(record, token), f"extraction of {record.id}")

    async def _run_extraction(self, record: DocumentRecord, token: int):
        try:
            result = await self.extraction.extract(record)
        except Exception as e:
            logger.error(f"Unexpected extraction failure for {record.id}: {e}", exc_info=True)
            result = ExtractionResult.failure(
                record.id,
                ExtractionErrorKind.INVALID,
                f"Failed to process PDF: {e}",
            )

        if token != self._selection_token:
            logger.info(f"Discarding stale extraction result for {record.id}")
            return

        self.extraction_result = result
        self.extracting = False
        await self._emit_state()
        if result.is_empty:
            await self._emit_notice("No text could be extracted from this document.")

    def _current_text(self) -> Optional[str]:
        result = self.extraction_result
        if result is None or not result.ok or result.is_empty:
            return None
        return result.text

    # ===== Identity and catalog reactions =====

    async def _on_identity_change(self, previous: Optional[Identity], current: Optional[Identity]):
        previous_id = previous.subject_id if previous else None
        current_id = current.subject_id if current else None

        if previous_id is not None and previous_id != current_id:
            logger.info(f"Viewer {self.viewer_id} identity changed from {previous_id} to {current_id or 'none'}")
            await self._clear_selection()

        await self.catalog.bind(current)
        await self._emit_state()

    async def _on_catalog_change(self, documents: list[DocumentRecord]):
        if self.selected_document_id and not any(d.id == self.selected_document_id for d in documents):
            logger.info(f"Selected document {self.selected_document_id} disappeared from the catalog")
            await self._clear_selection()
            await self._emit_notice("The selected document is no longer available.")
        await self._emit_state()

    async def _on_playback_change(self, state: PlaybackState):
        await self._emit_state()

    # ===== Speech =====

    async def play_speech(self):
        text = self._current_text()
        if text is None:
            await self._emit_notice("There is no text to read yet.")
            return
        self.speech_error = None
        await self.playback.play(text, on_error=self._on_speech_error)

    async def _on_speech_error(self, reason: str):
        self.speech_error = (
            "Text-to-speech is not supported in this browser."
            if reason == "not-supported"
            else f"Speech synthesis error: {reason}"
        )
        await self._emit_state()

    # ===== Remote audio and AI insights =====

    async def generate_audio(self):
        record = self.selected_document
        text = self._current_text()
        if record is None or text is None:
            await self._emit_notice("Select a document with extracted text first.")
            return
        self._spawn(self.audio.generate(record.id, text), f"audio generation for {record.id}")

    async def generate_summary(self):
        text = self._current_text()
        if text is None:
            await self._emit_notice("Select a document with extracted text first.")
            return
        self._spawn(self.summary.summarize(text), "summary generation")

    async def generate_quiz(self, num_questions: int = 3):
        text = self._current_text()
        if text is None:
            await self._emit_notice("Select a document with extracted text first.")
            return
        self._spawn(self.quiz.generate(text, num_questions), "quiz generation")

    async def answer_quiz(self, index: int, option: str):
        try:
            self.quiz.answer(index, option)
        except ValueError as e:
            await self._emit_error(ErrorCode.INVALID_MESSAGE, str(e))
            return
        await self._emit_state()

    async def submit_quiz(self):
        try:
            self.quiz.submit()
        except ValueError as e:
            await self._emit_error(ErrorCode.INVALID_MESSAGE, str(e))
            return
        await self._emit_state()

    async def retake_quiz(self):
        try:
            self.quiz.retake()
        except ValueError as e:
            await self._emit_error(ErrorCode.INVALID_MESSAGE, str(e))
            return
        await self._emit_state()

    # ===== Account =====

    async def sign_in(self, email: str, password: str):
        try:
            await self.session_store.provider.sign_in(email, password)
        except AuthError as e:
            logger.warning(f"Sign-in failed for viewer {self.viewer_id}: {e.code.value}")
            await self._emit_error(ErrorCode.AUTH_FAILED, e.message)

    async def sign_out(self):
        await self.session_store.provider.sign_out()

    # ===== Tasks =====

    def _spawn(self, coro: Awaitable, description: str) -> asyncio.Task:
        task = asyncio.create_task(self._guard(coro, description))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _guard(self, coro: Awaitable, description: str):
        try:
            await coro
        except AudiobookError as e:
            logger.warning(f"{description} rejected: {e.message}")
            await self._emit_error(_CATEGORY_CODES.get(e.category, ErrorCode.INTERNAL_ERROR), e.message)
        except Exception as e:
            logger.error(f"{description} failed: {e}", exc_info=True)
            await self._emit_error(ErrorCode.INTERNAL_ERROR, "Internal server error")

    async def wait_for_tasks(self):
        """Wait for in-flight background work. Used by tests and shutdown."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ===== Snapshot =====

    def snapshot(self) -> dict:
        """The full view state rendered by the browser."""
        identity = self.session_store.identity
        error = self.session_store.error
        result = self.extraction_result
        audio = self.audio.task
        summary = self.summary.state
        quiz = self.quiz.state
        attempt = quiz.data

        return {
            "session": {
                "status": self.session_store.status.value,
                "identity": identity.model_dump() if identity else None,
                "error": error.to_dict() if error else None,
            },
            "view": self.view_mode.value,
            "documents": [d.to_public_dict() for d in self.catalog.documents],
            "documents_error": self.catalog.error.to_dict() if self.catalog.error else None,
            "selected_document_id": self.selected_document_id,
            "extraction": {
                "loading": self.extracting,
                "status": result.status.value if result else None,
                "text": result.text if result else None,
                "is_empty": result.is_empty if result else False,
                "error_kind": result.error_kind.value if result and result.error_kind else None,
                "message": result.message if result else None,
                "retryable": result.retryable if result else False,
            },
            "playback": {**self.playback.state().to_dict(), "error": self.speech_error},
            "audio": audio.model_dump(mode="json"),
            "summary": {
                "status": summary.status.value,
                "data": summary.data.summary if summary.data else None,
                "error": summary.error,
            },
            "quiz": {
                "status": quiz.status.value,
                "error": quiz.error,
                "data": None
                if attempt is None
                else {
                    "questions": [
                        {
                            "question": q.question,
                            "options": q.options,
                            "answer": q.answer if attempt.submitted else None,
                        }
                        for q in attempt.questions
                    ],
                    "answers": {str(k): v for k, v in attempt.answers.items()},
                    "submitted": attempt.submitted,
                    "score": attempt.score,
                },
            },
        }

    # ===== Outbound message helpers =====

    async def _emit_state(self):
        if self._closed:
            return
        await self.outbound_queue.put(StateMessage(self.snapshot()))

    async def _emit_notice(self, text: str):
        if self._closed:
            return
        await self.outbound_queue.put(NoticeMessage(text))

    async def _emit_error(self, code: ErrorCode, text: str):
        if self._closed:
            return
        await self.outbound_queue.put(ErrorOutMessage(code, text))

    # ===== Public API methods (called by WebSocket handler) =====

    async def submit(self, event: InboundEvent):
        """Queue an inbound event for sequential processing."""
        await self.inbound_queue.put(event)

    async def close(self):
        await self.inbound_queue.put(CloseEvent())
