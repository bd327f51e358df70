import asyncio
import json
import logging
from typing import Optional

from pydantic import ValidationError as PydanticValidationError
from starlette.websockets import WebSocket, WebSocketDisconnect

from ..domain.entities import OutboundMessage
from ..domain.entities.events import (
    AnswerQuizEvent,
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
from ..domain.entities.messages import (
    ErrorOutMessage,
    NoticeMessage,
    SpeechCommandMessage,
    StateMessage,
)
from ..domain.entities.websocket_messages import (
    AudioGenerate,
    ErrorCode,
    QuizAnswer,
    QuizGenerate,
    QuizRetake,
    QuizSubmit,
    RetryLibrary,
    SelectDocument,
    ShowLibrary,
    SignIn,
    SignOut,
    SpeechEngineCallback,
    SpeechPause,
    SpeechPlay,
    SpeechStop,
    SummaryGenerate,
    client_message_adapter,
)
from ..domain.services.view_coordinator import ViewCoordinator
from ..infrastructure.websocket_speech_engine import WebSocketSpeechEngine

logger = logging.getLogger(__name__)


def to_event(message) -> Optional[InboundEvent]:
    """Translate a parsed client message into a coordinator event."""
    match message:
        case SelectDocument():
            return SelectDocumentEvent(message.document_id)
        case ShowLibrary():
            return ShowLibraryEvent()
        case RetryLibrary():
            return RetryLibraryEvent()
        case SpeechPlay():
            return PlaySpeechEvent()
        case SpeechPause():
            return PauseSpeechEvent()
        case SpeechStop():
            return StopSpeechEvent()
        case AudioGenerate():
            return GenerateAudioEvent()
        case SummaryGenerate():
            return GenerateSummaryEvent()
        case QuizGenerate():
            return GenerateQuizEvent(message.num_questions)
        case QuizAnswer():
            return AnswerQuizEvent(message.index, message.option)
        case QuizSubmit():
            return SubmitQuizEvent()
        case QuizRetake():
            return RetakeQuizEvent()
        case SignIn():
            return SignInEvent(message.email, message.password)
        case SignOut():
            return SignOutEvent()
        case _:
            return None


class WebSocketHandler:

    def __init__(self, coordinator: ViewCoordinator, speech_engine: Optional[WebSocketSpeechEngine] = None):
        self._coordinator = coordinator
        self._speech_engine = speech_engine

    async def handle_websocket(self, websocket: WebSocket) -> None:
        # Note: websocket.accept() is called by the API endpoint before this
        send_task = asyncio.create_task(self._send_loop(websocket))
        receive_task = asyncio.create_task(self._receive_loop(websocket))
        try:
            done, _ = await asyncio.wait(
                {send_task, receive_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
            for task in done:
                exc = task.exception()
                if exc:
                    raise exc
        except WebSocketDisconnect:
            logger.info(f"WebSocket disconnected: {websocket.client}")
        except Exception as e:
            logger.error(f"WebSocket error: {e}", exc_info=True)
        finally:
            # Cancel before awaiting anything; teardown itself may be cancelled.
            for t in (send_task, receive_task):
                t.cancel()
            await asyncio.wait({send_task, receive_task})
            await self._coordinator.stop()

            try:
                await websocket.close()
            except RuntimeError as e:
                logger.debug(f"WebSocket already closed: {e}")
            logger.info(f"WebSocket connection closed: {websocket.client}")

    async def _send_loop(self, websocket: WebSocket) -> None:
        while True:
            item: OutboundMessage = await self._coordinator.outbound_queue.get()
            logger.debug(f"_send_loop got message: {type(item).__name__}")

            match item:
                case StateMessage():
                    await websocket.send_text(item.update.model_dump_json())

                case SpeechCommandMessage():
                    await websocket.send_text(item.speech_command.model_dump_json(exclude_none=True))

                case NoticeMessage():
                    await websocket.send_text(item.notice.model_dump_json())

                case ErrorOutMessage():
                    await websocket.send_text(item.error.model_dump_json())

                case _:
                    raise ValueError(f"Unknown OutboundMessage type: {type(item)}")

    async def _receive_loop(self, websocket: WebSocket) -> None:
        """Receive messages from client and forward them to the coordinator."""
        while True:
            data = await websocket.receive()

            if data.get("type") == "websocket.receive" and data.get("text") is not None:
                await self._handle_text(data["text"])

            elif data.get("type") == "websocket.receive":
                await self._reject("Binary messages are not supported")

            elif data.get("type") == "websocket.disconnect":
                logger.info(f"Client disconnected: {data.get('code')}")
                await self._coordinator.close()
                break

    async def _handle_text(self, text: str) -> None:
        try:
            message = client_message_adapter.validate_python(json.loads(text))
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON message: {e}")
            await self._reject("Messages must be JSON objects")
            return
        except PydanticValidationError as e:
            logger.warning(f"Invalid client message: {e.errors()}")
            await self._reject(f"Invalid message: {e.errors()[0]['msg']}")
            return

        if isinstance(message, SpeechEngineCallback):
            # Engine callbacks bypass the event queue; the controller may be
            # waiting on the engine while the queue is busy.
            if self._speech_engine is not None:
                await self._speech_engine.dispatch(message.utterance_id, message.event, message.reason)
            return

        event = to_event(message)
        if event is None:
            await self._reject(f"Unsupported message type: {message.type}")
            return
        await self._coordinator.submit(event)

    async def _reject(self, text: str) -> None:
        await self._coordinator.outbound_queue.put(ErrorOutMessage(ErrorCode.INVALID_MESSAGE, text))
