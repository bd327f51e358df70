"""Summary and quiz controllers over the AI insight collaborator."""

import logging
from typing import Awaitable, Callable, Generic, Optional, TypeVar

import pydantic

from ..entities.errors import AuthorizationError, ErrorCategory, error_payload
from ..entities.insights import InsightState, Quiz, QuizAttempt, Summary, TaskStatus
from ..interfaces.insight_client import InsightClient
from .session_store import SessionStore

logger = logging.getLogger(__name__)

MIN_SUMMARY_TEXT_LENGTH = 10
MAX_QUIZ_QUESTIONS = 20

T = TypeVar("T")
ChangeListener = Callable[[], Awaitable[None]]


class _InsightController(Generic[T]):
    """Shared lifecycle: identity check, staleness token, error classification."""

    kind = "insight"

    def __init__(self, client: InsightClient, session_store: SessionStore):
        self._client = client
        self._session_store = session_store
        self._state: InsightState[T] = InsightState()
        self._generation = 0
        self._listeners: list[ChangeListener] = []

    @property
    def state(self) -> InsightState[T]:
        return self._state

    def add_listener(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def reset(self) -> None:
        """Drop the current result and retire any in-flight request."""
        self._generation += 1
        self._state = InsightState()

    async def _reject_anonymous(self) -> Optional[InsightState[T]]:
        """Move to the error state when nobody is signed in."""
        if self._session_store.identity is not None:
            return None
        self._generation += 1
        logger.warning(f"Rejected {self.kind} request without an identity")
        return await self._fail(AuthorizationError(f"Please sign in to generate a {self.kind}.").to_dict())

    async def _run(self, request: Callable[[], Awaitable[T]]) -> InsightState[T]:
        self._generation += 1
        generation = self._generation
        # Keep the previous result visible until the new one replaces it.
        self._state = InsightState(status=TaskStatus.PENDING, data=self._state.data)
        await self._notify()

        try:
            data = await request()
        except pydantic.ValidationError as e:
            if generation != self._generation:
                return self._state
            logger.error(f"Invalid {self.kind} response: {e}")
            return await self._fail(
                {
                    "category": ErrorCategory.VALIDATION.value,
                    "message": f"The AI returned an unexpected {self.kind} format. Please try again.",
                }
            )
        except Exception as e:
            if generation != self._generation:
                logger.info(f"Discarding stale {self.kind} failure: {e}")
                return self._state
            logger.error(f"Failed to generate {self.kind}: {e}", exc_info=True)
            return await self._fail(error_payload(e, f"Failed to generate {self.kind}. Please try again."))

        if generation != self._generation:
            logger.info(f"Discarding stale {self.kind} result")
            return self._state

        self._state = InsightState(status=TaskStatus.READY, data=data)
        await self._notify()
        return self._state

    async def _fail(self, error: dict) -> InsightState[T]:
        self._state = InsightState(status=TaskStatus.ERROR, error=error)
        await self._notify()
        return self._state

    async def _notify(self) -> None:
        for listener in list(self._listeners):
            await listener()


class SummaryController(_InsightController[Summary]):
    kind = "summary"

    async def summarize(self, text: str) -> InsightState[Summary]:
        """Generate a summary of ``text``. Without an identity the state becomes an authorization error."""
        rejected = await self._reject_anonymous()
        if rejected is not None:
            return rejected

        if len((text or "").strip()) < MIN_SUMMARY_TEXT_LENGTH:
            self._generation += 1
            return await self._fail(
                {
                    "category": ErrorCategory.VALIDATION.value,
                    "message": "Not enough text to summarize.",
                }
            )

        async def request() -> Summary:
            response = await self._client.summarize(text)
            return Summary.model_validate(response)

        return await self._run(request)


class QuizController(_InsightController[QuizAttempt]):
    kind = "quiz"

    async def generate(self, text: str, count: int = 3) -> InsightState[QuizAttempt]:
        """Generate a new quiz, replacing any previous attempt."""
        rejected = await self._reject_anonymous()
        if rejected is not None:
            return rejected

        if not (text or "").strip():
            self._generation += 1
            return await self._fail(
                {"category": ErrorCategory.VALIDATION.value, "message": "No text available for the quiz."}
            )
        count = max(1, min(count, MAX_QUIZ_QUESTIONS))

        async def request() -> QuizAttempt:
            response = await self._client.generate_quiz(text, count)
            return QuizAttempt.from_quiz(Quiz.model_validate(response))

        return await self._run(request)

    def answer(self, index: int, option: str) -> None:
        """Record an answer for the current attempt.

        Raises:
            ValueError: If there is no quiz or the answer is not part of it.
        """
        attempt = self._require_attempt()
        attempt.answer(index, option)

    def submit(self) -> float:
        attempt = self._require_attempt()
        score = attempt.submit()
        logger.info(f"Quiz submitted with score {score:.0f}%")
        return score

    def retake(self) -> None:
        self._require_attempt().retake()

    def _require_attempt(self) -> QuizAttempt:
        attempt: Optional[QuizAttempt] = self._state.data
        if attempt is None:
            raise ValueError("No quiz has been generated")
        return attempt
