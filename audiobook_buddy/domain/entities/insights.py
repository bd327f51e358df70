"""Derived artifact entities: generated audio, summaries and quizzes."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

QUIZ_OPTION_COUNT = 4

T = TypeVar("T")


class TaskStatus(str, Enum):
    """Lifecycle of an independently triggered remote task."""

    IDLE = "idle"
    PENDING = "pending"
    READY = "ready"
    ERROR = "error"


class AudioGenerationTask(BaseModel):
    """Server-rendered audio for the selected document."""

    status: TaskStatus = TaskStatus.IDLE
    document_id: Optional[str] = None
    result_location: Optional[str] = None
    error_category: Optional[str] = None
    error_message: Optional[str] = None


class Summary(BaseModel):
    """A concise summary of the extracted text."""

    model_config = ConfigDict(frozen=True)

    summary: str = Field(min_length=1)

    @field_validator("summary")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("summary must not be blank")
        return value.strip()


class QuizQuestion(BaseModel):
    """One multiple-choice question. The answer must be one of the four options."""

    model_config = ConfigDict(frozen=True)

    question: str = Field(min_length=1)
    options: list[str] = Field(min_length=QUIZ_OPTION_COUNT, max_length=QUIZ_OPTION_COUNT)
    answer: str

    @model_validator(mode="after")
    def _answer_is_an_option(self) -> "QuizQuestion":
        if self.answer not in self.options:
            raise ValueError(f"answer {self.answer!r} is not one of the options")
        return self


class Quiz(BaseModel):
    """A quiz as accepted from the insight collaborator."""

    model_config = ConfigDict(frozen=True)

    questions: list[QuizQuestion] = Field(min_length=1)


class QuizAttempt(BaseModel):
    """The user's progress through a generated quiz."""

    questions: list[QuizQuestion]
    answers: dict[int, str] = Field(default_factory=dict)
    submitted: bool = False
    score: Optional[float] = None

    @classmethod
    def from_quiz(cls, quiz: Quiz) -> "QuizAttempt":
        return cls(questions=list(quiz.questions))

    def answer(self, index: int, option: str) -> None:
        """Record an answer.

        Raises:
            ValueError: If the index or option is not part of the quiz.
        """
        if self.submitted:
            return
        if not 0 <= index < len(self.questions):
            raise ValueError(f"Question {index} does not exist")
        if option not in self.questions[index].options:
            raise ValueError(f"{option!r} is not an option for question {index}")
        self.answers[index] = option

    def submit(self) -> float:
        self.score = score_quiz(self.questions, self.answers)
        self.submitted = True
        return self.score

    def retake(self) -> None:
        self.answers.clear()
        self.submitted = False
        self.score = None


def score_quiz(questions: list[QuizQuestion], answers: dict[int, str]) -> float:
    """Percentage of questions whose recorded answer is the correct option."""
    if not questions:
        return 0.0
    correct = sum(1 for i, q in enumerate(questions) if answers.get(i) == q.answer)
    return 100 * correct / len(questions)


@dataclass
class InsightState(Generic[T]):
    """The ``{status, data, error}`` shape every controller exposes."""

    status: TaskStatus = TaskStatus.IDLE
    data: Optional[T] = None
    error: Optional[dict] = field(default=None)

    @property
    def loading(self) -> bool:
        return self.status == TaskStatus.PENDING
