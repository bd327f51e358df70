"""Insight client protocol."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class InsightClient(Protocol):
    """The AI collaborator producing summaries and quizzes.

    Responses are untrusted JSON-shaped dictionaries; controllers validate
    them before use.
    """

    async def summarize(self, text: str) -> dict:
        """Return ``{"summary": str}``."""
        ...

    async def generate_quiz(self, text: str, num_questions: int) -> dict:
        """Return ``{"questions": [{"question", "options", "answer"}]}``."""
        ...
