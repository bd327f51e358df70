"""Simple stub implementation of InsightClient for testing and development."""

import logging
import re

from ..domain.interfaces.insight_client import InsightClient

logger = logging.getLogger(__name__)

_SENTENCE = re.compile(r"(?<=[.!?])\s+")
_WORD = re.compile(r"[A-Za-z][A-Za-z'-]{3,}")
_FILLER_OPTIONS = ["None of these", "All of these", "Not stated", "Unknown"]


class SimpleInsightClient(InsightClient):
    """
    A deterministic stand-in for the AI collaborator.

    Summaries are the leading sentences of the text. Quiz questions blank
    out the longest word of a sentence and offer other words from the text
    as distractors. Useful offline and in tests; the output is always valid.
    """

    def __init__(self, summary_sentences: int = 3):
        self.summary_sentences = summary_sentences

    async def summarize(self, text: str) -> dict:
        sentences = self._sentences(text)
        summary = " ".join(sentences[: self.summary_sentences]) or text.strip()
        logger.debug(f"SimpleInsightClient summarized {len(text)} chars into {len(summary)}")
        return {"summary": summary}

    async def generate_quiz(self, text: str, num_questions: int) -> dict:
        vocabulary = sorted(set(w.lower() for w in _WORD.findall(text)))
        questions = []

        for sentence in self._sentences(text):
            if len(questions) >= num_questions:
                break
            words = _WORD.findall(sentence)
            if not words:
                continue
            answer = max(words, key=len).lower()
            distractors = [w for w in vocabulary if w != answer][:3]
            distractors += [f for f in _FILLER_OPTIONS if f not in distractors][: 3 - len(distractors)]
            options = sorted([answer] + distractors)
            blanked = re.sub(re.escape(max(words, key=len)), "_____", sentence, count=1)
            questions.append(
                {
                    "question": f"Which word completes the sentence: {blanked}",
                    "options": options,
                    "answer": answer,
                }
            )

        logger.debug(f"SimpleInsightClient generated {len(questions)} quiz questions")
        return {"questions": questions}

    @staticmethod
    def _sentences(text: str) -> list[str]:
        return [s.strip() for s in _SENTENCE.split(" ".join(text.split())) if s.strip()]
