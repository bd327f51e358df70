"""Unit tests for summary and quiz entities."""

import pydantic
import pytest

from audiobook_buddy.domain.entities import Quiz, QuizAttempt, QuizQuestion, Summary, score_quiz


class TestQuizQuestion:
    """Tests for QuizQuestion validation."""

    def test_valid_question(self):
        question = QuizQuestion(question="Capital of France?", options=["Berlin", "Paris", "London", "Rome"], answer="Paris")
        assert question.answer == "Paris"

    @pytest.mark.parametrize("options", [["A", "B", "C"], ["A", "B", "C", "D", "E"]])
    def test_requires_exactly_four_options(self, options):
        with pytest.raises(pydantic.ValidationError):
            QuizQuestion(question="Q?", options=options, answer="A")

    def test_answer_must_be_an_option(self):
        with pytest.raises(pydantic.ValidationError, match="not one of the options"):
            QuizQuestion(question="Q?", options=["A", "B", "C", "D"], answer="E")


class TestQuiz:
    """Tests for Quiz validation of collaborator responses."""

    def test_accepts_valid_payload(self):
        quiz = Quiz.model_validate(
            {"questions": [{"question": "Q?", "options": ["A", "B", "C", "D"], "answer": "C"}]}
        )
        assert len(quiz.questions) == 1

    def test_rejects_empty_quiz(self):
        with pytest.raises(pydantic.ValidationError):
            Quiz.model_validate({"questions": []})

    def test_one_bad_question_rejects_the_whole_quiz(self):
        payload = {
            "questions": [
                {"question": "Q1?", "options": ["A", "B", "C", "D"], "answer": "A"},
                {"question": "Q2?", "options": ["A", "B"], "answer": "A"},
            ]
        }
        with pytest.raises(pydantic.ValidationError):
            Quiz.model_validate(payload)


class TestScoring:
    """Tests for quiz scoring."""

    def test_half_correct_scores_fifty(self):
        questions = [
            QuizQuestion(question="Q1", options=["A", "B", "C", "D"], answer="B"),
            QuizQuestion(question="Q2", options=["E", "F", "G", "H"], answer="H"),
        ]
        assert score_quiz(questions, {0: "B", 1: "G"}) == 50

    def test_unanswered_questions_count_as_wrong(self):
        questions = [QuizQuestion(question="Q1", options=["A", "B", "C", "D"], answer="B")]
        assert score_quiz(questions, {}) == 0


class TestQuizAttempt:
    """Tests for answering, submitting and retaking."""

    @pytest.fixture
    def attempt(self):
        quiz = Quiz(
            questions=[
                QuizQuestion(question="Q1", options=["A", "B", "C", "D"], answer="B"),
                QuizQuestion(question="Q2", options=["E", "F", "G", "H"], answer="H"),
            ]
        )
        return QuizAttempt.from_quiz(quiz)

    def test_answer_and_submit(self, attempt):
        attempt.answer(0, "B")
        attempt.answer(1, "H")

        assert attempt.submit() == 100
        assert attempt.submitted

    def test_answer_must_be_an_option(self, attempt):
        with pytest.raises(ValueError):
            attempt.answer(0, "Z")

    def test_answer_index_must_exist(self, attempt):
        with pytest.raises(ValueError):
            attempt.answer(5, "A")

    def test_answers_ignored_after_submit(self, attempt):
        attempt.answer(0, "A")
        attempt.submit()

        attempt.answer(0, "B")

        assert attempt.answers == {0: "A"}

    def test_retake_clears_answers(self, attempt):
        attempt.answer(0, "B")
        attempt.submit()

        attempt.retake()

        assert attempt.answers == {}
        assert not attempt.submitted
        assert attempt.score is None


class TestSummary:
    """Tests for Summary validation."""

    def test_strips_whitespace(self):
        assert Summary(summary="  Key ideas.  ").summary == "Key ideas."

    @pytest.mark.parametrize("payload", [{"summary": ""}, {"summary": "   "}, {}, {"summary": 42}])
    def test_rejects_invalid_payloads(self, payload):
        with pytest.raises(pydantic.ValidationError):
            Summary.model_validate(payload)
