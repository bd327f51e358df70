"""Tests for translating client messages into coordinator events."""

from audiobook_buddy.application.websocket_handler import to_event
from audiobook_buddy.domain.entities.events import GenerateQuizEvent, RetryLibraryEvent, SelectDocumentEvent
from audiobook_buddy.domain.entities.websocket_messages import client_message_adapter


def parse(payload: dict):
    return client_message_adapter.validate_python(payload)


def test_library_retry_becomes_event():
    assert to_event(parse({"type": "library.retry"})) == RetryLibraryEvent()


def test_select_carries_document_id():
    assert to_event(parse({"type": "document.select", "document_id": "doc-1"})) == SelectDocumentEvent("doc-1")


def test_quiz_generate_carries_question_count():
    event = to_event(parse({"type": "quiz.generate", "num_questions": 3}))

    assert event == GenerateQuizEvent(3)
