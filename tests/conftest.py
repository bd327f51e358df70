"""Shared fixtures for the audiobook test suite."""

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from audiobook_buddy.domain.entities import DocumentRecord, Identity, SpeechEventType
from audiobook_buddy.infrastructure.local_document_repository import LocalDocumentRepository


class FakeSpeechEngine:
    """Records commands and lets a test fire engine callbacks by utterance id."""

    def __init__(self, supported: bool = True):
        self.supported = supported
        self.calls: list[tuple] = []
        self.listeners: dict = {}
        self.last_utterance_id: Optional[str] = None

    async def speak(self, utterance_id, text, listener):
        self.calls.append(("speak", text))
        self.listeners[utterance_id] = listener
        self.last_utterance_id = utterance_id

    async def pause(self):
        self.calls.append(("pause",))

    async def resume(self):
        self.calls.append(("resume",))

    async def cancel(self):
        self.calls.append(("cancel",))

    def count(self, command: str) -> int:
        return sum(1 for call in self.calls if call[0] == command)

    async def fire(self, utterance_id: str, event: SpeechEventType, reason: Optional[str] = None):
        listener = self.listeners[utterance_id]
        if event == SpeechEventType.START:
            await listener.on_start()
        elif event == SpeechEventType.END:
            await listener.on_end()
        elif event == SpeechEventType.PAUSE:
            await listener.on_pause()
        elif event == SpeechEventType.RESUME:
            await listener.on_resume()
        else:
            await listener.on_error(reason)


class FakeIdentityProvider:
    """Identity provider whose identity is switched directly by tests."""

    def __init__(self, identity: Optional[Identity] = None):
        self._identity = identity
        self._listeners = []
        self.credential = "test-credential"

    @property
    def current_identity(self):
        return self._identity

    async def sign_in(self, email, password):
        identity = Identity(subject_id=f"sub-{email}", email=email)
        await self.switch(identity)
        return identity

    async def sign_up(self, email, password):
        return await self.sign_in(email, password)

    async def sign_out(self):
        await self.switch(None)

    async def resume(self, credential):
        return self._identity

    def on_identity_change(self, listener):
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener) if listener in self._listeners else None

    async def issue_credential(self):
        return self.credential

    async def switch(self, identity: Optional[Identity]):
        self._identity = identity
        for listener in list(self._listeners):
            await listener(identity)


def make_record(owner_id: str, name: str = "book.pdf", minutes_ago: int = 0, **kwargs) -> DocumentRecord:
    return DocumentRecord(
        owner_id=owner_id,
        display_name=name,
        media_type=kwargs.pop("media_type", "application/pdf"),
        byte_size=kwargs.pop("byte_size", 1024),
        source_location=kwargs.pop("source_location", f"file:///tmp/{owner_id}/{name}"),
        created_at=datetime(2026, 1, 13, 10, 0, tzinfo=timezone.utc) - timedelta(minutes=minutes_ago),
        **kwargs,
    )


@pytest.fixture
def alice():
    return Identity(subject_id="alice-sub", email="alice@example.com")


@pytest.fixture
def bob():
    return Identity(subject_id="bob-sub", email="bob@example.com")


@pytest.fixture
def speech_engine():
    return FakeSpeechEngine()


@pytest.fixture
def identity_provider(alice):
    return FakeIdentityProvider(alice)


@pytest.fixture
def repository():
    return LocalDocumentRepository()


@pytest.fixture
def record_factory():
    return make_record
