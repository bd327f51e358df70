"""Fixtures for tests that drive the FastAPI application in process."""

import io
import os
import tempfile
import uuid
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from PyPDF2 import PdfWriter

# Settings are read when the application module is imported.
os.environ.setdefault("LOCAL_STORAGE_DIR", tempfile.mkdtemp(prefix="audiobook-test-"))
os.environ.setdefault("JWT_SECRET", "integration-test-secret")

from audiobook_buddy.application import api  # noqa: E402


@pytest.fixture
def client(monkeypatch):
    synthesizer = MagicMock()
    synthesizer.synthesize.return_value = b"ID3 integration audio"
    monkeypatch.setattr(api.render_service, "synthesizer", synthesizer)
    with TestClient(api.app) as test_client:
        yield test_client


@pytest.fixture
def blank_pdf():
    writer = PdfWriter()
    writer.add_blank_page(width=72, height=72)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def sign_up(client: TestClient) -> tuple[str, dict]:
    email = f"reader-{uuid.uuid4().hex[:8]}@example.com"
    response = client.post("/auth/sign-up", json={"email": email, "password": "secret123"})
    assert response.status_code == 200, response.text
    body = response.json()
    return body["token"], body["identity"]


@pytest.fixture
def make_account(client):
    return lambda: sign_up(client)


@pytest.fixture
def account(make_account):
    return make_account()


@pytest.fixture
def other_account(make_account):
    return make_account()
