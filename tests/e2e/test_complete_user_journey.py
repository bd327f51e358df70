"""
End-to-end test for the audiobook user journey against a running server.

This test covers the complete user flow:
1. Sign up and receive a bearer token
2. Upload a PDF and see it in GET /documents
3. WebSocket connection with the token and document selection
4. Server-rendered audio for the document
5. Deletion of the document and its files

Start the server with ``python run.py`` before running these tests; they
are skipped when nothing is listening on BASE_URL.
"""

import asyncio
import io
import json
import logging
import uuid

import httpx
import pytest
import websockets
from PyPDF2 import PdfWriter

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Test configuration
BASE_URL = "http://localhost:8000"
WS_URL = "ws://localhost:8000/ws"


def _server_available() -> bool:
    try:
        return httpx.get(f"{BASE_URL}/health", timeout=1.0).status_code == 200
    except httpx.HTTPError:
        return False


pytestmark = pytest.mark.skipif(not _server_available(), reason=f"No server running at {BASE_URL}")


def generate_blank_pdf(pages: int = 1) -> bytes:
    """Generate a PDF whose pages carry no text."""
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=612, height=792)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


async def receive_until(websocket, message_type: str, timeout: float = 10.0) -> dict:
    """Receive WebSocket messages until one of ``message_type`` arrives."""
    while True:
        raw = await asyncio.wait_for(websocket.recv(), timeout=timeout)
        message = json.loads(raw)
        logger.info(f"Received {message['type']}")
        if message["type"] == message_type:
            return message


@pytest.mark.asyncio
async def test_complete_user_journey():
    """Test the complete user journey from sign-up to deleting a document."""

    # Step 1: Sign up
    email = f"e2e-{uuid.uuid4().hex[:8]}@example.com"
    logger.info(f"Step 1: Signing up {email}")
    async with httpx.AsyncClient(base_url=BASE_URL) as client:
        response = await client.post("/auth/sign-up", json={"email": email, "password": "secret123"})
        assert response.status_code == 200
        token = response.json()["token"]
        headers = {"Authorization": f"Bearer {token}"}

        # Step 2: Upload a PDF
        logger.info("Step 2: Uploading a PDF")
        response = await client.post(
            "/documents",
            files={"file": ("journey.pdf", generate_blank_pdf(2), "application/pdf")},
            headers=headers,
        )
        assert response.status_code == 201
        document_id = response.json()["id"]

        response = await client.get("/documents", headers=headers)
        assert [d["id"] for d in response.json()["documents"]] == [document_id]

    # Step 3: Open the document over the WebSocket
    logger.info(f"Step 3: Connecting to WebSocket and selecting {document_id}")
    async with websockets.connect(f"{WS_URL}?token={token}") as websocket:
        state = await receive_until(websocket, "state")
        assert state["state"]["session"]["identity"]["email"] == email

        await websocket.send(json.dumps({"type": "document.select", "document_id": document_id}))
        notice = await receive_until(websocket, "notice")
        assert notice["message"] == "No text could be extracted from this document."

        await websocket.close()

    async with httpx.AsyncClient(base_url=BASE_URL, timeout=120.0) as client:
        # Step 4: Render audio
        logger.info("Step 4: Rendering audio")
        response = await client.post(
            "/api/generate-audio",
            json={"text": "A short passage read aloud for the journey test.", "documentId": document_id},
            headers=headers,
        )
        assert response.status_code in (200, 503)
        if response.status_code == 200:
            assert response.json()["audioUrl"]

        # Step 5: Delete the document
        logger.info("Step 5: Deleting the document")
        response = await client.delete(f"/documents/{document_id}", headers=headers)
        assert response.status_code == 204
        response = await client.get("/documents", headers=headers)
        assert response.json()["documents"] == []

    logger.info("Complete user journey test passed")


@pytest.mark.asyncio
async def test_websocket_rejects_invalid_messages():
    """Test that malformed client messages are answered with an error."""
    async with websockets.connect(WS_URL) as websocket:
        await receive_until(websocket, "state")

        await websocket.send("not json")
        error = await receive_until(websocket, "error")

        assert error["code"] == "INVALID_MESSAGE"
