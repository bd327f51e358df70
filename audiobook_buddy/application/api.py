"""FastAPI application entry point."""

import logging
from typing import Optional

import pydantic
from fastapi import FastAPI, File, Header, HTTPException, Query, UploadFile, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from pydantic import BaseModel, ConfigDict, Field

from ..domain.entities.errors import (
    AudiobookError,
    AuthError,
    AuthErrorCode,
    AuthorizationError,
    ConfigurationError,
    DocumentAccessError,
    ValidationError,
)
from ..domain.services.audio_render import AudioRenderService
from ..infrastructure.audio_renderers import HttpAudioRenderer, LocalAudioRenderer
from ..infrastructure.bedrock_insight_client import BedrockInsightClient
from ..infrastructure.cognito_identity_provider import CognitoCredentialVerifier, CognitoIdentityProvider
from ..infrastructure.dynamodb_document_repository import DynamoDBDocumentRepository
from ..infrastructure.gtts_audio_synthesizer import GTTSAudioSynthesizer
from ..infrastructure.local_blob_storage import LocalBlobStorage
from ..infrastructure.local_document_repository import LocalDocumentRepository
from ..infrastructure.local_identity_provider import LocalAccountStore, LocalIdentityProvider
from ..infrastructure.s3_blob_storage import S3BlobStorage
from ..infrastructure.simple_insight_client import SimpleInsightClient
from .config import settings
from .controller import AudiobookController

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI app instance
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize providers based on configuration
if settings.identity_provider_type == "cognito":
    credential_verifier = CognitoCredentialVerifier(settings.cognito_client_id or "", settings.aws_region)

    def identity_provider_factory():
        return CognitoIdentityProvider(settings.cognito_client_id or "", settings.aws_region)

else:
    credential_verifier = LocalAccountStore(
        jwt_secret=settings.jwt_secret,
        jwt_algorithm=settings.jwt_algorithm,
        token_expiry_minutes=settings.jwt_expiry_minutes,
    )

    def identity_provider_factory():
        return LocalIdentityProvider(credential_verifier)


if settings.storage_backend == "aws":
    document_repository = DynamoDBDocumentRepository(
        table_name=settings.documents_table_name,
        owner_index_name=settings.documents_owner_index,
        region_name=settings.aws_region,
        poll_interval=settings.catalog_poll_interval,
    )
    blob_storage = S3BlobStorage(bucket_name=settings.storage_bucket_name, region_name=settings.aws_region)
else:
    document_repository = LocalDocumentRepository()
    blob_storage = LocalBlobStorage(base_dir=settings.local_storage_dir)
    logger.warning(f"Using local storage in {settings.local_storage_dir}; intended for development only")

if settings.insight_client_type == "bedrock":
    insight_client = BedrockInsightClient(
        model_id=settings.bedrock_model_id,
        region_name=settings.aws_region,
        max_tokens=settings.bedrock_max_tokens,
        temperature=settings.bedrock_temperature,
    )
else:
    insight_client = SimpleInsightClient()

render_service = AudioRenderService(
    verifier=credential_verifier,
    synthesizer=GTTSAudioSynthesizer(language=settings.audio_language),
    storage=blob_storage,
    min_text_length=settings.audio_min_text_length,
    max_text_length=settings.audio_max_text_length,
)

if settings.audio_renderer_type == "http":
    audio_renderer = HttpAudioRenderer(settings.audio_render_endpoint)
else:
    audio_renderer = LocalAudioRenderer(render_service)

# Initialize controller with injected dependencies
controller = AudiobookController(
    identity_provider_factory=identity_provider_factory,
    credential_verifier=credential_verifier,
    document_repository=document_repository,
    blob_storage=blob_storage,
    insight_client=insight_client,
    audio_renderer=audio_renderer,
    render_service=render_service,
)


# ===== Request models =====


class CredentialsRequest(BaseModel):
    email: str
    password: str


class GenerateAudioRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str
    document_id: str = Field(alias="documentId")


class SummaryRequest(BaseModel):
    text: str


class QuizRequest(BaseModel):
    text: str
    num_questions: int = Field(default=3, ge=1, le=20)


# ===== Error mapping =====


def _bearer(authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.lower().startswith("bearer "):
        return authorization[7:].strip()
    return None


_AUTH_STATUS = {
    AuthErrorCode.INVALID_CREDENTIAL: 401,
    AuthErrorCode.EMAIL_IN_USE: 409,
    AuthErrorCode.WEAK_PASSWORD: 400,
    AuthErrorCode.INVALID_EMAIL: 400,
    AuthErrorCode.NETWORK: 503,
    AuthErrorCode.RATE_LIMITED: 429,
    AuthErrorCode.CONFIGURATION_INVALID: 503,
}


def _http_error(e: Exception, action: str) -> HTTPException:
    if isinstance(e, AuthError):
        return HTTPException(status_code=_AUTH_STATUS[e.code], detail=e.message)
    if isinstance(e, AuthorizationError):
        return HTTPException(status_code=401, detail=e.message)
    if isinstance(e, DocumentAccessError):
        return HTTPException(status_code=403, detail=e.message)
    if isinstance(e, ValidationError):
        return HTTPException(status_code=400, detail=e.message)
    if isinstance(e, ConfigurationError):
        logger.error(f"Configuration error while {action}: {e}")
        return HTTPException(status_code=503, detail=e.message)
    if isinstance(e, pydantic.ValidationError):
        logger.error(f"Malformed AI response while {action}: {e}")
        return HTTPException(status_code=502, detail="The AI returned an unexpected format. Please try again.")
    if isinstance(e, ValueError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, AudiobookError):
        logger.error(f"Error while {action}: {e}")
        return HTTPException(status_code=503, detail=e.message)
    logger.error(f"Error while {action}: {e}", exc_info=True)
    return HTTPException(status_code=500, detail="Internal server error")


# ===== Routes =====


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return controller.get_health_status()


@app.post("/auth/sign-up")
async def sign_up(request: CredentialsRequest):
    """Create an account and return a bearer token."""
    try:
        return await controller.sign_up(request.email, request.password)
    except Exception as e:
        raise _http_error(e, "signing up")


@app.post("/auth/sign-in")
async def sign_in(request: CredentialsRequest):
    """Sign in and return a bearer token."""
    try:
        return await controller.sign_in(request.email, request.password)
    except Exception as e:
        raise _http_error(e, "signing in")


@app.get("/documents")
async def list_documents(authorization: Optional[str] = Header(None)):
    """List the caller's documents, newest first."""
    try:
        return {"documents": await controller.list_documents(_bearer(authorization))}
    except Exception as e:
        raise _http_error(e, "listing documents")


@app.post("/documents", status_code=201)
async def upload_document(
    file: UploadFile = File(...),
    authorization: Optional[str] = Header(None),
):
    """Upload a PDF or ePUB file."""
    try:
        data = await file.read()
        return await controller.upload_document(
            _bearer(authorization),
            file.filename or "document",
            data,
            file.content_type or "application/octet-stream",
        )
    except Exception as e:
        raise _http_error(e, f"uploading {file.filename}")


@app.delete("/documents/{document_id}", status_code=204)
async def delete_document(document_id: str, authorization: Optional[str] = Header(None)):
    """Delete a document together with its stored files."""
    try:
        await controller.delete_document(_bearer(authorization), document_id)
    except Exception as e:
        raise _http_error(e, f"deleting document {document_id}")


@app.post("/api/generate-audio")
async def generate_audio(request: GenerateAudioRequest, authorization: Optional[str] = Header(None)):
    """Render text to an MP3 file and return its URL."""
    try:
        return await controller.generate_audio(_bearer(authorization), request.document_id, request.text)
    except Exception as e:
        raise _http_error(e, f"generating audio for {request.document_id}")


@app.post("/api/summarize")
async def summarize(request: SummaryRequest, authorization: Optional[str] = Header(None)):
    """Summarize a chapter of text."""
    try:
        return await controller.summarize(_bearer(authorization), request.text)
    except Exception as e:
        raise _http_error(e, "summarizing")


@app.post("/api/quiz")
async def generate_quiz(request: QuizRequest, authorization: Optional[str] = Header(None)):
    """Generate multiple-choice questions from text."""
    try:
        return await controller.generate_quiz(_bearer(authorization), request.text, request.num_questions)
    except Exception as e:
        raise _http_error(e, "generating a quiz")


@app.get("/media/{key:path}")
async def get_media(
    key: str,
    token: Optional[str] = Query(None),
    authorization: Optional[str] = Header(None),
):
    """
    Serve files from local blob storage to their owner.

    Local storage is for development; deployed stacks hand out S3 URLs
    instead. Keys look like ``<folder>/<owner_id>/<name>`` and only the
    owner may read them. Audio elements cannot send headers, so the
    credential may also be passed as ``?token=``.
    """
    if not isinstance(blob_storage, LocalBlobStorage):
        raise HTTPException(status_code=404, detail="Not found")
    try:
        identity = await controller.authenticate(_bearer(authorization) or token)
    except Exception as e:
        raise _http_error(e, f"serving {key}")
    try:
        path = blob_storage.path_for(key)
    except ValidationError:
        raise HTTPException(status_code=404, detail="Not found")

    parts = path.relative_to(blob_storage.base_dir).parts
    if len(parts) < 3 or parts[1] != identity.subject_id:
        logger.warning(f"{identity.subject_id} requested media they do not own: {key}")
        raise HTTPException(status_code=403, detail="You do not have access to this file.")
    if not path.is_file():
        raise HTTPException(status_code=404, detail="File not found")
    return FileResponse(path)


@app.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    speech: bool = Query(True),
):
    """
    WebSocket endpoint for viewer sessions.

    Args:
        websocket: WebSocket connection
        token: Bearer credential from a previous sign-in (query parameter)
        speech: Whether the browser supports speech synthesis

    Connection lifecycle:
    1. Client connects, optionally with a token to resume its session
    2. Server pushes a ``state`` snapshot and keeps pushing on every change
    3. Client sends intents; the browser relays ``speech.event`` callbacks
    4. On disconnect, speech stops and subscriptions are released
    """
    await websocket.accept()

    try:
        await controller.handle_websocket_connection(
            websocket=websocket,
            token=token,
            speech_supported=speech,
        )
    except Exception as e:
        logger.error(f"Error handling websocket connection: {e}", exc_info=True)
        try:
            await websocket.close()
        except RuntimeError:
            pass
