"""Infrastructure layer components."""

from .audio_renderers import HttpAudioRenderer, LocalAudioRenderer
from .bedrock_insight_client import BedrockInsightClient
from .cognito_identity_provider import CognitoCredentialVerifier, CognitoIdentityProvider
from .dynamodb_document_repository import DynamoDBDocumentRepository
from .gtts_audio_synthesizer import GTTSAudioSynthesizer
from .local_blob_storage import LocalBlobStorage
from .local_document_repository import LocalDocumentRepository
from .local_identity_provider import LocalAccountStore, LocalIdentityProvider
from .s3_blob_storage import S3BlobStorage
from .simple_insight_client import SimpleInsightClient
from .websocket_speech_engine import UnsupportedSpeechEngine, WebSocketSpeechEngine

__all__ = [
    "BedrockInsightClient",
    "CognitoCredentialVerifier",
    "CognitoIdentityProvider",
    "DynamoDBDocumentRepository",
    "GTTSAudioSynthesizer",
    "HttpAudioRenderer",
    "LocalAccountStore",
    "LocalAudioRenderer",
    "LocalBlobStorage",
    "LocalDocumentRepository",
    "LocalIdentityProvider",
    "S3BlobStorage",
    "SimpleInsightClient",
    "UnsupportedSpeechEngine",
    "WebSocketSpeechEngine",
]
