"""Domain interfaces for the audiobook application."""

from .audio_renderer import AudioRenderer, AudioSynthesizer
from .blob_storage import BlobStorage
from .document_repository import DocumentRepository
from .identity_provider import CredentialVerifier, IdentityProvider
from .insight_client import InsightClient
from .speech_engine import SpeechEngine, UtteranceListener

__all__ = [
    "AudioRenderer",
    "AudioSynthesizer",
    "BlobStorage",
    "CredentialVerifier",
    "DocumentRepository",
    "IdentityProvider",
    "InsightClient",
    "SpeechEngine",
    "UtteranceListener",
]
