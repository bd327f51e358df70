"""Application configuration using Pydantic Settings."""

from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application settings
    app_name: str = "audiobook-buddy"
    app_version: str = "0.1.0"
    debug: bool = False

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Logging
    log_level: str = "INFO"

    # Backend selection
    identity_provider_type: Literal["local", "cognito"] = "local"
    storage_backend: Literal["local", "aws"] = "local"
    insight_client_type: Literal["simple", "bedrock"] = "simple"
    audio_renderer_type: Literal["local", "http"] = "local"

    # Local identity provider
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expiry_minutes: int = 60

    # Local storage
    local_storage_dir: str = "storage"

    # AWS settings
    aws_region: str = "us-east-1"
    documents_table_name: str = "AudiobookDocuments"
    documents_owner_index: str = "owner_id-created_at-index"
    storage_bucket_name: str = "audiobook-buddy-files"
    cognito_client_id: Optional[str] = None

    # Bedrock insight client
    bedrock_model_id: str = "anthropic.claude-3-5-sonnet-20241022-v2:0"
    bedrock_max_tokens: int = 2000
    bedrock_temperature: float = 0.2

    # Audio rendering
    audio_render_endpoint: str = "http://localhost:8000/api/generate-audio"
    audio_language: str = "en"
    audio_min_text_length: int = 10
    audio_max_text_length: int = 100_000

    # Live catalog polling (DynamoDB backend)
    catalog_poll_interval: float = 5.0


# Create a singleton instance
settings = Settings()
